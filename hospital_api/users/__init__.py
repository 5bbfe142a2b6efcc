"""
Shared identity records for every person known to the hospital.
"""
