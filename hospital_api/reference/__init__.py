"""
Reference data: geography, medical specialties, diagnoses and treatments.
"""
