"""
Doctor availability: weekly schedule templates and their per-date instances.
"""
