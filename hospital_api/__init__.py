"""
Hospital management backend.

Doctor schedules, capacity-checked appointment booking, the person registry,
clinical records and user notifications behind a FastAPI application.
"""
__version__ = "1.0.0"
