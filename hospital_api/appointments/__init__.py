"""
Appointment booking and the appointment status state machine.
"""
