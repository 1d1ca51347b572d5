"""
Panchayath domain resources: panchayaths, field agents and management teams.

Every write is captured in the audit trail.
"""
