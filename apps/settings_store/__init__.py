"""
Settings store application.

Key/value system configuration with structured values and last-editor tracking.
"""
