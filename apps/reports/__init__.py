"""
Reporting surface: dashboard counts and breakdowns over the back-office data.
"""
