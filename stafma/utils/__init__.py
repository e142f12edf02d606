"""
Stafma Payroll - Utilities
"""
