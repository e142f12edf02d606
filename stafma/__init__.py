"""
Stafma Payroll

Multi-tenant payroll: statutory deductions, monthly payroll runs, salary
advances, leave requests and simulated bank disbursement.
"""

__version__ = "1.0.0"
