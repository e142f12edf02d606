"""
Stafma Payroll - Routers Package

FastAPI route handlers.

Routers:
- payroll: Payroll runs, history, transactions and salary advances
- employees: Employee roster
- leave: Leave requests
"""
