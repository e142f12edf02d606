"""
Stafma Payroll - Services Package

Business logic services. Import services from their modules; the models
depend on the calculator and gateway dataclasses, so this package stays
free of eager imports.
"""
