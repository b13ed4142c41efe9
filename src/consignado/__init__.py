"""
consignado

Extraction engine for reconciling payroll-deduction (consignado) files
sent by the bank against the municipality's payroll reports.
"""

__version__ = '0.1.0'
