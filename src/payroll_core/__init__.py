"""Payroll issuance and lifecycle core."""

__version__ = "1.0.0"
