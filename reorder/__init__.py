"""
Audit Order Reconciliation

Deterministic replay of address-line audit history to repair ordinal positions.
"""

__version__ = "0.1.0"
