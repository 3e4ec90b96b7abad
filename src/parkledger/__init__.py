"""
Parking Ledger

Slot allocation, ticketing and billing for a multi-category parking lot.
"""

__version__ = "1.0.0"
