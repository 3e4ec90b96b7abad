"""Unit tests for the Parking Ledger"""
