"""
                Restaurant Booking API

A REST backend for a restaurant reservation app: accounts, a searchable
restaurant catalog and reservation management, on SQL or in-memory storage.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
