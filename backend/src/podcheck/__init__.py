"""
podcheck - index field validation for proof-of-delivery capture batches.

Enforces customer/invoice field lengths and verifies the customer/invoice
combination against the backend order table.
"""

__version__ = "0.1.0"
