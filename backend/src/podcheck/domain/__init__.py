"""
Domain package - Core business logic with no external dependencies.

This package contains pure Python domain models and validation rules
for proof-of-delivery index fields (customer number, invoice number).
"""
