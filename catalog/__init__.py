"""Library Catalog - Core Package

This package contains the core catalog modules:
- Record types (book.py, member.py, loan.py)
- Catalog logic and business rules (library.py)
- Persistence gateway (storage.py)
- Shell output helpers (ui_helpers.py)
"""
