"""
Inventory Kernel

Shared foundation for the inventory movement engine:
- Structured logging and typed exceptions
- Injectable clock and scheduler
- Read-only persistence layer (ORM models, selectors)
"""

__version__ = "0.1.0"
