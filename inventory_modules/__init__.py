"""
Inventory Modules.

Domain glue over the inventory kernel and engines.  Each module contains:
- Domain models (the nouns)
- Policy tables (reason codes, defaults)
- Configuration schemas (policy and settings)

Modules:
- Movements: stock movement documents (receipts, issues, transfers,
  adjustments, damage/waste/loss, block/unblock, count adjustments,
  reversals)
"""

from inventory_modules import movements

__all__ = ["movements"]
