"""
Inventory Services -- stateful orchestration over engines and ports.

Services:
    StockAvailabilityResolver -- generation-guarded balance/location fetches
    BatchRowReconciler        -- batch rows with debounced availability lookups
    MovementEditingSession    -- one in-progress movement document
    SqlStockLookup            -- StockLookupPort over the SQLAlchemy read model
"""

from inventory_services.availability import (
    FetchPlan,
    StockAvailabilityResolver,
    build_fetch_plan,
)
from inventory_services.batch_editor import BatchRowReconciler
from inventory_services.movement_session import (
    MovementEditingSession,
    MovementPrefill,
    SubmissionOutcome,
    SubmissionStatus,
)
from inventory_services.ports import (
    LocationCapacity,
    LocationStockRow,
    MovementSubmissionPort,
    StockLookupPort,
)
from inventory_services.sql_gateway import SqlStockLookup

__all__ = [
    "FetchPlan",
    "StockAvailabilityResolver",
    "build_fetch_plan",
    "BatchRowReconciler",
    "MovementEditingSession",
    "MovementPrefill",
    "SubmissionOutcome",
    "SubmissionStatus",
    "LocationCapacity",
    "LocationStockRow",
    "MovementSubmissionPort",
    "StockLookupPort",
    "SqlStockLookup",
]
