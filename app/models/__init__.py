from app.models.schemas import ChangeEvent, ChangeKind, StatsOut, StockItem

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "StatsOut",
    "StockItem",
]
