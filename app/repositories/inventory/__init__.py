from app.repositories.inventory.inventory_repository import (
    DayDefaults,
    InventoryRepository,
    UpsertResult,
    iter_dates,
)

__all__ = ["DayDefaults", "InventoryRepository", "UpsertResult", "iter_dates"]
