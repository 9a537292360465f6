"""
Inventory services: mutations, availability and read views.
"""

from app.services.inventory.availability_service import AvailabilityService
from app.services.inventory.inventory_mutator import InventoryMutator
from app.services.inventory.inventory_query_service import InventoryQueryService

__all__ = ["AvailabilityService", "InventoryMutator", "InventoryQueryService"]
