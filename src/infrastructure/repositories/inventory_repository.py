# src/infrastructure/repositories/inventory_repository.py

from sqlalchemy.orm import Session
from sqlalchemy import select, update

from src.infrastructure.db.models import TicketInventory
from src.domain.exceptions import NotFoundError


class InventoryRepository:
    """
    Every counter change is a single conditional UPDATE.
    The guard lives in the WHERE clause and the affected-row count
    tells the caller whether the change happened.
    """

    def __init__(self, db: Session):
        self.db = db

    def lock_inventory(self, show_id: str) -> TicketInventory:
        """
        SELECT ... FOR UPDATE
        Used by callers that must read and rewrite totals together.
        """

        stmt = (
            select(TicketInventory)
            .where(TicketInventory.show_id == show_id)
            .with_for_update()
        )

        inventory = self.db.execute(stmt).scalar_one_or_none()

        if not inventory:
            raise NotFoundError("Ticket inventory")

        return inventory

    def create_inventory(self, show_id: str, total_tickets: int) -> TicketInventory:
        inventory = TicketInventory(
            show_id=show_id,
            available=total_tickets,
            locked=0,
        )
        self.db.add(inventory)
        return inventory

    def reserve(self, show_id: str, quantity: int) -> bool:
        """available -> locked, only if enough tickets are still available."""
        stmt = (
            update(TicketInventory)
            .where(TicketInventory.show_id == show_id)
            .where(TicketInventory.available >= quantity)
            .values(
                available=TicketInventory.available - quantity,
                locked=TicketInventory.locked + quantity,
            )
            .execution_options(synchronize_session=False)
        )
        return self._apply(stmt)

    def mark_sold(self, show_id: str, quantity: int) -> bool:
        """locked -> sold. available is left untouched."""
        stmt = (
            update(TicketInventory)
            .where(TicketInventory.show_id == show_id)
            .where(TicketInventory.locked >= quantity)
            .values(locked=TicketInventory.locked - quantity)
            .execution_options(synchronize_session=False)
        )
        return self._apply(stmt)

    def release(self, show_id: str, quantity: int) -> bool:
        """locked -> available."""
        stmt = (
            update(TicketInventory)
            .where(TicketInventory.show_id == show_id)
            .where(TicketInventory.locked >= quantity)
            .values(
                available=TicketInventory.available + quantity,
                locked=TicketInventory.locked - quantity,
            )
            .execution_options(synchronize_session=False)
        )
        return self._apply(stmt)

    def adjust_available(self, show_id: str, delta: int) -> bool:
        """Shift available by delta when a show's total changes."""
        stmt = (
            update(TicketInventory)
            .where(TicketInventory.show_id == show_id)
            .where(TicketInventory.available + delta >= 0)
            .values(available=TicketInventory.available + delta)
            .execution_options(synchronize_session=False)
        )
        return self._apply(stmt)

    def _apply(self, stmt) -> bool:
        # Flush first: expiring after the UPDATE would drop unflushed changes.
        self.db.flush()
        result = self.db.execute(stmt)
        if result.rowcount == 0:
            return False
        self.db.expire_all()
        return True
