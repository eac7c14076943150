# src/infrastructure/repositories/fee_repository.py

from sqlalchemy.orm import Session
from sqlalchemy import select, delete

from src.infrastructure.db.models import FeeSlabConfig
from src.domain.fees import FeeSlab


class FeeRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_slabs(self) -> list[FeeSlab]:
        """Configured slabs in evaluation order; empty means built-in defaults."""
        stmt = select(FeeSlabConfig).order_by(FeeSlabConfig.position)
        rows = self.db.execute(stmt).scalars().all()
        return [
            FeeSlab(min_price=row.min_price, max_price=row.max_price, fee=row.fee)
            for row in rows
        ]

    def replace_slabs(self, slabs: list[FeeSlab]) -> list[FeeSlab]:
        self.db.execute(delete(FeeSlabConfig))
        for position, slab in enumerate(slabs):
            self.db.add(
                FeeSlabConfig(
                    position=position,
                    min_price=slab.min_price,
                    max_price=slab.max_price,
                    fee=slab.fee,
                )
            )
        self.db.flush()
        return self.get_slabs()
