# src/infrastructure/repositories/show_repository.py

from datetime import datetime

from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select, func, or_

from src.infrastructure.db.models import Show


class ShowRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, show_id: str) -> Show | None:
        stmt = (
            select(Show)
            .where(Show.id == show_id)
            .options(selectinload(Show.inventory))
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_published_upcoming(
        self,
        now: datetime,
        created_by: str | None = None,
    ) -> list[Show]:
        stmt = (
            select(Show)
            .where(Show.is_published.is_(True))
            .where(Show.date >= now)
            .options(selectinload(Show.inventory))
            .order_by(Show.date)
        )
        if created_by:
            stmt = stmt.where(Show.created_by == created_by)
        return list(self.db.execute(stmt).scalars().all())

    def list_visible_to_creator(self, user_id: str, now: datetime) -> list[Show]:
        stmt = (
            select(Show)
            .where(Show.date >= now)
            .where(or_(Show.is_published.is_(True), Show.created_by == user_id))
            .options(selectinload(Show.inventory))
            .order_by(Show.date)
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_by_creator(self, user_id: str) -> list[Show]:
        stmt = (
            select(Show)
            .where(Show.created_by == user_id)
            .options(selectinload(Show.inventory))
            .order_by(Show.date.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_all(self) -> list[Show]:
        stmt = (
            select(Show)
            .options(selectinload(Show.inventory), selectinload(Show.creator))
            .order_by(Show.date.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def count_active(self, now: datetime) -> int:
        stmt = (
            select(func.count(Show.id))
            .where(Show.is_published.is_(True))
            .where(Show.date >= now)
        )
        return self.db.execute(stmt).scalar_one()

    def add(self, show: Show) -> Show:
        self.db.add(show)
        self.db.flush()
        return show

    def delete(self, show: Show) -> None:
        self.db.delete(show)
        self.db.flush()

    def list_undisbursed_by_creator(self, user_id: str) -> list[Show]:
        stmt = (
            select(Show)
            .where(Show.created_by == user_id)
            .where(Show.is_disbursed.is_(False))
        )
        return list(self.db.execute(stmt).scalars().all())
