import logging

from src.application.admin_service import AdminService
from src.infrastructure import settings
from src.infrastructure.db.session import get_db_session


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL)
    with get_db_session() as db:
        released = AdminService(db).release_abandoned_bookings()
    print(f"Released {len(released)} abandoned booking(s).")


if __name__ == "__main__":
    main()
