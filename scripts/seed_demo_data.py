from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from src.application.onboarding_service import OnboardingService
from src.application.show_service import ShowService
from src.domain.roles import CreatorKind, UserRole
from src.infrastructure.db.models import Base, Show
from src.infrastructure.db.session import SessionLocal, engine


def _dt(days_from_now: int, hour: int, minute: int) -> datetime:
    ist = timezone(timedelta(hours=5, minutes=30))
    now_ist = datetime.now(ist)
    target = now_ist + timedelta(days=days_from_now)
    return target.replace(hour=hour, minute=minute, second=0, microsecond=0)


def seed_users(db) -> dict:
    onboarding = OnboardingService(db)

    admin = onboarding.get_or_create_user("admin@comedyconnect.in", "Platform Admin")
    admin.role = UserRole.ADMIN

    creators = {}
    creator_defs = [
        ("zakir@comedyconnect.in", "Zakir", CreatorKind.COMEDIAN, "Zakir Live"),
        ("laughclub@comedyconnect.in", "Laugh Club", CreatorKind.ORGANIZER, "Laugh Club Mumbai"),
    ]
    for email, name, kind, display_name in creator_defs:
        user = onboarding.get_or_create_user(email, name)
        if user.profile is None:
            user = onboarding.onboard_creator(user, kind, display_name, contact=email)
            onboarding.approve(user.id)
        creators[email] = user

    onboarding.get_or_create_user("audience@comedyconnect.in", "Demo Audience")
    db.flush()
    return creators


def seed_shows(db, creators: dict) -> None:
    show_defs = [
        {
            "creator": "zakir@comedyconnect.in",
            "title": "Zakir Live: Late Night Set",
            "date": _dt(days_from_now=7, hour=21, minute=0),
            "venue": "The Habitat, Mumbai",
            "ticket_price": 499,
            "total_tickets": 150,
        },
        {
            "creator": "laughclub@comedyconnect.in",
            "title": "Open Mic Thursday",
            "date": _dt(days_from_now=3, hour=19, minute=30),
            "venue": "Canvas Laugh Club, Mumbai",
            "ticket_price": 199,
            "total_tickets": 60,
        },
        {
            "creator": "laughclub@comedyconnect.in",
            "title": "New Voices Showcase",
            "date": _dt(days_from_now=12, hour=20, minute=0),
            "venue": "Comedy Theatre, Bengaluru",
            "ticket_price": 349,
            "total_tickets": 120,
        },
    ]

    shows = ShowService(db)
    for item in show_defs:
        existing = db.execute(
            select(Show).where(Show.title == item["title"])
        ).scalar_one_or_none()
        if existing:
            continue

        show = shows.create_show(
            user=creators[item["creator"]],
            title=item["title"],
            date=item["date"],
            venue=item["venue"],
            ticket_price=item["ticket_price"],
            total_tickets=item["total_tickets"],
        )
        shows.set_published(show, True)


def main() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        creators = seed_users(db)
        seed_shows(db, creators)
        db.commit()
        print("Seed complete: admin, two verified creators, audience user and three published shows.")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
