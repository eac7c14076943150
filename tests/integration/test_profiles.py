# tests/integration/test_profiles.py

from sqlalchemy import select, update

from src.domain.roles import UserRole
from src.infrastructure.db.models import Show, User


def _onboard(api, email, role="COMEDIAN", display_name="Stage Name", bio=None):
    response = api.client.post(
        "/onboarding",
        json={"role": role, "displayName": display_name, "bio": bio},
        headers=api.headers(email),
    )
    assert response.status_code == 200, response.text
    return response.json()["id"]


# ---------------------
# ONBOARDING STATUS
# ---------------------

def test_audience_status(api):
    response = api.client.get("/onboarding/status", headers=api.headers("fan@example.com"))

    assert response.status_code == 200
    assert response.json() == {
        "role": "AUDIENCE",
        "onboardingCompleted": False,
        "creatorKind": None,
        "approvalStatus": None,
        "adminNote": None,
        "canCreateShows": False,
    }


def test_status_follows_review(api):
    user_id = _onboard(api, "club@example.com", role="ORGANIZER")

    pending = api.client.get("/onboarding/status", headers=api.headers("club@example.com")).json()
    assert pending["role"] == "ORGANIZER_UNVERIFIED"
    assert pending["onboardingCompleted"] is True
    assert pending["creatorKind"] == "ORGANIZER"
    assert pending["approvalStatus"] == "PENDING"
    assert pending["canCreateShows"] is False

    api.client.post(
        f"/admin/creators/{user_id}/reject",
        json={"reason": "Missing venue details"},
        headers=api.admin_headers,
    )
    rejected = api.client.get("/onboarding/status", headers=api.headers("club@example.com")).json()
    assert rejected["approvalStatus"] == "REJECTED"
    assert rejected["adminNote"] == "Missing venue details"

    api.client.post(f"/admin/creators/{user_id}/approve", headers=api.admin_headers)
    approved = api.client.get("/onboarding/status", headers=api.headers("club@example.com")).json()
    assert approved["role"] == "ORGANIZER_VERIFIED"
    assert approved["canCreateShows"] is True


def test_status_requires_identity(client):
    assert client.get("/onboarding/status").status_code == 401


# ---------------------
# PROFILE UPDATES
# ---------------------

def test_update_name(api):
    response = api.client.patch(
        "/me",
        json={"name": "  Priya  "},
        headers=api.headers("fan@example.com"),
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Priya"
    assert api.client.get("/me", headers=api.headers("fan@example.com")).json()["name"] == "Priya"


def test_blank_name_rejected(api):
    response = api.client.patch("/me", json={"name": "   "}, headers=api.headers("fan@example.com"))

    assert response.status_code == 400
    assert response.json() == {"error": "Name cannot be empty"}


def test_creator_updates_profile(api):
    api.make_verified_creator()

    response = api.client.patch(
        "/creator/profile",
        json={"displayName": "Creator Unplugged", "bio": "Ten years of open mics"},
        headers=api.headers("creator@example.com"),
    )

    assert response.status_code == 200, response.text
    profile = response.json()["profile"]
    assert profile["displayName"] == "Creator Unplugged"
    assert profile["bio"] == "Ten years of open mics"
    assert response.json()["role"] == "COMEDIAN_VERIFIED"


def test_blank_display_name_rejected(api):
    api.make_verified_creator()

    response = api.client.patch(
        "/creator/profile",
        json={"displayName": " "},
        headers=api.headers("creator@example.com"),
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Display name is required"}


def test_audience_has_no_creator_profile(api):
    response = api.client.patch(
        "/creator/profile",
        json={"bio": "hello"},
        headers=api.headers("fan@example.com"),
    )

    assert response.status_code == 404
    assert response.json() == {"error": "Creator profile not found"}


def test_rejected_creator_resubmits_by_editing(api):
    user_id = _onboard(api, "newbie@example.com")
    api.client.post(f"/admin/creators/{user_id}/reject", headers=api.admin_headers)
    assert api.client.get("/admin/stats", headers=api.admin_headers).json()["pendingApprovals"] == 0

    api.client.patch(
        "/creator/profile",
        json={"bio": "Now with a recent set on video"},
        headers=api.headers("newbie@example.com"),
    )

    stats = api.client.get("/admin/stats", headers=api.admin_headers).json()
    assert stats["pendingApprovals"] == 1
    creators = api.client.get("/admin/creators", headers=api.admin_headers).json()
    assert creators[0]["approvalStatus"] == "PENDING"


# ---------------------
# ACCOUNT DELETION
# ---------------------

def test_delete_account(api, db):
    first_id = api.client.get("/me", headers=api.headers("fan@example.com")).json()["id"]

    response = api.client.delete("/me", headers=api.headers("fan@example.com"))

    assert response.status_code == 204
    assert db.get(User, first_id) is None
    # The next request from the same identity starts a fresh account.
    again = api.client.get("/me", headers=api.headers("fan@example.com")).json()
    assert again["id"] != first_id


def test_delete_blocked_by_own_bookings(api):
    api.make_verified_creator()
    show = api.create_show()
    api.book(show["id"], 1)

    response = api.client.delete("/me", headers=api.headers("fan@example.com"))

    assert response.status_code == 400
    assert response.json() == {"error": "Cannot delete an account with bookings"}


def test_delete_blocked_by_published_show(api):
    api.make_verified_creator()
    api.create_show(publish=True)

    response = api.client.delete("/me", headers=api.headers("creator@example.com"))

    assert response.status_code == 400
    assert response.json()["error"].startswith("Cannot delete an account with active published shows")


def test_delete_blocked_by_booked_show(api):
    api.make_verified_creator()
    show = api.create_show(publish=True)
    api.book(show["id"], 2)
    api.client.post(f"/shows/{show['id']}/unpublish", headers=api.headers("creator@example.com"))

    response = api.client.delete("/me", headers=api.headers("creator@example.com"))

    assert response.status_code == 400
    assert response.json() == {"error": "Cannot delete an account with shows that have bookings"}


def test_delete_creator_removes_unbooked_drafts(api, db):
    creator_id = api.make_verified_creator()
    draft = api.create_show(publish=False)

    response = api.client.delete("/me", headers=api.headers("creator@example.com"))

    assert response.status_code == 204
    assert db.get(User, creator_id) is None
    assert db.get(Show, draft["id"]) is None
    assert api.client.get("/admin/creators", headers=api.admin_headers).json() == []


def test_admin_account_cannot_be_deleted(api, db):
    user_id = api.client.get("/me", headers=api.headers("ops@example.com")).json()["id"]
    db.execute(update(User).where(User.id == user_id).values(role=UserRole.ADMIN))
    db.commit()

    response = api.client.delete("/me", headers=api.headers("ops@example.com"))

    assert response.status_code == 400
    assert db.execute(select(User).where(User.id == user_id)).scalar_one_or_none() is not None


# ---------------------
# COMEDIAN DIRECTORY
# ---------------------

def test_directory_lists_verified_comedians_only(api):
    comedian_id = api.make_verified_creator(email="zakir@example.com")
    api.make_verified_creator(email="club@example.com", role="ORGANIZER")
    _onboard(api, "newbie@example.com", display_name="Newbie")

    response = api.client.get("/comedians")

    assert response.status_code == 200
    assert response.json() == [
        {"id": comedian_id, "displayName": "Creator Live", "bio": None, "upcomingShows": None}
    ]


def test_comedian_detail_shows_upcoming_published_shows(api):
    comedian_id = api.make_verified_creator()
    published = api.create_show(publish=True)
    api.create_show(publish=False)

    response = api.client.get(f"/comedians/{comedian_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["displayName"] == "Creator Live"
    assert [show["id"] for show in body["upcomingShows"]] == [published["id"]]


def test_unknown_or_unverified_comedian_is_404(api):
    organizer_id = api.make_verified_creator(email="club@example.com", role="ORGANIZER")
    pending_id = _onboard(api, "newbie@example.com")

    for comedian_id in ("missing", organizer_id, pending_id):
        response = api.client.get(f"/comedians/{comedian_id}")
        assert response.status_code == 404
        assert response.json() == {"error": "Comedian not found"}
