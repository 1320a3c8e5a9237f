"""
Academy Backend: Data Adapter Tests
====================================

What:  CRUD behaviour and the `{data, error}` result shape of every adapter.
How:   Adapters run against the in-memory backend.

Covered:
    ✅ Every result carries exactly one of data / error
    ✅ Required fields enforced locally (no request on bad input)
    ✅ Coach created from required fields only
    ✅ Deleting a missing student → not_found
    ✅ Backend down → unavailable, never an exception (every operation)
    ✅ Upcoming / past event views
    ✅ Role lookups, grants and revokes
    ✅ Gallery merge and category list
"""

from datetime import datetime, timedelta, timezone

import pytest

from academy.adapters import (
    CoachAdapter,
    EventAdapter,
    GalleryPhotoAdapter,
    GalleryVideoAdapter,
    MessageAdapter,
    ProfileAdapter,
    RoleAdapter,
    StudentAdapter,
    UploadedFile,
    merge_media,
)
from academy.exceptions import BackendError
from academy.results import ErrorKind, RemoteError, Result
from academy.schemas.gallery import GalleryPhoto, GalleryVideo
from academy.schemas.profile import AppRole
from tests.fakes import JPEG_BYTES, png_bytes

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def assert_shape(result: Result) -> None:
    """Exactly one of data / error is meaningful."""
    if result.ok:
        assert result.error is None
    else:
        assert isinstance(result.error, RemoteError)
        assert result.data is None


def registration(**overrides):
    payload = {
        "name": "Jamie Park",
        "email": "jamie@example.com",
        "phone": "+1 555 0100",
        "age": 12,
        "class": "kids",
    }
    payload.update(overrides)
    return payload


class TestResultMapping:
    @pytest.mark.parametrize(
        "status, code, source, kind",
        [
            (None, None, "table", ErrorKind.UNAVAILABLE),
            (503, None, "table", ErrorKind.UNAVAILABLE),
            (406, "PGRST116", "table", ErrorKind.NOT_FOUND),
            (409, "23505", "table", ErrorKind.CONFLICT),
            (400, "23502", "table", ErrorKind.VALIDATION),
            (403, "42501", "table", ErrorKind.PERMISSION_DENIED),
            (401, None, "table", ErrorKind.PERMISSION_DENIED),
            (400, "invalid_credentials", "auth", ErrorKind.AUTH),
            (429, None, "auth", ErrorKind.UNKNOWN),
            (400, None, "storage", ErrorKind.STORAGE),
            (418, None, "table", ErrorKind.UNKNOWN),
        ],
    )
    def test_kinds(self, status, code, source, kind):
        error = RemoteError.from_backend_error(BackendError("boom", status=status, code=code), source=source)
        assert error.kind == kind
        assert error.message == "boom"


class TestCoachAdapter:
    @pytest.mark.asyncio
    async def test_create_with_required_fields_only(self, backend_client, fake_backend):
        coaches = CoachAdapter(backend_client)

        result = await coaches.create({"name": "Master Kim", "rank": "5th Dan Black Belt"})

        assert_shape(result)
        assert result.ok
        assert result.data.name == "Master Kim"
        assert result.data.image_url is None
        sent = fake_backend.tables["coaches"][0]
        assert set(sent) >= {"name", "rank"}
        assert "bio" not in sent

    @pytest.mark.asyncio
    async def test_create_missing_rank_fails_without_request(self, backend_client, fake_backend):
        result = await CoachAdapter(backend_client).create({"name": "Master Kim"})

        assert_shape(result)
        assert result.error.kind == ErrorKind.VALIDATION
        assert "rank" in result.error.message
        assert fake_backend.requests == []

    @pytest.mark.asyncio
    async def test_get_all_newest_first(self, backend_client, fake_backend):
        fake_backend.insert("coaches", {"name": "Old", "rank": "1", "created_at": "2024-01-01T00:00:00+00:00"})
        fake_backend.insert("coaches", {"name": "New", "rank": "2", "created_at": "2025-01-01T00:00:00+00:00"})

        result = await CoachAdapter(backend_client).get_all()

        assert [c.name for c in result.data] == ["New", "Old"]

    @pytest.mark.asyncio
    async def test_get_missing_is_not_found(self, backend_client):
        result = await CoachAdapter(backend_client).get_by_id("nope")

        assert_shape(result)
        assert result.error.kind == ErrorKind.NOT_FOUND
        assert result.error.message == "Coach not found"

    @pytest.mark.asyncio
    async def test_update_is_partial(self, backend_client, fake_backend):
        row = fake_backend.insert("coaches", {"name": "Kim", "rank": "4th Dan", "bio": "Keep me"})

        result = await CoachAdapter(backend_client).update(row["id"], {"rank": "5th Dan"})

        assert result.data.rank == "5th Dan"
        assert result.data.bio == "Keep me"

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, backend_client, fake_backend):
        row = fake_backend.insert("coaches", {"name": "Kim", "rank": "4th Dan"})

        result = await CoachAdapter(backend_client).update(row["id"], {})

        assert result.error.kind == ErrorKind.VALIDATION
        assert len(fake_backend.requests) == 0

    @pytest.mark.asyncio
    async def test_backend_down_is_unavailable(self, backend_client, fake_backend):
        fake_backend.down = True

        result = await CoachAdapter(backend_client).get_all()

        assert_shape(result)
        assert result.error.kind == ErrorKind.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_empty_id_is_a_programming_error(self, backend_client):
        with pytest.raises(ValueError):
            await CoachAdapter(backend_client).get_by_id("")


class TestStudentAdapter:
    @pytest.mark.asyncio
    async def test_delete_nonexistent_student_is_not_found(self, backend_client):
        result = await StudentAdapter(backend_client).delete("00000000-0000-0000-0000-000000000000")

        assert_shape(result)
        assert result.error.kind == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_register_inserts_pending_without_reading_back(self, backend_client, fake_backend):
        result = await StudentAdapter(backend_client).register(registration(**{"class": "Kids Class"}))

        assert result.ok
        assert result.data is None
        row = fake_backend.tables["students"][0]
        assert row["class"] == "kids"
        assert row["status"] == "pending"
        assert fake_backend.requests[-1].headers["prefer"] == "return=minimal"

    @pytest.mark.asyncio
    async def test_register_cannot_choose_status(self, backend_client, fake_backend):
        result = await StudentAdapter(backend_client).register(registration(status="approved"))

        assert result.error.kind == ErrorKind.VALIDATION
        assert fake_backend.requests == []

    @pytest.mark.asyncio
    async def test_register_rejects_unknown_class(self, backend_client):
        result = await StudentAdapter(backend_client).register(registration(**{"class": "yoga"}))

        assert result.error.kind == ErrorKind.VALIDATION

    @pytest.mark.asyncio
    async def test_update_status_and_filter(self, backend_client, fake_backend):
        row = fake_backend.insert("students", registration())
        fake_backend.insert("students", registration(name="Other"))
        students = StudentAdapter(backend_client)

        updated = await students.update_status(row["id"], "approved")
        approved = await students.get_by_status("approved")
        pending = await students.count(status="pending")

        assert updated.data.status == "approved"
        assert [s.id for s in approved.data] == [row["id"]]
        assert pending.data == 1

    @pytest.mark.asyncio
    async def test_invalid_status_rejected(self, backend_client, fake_backend):
        row = fake_backend.insert("students", registration())

        result = await StudentAdapter(backend_client).update_status(row["id"], "expelled")

        assert result.error.kind == ErrorKind.VALIDATION


class TestMessageAdapter:
    @pytest.mark.asyncio
    async def test_submit_then_mark_read(self, backend_client, fake_backend):
        messages = MessageAdapter(backend_client)

        submitted = await messages.submit({"name": "Ana", "email": "ana@example.com", "message": "Hello"})
        unread_before = await messages.count_unread()
        row_id = fake_backend.tables["messages"][0]["id"]
        marked = await messages.mark_as_read(row_id)
        unread_after = await messages.count_unread()

        assert submitted.ok
        assert unread_before.data == 1
        assert marked.data.is_read is True
        assert unread_after.data == 0

    @pytest.mark.asyncio
    async def test_submit_bad_email(self, backend_client, fake_backend):
        result = await MessageAdapter(backend_client).submit({"name": "Ana", "email": "nope", "message": "Hi"})

        assert result.error.kind == ErrorKind.VALIDATION
        assert fake_backend.requests == []


class TestEventAdapter:
    @pytest.mark.asyncio
    async def test_upcoming_and_past(self, backend_client, fake_backend):
        def event(title, days, is_past):
            date = (NOW + timedelta(days=days)).isoformat()
            return fake_backend.insert(
                "events", {"title": title, "date": date, "type": "seminar", "is_past": is_past}
            )

        event("Later", 30, False)
        event("Soon", 2, False)
        event("Unflagged", -3, False)
        event("Last year", -365, True)
        event("Last month", -30, True)
        events = EventAdapter(backend_client, now=lambda: NOW)

        upcoming = await events.get_upcoming()
        past = await events.get_past()

        assert [e.title for e in upcoming.data] == ["Soon", "Later"]
        assert [e.title for e in past.data] == ["Last month", "Last year"]

    @pytest.mark.asyncio
    async def test_grading_alias(self, backend_client):
        result = await EventAdapter(backend_client).create(
            {"title": "Belt test", "date": NOW.isoformat(), "type": "Grading"}
        )

        assert result.data.type == "exam"


class TestRoleAdapter:
    @pytest.mark.asyncio
    async def test_has_role(self, backend_client, fake_backend):
        admin_id = fake_backend.add_user("admin@academy.test", admin=True)
        user_id = fake_backend.add_user("user@academy.test")
        roles = RoleAdapter(backend_client)

        assert (await roles.has_role(admin_id)).data is True
        assert (await roles.has_role(user_id)).data is False

    @pytest.mark.asyncio
    async def test_has_role_failure_is_an_error_not_false(self, backend_client, fake_backend):
        fake_backend.down = True

        result = await RoleAdapter(backend_client).has_role("u1")

        assert result.error.kind == ErrorKind.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_unknown_role_rejected(self, backend_client):
        with pytest.raises(ValueError):
            await RoleAdapter(backend_client).has_role("u1", "superuser")

    @pytest.mark.asyncio
    async def test_grant_revoke_and_group(self, backend_client, fake_backend):
        roles = RoleAdapter(backend_client)

        granted = await roles.grant("u1")
        grouped = await roles.roles_by_user()
        revoked = await roles.revoke("u1")
        revoked_again = await roles.revoke("u1")

        assert granted.data.role == AppRole.ADMIN
        assert grouped.data == {"u1": [AppRole.ADMIN]}
        assert revoked.ok
        assert revoked_again.error.kind == ErrorKind.NOT_FOUND


class TestProfileAdapter:
    @pytest.mark.asyncio
    async def test_missing_profile_is_none(self, backend_client):
        result = await ProfileAdapter(backend_client).get_for_user("u1")

        assert result.ok
        assert result.data is None

    @pytest.mark.asyncio
    async def test_update_own_profile(self, backend_client, fake_backend):
        fake_backend.insert("profiles", {"user_id": "u1", "email": "a@academy.test", "full_name": "A"})

        result = await ProfileAdapter(backend_client).update_for_user("u1", {"full_name": "Alex"})

        assert result.data.full_name == "Alex"


class TestGallery:
    @pytest.mark.asyncio
    async def test_photo_and_video_crud(self, backend_client, fake_backend):
        photos = GalleryPhotoAdapter(backend_client)
        videos = GalleryVideoAdapter(backend_client)

        photo = await photos.create({"title": "Kick", "url": "https://img/1.jpg", "category": "Training"})
        video = await videos.create({"title": "Final", "url": "https://youtu.be/x", "category": "event"})
        bad = await videos.create({"title": "X", "url": "https://youtu.be/y", "category": "party"})

        assert photo.data.category == "training"
        assert video.data.category == "events"
        assert bad.error.kind == ErrorKind.VALIDATION

    def test_merge_media_categories_before_filter(self):
        photos = [
            GalleryPhoto(id="p1", title="a", url="u1", category="training"),
            GalleryPhoto(id="p2", title="b", url="u2", category="graduation"),
        ]
        videos = [GalleryVideo(id="v1", title="c", url="u3", category="training")]

        merged = merge_media(photos, videos, category="graduation")

        assert merged.categories == ["all", "training", "graduation"]
        assert [(i.id, i.type) for i in merged.items] == [("p2", "image")]

    def test_merge_media_all(self):
        merged = merge_media([], [GalleryVideo(id="v1", title="c", url="u3", category="seminar")], category="all")

        assert [i.type for i in merged.items] == ["video"]


# ══════════════════════════════════════════════════════════════════════════
# Backend outage
# ══════════════════════════════════════════════════════════════════════════

PHOTO_URL = "http://backend.test/storage/v1/object/public/gallery/photos/a-1.jpg"

CRUD = [
    (CoachAdapter, {"name": "Master Kim", "rank": "7th Dan"}, {"bio": "Founder"}),
    (EventAdapter, {"title": "Grading", "date": "2026-11-01T10:00:00+00:00", "type": "exam"}, {"location": "Dojo"}),
    (StudentAdapter, registration(), {"status": "approved"}),
    (MessageAdapter, {"name": "Sam", "email": "sam@example.com", "message": "Hello"}, {"is_read": True}),
    (GalleryPhotoAdapter, {"title": "Kicks", "url": "http://x/1.jpg", "category": "training"}, {"title": "Kata"}),
    (GalleryVideoAdapter, {"title": "Forms", "url": "http://x/2.mp4", "category": "seminar"}, {"title": "Forms 2"}),
    (ProfileAdapter, {"user_id": "u1", "full_name": "Parent"}, {"full_name": "Guardian"}),
]

CRUD_CALLS = [
    pytest.param(adapter, name, args, id=f"{adapter.__name__}.{name}")
    for adapter, created, changes in CRUD
    for name, args in [
        ("get_all", ()),
        ("get_by_id", ("row-1",)),
        ("create", (created,)),
        ("update", ("row-1", changes)),
        ("delete", ("row-1",)),
        ("count", ()),
    ]
]

SPECIFIC_CALLS = [
    pytest.param(adapter, name, args, id=f"{adapter.__name__}.{name}")
    for adapter, name, args in [
        (EventAdapter, "get_upcoming", ()),
        (EventAdapter, "get_past", ()),
        (EventAdapter, "upload_image", (UploadedFile("poster.jpg", "image/jpeg", JPEG_BYTES), "e1")),
        (CoachAdapter, "upload_image", (UploadedFile("kim.png", "image/png", png_bytes()), "c1")),
        (GalleryPhotoAdapter, "upload_image", (UploadedFile("mat.png", "image/png", png_bytes()),)),
        (GalleryPhotoAdapter, "remove_image", (PHOTO_URL,)),
        (StudentAdapter, "register", (registration(),)),
        (StudentAdapter, "update_status", ("s1", "approved")),
        (StudentAdapter, "get_by_status", ("pending",)),
        (MessageAdapter, "submit", ({"name": "Sam", "email": "sam@example.com", "message": "Hello"},)),
        (MessageAdapter, "mark_as_read", ("m1",)),
        (MessageAdapter, "count_unread", ()),
        (ProfileAdapter, "get_for_user", ("u1",)),
        (ProfileAdapter, "update_for_user", ("u1", {"full_name": "Guardian"})),
        (RoleAdapter, "has_role", ("u1",)),
        (RoleAdapter, "list_all", ()),
        (RoleAdapter, "roles_by_user", ()),
        (RoleAdapter, "grant", ("u1",)),
        (RoleAdapter, "revoke", ("u1",)),
    ]
]


class TestBackendDown:
    """Every adapter operation reports an outage as a result, never by raising."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("adapter_cls, method, args", CRUD_CALLS + SPECIFIC_CALLS)
    async def test_outage_is_unavailable(self, backend_client, fake_backend, adapter_cls, method, args):
        fake_backend.down = True
        adapter = adapter_cls(backend_client)

        result = await getattr(adapter, method)(*args)

        assert_shape(result)
        assert not result.ok
        assert result.error.kind == ErrorKind.UNAVAILABLE
        assert fake_backend.requests, "the operation should have reached the network"
