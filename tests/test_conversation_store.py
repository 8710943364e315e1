# FILE: tests/test_conversation_store.py
"""
Tests for crosswalk/vibe/store.py
Vibe ownership, message log ordering and soft deletion.
"""

from datetime import datetime

import pytest

from crosswalk.errors import NotFoundError, ValidationError
from crosswalk.vibe import store


class TestBranchNames:
    """Workspace branch naming."""

    def test_email_is_sanitized(self):
        name = store.branch_name_for("u1", "Alice.Walker+map@Example.com", now=datetime(2024, 1, 1))
        assert name.startswith("vibe/alice-walker-map-example-com-")

    def test_falls_back_to_user_id(self):
        assert store.branch_name_for("user_42", None, now=datetime(1970, 1, 1)) == "vibe/user-42-0"

    def test_slug_is_capped(self):
        name = store.branch_name_for("x", "a" * 80 + "@example.com")
        slug = name[len("vibe/"):].rsplit("-", 1)[0]
        assert slug == "a" * 30

    def test_later_timestamp_differs(self):
        a = store.branch_name_for("u", None, now=datetime(2024, 1, 1, 0, 0, 0))
        b = store.branch_name_for("u", None, now=datetime(2024, 1, 1, 0, 0, 1))
        assert a != b


class TestVibes:
    """Vibe rows."""

    def test_validate_name(self):
        assert store.validate_vibe_name("  Dark mode  ") == "Dark mode"
        with pytest.raises(ValidationError, match="Name is required"):
            store.validate_vibe_name("   ")

    def test_other_users_vibe_is_not_found(self, db, make_user, vibe_factory):
        alice, bob = make_user("alice"), make_user("bob")
        vibe = vibe_factory(alice)
        assert store.get_vibe(db, vibe.id, alice.id).id == vibe.id
        with pytest.raises(NotFoundError, match="Vibe not found"):
            store.get_vibe(db, vibe.id, bob.id)

    def test_deleted_vibe_disappears(self, db, make_user, vibe_factory):
        alice = make_user("alice")
        vibe = vibe_factory(alice)
        store.delete_vibe(db, vibe)
        assert store.list_vibes(db, alice.id) == []
        with pytest.raises(NotFoundError):
            store.get_vibe(db, vibe.id, alice.id)


class TestMessages:
    """Append-only log."""

    def test_history_in_append_order(self, db, make_user, vibe_factory):
        vibe = vibe_factory(make_user("alice"))
        for i, role in enumerate(["user", "assistant", "user", "assistant"]):
            store.append_message(db, vibe, role, f"m{i}")

        history = store.get_chat_history(db, vibe.id)
        assert [m.content for m in history] == ["m0", "m1", "m2", "m3"]
        assert [m.role for m in history] == ["user", "assistant", "user", "assistant"]

    def test_limit_keeps_most_recent(self, db, make_user, vibe_factory):
        vibe = vibe_factory(make_user("alice"))
        for i in range(25):
            store.append_message(db, vibe, "user" if i % 2 == 0 else "assistant", f"m{i}")

        recent = store.get_chat_history(db, vibe.id, limit=20)
        assert [m.content for m in recent] == [f"m{i}" for i in range(5, 25)]

    @pytest.mark.parametrize("content", ["", "   ", None])
    def test_empty_content_rejected(self, db, make_user, vibe_factory, content):
        vibe = vibe_factory(make_user("alice"))
        with pytest.raises(ValidationError):
            store.append_message(db, vibe, "assistant", content)
        assert store.count_messages(db, vibe.id) == 0

    def test_unknown_role_rejected(self, db, make_user, vibe_factory):
        vibe = vibe_factory(make_user("alice"))
        with pytest.raises(ValidationError):
            store.append_message(db, vibe, "system", "hello")

    def test_clear_history_tombstones(self, db, make_user, vibe_factory):
        vibe = vibe_factory(make_user("alice"))
        store.append_message(db, vibe, "user", "one")
        store.append_message(db, vibe, "assistant", "two")

        assert store.clear_history(db, vibe.id) == 2
        assert store.get_chat_history(db, vibe.id) == []
        assert store.count_messages(db, vibe.id) == 2
        assert store.count_messages(db, vibe.id, include_deleted=False) == 0

        store.append_message(db, vibe, "user", "fresh start")
        assert [m.content for m in store.get_chat_history(db, vibe.id)] == ["fresh start"]
