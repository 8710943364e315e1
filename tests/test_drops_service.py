# FILE: tests/test_drops_service.py
"""
Tests for crosswalk/drops/service.py and crosswalk/notifications/service.py
Drop validation, listing, deletion window, high-fives and notifications.
"""

import math
from datetime import datetime, timedelta

import pytest

from crosswalk.drops import service
from crosswalk.drops.models import Drop, Highfive
from crosswalk.drops.schemas import DropCreate
from crosswalk.errors import ForbiddenError, NotFoundError, ValidationError
from crosswalk.notifications import service as notifications

SF = (37.7749, -122.4194)


def _payload(**overrides):
    data = dict(message="hello crosswalk", latitude=SF[0], longitude=SF[1], range="close", effect="none")
    data.update(overrides)
    return DropCreate(**data)


class TestValidation:
    """Write-boundary validation."""

    def test_valid_payload_is_trimmed(self):
        valid = service.validate_drop(_payload(message="  hi there  "))
        assert valid.message == "hi there"
        assert valid.range.value == "close"

    @pytest.mark.parametrize("message", [None, "", "    ", "x" * 281])
    def test_bad_message(self, message):
        with pytest.raises(ValidationError, match="Invalid message"):
            service.validate_drop(_payload(message=message))

    def test_message_at_limit_is_fine(self):
        assert len(service.validate_drop(_payload(message="y" * 280)).message) == 280

    @pytest.mark.parametrize("lat, lon", [(None, 1.0), ("37.7", -122.4), (True, 1.0), (math.nan, 0.0)])
    def test_bad_coordinates(self, lat, lon):
        with pytest.raises(ValidationError, match="Invalid coordinates"):
            service.validate_drop(_payload(latitude=lat, longitude=lon))

    def test_unknown_range_rejected(self):
        with pytest.raises(ValidationError, match="Invalid range"):
            service.validate_drop(_payload(range="medium"))

    def test_unknown_effect_rejected(self):
        with pytest.raises(ValidationError, match="Invalid effect"):
            service.validate_drop(_payload(effect="fireworks"))

    def test_expiry_parsing(self):
        valid = service.validate_drop(_payload(expiresAt="2030-01-01T12:00:00Z"))
        assert valid.expires_at == datetime(2030, 1, 1, 12, 0, 0)
        with pytest.raises(ValidationError, match="Invalid expiry"):
            service.validate_drop(_payload(expiresAt="next tuesday"))


class TestListing:
    """Active drop listing."""

    def test_lists_nearby_newest_first_with_author_and_count(self, db, make_user):
        author = make_user("author")
        fan = make_user("fan")
        first = service.create_drop(db, author.id, _payload(message="first"))
        second = service.create_drop(db, author.id, _payload(message="second"))
        db.get(Drop, first.id).created_at = datetime.utcnow() - timedelta(minutes=5)
        db.commit()
        service.add_highfive(db, fan.id, first.id)

        drops = service.list_drops(db, lat=SF[0], lng=SF[1], radius=1000)

        assert [d.id for d in drops] == [second.id, first.id]
        assert drops[0].user_name == "author"
        assert drops[1].highfive_count == 1

    def test_full_message_returned_regardless_of_range(self, db, make_user):
        author = make_user("author")
        service.create_drop(db, author.id, _payload(message="secret spot", range="close"))
        drops = service.list_drops(db, lat=SF[0] + 0.0005, lng=SF[1], radius=1000)
        assert drops[0].message == "secret spot"

    def test_bounding_box_excludes_far_drops(self, db, make_user):
        author = make_user("author")
        service.create_drop(db, author.id, _payload(latitude=40.7128, longitude=-74.0060))
        assert service.list_drops(db, lat=SF[0], lng=SF[1], radius=1000) == []

    def test_huge_radius_is_global(self, db, make_user):
        author = make_user("author")
        service.create_drop(db, author.id, _payload(latitude=40.7128, longitude=-74.0060))
        assert len(service.list_drops(db, lat=SF[0], lng=SF[1], radius=200_000)) == 1

    def test_expired_drops_hidden_but_kept(self, db, make_user):
        author = make_user("author")
        gone = service.create_drop(db, author.id, _payload(expiresAt="2000-01-01T00:00:00Z"))
        assert service.list_drops(db, lat=SF[0], lng=SF[1]) == []
        with pytest.raises(NotFoundError):
            service.get_drop(db, gone.id)
        assert db.get(Drop, gone.id) is not None


class TestDelete:
    """Author-only delete within fifteen minutes."""

    def test_author_deletes_within_window(self, db, make_user):
        author = make_user("author")
        drop = service.create_drop(db, author.id, _payload())
        service.delete_drop(db, author.id, drop.id)
        assert db.get(Drop, drop.id) is None

    def test_other_user_forbidden(self, db, make_user):
        author, other = make_user("author"), make_user("other")
        drop = service.create_drop(db, author.id, _payload())
        with pytest.raises(ForbiddenError):
            service.delete_drop(db, other.id, drop.id)

    def test_window_expires(self, db, make_user):
        author = make_user("author")
        drop = service.create_drop(db, author.id, _payload())
        later = datetime.utcnow() + service.DELETE_WINDOW + timedelta(seconds=1)
        with pytest.raises(ForbiddenError, match="Delete window expired"):
            service.delete_drop(db, author.id, drop.id, now=later)

    def test_missing_drop(self, db, make_user):
        with pytest.raises(NotFoundError):
            service.delete_drop(db, make_user().id, "nope")


class TestHighfives:
    """High-five membership and notifications."""

    def test_highfive_notifies_author(self, db, make_user):
        author, fan = make_user("author"), make_user("fan")
        drop = service.create_drop(db, author.id, _payload())

        count, notification = service.add_highfive(db, fan.id, drop.id)

        assert count == 1
        assert notification.user_id == author.id
        assert notifications.unread_count(db, author.id) == 1
        listed = notifications.list_notifications(db, author.id)
        assert listed[0].from_user_name == "fan"
        assert listed[0].read is False

    def test_double_highfive_rejected(self, db, make_user):
        author, fan = make_user("author"), make_user("fan")
        drop = service.create_drop(db, author.id, _payload())
        service.add_highfive(db, fan.id, drop.id)
        with pytest.raises(ValidationError, match="Already high-fived"):
            service.add_highfive(db, fan.id, drop.id)

    def test_self_highfive_has_no_notification(self, db, make_user):
        author = make_user("author")
        drop = service.create_drop(db, author.id, _payload())
        count, notification = service.add_highfive(db, author.id, drop.id)
        assert count == 1
        assert notification is None

    def test_remove_is_idempotent(self, db, make_user):
        author, fan = make_user("author"), make_user("fan")
        drop = service.create_drop(db, author.id, _payload())
        service.add_highfive(db, fan.id, drop.id)
        assert service.remove_highfive(db, fan.id, drop.id) == 0
        assert service.remove_highfive(db, fan.id, drop.id) == 0
        assert service.has_highfived(db, fan.id, drop.id) is False

    def test_delete_drop_clears_highfives(self, db, make_user):
        author, fan = make_user("author"), make_user("fan")
        drop = service.create_drop(db, author.id, _payload())
        service.add_highfive(db, fan.id, drop.id)
        service.delete_drop(db, author.id, drop.id)
        assert db.query(Highfive).count() == 0


class TestNotifications:
    """Read state."""

    def test_mark_read_checks_owner(self, db, make_user):
        author, fan = make_user("author"), make_user("fan")
        drop = service.create_drop(db, author.id, _payload())
        _, notification = service.add_highfive(db, fan.id, drop.id)

        with pytest.raises(ForbiddenError):
            notifications.mark_read(db, fan.id, notification.id)
        with pytest.raises(NotFoundError):
            notifications.mark_read(db, author.id, "missing")

        notifications.mark_read(db, author.id, notification.id)
        assert notifications.unread_count(db, author.id) == 0

    def test_mark_all_read(self, db, make_user):
        author = make_user("author")
        drop = service.create_drop(db, author.id, _payload())
        for name in ("a", "b", "c"):
            service.add_highfive(db, make_user(name).id, drop.id)
        assert notifications.mark_all_read(db, author.id) == 3
        assert notifications.unread_count(db, author.id) == 0
