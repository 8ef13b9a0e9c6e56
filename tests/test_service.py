"""Unit tests for RateLimitService (the calling-code facade)."""

from datetime import datetime, timedelta, timezone

import pytest

from rategate.application import services as services_module
from rategate.domain.errors import ErrorKind
from rategate.domain.models import Action


WALL_START = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestCheck:
    def test_allows_until_quota_exhausted(self, service):
        results = [service.check(Action.IMAGE_UPLOAD, "u1") for _ in range(4)]

        assert [r.allowed for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]
        assert results[-1].reset_time_ms == 60_000
        assert results[-1].key == "image_upload:u1"
        assert results[-1].error is None
        assert results[-1].message

    def test_accepts_action_name(self, service):
        result = service.check("LOGIN_ATTEMPT", "alice@example.com")

        assert result.allowed
        assert result.action is Action.LOGIN_ATTEMPT
        assert result.key == "login_attempt:alice@example.com"

    def test_actions_do_not_share_quota(self, service):
        for _ in range(3):
            service.check(Action.PROFILE_UPDATE, "u1")

        assert service.check(Action.PROFILE_UPDATE, "u1").allowed is False
        assert service.check(Action.NOTE_WRITE, "u1").allowed is True

    def test_unknown_action_is_returned_not_raised(self, service):
        result = service.check("teleport", "u1")

        assert result.allowed is False
        assert result.error is ErrorKind.UNKNOWN_POLICY
        assert result.action is None

    def test_invalid_subject_is_returned_not_raised(self, service, store):
        result = service.check(Action.SEARCH, "  ")

        assert result.allowed is False
        assert result.error is ErrorKind.INVALID_ARGUMENT
        assert len(store) == 0


class TestInfo:
    def test_info_for_new_subject(self, service):
        info = service.info("u1", Action.NOTE_WRITE)

        assert info.limit == 5
        assert info.remaining == 5
        assert info.reset_time_ms == 0
        assert info.reset_at == WALL_START
        assert info.error is None

    def test_info_after_use(self, service, clock):
        service.check(Action.NOTE_WRITE, "u1")
        clock.advance(15_000)
        service.check(Action.NOTE_WRITE, "u1")

        info = service.info("u1", "note_write")

        assert info.remaining == 3
        assert info.reset_time_ms == 45_000
        assert info.reset_at == WALL_START + timedelta(milliseconds=60_000)

    def test_info_does_not_create_entries(self, service, store):
        service.info("u1", Action.SEARCH)

        assert len(store) == 0

    def test_info_reports_unknown_action(self, service):
        info = service.info("u1", "teleport")

        assert info.error is ErrorKind.UNKNOWN_POLICY
        assert info.reset_at is None
        assert "teleport" in info.message

    def test_info_reports_empty_subject(self, service, store):
        info = service.info("", Action.SEARCH)

        assert info.error is ErrorKind.INVALID_ARGUMENT
        assert len(store) == 0


class TestReset:
    def test_reset_single_action(self, service):
        for _ in range(5):
            service.check(Action.NOTE_WRITE, "u1")
        service.check(Action.SEARCH, "u1")

        result = service.reset(Action.NOTE_WRITE, "u1")

        assert result.reset is True
        assert result.error is None
        assert service.info("u1", Action.NOTE_WRITE).remaining == 5
        assert service.info("u1", Action.SEARCH).remaining == 29

    def test_reset_subject_clears_all_actions(self, service, store):
        service.check(Action.NOTE_WRITE, "u1")
        service.check(Action.SEARCH, "u1")
        service.check(Action.SEARCH, "u2")

        assert service.reset_subject("u1").reset is True

        assert store.keys() == ["search:u2"]

    def test_reset_reports_errors(self, service, store):
        service.check(Action.SEARCH, "u1")

        unknown = service.reset("teleport", "u1")
        blank = service.reset_subject("  ")

        assert (unknown.reset, unknown.error) == (False, ErrorKind.UNKNOWN_POLICY)
        assert (blank.reset, blank.error) == (False, ErrorKind.INVALID_ARGUMENT)
        assert store.keys() == ["search:u1"]

    def test_reset_all(self, service, store):
        service.check(Action.NOTE_WRITE, "u1")
        service.check(Action.SEARCH, "u2")

        service.reset_all()

        assert len(store) == 0


def test_stats_counts_outcomes(service):
    for _ in range(4):
        service.check(Action.IMAGE_UPLOAD, "u1")
    service.check(Action.SEARCH, "u2")
    service.check("teleport", "u3")

    stats = service.stats()

    assert stats.tracked_keys == 2
    assert stats.tracked_timestamps == 4
    assert stats.per_action[Action.IMAGE_UPLOAD].allowed == 3
    assert stats.per_action[Action.IMAGE_UPLOAD].denied == 1
    assert stats.per_action[Action.SEARCH].allowed == 1
    assert stats.per_action[Action.LOGIN_ATTEMPT].allowed == 0
    assert stats.blocked_ratio == pytest.approx(1 / 5)


def test_stats_top_subjects_ranks_most_denied_keys(service):
    for _ in range(5):
        service.check(Action.IMAGE_UPLOAD, "noisy")
    for _ in range(4):
        service.check(Action.IMAGE_UPLOAD, "quiet")
    service.check(Action.SEARCH, "fine")

    stats = service.stats()

    assert stats.top_subjects == [("image_upload:noisy", 2), ("image_upload:quiet", 1)]


def test_stats_denied_key_counter_stays_bounded(service, monkeypatch):
    monkeypatch.setattr(services_module, "MAX_DENIED_KEYS", 5)
    monkeypatch.setattr(services_module, "TOP_SUBJECTS", 2)
    for _ in range(6):
        service.check(Action.IMAGE_UPLOAD, "noisy")
    for i in range(10):
        for _ in range(4):
            service.check(Action.IMAGE_UPLOAD, f"user-{i}")

    stats = service.stats()

    assert stats.top_subjects[0] == ("image_upload:noisy", 3)
    assert len(service._denied_keys) <= 5
