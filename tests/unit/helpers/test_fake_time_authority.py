"""Unit tests for the FakeTimeAuthority test helper."""

from datetime import datetime, timedelta, timezone

import pytest

from tests.helpers.fake_time_authority import DEFAULT_FAKE_TIME, FakeTimeAuthority


class TestFrozenTime:
    def test_default_time_is_predictable(self) -> None:
        assert FakeTimeAuthority().now() == DEFAULT_FAKE_TIME

    def test_time_does_not_move_on_its_own(self) -> None:
        fake_time = FakeTimeAuthority()

        assert fake_time.now() == fake_time.now()
        assert fake_time.monotonic() == 0.0

    def test_naive_datetime_treated_as_utc(self) -> None:
        fake_time = FakeTimeAuthority(frozen_at=datetime(2026, 3, 1, 9, 0))

        assert fake_time.now() == datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


class TestAdvance:
    def test_advance_by_seconds(self) -> None:
        fake_time = FakeTimeAuthority(start_monotonic=10.0)

        fake_time.advance(seconds=30)

        assert fake_time.now() == DEFAULT_FAKE_TIME + timedelta(seconds=30)
        assert fake_time.monotonic() == 40.0

    def test_advance_past_voting_window(self) -> None:
        fake_time = FakeTimeAuthority()

        fake_time.advance(delta=timedelta(days=7, seconds=1))

        assert fake_time.now() > DEFAULT_FAKE_TIME + timedelta(days=7)

    def test_delta_takes_precedence(self) -> None:
        fake_time = FakeTimeAuthority()

        fake_time.advance(seconds=100, delta=timedelta(seconds=5))

        assert fake_time.current_time == DEFAULT_FAKE_TIME + timedelta(seconds=5)

    def test_requires_an_amount(self) -> None:
        with pytest.raises(ValueError, match="seconds"):
            FakeTimeAuthority().advance()

    def test_cannot_go_backwards(self) -> None:
        with pytest.raises(ValueError, match="backwards"):
            FakeTimeAuthority().advance(seconds=-1)


class TestSetTime:
    def test_set_time_leaves_monotonic_alone(self) -> None:
        fake_time = FakeTimeAuthority()
        fake_time.advance(seconds=5)

        fake_time.set_time(datetime(2027, 1, 1))

        assert fake_time.now() == datetime(2027, 1, 1, tzinfo=timezone.utc)
        assert fake_time.monotonic() == 5.0

    def test_repr_shows_time(self) -> None:
        assert "2026-01-01T00:00:00+00:00" in repr(FakeTimeAuthority())


def test_fixture_provides_frozen_clock(fake_time_authority: FakeTimeAuthority) -> None:
    assert fake_time_authority.now() == DEFAULT_FAKE_TIME
