"""
Tests for tiered time-limit resolution.
"""

import threading
import time

import pytest

from conftest import FakeDataSource
from guardian_dashboard.limits import LimitResolver
from guardian_dashboard.models import LimitTier


class TestLimitResolver:
    """Test override > child setting > default precedence."""

    @pytest.mark.parametrize(
        "delays",
        [{"override": 0.2}, {"setting": 0.2}, {}],
        ids=["override-last", "setting-last", "no-delay"],
    )
    def test_override_wins_regardless_of_completion_order(self, delays) -> None:
        source = FakeDataSource(
            override={"daily_limit_seconds": 3600},
            setting={"time_limit_minutes": 90},
            delays=delays,
        )
        limit = LimitResolver(source).resolve("kid")
        assert limit.daily_limit_seconds == 3600
        assert limit.tier is LimitTier.OVERRIDE

    def test_default_when_no_tier_present(self) -> None:
        limit = LimitResolver(FakeDataSource()).resolve("kid")
        assert limit.daily_limit_seconds == 7200
        assert limit.tier is LimitTier.DEFAULT

    def test_child_setting_minutes_converted(self) -> None:
        limit = LimitResolver(FakeDataSource(setting={"time_limit_minutes": 90})).resolve("kid")
        assert limit.daily_limit_seconds == 5400
        assert limit.tier is LimitTier.CHILD_SETTING

    def test_numeric_strings_accepted(self) -> None:
        limit = LimitResolver(FakeDataSource(setting={"time_limit_minutes": "45"})).resolve("kid")
        assert limit.daily_limit_seconds == 2700

    @pytest.mark.parametrize("bad", [0, -60, "soon", None, True, float("nan")])
    def test_invalid_override_falls_through(self, bad) -> None:
        source = FakeDataSource(
            override={"daily_limit_seconds": bad}, setting={"time_limit_minutes": 30}
        )
        limit = LimitResolver(source).resolve("kid")
        assert limit.daily_limit_seconds == 1800
        assert limit.tier is LimitTier.CHILD_SETTING

    def test_failed_override_falls_through(self) -> None:
        source = FakeDataSource(
            override={"daily_limit_seconds": 3600},
            setting={"time_limit_minutes": 30},
            failures={"override"},
        )
        assert LimitResolver(source).resolve("kid").daily_limit_seconds == 1800

    def test_all_tiers_failing_gives_default(self) -> None:
        source = FakeDataSource(failures={"override", "setting"})
        assert LimitResolver(source, default_seconds=600).resolve("kid").daily_limit_seconds == 600

    def test_slow_tier_is_treated_as_absent(self) -> None:
        source = FakeDataSource(
            override={"daily_limit_seconds": 3600},
            setting={"time_limit_minutes": 30},
            delays={"override": 1.0},
        )
        limit = LimitResolver(source, timeout=0.1).resolve("kid")
        assert limit.tier is LimitTier.CHILD_SETTING

    def test_hung_tier_does_not_block_resolution_or_exit(self) -> None:
        release = threading.Event()

        class HungOverrideSource(FakeDataSource):
            def fetch_time_limit_override(self, child_id: str):
                release.wait()
                return {"daily_limit_seconds": 3600}

        source = HungOverrideSource(setting={"time_limit_minutes": 30})
        try:
            started = time.monotonic()
            limit = LimitResolver(source, timeout=0.1).resolve("kid")
            assert time.monotonic() - started < 1.0
            assert limit.tier is LimitTier.CHILD_SETTING
            hung = [t for t in threading.enumerate() if t.name == "limit-lookup-override"]
            assert hung and all(thread.daemon for thread in hung)
        finally:
            release.set()

    def test_both_tiers_are_queried(self) -> None:
        source = FakeDataSource()
        LimitResolver(source).resolve("kid")
        assert sorted(name for name, _ in source.calls) == ["override", "setting"]

    def test_default_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            LimitResolver(FakeDataSource(), default_seconds=0)
