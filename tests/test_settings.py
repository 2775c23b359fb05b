"""Tests for application settings and grid configuration schemas."""

import json

import pytest
from pydantic import ValidationError

from alertgrid.config import Settings
from alertgrid.schemas.grid import DAY_MS, TimeWindow
from tests.conftest import T0

AREA = {
    "waze_area_top": 1.0,
    "waze_area_bottom": -1.0,
    "waze_area_left": -1.0,
    "waze_area_right": 1.0,
}


def _settings(**overrides) -> Settings:
    return Settings(database_url="sqlite+aiosqlite:///test.db", **{**AREA, **overrides})


class TestSettingsDefaults:
    """Test default values."""

    def test_default_windows(self):
        s = _settings()
        assert [w.id for w in s.time_windows] == [0, 1, 2, 3]
        assert [(w.days_ago_start, w.days_ago_end) for w in s.time_windows] == [
            (0, 7),
            (7, 14),
            (14, 30),
            (30, 90),
        ]

    def test_default_radius_groups(self):
        assert _settings().diversity_radii == [0.0001, 0.0005, 0.001, 0.002]

    def test_default_precision(self):
        s = _settings()
        assert s.precision_min == 0
        assert s.precision_max == 5

    def test_area_is_required(self):
        with pytest.raises(ValidationError):
            Settings(database_url="sqlite+aiosqlite:///test.db")

    def test_center_of_area(self):
        area = _settings().area
        assert area.center_lon == 0
        assert area.center_lat == 0


class TestSettingsValidation:
    """Test validation of grid configuration."""

    def test_window_ids_must_follow_list_order(self):
        with pytest.raises(ValidationError, match="consecutive"):
            _settings(
                time_windows=[
                    {"id": 1, "days_ago_start": 0, "days_ago_end": 7},
                    {"id": 0, "days_ago_start": 7, "days_ago_end": 14},
                ]
            )

    def test_at_least_one_window(self):
        with pytest.raises(ValidationError, match="at least one"):
            _settings(time_windows=[])

    def test_negative_radius_rejected(self):
        with pytest.raises(ValidationError, match="non-negative"):
            _settings(diversity_radii=[0.001, -0.5])

    def test_radii_from_comma_separated_string(self):
        assert _settings(diversity_radii="0.001, 0.01").diversity_radii == [0.001, 0.01]

    def test_precision_order(self):
        with pytest.raises(ValidationError, match="precision_min"):
            _settings(precision_min=4, precision_max=3)

    def test_overlapping_windows_are_allowed(self):
        s = _settings(
            time_windows=[
                {"id": 0, "days_ago_start": 0, "days_ago_end": 10},
                {"id": 1, "days_ago_start": 5, "days_ago_end": 20},
            ]
        )
        assert len(s.time_windows) == 2


class TestSettingsFromEnvironment:
    """Test loading from environment variables."""

    def test_reads_area_and_lists(self, monkeypatch):
        monkeypatch.setenv("WAZE_AREA_TOP", "41.0")
        monkeypatch.setenv("WAZE_AREA_BOTTOM", "40.0")
        monkeypatch.setenv("WAZE_AREA_LEFT", "-74.5")
        monkeypatch.setenv("WAZE_AREA_RIGHT", "-73.5")
        monkeypatch.setenv("DIVERSITY_RADII", "[0.0002, 0.004]")
        monkeypatch.setenv(
            "TIME_WINDOWS",
            json.dumps(
                [
                    {"id": 0, "name": "this week", "days_ago_start": 0, "days_ago_end": 7},
                    {"id": 1, "name": "before", "days_ago_start": 7, "days_ago_end": 60},
                ]
            ),
        )

        s = Settings()

        assert s.area.center_lon == pytest.approx(-74.0)
        assert s.area.center_lat == pytest.approx(40.5)
        assert s.diversity_radii == [0.0002, 0.004]
        assert [w.name for w in s.time_windows] == ["this week", "before"]

    def test_comma_separated_radii(self, monkeypatch):
        for key, value in AREA.items():
            monkeypatch.setenv(key.upper(), str(value))
        monkeypatch.setenv("DIVERSITY_RADII", "0.0001,0.0003")

        assert Settings().diversity_radii == [0.0001, 0.0003]


class TestTimeWindow:
    """Tests for TimeWindow boundaries."""

    def test_end_must_exceed_start(self):
        with pytest.raises(ValidationError, match="greater than"):
            TimeWindow(id=0, days_ago_start=7, days_ago_end=7)

    def test_most_recent_window_is_open_ended(self):
        window = TimeWindow(id=0, days_ago_start=0, days_ago_end=7)
        assert window.upper_bound(T0) is None
        assert window.contains(T0, T0)
        assert window.contains(T0 + 1, T0)
        assert window.contains(T0 - 7 * DAY_MS, T0)
        assert not window.contains(T0 - 7 * DAY_MS - 1, T0)

    def test_older_window_is_half_open(self):
        window = TimeWindow(id=1, days_ago_start=7, days_ago_end=14)
        assert window.lower_bound(T0) == T0 - 14 * DAY_MS
        assert window.upper_bound(T0) == T0 - 7 * DAY_MS
        assert window.contains(T0 - 14 * DAY_MS, T0)
        assert not window.contains(T0 - 7 * DAY_MS, T0)
