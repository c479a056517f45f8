"""Tests for per-user generation statistics."""

import json
from datetime import datetime

import pytest

from artcommunity.errors import AuthorizationError, ValidationError
from artcommunity.services.statistics import generation_time, get_statistics, round_half_up, weekday_index

from conftest import NOW, auth_headers, identity_of


class TestHelpers:
    def test_weekday_index_starts_on_sunday(self):
        assert weekday_index(datetime(2024, 6, 9)) == 0  # Sunday
        assert weekday_index(datetime(2024, 6, 15)) == 6  # Saturday

    def test_generation_time_defaults(self):
        assert generation_time(None) == 5.0
        assert generation_time("not json") == 5.0
        assert generation_time('{"generation_time": "slow"}') == 5.0
        assert generation_time('{"generation_time": 7.5}') == 7.5

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4) == 2


class TestStatisticsService:
    """Aggregation over the artworks table."""

    def test_other_user_forbidden_before_lookup(self, gateway, make_user):
        user = make_user()
        with pytest.raises(AuthorizationError):
            get_statistics(gateway, identity_of(user), 9999)

    def test_user_id_validation(self, gateway, make_user):
        user = make_user()
        with pytest.raises(ValidationError):
            get_statistics(gateway, identity_of(user), None)
        with pytest.raises(ValidationError):
            get_statistics(gateway, identity_of(user), "abc")

    def test_week_aggregation(self, gateway, make_user, make_artwork):
        user = make_user()
        make_artwork(
            user,
            created_at=datetime(2024, 6, 9, 10),
            model="flux_realistic",
            parameters=json.dumps({"generation_time": 3.4}),
        )
        make_artwork(user, created_at=datetime(2024, 6, 9, 11), model="dreamshaper", parameters="{}")
        make_artwork(
            user,
            created_at=datetime(2024, 6, 12, 9),
            model="sdxl",
            parameters=json.dumps({"generation_time": 10.6}),
            is_public=False,
        )
        # Outside the window
        make_artwork(user, created_at=datetime(2024, 5, 1), model="flux_realistic")

        stats = get_statistics(gateway, identity_of(user), str(user.id), time_range="week", now=NOW)

        generations = stats["generations"]
        assert generations["total"] == 3
        assert generations["average"] == pytest.approx(1.5)
        assert generations["mostActiveDay"] == "Sunday"
        assert generations["byDay"] == [2, 0, 0, 1, 0, 0, 0]
        assert stats["models"]["usage"] == [1, 0, 1, 0, 1]
        assert stats["time"]["total"] == 19
        assert stats["time"]["average"] == pytest.approx(19 / 3)
        assert stats["time"]["longest"] == 11
        assert stats["time"]["byDay"] == [8, 0, 0, 11, 0, 0, 0]

    def test_empty_window(self, gateway, make_user):
        user = make_user()
        stats = get_statistics(gateway, identity_of(user), user.id, time_range="day", now=NOW)
        assert stats["generations"]["total"] == 0
        assert stats["generations"]["average"] == 0
        assert stats["generations"]["mostActiveDay"] is None
        assert stats["time"]["longest"] == 0

    def test_most_active_day_tie_goes_to_earliest_weekday(self, gateway, make_user, make_artwork):
        user = make_user()
        make_artwork(user, created_at=datetime(2024, 6, 11))  # Tuesday
        make_artwork(user, created_at=datetime(2024, 6, 10))  # Monday
        stats = get_statistics(gateway, identity_of(user), user.id, time_range="month", now=NOW)
        assert stats["generations"]["mostActiveDay"] == "Monday"

    def test_unknown_time_range_means_week(self, gateway, make_user, make_artwork):
        user = make_user()
        make_artwork(user, created_at=datetime(2024, 6, 1))
        stats = get_statistics(gateway, identity_of(user), user.id, time_range="forever", now=NOW)
        assert stats["generations"]["total"] == 0


class TestStatisticsEndpoint:
    """Test GET /api/statistics."""

    def test_own_statistics(self, client, make_user, make_artwork):
        user = make_user()
        make_artwork(user)
        resp = client.get(
            "/api/statistics", params={"userId": user.id, "timeRange": "year"}, headers=auth_headers(user)
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["generations"]["total"] == 1
        assert len(data["generations"]["byDay"]) == 7
        assert len(data["models"]["usage"]) == 5

    def test_other_user_forbidden(self, client, make_user):
        user = make_user()
        other = make_user()
        for user_id in (other.id, 424242):
            resp = client.get("/api/statistics", params={"userId": user_id}, headers=auth_headers(user))
            assert resp.status_code == 403

    def test_requires_authentication(self, client):
        assert client.get("/api/statistics", params={"userId": 1}).status_code == 401
