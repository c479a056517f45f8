"""Tests for the community feed: builder, service and ``GET /api/community``."""

from datetime import timedelta

import pytest

from artcommunity.database import ArtworkTag, Like, Tag
from artcommunity.errors import ValidationError
from artcommunity.services.feed import FeedQueryBuilder, get_community_feed

from conftest import NOW, persist


def like(artwork, user, created_at):
    return Like(artwork_id=artwork.id, user_id=user.id, created_at=created_at)


# ---------------------------------------------------------------------------
# Builder tests.
# ---------------------------------------------------------------------------


class TestFeedQueryBuilder:
    """Predicate and parameter bookkeeping."""

    def test_starts_with_public_predicate_only(self):
        builder = FeedQueryBuilder(NOW)
        assert builder.params == []
        assert len(builder.predicates) == 1

    def test_each_filter_binds_its_own_values(self):
        builder = FeedQueryBuilder(NOW).search("cat").model("flux_realistic")
        assert builder.params == ["%cat%", "flux_realistic"]
        assert len(builder.predicates) == 3

        compiled = builder.page(10, 0).compile()
        assert compiled.params["p1"] == "%cat%"
        assert compiled.params["p2"] == "flux_realistic"

    def test_all_means_no_filter(self):
        builder = FeedQueryBuilder(NOW).category("all").model("all").search("")
        assert builder.params == []
        assert len(builder.predicates) == 1

    def test_unknown_time_range_is_unrestricted(self):
        builder = FeedQueryBuilder(NOW).time_range("decade")
        assert builder.params == []

    def test_trending_binds_window_start(self):
        builder = FeedQueryBuilder(NOW).sort("trending")
        assert builder.params == [NOW.replace(hour=0) - timedelta(days=7)]


# ---------------------------------------------------------------------------
# Service tests.
# ---------------------------------------------------------------------------


class TestCommunityFeed:
    """Filtering, sorting and pagination against the database."""

    def test_private_artworks_never_returned(self, gateway, make_user, make_artwork):
        owner = make_user()
        public_ids = {make_artwork(owner, title=f"cat {i}").id for i in range(3)}
        for i in range(2):
            make_artwork(owner, title=f"cat private {i}", is_public=False)

        for sort_by in ("newest", "trending", "popular"):
            for search in (None, "cat", "private"):
                for time_range in (None, "today", "week", "month"):
                    result = get_community_feed(
                        gateway, sort_by=sort_by, search=search, time_range=time_range, now=NOW
                    )
                    ids = {artwork["id"] for artwork in result["artworks"]}
                    assert ids <= public_ids
                    assert all(artwork["is_public"] for artwork in result["artworks"])

    def test_has_more_follows_total(self, gateway, make_user, make_artwork):
        owner = make_user()
        for _ in range(5):
            make_artwork(owner)

        first = get_community_feed(gateway, limit=2, offset=0)
        assert first["pagination"] == {"total": 5, "limit": 2, "offset": 0, "hasMore": True}
        assert len(first["artworks"]) == 2

        last = get_community_feed(gateway, limit=2, offset=4)
        assert last["pagination"]["hasMore"] is False
        assert len(last["artworks"]) == 1

    def test_trending_orders_by_recent_likes(self, gateway, make_user, make_artwork):
        owner = make_user()
        fans = [make_user() for _ in range(3)]
        old, hot, warm = (make_artwork(owner, title=t, created_at=NOW - timedelta(days=20)) for t in "ABC")
        make_artwork(owner, is_public=False)
        make_artwork(owner, is_public=False)

        recent = NOW - timedelta(days=1)
        stale = NOW - timedelta(days=14)
        persist(
            like(old, fans[0], stale), like(old, fans[1], stale), like(old, fans[2], stale),
            like(hot, fans[0], recent), like(hot, fans[1], recent),
            like(warm, fans[0], recent),
        )

        trending = get_community_feed(gateway, sort_by="trending", now=NOW)
        assert [a["title"] for a in trending["artworks"]] == ["B", "C", "A"]
        assert trending["pagination"]["total"] == 3

        popular = get_community_feed(gateway, sort_by="popular", now=NOW)
        assert [a["title"] for a in popular["artworks"]] == ["A", "B", "C"]
        assert [a["likes_count"] for a in popular["artworks"]] == [3, 2, 1]

    def test_newest_breaks_ties_by_id(self, gateway, make_user, make_artwork):
        owner = make_user()
        same_time = NOW - timedelta(hours=1)
        first = make_artwork(owner, created_at=same_time)
        second = make_artwork(owner, created_at=same_time)
        result = get_community_feed(gateway)
        assert [a["id"] for a in result["artworks"]] == [second.id, first.id]

    def test_time_range_today(self, gateway, make_user, make_artwork):
        owner = make_user()
        make_artwork(owner, title="this morning", created_at=NOW.replace(hour=1))
        make_artwork(owner, title="yesterday", created_at=NOW - timedelta(days=1))
        result = get_community_feed(gateway, time_range="today", now=NOW)
        assert [a["title"] for a in result["artworks"]] == ["this morning"]

    def test_search_is_case_insensitive_and_literal(self, gateway, make_user, make_artwork):
        owner = make_user()
        make_artwork(owner, title="100% Real Sunset")
        make_artwork(owner, title="1000 real sunsets")
        make_artwork(owner, title="Forest", description="a REAL forest")

        assert len(get_community_feed(gateway, search="real")["artworks"]) == 3
        literal = get_community_feed(gateway, search="100%")["artworks"]
        assert [a["title"] for a in literal] == ["100% Real Sunset"]

    def test_category_and_model_filters(self, gateway, make_user, make_artwork):
        owner = make_user()
        castle = make_artwork(owner, title="castle", model="dreamshaper")
        make_artwork(owner, title="robot", model="flux_realistic")
        fantasy = persist(Tag(name="fantasy"))
        persist(ArtworkTag(artwork_id=castle.id, tag_id=fantasy.id))

        by_category = get_community_feed(gateway, category="fantasy")["artworks"]
        assert [a["title"] for a in by_category] == ["castle"]
        assert by_category[0]["tags"] == ["fantasy"]

        by_model = get_community_feed(gateway, model_type="flux_realistic")["artworks"]
        assert [a["title"] for a in by_model] == ["robot"]
        assert by_model[0]["tags"] == []

        assert len(get_community_feed(gateway, category="all", model_type="all")["artworks"]) == 2

    def test_rows_carry_owner_and_counts(self, gateway, make_user, make_artwork):
        owner = make_user(display_name="Painter", avatar_url="https://cdn.example.com/a.png")
        make_artwork(owner, parameters='{"steps": 28}')
        artwork = get_community_feed(gateway)["artworks"][0]
        assert artwork["username"] == owner.username
        assert artwork["display_name"] == "Painter"
        assert artwork["avatar_url"] == "https://cdn.example.com/a.png"
        assert artwork["likes_count"] == 0
        assert artwork["comments_count"] == 0
        assert artwork["parameters"] == {"steps": 28}

    def test_negative_pagination_rejected(self, gateway):
        with pytest.raises(ValidationError):
            get_community_feed(gateway, limit=-1)
        with pytest.raises(ValidationError):
            get_community_feed(gateway, offset=-5)

    def test_limit_is_capped(self, gateway):
        result = get_community_feed(gateway, limit=10_000)
        assert result["pagination"]["limit"] == 100


# ---------------------------------------------------------------------------
# Endpoint tests.
# ---------------------------------------------------------------------------


class TestCommunityEndpoint:
    """Test GET /api/community."""

    def test_anonymous_access(self, client, make_user, make_artwork):
        owner = make_user()
        make_artwork(owner, title="Public piece")
        make_artwork(owner, title="Hidden piece", is_public=False)

        resp = client.get("/api/community", params={"limit": 5})
        assert resp.status_code == 200
        data = resp.json()
        assert [a["title"] for a in data["artworks"]] == ["Public piece"]
        assert data["pagination"] == {"total": 1, "limit": 5, "offset": 0, "hasMore": False}

    def test_query_parameters_are_camel_case(self, client, make_user, make_artwork):
        owner = make_user()
        make_artwork(owner, title="Neon city", model="flux_realistic")
        make_artwork(owner, title="Neon forest", model="dreamshaper")

        resp = client.get(
            "/api/community",
            params={"search": "neon", "modelType": "dreamshaper", "sortBy": "popular"},
        )
        assert [a["title"] for a in resp.json()["artworks"]] == ["Neon forest"]

    def test_negative_limit_is_bad_request(self, client):
        resp = client.get("/api/community", params={"limit": -1})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_non_numeric_limit_is_bad_request(self, client):
        resp = client.get("/api/community", params={"limit": "many"})
        assert resp.status_code == 400
        assert "error" in resp.json()
