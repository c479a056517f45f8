"""Tests for the generation history and artwork deletion."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from artcommunity.database import Artwork, CollectionItem, Comment, Like
from artcommunity.errors import AuthorizationError, ValidationError
from artcommunity.services.history import HistoryQueryBuilder, group_by_day, list_history

from conftest import NOW, auth_headers, identity_of, persist


class TestHistoryQueryBuilder:
    """Predicate and parameter bookkeeping."""

    def test_owner_always_bound(self):
        builder = HistoryQueryBuilder(7, NOW)
        assert builder.params == [7]
        assert len(builder.predicates) == 1

    def test_saved_filter_and_search_bind_values(self):
        builder = HistoryQueryBuilder(7, NOW).filter("saved").search("fox")
        assert builder.params == [7, 7, "%fox%"]
        assert len(builder.predicates) == 3

    def test_shared_filter_adds_no_value(self):
        builder = HistoryQueryBuilder(7, NOW).filter("shared")
        assert builder.params == [7]
        assert len(builder.predicates) == 2


class TestGroupByDay:

    def test_today_yesterday_and_dates(self):
        rows = [
            {"id": 1, "created_at": NOW.replace(hour=1)},
            {"id": 2, "created_at": NOW - timedelta(days=1)},
            {"id": 3, "created_at": NOW - timedelta(days=5)},
        ]
        groups = group_by_day(rows, NOW)
        assert list(groups) == ["today", "yesterday", "2024-06-10"]
        assert [row["id"] for row in groups["yesterday"]] == [2]


class TestHistoryService:
    """list_history against the database."""

    def test_only_own_artworks_newest_first(self, gateway, make_user, make_artwork):
        user = make_user()
        other = make_user()
        old = make_artwork(user, title="old", created_at=NOW - timedelta(days=3))
        new = make_artwork(user, title="new", is_public=False, created_at=NOW - timedelta(hours=1))
        make_artwork(other, title="foreign")

        result = list_history(gateway, identity_of(user), user.id, now=NOW)
        assert [a["id"] for a in result["artworks"]] == [new.id, old.id]
        assert list(result["groupedArtworks"]) == ["today", "2024-06-12"]
        assert result["pagination"] == {"total": 2, "limit": 10, "offset": 0, "hasMore": False}

    def test_filters(self, gateway, make_user, make_artwork, make_collection):
        user = make_user()
        make_artwork(user, title="shared")
        saved = make_artwork(user, title="saved", is_public=False)
        make_artwork(user, title="draft", is_public=False)
        collection = make_collection(user)
        persist(CollectionItem(collection_id=collection.id, artwork_id=saved.id))
        identity = identity_of(user)

        def titles(filter_name):
            rows = list_history(gateway, identity, user.id, filter_name=filter_name)["artworks"]
            return {row["title"] for row in rows}

        assert titles("saved") == {"saved"}
        assert titles("shared") == {"shared"}
        assert titles("all") == {"shared", "saved", "draft"}
        assert titles("bogus") == {"shared", "saved", "draft"}

    def test_search_title_or_prompt(self, gateway, make_user, make_artwork):
        user = make_user()
        make_artwork(user, title="Red Fox", prompt="animal")
        make_artwork(user, title="Landscape", prompt="a fox in the snow")
        make_artwork(user, title="50% off", prompt="sale")
        identity = identity_of(user)

        assert len(list_history(gateway, identity, user.id, search="FOX")["artworks"]) == 2
        literal = list_history(gateway, identity, user.id, search="50%")["artworks"]
        assert [a["title"] for a in literal] == ["50% off"]

    def test_flags_and_counts(self, gateway, make_user, make_artwork, make_collection):
        user = make_user()
        fan = make_user()
        liked = make_artwork(user, title="liked", parameters='{"seed": 4}')
        plain = make_artwork(user, title="plain")
        own_collection = make_collection(user)
        foreign_collection = make_collection(fan)
        persist(
            Like(artwork_id=liked.id, user_id=user.id),
            Like(artwork_id=liked.id, user_id=fan.id),
            CollectionItem(collection_id=own_collection.id, artwork_id=liked.id),
            CollectionItem(collection_id=foreign_collection.id, artwork_id=plain.id),
        )

        rows = {a["title"]: a for a in list_history(gateway, identity_of(user), user.id)["artworks"]}
        assert rows["liked"]["is_liked"] is True
        assert rows["liked"]["is_saved"] is True
        assert rows["liked"]["likes_count"] == 2
        assert rows["liked"]["parameters"] == {"seed": 4}
        assert rows["plain"]["is_liked"] is False
        assert rows["plain"]["is_saved"] is False

    def test_pagination(self, gateway, make_user, make_artwork):
        user = make_user()
        for _ in range(3):
            make_artwork(user)
        page = list_history(gateway, identity_of(user), user.id, limit=2, offset=0)
        assert len(page["artworks"]) == 2
        assert page["pagination"]["hasMore"] is True
        with pytest.raises(ValidationError):
            list_history(gateway, identity_of(user), user.id, offset=-1)

    def test_other_user_and_missing_id(self, gateway, make_user):
        user = make_user()
        with pytest.raises(AuthorizationError):
            list_history(gateway, identity_of(user), 9999)
        with pytest.raises(ValidationError):
            list_history(gateway, identity_of(user), None)


class TestHistoryEndpoints:
    """Test GET and DELETE /api/history."""

    def test_get_history(self, client, make_user, make_artwork):
        user = make_user()
        make_artwork(user, title="mine", is_public=False)
        resp = client.get(
            "/api/history", params={"userId": user.id, "filter": "all"}, headers=auth_headers(user)
        )
        assert resp.status_code == 200
        data = resp.json()
        assert [a["title"] for a in data["artworks"]] == ["mine"]
        assert sum(len(group) for group in data["groupedArtworks"].values()) == 1

    def test_get_history_of_someone_else(self, client, make_user):
        user = make_user()
        other = make_user()
        resp = client.get("/api/history", params={"userId": other.id}, headers=auth_headers(user))
        assert resp.status_code == 403

    def test_requires_authentication(self, client):
        assert client.get("/api/history", params={"userId": 1}).status_code == 401

    def test_delete_removes_artwork_and_dependents(
        self, client, gateway, make_user, make_artwork, make_collection
    ):
        user = make_user()
        fan = make_user()
        artwork = make_artwork(user)
        survivor = make_artwork(user)
        collection = make_collection(fan)
        persist(
            Like(artwork_id=artwork.id, user_id=fan.id),
            Comment(artwork_id=artwork.id, user_id=fan.id, text="lovely"),
            CollectionItem(collection_id=collection.id, artwork_id=artwork.id),
        )

        resp = client.delete(
            "/api/history", params={"artworkId": artwork.id, "userId": user.id}, headers=auth_headers(user)
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert [row["id"] for row in gateway.query(select(Artwork.id)).rows] == [survivor.id]
        assert gateway.query(select(Like.id)).rows == []
        assert gateway.query(select(Comment.id)).rows == []
        assert gateway.query(select(CollectionItem.id)).rows == []

        again = client.delete(
            "/api/history", params={"artworkId": artwork.id, "userId": user.id}, headers=auth_headers(user)
        )
        assert again.status_code == 404

    def test_delete_someone_elses_artwork(self, client, make_user, make_artwork):
        owner = make_user()
        intruder = make_user()
        artwork = make_artwork(owner)

        as_self = client.delete(
            "/api/history",
            params={"artworkId": artwork.id, "userId": intruder.id},
            headers=auth_headers(intruder),
        )
        assert as_self.status_code == 403
        as_owner = client.delete(
            "/api/history",
            params={"artworkId": artwork.id, "userId": owner.id},
            headers=auth_headers(intruder),
        )
        assert as_owner.status_code == 403

    def test_delete_missing_ids(self, client, make_user):
        user = make_user()
        resp = client.delete("/api/history", params={"userId": user.id}, headers=auth_headers(user))
        assert resp.status_code == 400
