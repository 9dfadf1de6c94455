"""Tests for API endpoints."""
import pytest
from datetime import date

from app.models.package import Package
from app.models.trip import Trip
from app.models.user import User


def _seed(db_session):
    db_session.add_all([
        User(id="sender", name="Sophie", email="sophie@example.com", phone="0600000001"),
        User(id="traveler", name="Karim", email="karim@example.com", phone="0600000002"),
    ])
    db_session.add(Package(
        id="pkg-1",
        origin_city="Paris",
        destination_city="Lyon",
        weight_kg=5.0,
        ship_date=date(2024, 6, 1),
        owner_id="sender",
    ))
    db_session.add_all([
        Trip(id="trip-exact", departure_city="Paris", arrival_city="Lyon",
             travel_date=date(2024, 6, 1), capacity_kg=10.0, price_per_kg=4.0, owner_id="traveler"),
        Trip(id="trip-region", departure_city="Nanterre", arrival_city="Villeurbanne",
             travel_date=date(2024, 6, 3), capacity_kg=10.0, price_per_kg=3.0, owner_id="traveler"),
    ])
    db_session.commit()


class TestUsersAPI:
    async def test_create_user(self, client, db_session):
        response = await client.post(
            "/api/users",
            json={"name": "Sophie", "email": "sophie@example.com", "phone": "0600000001"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Sophie"
        assert data["id"]

    async def test_duplicate_email_rejected(self, client, db_session):
        payload = {"name": "Sophie", "email": "sophie@example.com"}
        await client.post("/api/users", json=payload)
        response = await client.post("/api/users", json=payload)
        assert response.status_code == 409

    async def test_invalid_email_rejected(self, client, db_session):
        response = await client.post("/api/users", json={"name": "Bob", "email": "nope"})
        assert response.status_code == 422

    async def test_profile_lists_own_listings(self, client, db_session):
        _seed(db_session)
        response = await client.get("/api/users/traveler")
        assert response.status_code == 200
        data = response.json()
        assert data["trip_count"] == 2
        assert data["package_count"] == 0
        assert {t["id"] for t in data["trips"]} == {"trip-exact", "trip-region"}

    async def test_unknown_user(self, client, db_session):
        response = await client.get("/api/users/ghost")
        assert response.status_code == 404


class TestPackagesAPI:
    async def test_create_package(self, client, db_session):
        _seed(db_session)
        response = await client.post(
            "/api/packages",
            json={
                "origin_city": "Marseille",
                "destination_city": "Paris",
                "weight_kg": 2.5,
                "ship_date": "2024-07-14",
                "flexibility_days": 3,
                "urgency": "high",
                "owner_id": "sender",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["origin_city"] == "Marseille"
        assert data["urgency"] == "high"
        assert data["owner"]["name"] == "Sophie"

    async def test_create_package_unknown_owner(self, client, db_session):
        response = await client.post(
            "/api/packages",
            json={"origin_city": "Paris", "destination_city": "Lyon", "weight_kg": 1, "owner_id": "ghost"},
        )
        assert response.status_code == 404

    async def test_create_package_rejects_non_positive_weight(self, client, db_session):
        _seed(db_session)
        response = await client.post(
            "/api/packages",
            json={"origin_city": "Paris", "destination_city": "Lyon", "weight_kg": 0, "owner_id": "sender"},
        )
        assert response.status_code == 422

    async def test_list_packages_filters_by_city(self, client, db_session):
        _seed(db_session)
        response = await client.get("/api/packages", params={"origin": "par"})
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == ["pkg-1"]

        response = await client.get("/api/packages", params={"destination": "marseille"})
        assert response.json() == []

    async def test_get_package(self, client, db_session):
        _seed(db_session)
        response = await client.get("/api/packages/pkg-1")
        assert response.status_code == 200
        assert response.json()["weight_kg"] == 5.0

    async def test_get_unknown_package(self, client, db_session):
        response = await client.get("/api/packages/missing")
        assert response.status_code == 404


class TestTripsAPI:
    async def test_create_trip(self, client, db_session):
        _seed(db_session)
        response = await client.post(
            "/api/trips",
            json={
                "departure_city": "Lyon",
                "arrival_city": "Marseille",
                "travel_date": "2024-06-10",
                "capacity_kg": 20,
                "price_per_kg": 5,
                "owner_id": "traveler",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["travel_date"] == "2024-06-10"
        assert data["owner"]["phone"] == "0600000002"

    async def test_create_trip_requires_date(self, client, db_session):
        _seed(db_session)
        response = await client.post(
            "/api/trips",
            json={"departure_city": "Lyon", "arrival_city": "Nice", "capacity_kg": 20, "owner_id": "traveler"},
        )
        assert response.status_code == 422

    async def test_list_trips_filters(self, client, db_session):
        _seed(db_session)
        response = await client.get("/api/trips", params={"departure": "nanterre"})
        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == ["trip-region"]

    async def test_get_unknown_trip(self, client, db_session):
        response = await client.get("/api/trips/missing")
        assert response.status_code == 404


class TestMatchingAPI:
    async def test_match_package(self, client, db_session):
        _seed(db_session)
        response = await client.post("/api/matching/packages", json={"package_id": "pkg-1"})
        assert response.status_code == 200
        data = response.json()
        assert data["total_matches"] == 2
        assert data["recommended_matches"] == 1
        assert [m["trip_id"] for m in data["matches"]] == ["trip-exact", "trip-region"]

        best = data["matches"][0]
        assert best["score"] == 97.0
        assert best["trip"]["owner"] == {"id": "traveler", "name": "Karim", "phone": "0600000002"}
        assert best["breakdown"]["primary"]["total"] == 70
        assert best["breakdown"]["is_exact_primary_match"] is True
        assert data["search_params"]["date_start"] == "2024-05-25"
        assert data["search_params"]["min_weight"] == 5.0

    async def test_match_package_min_score(self, client, db_session):
        _seed(db_session)
        response = await client.post(
            "/api/matching/packages",
            json={"package_id": "pkg-1", "options": {"min_score": 70}},
        )
        data = response.json()
        assert data["total_matches"] == 1
        assert all(m["score"] >= 70 for m in data["matches"])

    async def test_match_package_without_breakdown(self, client, db_session):
        _seed(db_session)
        response = await client.post(
            "/api/matching/packages",
            json={"package_id": "pkg-1", "options": {"include_breakdown": False}},
        )
        data = response.json()
        assert all(m["breakdown"] is None for m in data["matches"])
        assert data["matches"][0]["is_recommended"] is True

    async def test_match_unknown_package(self, client, db_session):
        response = await client.post("/api/matching/packages", json={"package_id": "missing"})
        assert response.status_code == 404

    async def test_match_options_validated(self, client, db_session):
        _seed(db_session)
        response = await client.post(
            "/api/matching/packages",
            json={"package_id": "pkg-1", "options": {"min_score": 150}},
        )
        assert response.status_code == 422

        response = await client.post(
            "/api/matching/packages",
            json={"package_id": "pkg-1", "options": {"limit": 0}},
        )
        assert response.status_code == 422

    async def test_huge_search_radius(self, client, db_session):
        _seed(db_session)
        response = await client.post(
            "/api/matching/packages",
            json={"package_id": "pkg-1", "options": {"date_search_radius": 5000000}},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total_matches"] == 2
        assert data["search_params"]["date_start"] == "0001-01-01"
        assert data["search_params"]["date_end"] == "9999-12-31"

    async def test_undated_package_serializes_without_infinity(self, client, db_session):
        _seed(db_session)
        db_session.add(Package(
            id="pkg-undated", origin_city="Paris", destination_city="Lyon",
            weight_kg=1.0, ship_date=None, owner_id="sender",
        ))
        db_session.add(Trip(
            id="trip-today", departure_city="Paris", arrival_city="Lyon",
            travel_date=date.today(), capacity_kg=2.0, price_per_kg=1.0, owner_id="traveler",
        ))
        db_session.commit()

        response = await client.post("/api/matching/packages", json={"package_id": "pkg-undated"})
        assert response.status_code == 200
        match = response.json()["matches"][0]
        assert match["trip_id"] == "trip-today"
        assert match["breakdown"]["primary"]["date"]["days_difference"] is None
        assert match["breakdown"]["primary"]["date"]["score"] == 5

    async def test_match_trip(self, client, db_session):
        _seed(db_session)
        response = await client.post("/api/matching/trips", json={"trip_id": "trip-exact"})
        assert response.status_code == 200
        data = response.json()
        assert data["trip_id"] == "trip-exact"
        assert data["total_matches"] == 1
        match = data["matches"][0]
        assert match["package"]["id"] == "pkg-1"
        assert match["package"]["owner"]["name"] == "Sophie"
        assert match["breakdown"] is not None
        assert data["search_params"]["max_weight"] == 10.0

    async def test_match_unknown_trip(self, client, db_session):
        response = await client.post("/api/matching/trips", json={"trip_id": "missing"})
        assert response.status_code == 404

    async def test_batch_defaults_to_recommended_only(self, client, db_session):
        _seed(db_session)
        response = await client.post("/api/matching/packages/batch", json={"package_ids": ["pkg-1"]})
        assert response.status_code == 200
        matches = response.json()["matches_by_package_id"]["pkg-1"]
        assert [m["trip_id"] for m in matches] == ["trip-exact"]

    async def test_batch_explicit_min_score(self, client, db_session):
        _seed(db_session)
        response = await client.post(
            "/api/matching/packages/batch",
            json={"package_ids": ["pkg-1"], "options": {"min_score": 0}},
        )
        assert len(response.json()["matches_by_package_id"]["pkg-1"]) == 2

    async def test_batch_requires_ids(self, client, db_session):
        response = await client.post("/api/matching/packages/batch", json={"package_ids": []})
        assert response.status_code == 422

    async def test_batch_unknown_id(self, client, db_session):
        _seed(db_session)
        response = await client.post(
            "/api/matching/packages/batch",
            json={"package_ids": ["pkg-1", "missing"]},
        )
        assert response.status_code == 404
