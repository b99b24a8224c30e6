"""
Tests for the /stores API endpoints.

Requests go through the full FastAPI stack with the SQLite-backed store
swapped in for the application's own.
"""
from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.api.stores import get_review_store
from app.config import Settings
from app.exceptions import StoreUnavailable
from app.main import create_app
from app.services.review_store import InMemoryReviewStore


class BrokenStore(InMemoryReviewStore):
    async def insert(self, review):
        raise StoreUnavailable("connection refused")

    async def query(self, store_id, filters=None):
        raise StoreUnavailable("connection refused")


@pytest_asyncio.fixture
async def broken_client():
    app = create_app(Settings(review_store_backend="memory"))
    app.dependency_overrides[get_review_store] = lambda: BrokenStore()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client


async def _seed(client: AsyncClient, store: str = "1") -> None:
    for body in (
        {"rating": 5, "text": "great staff", "source": "GOOGLE"},
        {"rating": 2, "text": "slow service, rude host", "source": "YELP"},
    ):
        response = await client.post(f"/stores/{store}/reviews", json=body)
        assert response.status_code == 201


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "storesight-backend"}

    async def test_root(self, client):
        response = await client.get("/")
        assert response.json()["docs"] == "/docs"


class TestCreateReview:
    async def test_created(self, client):
        response = await client.post(
            "/stores/1/reviews",
            json={"rating": 4, "source": "UBER_EATS", "text": "Quick pickup"},
        )
        assert response.status_code == 201
        assert response.json() == {"message": "Review inserted"}

    async def test_empty_body(self, client):
        response = await client.post("/stores/1/reviews")
        assert response.status_code == 201

    async def test_snake_case_body(self, client):
        await client.post(
            "/stores/1/reviews",
            json={"rating": 5, "sentiment_score": -0.4, "sentiment_label": "Negative"},
        )
        [review] = (await client.get("/stores/1/reviews")).json()
        assert review["sentimentScore"] == -0.4
        assert review["sentimentLabel"] == "Negative"

    async def test_array_body_rejected(self, client):
        response = await client.post("/stores/1/reviews", json=[{"rating": 5}])
        assert response.status_code == 422

    async def test_rating_too_large_for_float_stored_as_null(self, client):
        response = await client.post("/stores/1/reviews", json={"rating": 10**400, "text": "x"})
        assert response.status_code == 201

        [review] = (await client.get("/stores/1/reviews")).json()
        assert review["rating"] is None
        assert review["text"] == "x"


class TestStoreIdValidation:
    @pytest.mark.parametrize(
        "path",
        [
            "/stores/abc/overview",
            "/stores/abc/reviews",
            "/stores/abc/issues",
            "/stores/abc/metrics",
            "/stores/abc/summary",
        ],
    )
    async def test_non_numeric_store_id(self, client, path):
        response = await client.get(path)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid storeId: abc"

    async def test_non_numeric_store_id_on_insert(self, client):
        response = await client.post("/stores/abc/reviews", json={"rating": 5})
        assert response.status_code == 400

    @pytest.mark.parametrize("store_id", ["99999999999999999999", "2147483648", "-2147483649"])
    async def test_store_id_outside_integer_column(self, client, store_id):
        response = await client.get(f"/stores/{store_id}/overview")
        assert response.status_code == 400
        assert response.json()["detail"] == f"Invalid storeId: {store_id}"

    async def test_largest_store_id_accepted(self, client):
        response = await client.get("/stores/2147483647/overview")
        assert response.status_code == 200
        assert response.json()["totalReviews"] == 0

    async def test_alias_resolves(self, client):
        await _seed(client, store="demo")

        response = await client.get("/stores/1/overview")
        assert response.json()["totalReviews"] == 2


class TestReads:
    async def test_overview(self, client):
        await _seed(client)

        response = await client.get("/stores/1/overview")

        assert response.status_code == 200
        body = response.json()
        assert body["storeId"] == 1
        assert body["totalReviews"] == 2
        assert body["avgRating"] == 3.5
        assert body["positiveReviews"] == 1
        assert body["negativeReviews"] == 1
        assert body["firstReviewAt"] is not None

    async def test_overview_zero_state(self, client):
        response = await client.get("/stores/7/overview")
        assert response.json() == {
            "storeId": 7,
            "totalReviews": 0,
            "avgRating": None,
            "positiveReviews": 0,
            "negativeReviews": 0,
            "firstReviewAt": None,
            "lastReviewAt": None,
        }

    async def test_reviews_camel_case(self, client):
        await _seed(client)

        response = await client.get("/stores/1/reviews", params={"limit": 1})

        assert response.status_code == 200
        [review] = response.json()
        assert set(review) == {
            "id",
            "storeId",
            "rating",
            "source",
            "sentimentScore",
            "sentimentLabel",
            "text",
            "createdAt",
        }
        assert review["text"] == "slow service, rude host"

    async def test_reviews_limit_validated(self, client):
        response = await client.get("/stores/1/reviews", params={"limit": 0})
        assert response.status_code == 422

    async def test_issues(self, client):
        await _seed(client)

        response = await client.get("/stores/1/issues")

        [issue] = response.json()
        assert issue["rating"] == 2.0
        assert issue["themes"] == ["service", "speed"]

    async def test_metrics(self, client):
        await _seed(client)

        response = await client.get("/stores/1/metrics", params={"range": "7d"})

        body = response.json()
        assert body["range"] == "7d"
        [point] = body["data"]
        assert set(point) == {"date", "reviewCount", "avgRating", "avgSentiment"}
        assert point["reviewCount"] == 2
        assert point["avgRating"] == 3.5

    async def test_metrics_unknown_range(self, client):
        response = await client.get("/stores/1/metrics", params={"range": "forever"})
        assert response.json() == {"range": "30d", "data": []}

    async def test_summary(self, client):
        await _seed(client)

        response = await client.get("/stores/1/summary")

        body = response.json()
        assert body["storeId"] == 1
        assert body["range"] == "7d"
        assert body["summaryText"].startswith("You have 2 total reviews")
        assert body["highlights"][0] == "Rating trend: Flat vs overall average."
        assert body["stats"]["topThemes"] == ["service", "speed"]
        assert body["stats"]["recentAvgRating"] == 3.5

    async def test_summary_empty_store(self, client):
        body = (await client.get("/stores/1/summary", params={"range": "30d"})).json()
        assert body["range"] == "30d"
        assert body["summaryText"] == "Not enough data yet to build a summary."


class TestUploadCsv:
    async def test_upload(self, client):
        content = (
            b"RATING,REVIEW_TEXT,SOURCE\n"
            b"5,great staff,GOOGLE\n"
            b'2,"slow service, rude host",YELP\n'
            b",,\n"
        )

        response = await client.post(
            "/stores/1/reviews/upload-csv",
            files={"file": ("reviews.csv", content, "text/csv")},
        )

        assert response.status_code == 201
        assert response.json() == {"message": "CSV imported", "rowsInserted": 2, "skippedRows": 1}

        overview = (await client.get("/stores/1/overview")).json()
        assert overview["totalReviews"] == 2

    async def test_missing_file(self, client):
        response = await client.post("/stores/1/reviews/upload-csv")
        assert response.status_code == 400
        assert response.json()["detail"] == 'CSV file is required (field "file")'

    async def test_unparseable_csv(self, client):
        response = await client.post(
            "/stores/1/reviews/upload-csv",
            files={"file": ("reviews.csv", b"rating,text\n4,ok\n5,ok,extra,cols\n", "text/csv")},
        )
        assert response.status_code == 400


class TestStoreUnavailable:
    @pytest.mark.parametrize(
        "path,detail",
        [
            ("/stores/1/overview", "Failed to fetch store overview"),
            ("/stores/1/reviews", "Failed to fetch reviews"),
            ("/stores/1/issues", "Failed to fetch issues"),
            ("/stores/1/metrics", "Failed to fetch metrics"),
            ("/stores/1/summary", "Failed to build summary"),
        ],
    )
    async def test_reads_fail_with_500(self, broken_client, path, detail):
        response = await broken_client.get(path)
        assert response.status_code == 500
        assert response.json() == {"detail": detail}

    async def test_insert_fails_with_500(self, broken_client):
        response = await broken_client.post("/stores/1/reviews", json={"rating": 5})
        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to insert review"}

    async def test_invalid_store_id_checked_first(self, broken_client):
        response = await broken_client.get("/stores/abc/overview")
        assert response.status_code == 400
