"""Tests for the search example."""

from hark.testing import TestClient


class TestSearchApp:
    async def test_missing_query(self, example_app) -> None:
        response = await TestClient(example_app).get("/search")
        assert response.status == 400
        assert response.json() == {"error": "missing required parameter 'q'"}

    async def test_filters(self, example_app) -> None:
        response = await TestClient(example_app).get("/search?q=&tag=scifi&after=1970")
        assert response.status == 200
        assert response.content_type == "application/json"
        assert [b["title"] for b in response.json()["results"]] == ["Neuromancer"]

    async def test_titles_only_flag(self, example_app) -> None:
        response = await TestClient(example_app).get("/search/books?q=e&titles_only")
        body = response.json()
        assert body["scope"] == ["books"]
        assert body["results"] == ["Dune", "Emma", "Neuromancer"]

    async def test_bad_integer(self, example_app) -> None:
        response = await TestClient(example_app).get("/search?q=x&limit=ten")
        assert response.status == 400
        assert "not a valid integer" in response.json()["error"]
