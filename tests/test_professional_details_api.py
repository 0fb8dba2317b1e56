"""Tests for professional details API endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from portfolio_registry.api.main import app
from portfolio_registry.services.portfolio import save_portfolio

OWNER = "owner@example.com"
OTHER = "other@example.com"


@pytest.fixture
def client() -> TestClient:
    """Create a test client for the API."""
    return TestClient(app)


@pytest.fixture
def portfolios() -> tuple[int, int]:
    """Create two portfolios and return (owner_id, other_id)."""
    owner = save_portfolio({"full_name": "Owner", "email": OWNER})
    other = save_portfolio({"full_name": "Other", "email": OTHER})
    return owner["id"], other["id"]


def _auth(email: str = OWNER) -> dict[str, str]:
    return {"X-User-Email": email}


def _body(portfolio_id: int, **extra) -> dict:
    return {
        "portfolio_id": portfolio_id,
        "skills": "Python, FastAPI",
        "experience": "4 years",
        "job_role": "Backend Engineer",
        "company_name": "Acme",
        **extra,
    }


def _create(client: TestClient, portfolio_id: int, email: str = OWNER, **extra) -> dict:
    response = client.post(
        "/api/professional-details", json=_body(portfolio_id, **extra), headers=_auth(email)
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCreate:
    """Tests for POST /api/professional-details."""

    def test_create(self, client: TestClient, portfolios: tuple[int, int]) -> None:
        owner_id, _ = portfolios
        data = _create(client, owner_id)

        assert data["portfolio_id"] == owner_id
        assert data["experience_years"] == 4
        assert "id" in data

    def test_create_for_foreign_portfolio_forbidden(
        self, client: TestClient, portfolios: tuple[int, int]
    ) -> None:
        _, other_id = portfolios
        response = client.post(
            "/api/professional-details", json=_body(other_id), headers=_auth()
        )
        assert response.status_code == 403

    def test_create_for_missing_portfolio(
        self, client: TestClient, portfolios: tuple[int, int]
    ) -> None:
        response = client.post("/api/professional-details", json=_body(999), headers=_auth())
        assert response.status_code == 404

    def test_create_requires_authentication(
        self, client: TestClient, portfolios: tuple[int, int]
    ) -> None:
        owner_id, _ = portfolios
        response = client.post("/api/professional-details", json=_body(owner_id))
        assert response.status_code == 401

    def test_create_too_long_skills_rejected(
        self, client: TestClient, portfolios: tuple[int, int]
    ) -> None:
        owner_id, _ = portfolios
        response = client.post(
            "/api/professional-details",
            json=_body(owner_id, skills="x" * 501),
            headers=_auth(),
        )
        assert response.status_code == 422


class TestBulk:
    """Tests for POST /api/professional-details/bulk."""

    def test_bulk_create(self, client: TestClient, portfolios: tuple[int, int]) -> None:
        owner_id, _ = portfolios
        response = client.post(
            "/api/professional-details/bulk",
            json=[_body(owner_id), _body(owner_id, skills="Go")],
            headers=_auth(),
        )
        assert response.status_code == 201
        assert client.get("/api/professional-details/count").json() == {"count": 2}

    def test_bulk_rejects_foreign_portfolio(
        self, client: TestClient, portfolios: tuple[int, int]
    ) -> None:
        owner_id, other_id = portfolios
        response = client.post(
            "/api/professional-details/bulk",
            json=[_body(owner_id), _body(other_id)],
            headers=_auth(),
        )
        assert response.status_code == 403
        assert client.get("/api/professional-details/count").json() == {"count": 0}

    def test_bulk_is_all_or_nothing(self, client: TestClient, portfolios: tuple[int, int]) -> None:
        owner_id, _ = portfolios
        response = client.post(
            "/api/professional-details/bulk",
            json=[_body(owner_id), _body(owner_id, job_role="   ")],
            headers=_auth(),
        )
        assert response.status_code == 422
        assert client.get("/api/professional-details/count").json() == {"count": 0}


class TestQueries:
    """Tests for listing, filtering and counting."""

    def test_filters(self, client: TestClient, portfolios: tuple[int, int]) -> None:
        owner_id, other_id = portfolios
        backend = _create(client, owner_id)
        frontend = _create(
            client,
            other_id,
            OTHER,
            skills="React",
            job_role="Frontend Developer",
            company_name="Globex",
        )

        assert len(client.get("/api/professional-details").json()) == 2
        by_role = client.get("/api/professional-details", params={"job_role": "frontend"})
        assert by_role.json() == [frontend]
        by_company = client.get("/api/professional-details", params={"company": "acme"})
        assert by_company.json() == [backend]
        by_skill = client.get("/api/professional-details", params={"skill": "fastapi"})
        assert by_skill.json() == [backend]

        too_many = client.get(
            "/api/professional-details", params={"job_role": "a", "company": "b"}
        )
        assert too_many.status_code == 422

    def test_mine(self, client: TestClient, portfolios: tuple[int, int]) -> None:
        owner_id, other_id = portfolios
        mine = _create(client, owner_id)
        _create(client, other_id, OTHER)

        response = client.get("/api/professional-details/mine", headers=_auth())
        assert response.json() == [mine]

    def test_get_by_id(self, client: TestClient, portfolios: tuple[int, int]) -> None:
        owner_id, _ = portfolios
        created = _create(client, owner_id)

        assert client.get(f"/api/professional-details/{created['id']}").json() == created
        assert client.get("/api/professional-details/999").status_code == 404


class TestUpdateAndDelete:
    """Tests for PATCH and DELETE /api/professional-details/{id}."""

    def test_update(self, client: TestClient, portfolios: tuple[int, int]) -> None:
        owner_id, _ = portfolios
        created = _create(client, owner_id)

        response = client.patch(
            f"/api/professional-details/{created['id']}",
            json={"experience": "10 years"},
            headers=_auth(),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["experience_years"] == 10
        assert data["skills"] == created["skills"]

    def test_update_requires_owner(self, client: TestClient, portfolios: tuple[int, int]) -> None:
        owner_id, _ = portfolios
        created = _create(client, owner_id)

        response = client.patch(
            f"/api/professional-details/{created['id']}",
            json={"skills": "Hijacked"},
            headers=_auth(OTHER),
        )
        assert response.status_code == 403

    def test_move_to_foreign_portfolio_forbidden(
        self, client: TestClient, portfolios: tuple[int, int]
    ) -> None:
        owner_id, other_id = portfolios
        created = _create(client, owner_id)

        response = client.patch(
            f"/api/professional-details/{created['id']}",
            json={"portfolio_id": other_id},
            headers=_auth(),
        )
        assert response.status_code == 403

    def test_update_missing(self, client: TestClient, portfolios: tuple[int, int]) -> None:
        response = client.patch(
            "/api/professional-details/999", json={"skills": "Go"}, headers=_auth()
        )
        assert response.status_code == 404

    def test_delete(self, client: TestClient, portfolios: tuple[int, int]) -> None:
        owner_id, _ = portfolios
        created = _create(client, owner_id)
        url = f"/api/professional-details/{created['id']}"

        assert client.delete(url, headers=_auth(OTHER)).status_code == 403
        assert client.delete(url, headers=_auth()).status_code == 204
        assert client.get(url).status_code == 404
        assert client.delete(url, headers=_auth()).status_code == 404
