"""Test suite for portfolio service."""

from __future__ import annotations

from contextlib import contextmanager

import pytest
from sqlalchemy.exc import OperationalError

from portfolio_registry.services import portfolio as portfolio_service
from portfolio_registry.services.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from portfolio_registry.services.portfolio import (
    delete_portfolio,
    exists_by_email,
    filter_by_experience_range,
    get_all_portfolios,
    get_portfolio_by_email,
    get_portfolio_by_id,
    get_portfolio_by_user_id,
    is_portfolio_owner,
    save_multiple_portfolios,
    save_portfolio,
    search_by_name,
    search_by_skill,
    update_portfolio,
)
from portfolio_registry.services.professional_details import (
    count_all_professional_entries,
    count_by_portfolio_id,
    get_professional_details_by_portfolio_id,
    save_professional_details,
)


def _portfolio(email: str, full_name: str = "Test User", **extra) -> dict:
    return save_portfolio({"full_name": full_name, "email": email, **extra})


def _details(portfolio_id: int, experience: str = "3 years", **extra) -> dict:
    data = {
        "portfolio_id": portfolio_id,
        "skills": "Python, SQL",
        "experience": experience,
        "job_role": "Engineer",
        **extra,
    }
    return save_professional_details(data)


def test_save_and_get_round_trip() -> None:
    saved = save_portfolio(
        {
            "full_name": "John Doe",
            "email": "john@example.com",
            "user_id": "auth0|123",
            "phone": "+1 555 0100",
            "profile_image_url": "https://img.example.com/john.png",
        }
    )

    assert isinstance(saved["id"], int)
    assert get_portfolio_by_id(saved["id"]) == saved


def test_save_strips_text_fields() -> None:
    saved = _portfolio("  jane@example.com ", full_name="  Jane  ")
    assert saved["email"] == "jane@example.com"
    assert saved["full_name"] == "Jane"


@pytest.mark.parametrize(
    "data",
    [
        {"email": "a@example.com"},
        {"full_name": "No Email"},
        {"full_name": "   ", "email": "a@example.com"},
        {"full_name": "Bad", "email": 42},
        {"full_name": "Bad", "email": "a@example.com", "nickname": "x"},
        {"full_name": "x" * 256, "email": "a@example.com"},
    ],
)
def test_save_rejects_invalid_data(data: dict) -> None:
    with pytest.raises(ValidationError):
        save_portfolio(data)
    assert get_all_portfolios() == []


def test_save_duplicate_email_or_user_id_conflicts() -> None:
    _portfolio("dup@example.com", user_id="user-1")

    with pytest.raises(ConflictError):
        _portfolio("dup@example.com")
    with pytest.raises(ConflictError):
        _portfolio("other@example.com", user_id="user-1")
    assert len(get_all_portfolios()) == 1


def test_save_with_id_overwrites_existing_row() -> None:
    saved = _portfolio("old@example.com", full_name="Old Name")

    result = save_portfolio(
        {"id": saved["id"], "full_name": "New Name", "email": "old@example.com"}
    )

    assert result["id"] == saved["id"]
    assert result["full_name"] == "New Name"
    assert len(get_all_portfolios()) == 1


def test_save_with_unknown_id_raises_not_found() -> None:
    with pytest.raises(NotFoundError):
        save_portfolio({"id": 999, "full_name": "Ghost", "email": "ghost@example.com"})


def test_save_creates_nested_professional_details() -> None:
    saved = save_portfolio(
        {
            "full_name": "Nested",
            "email": "nested@example.com",
            "professional_details": [
                {"skills": "Java", "experience": "2 years", "job_role": "Dev"},
                {"skills": "Rust", "experience": "1", "job_role": "Dev", "company_name": "ACME"},
            ],
        }
    )

    details = get_professional_details_by_portfolio_id(saved["id"])
    assert [d["skills"] for d in details] == ["Java", "Rust"]
    assert all(d["portfolio_id"] == saved["id"] for d in details)


def test_save_rejects_invalid_nested_details() -> None:
    with pytest.raises(ValidationError):
        save_portfolio(
            {
                "full_name": "Nested",
                "email": "nested@example.com",
                "professional_details": [{"skills": "Java", "job_role": "Dev"}],
            }
        )
    assert get_all_portfolios() == []


def test_get_missing_portfolio_returns_none() -> None:
    assert get_portfolio_by_id(12345) is None
    assert get_portfolio_by_email("nobody@example.com") is None
    assert get_portfolio_by_user_id("nobody") is None


def test_get_all_portfolios() -> None:
    first = _portfolio("a@example.com")
    second = _portfolio("b@example.com")
    assert {p["id"] for p in get_all_portfolios()} == {first["id"], second["id"]}


def test_update_partial_fields() -> None:
    saved = _portfolio("up@example.com", full_name="Before", phone="123")

    result = update_portfolio(saved["id"], {"full_name": "After"})

    assert result["full_name"] == "After"
    assert result["phone"] == "123"  # Unchanged
    assert result["email"] == "up@example.com"  # Unchanged
    assert get_portfolio_by_id(saved["id"]) == result


def test_update_missing_portfolio_raises_not_found() -> None:
    with pytest.raises(NotFoundError) as exc_info:
        update_portfolio(999, {"full_name": "X"})
    assert exc_info.value.entity_id == 999


def test_update_validation_and_conflict() -> None:
    first = _portfolio("first@example.com")
    _portfolio("second@example.com")

    with pytest.raises(ValidationError):
        update_portfolio(first["id"], {"full_name": ""})
    with pytest.raises(ConflictError):
        update_portfolio(first["id"], {"email": "second@example.com"})

    # Keeping its own email is not a conflict
    result = update_portfolio(first["id"], {"email": "first@example.com", "phone": "1"})
    assert result["phone"] == "1"


def test_delete_cascades_to_professional_details() -> None:
    owner = _portfolio("owner@example.com")
    other = _portfolio("other@example.com")
    _details(owner["id"])
    _details(owner["id"])
    kept = _details(other["id"])

    delete_portfolio(owner["id"])

    assert get_portfolio_by_id(owner["id"]) is None
    assert count_by_portfolio_id(owner["id"]) == 0
    assert get_professional_details_by_portfolio_id(owner["id"]) == []
    assert count_all_professional_entries() == 1
    assert get_professional_details_by_portfolio_id(other["id"]) == [kept]


def test_delete_missing_portfolio_raises_not_found() -> None:
    with pytest.raises(NotFoundError):
        delete_portfolio(999)


def test_lookup_by_email_and_user_id() -> None:
    saved = _portfolio("lookup@example.com", user_id="idp-42")

    assert get_portfolio_by_email("lookup@example.com") == saved
    assert get_portfolio_by_user_id("idp-42") == saved
    with pytest.raises(ValidationError):
        get_portfolio_by_email("  ")


def test_search_by_name_is_case_insensitive_substring() -> None:
    john = _portfolio("john@example.com", full_name="John Doe")
    johnny = _portfolio("johnny@example.com", full_name="johnny")
    _portfolio("jon@example.com", full_name="Jon")

    results = search_by_name("john")

    assert [p["id"] for p in results] == [john["id"], johnny["id"]]


def test_search_by_name_treats_wildcards_literally() -> None:
    _portfolio("plain@example.com", full_name="Plain Name")
    percent = _portfolio("percent@example.com", full_name="100% Real")

    assert search_by_name("%") == [percent]
    assert search_by_name("_") == []


def test_search_by_skill_returns_each_portfolio_once() -> None:
    py = _portfolio("py@example.com")
    _details(py["id"], skills="Python, Django")
    _details(py["id"], skills="python scripting")
    go = _portfolio("go@example.com")
    _details(go["id"], skills="Go")

    results = search_by_skill("PYTHON")

    assert [p["id"] for p in results] == [py["id"]]


def test_filter_by_experience_range_is_inclusive() -> None:
    by_years = {}
    for years in (1, 2, 5, 6):
        portfolio = _portfolio(f"exp{years}@example.com")
        _details(portfolio["id"], experience=f"{years} years")
        by_years[years] = portfolio["id"]
    no_number = _portfolio("words@example.com")
    _details(no_number["id"], experience="several years")

    results = filter_by_experience_range(2, 5)

    assert {p["id"] for p in results} == {by_years[2], by_years[5]}


@pytest.mark.parametrize(
    ("min_years", "max_years"),
    [(5, 2), (-1, 3), ("2", 5), (2, 5.5), (True, 3), (0, 101), (0, 10**20)],
)
def test_filter_by_experience_range_rejects_bad_bounds(
    monkeypatch: pytest.MonkeyPatch, min_years: object, max_years: object
) -> None:
    def _fail():
        raise AssertionError("storage must not be touched")

    monkeypatch.setattr(portfolio_service, "get_session", _fail)

    with pytest.raises(ValidationError):
        filter_by_experience_range(min_years, max_years)


def test_is_portfolio_owner() -> None:
    saved = _portfolio("me@example.com")

    assert is_portfolio_owner(saved["id"], "me@example.com") is True
    assert is_portfolio_owner(saved["id"], "you@example.com") is False
    assert is_portfolio_owner(999, "me@example.com") is False
    assert is_portfolio_owner(saved["id"], None) is False


def test_exists_by_email_tracks_lifecycle() -> None:
    assert exists_by_email("life@example.com") is False
    saved = _portfolio("life@example.com")
    assert exists_by_email("life@example.com") is True
    delete_portfolio(saved["id"])
    assert exists_by_email("life@example.com") is False


def test_save_multiple_portfolios() -> None:
    results = save_multiple_portfolios(
        [
            {"full_name": "One", "email": "one@example.com"},
            {"full_name": "Two", "email": "two@example.com"},
        ]
    )

    assert [r["full_name"] for r in results] == ["One", "Two"]
    assert all(get_portfolio_by_id(r["id"]) == r for r in results)
    assert save_multiple_portfolios([]) == []


def test_save_multiple_portfolios_is_all_or_nothing() -> None:
    _portfolio("taken@example.com")

    with pytest.raises(ConflictError):
        save_multiple_portfolios(
            [
                {"full_name": "Fresh", "email": "fresh@example.com"},
                {"full_name": "Clash", "email": "taken@example.com"},
            ]
        )
    with pytest.raises(ConflictError):
        save_multiple_portfolios(
            [
                {"full_name": "A", "email": "same@example.com"},
                {"full_name": "B", "email": "same@example.com"},
            ]
        )
    with pytest.raises(ValidationError, match="Item 1"):
        save_multiple_portfolios(
            [
                {"full_name": "Fresh", "email": "fresh@example.com"},
                {"full_name": "No email"},
            ]
        )

    assert [p["email"] for p in get_all_portfolios()] == ["taken@example.com"]


def test_save_multiple_portfolios_can_reuse_email_freed_earlier_in_batch() -> None:
    first = _portfolio("a@example.com")

    moved, created = save_multiple_portfolios(
        [
            {"id": first["id"], "full_name": "First", "email": "z@example.com"},
            {"full_name": "Second", "email": "a@example.com"},
        ]
    )

    assert moved["id"] == first["id"]
    assert get_portfolio_by_email("z@example.com") == moved
    assert get_portfolio_by_email("a@example.com") == created


def test_storage_failures_surface_as_storage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    @contextmanager
    def _broken_session():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))
        yield

    monkeypatch.setattr(portfolio_service, "get_session", _broken_session)

    with pytest.raises(StorageError) as exc_info:
        get_all_portfolios()
    assert isinstance(exc_info.value.__cause__, OperationalError)
