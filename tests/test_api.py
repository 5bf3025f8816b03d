import pytest
from fastapi.testclient import TestClient

import api
from lending.config import settings

from conftest import CLEAN_CODE_ISBN

HEADERS = {"X-API-Key": settings.api_key}


@pytest.fixture
def client(lib):
    # Route every request to the per-test library instead of the process-wide one
    api.app.dependency_overrides[api.get_library] = lambda: lib
    try:
        yield TestClient(api.app)
    finally:
        api.app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["calendar"] == "success"


def test_create_book_requires_valid_key(client):
    payload = {"title": "Clean Code", "author": "Robert C. Martin", "isbn": CLEAN_CODE_ISBN}
    response = client.post("/books", headers={"X-API-Key": "invalid-key"}, json=payload)
    assert response.status_code == 403


def test_create_and_list_books(client):
    payload = {"title": "Clean Code", "author": "Robert C. Martin", "isbn": CLEAN_CODE_ISBN, "stock": 2}
    response = client.post("/books", headers=HEADERS, json=payload)
    assert response.status_code == 201
    created = response.json()
    assert created["stock"] == 2

    assert [b["isbn"] for b in client.get("/books").json()] == [CLEAN_CODE_ISBN]
    assert client.get("/books", params={"q": "clean"}).json()[0]["title"] == "Clean Code"
    assert client.get(f"/books/{created['book_id']}").status_code == 200
    assert client.get("/books/999").status_code == 404


def test_create_book_with_bad_isbn(client):
    payload = {"title": "Clean Code", "author": "Robert C. Martin", "isbn": "12345"}
    response = client.post("/books", headers=HEADERS, json=payload)
    assert response.status_code == 422
    assert response.json()["detail"]["outcome"] == "invalid_input"


def test_loan_flow(client, book, member):
    response = client.post("/loans", headers=HEADERS, json={"book_id": book.book_id, "member_id": member.member_id})
    assert response.status_code == 201
    loan = response.json()
    assert loan["due_date"] == "2025-09-09"
    assert loan["status"] == "BORROWED"

    extended = client.post(f"/loans/{loan['loan_id']}/extend", headers=HEADERS, json={"days": 3})
    assert extended.status_code == 200
    assert extended.json()["due_date"] == "2025-09-12"

    again = client.post(f"/loans/{loan['loan_id']}/extend", headers=HEADERS)
    assert again.status_code == 409
    assert again.json()["detail"]["outcome"] == "already_extended"

    returned = client.post(f"/loans/{loan['loan_id']}/return", headers=HEADERS)
    assert returned.status_code == 200
    assert returned.json()["status"] == "RETURNED"

    assert client.post(f"/loans/{loan['loan_id']}/return", headers=HEADERS).status_code == 409
    assert client.get("/loans", params={"active": True}).json() == []


def test_borrow_errors(client, lib, member):
    assert client.post("/loans", headers=HEADERS, json={"book_id": 999, "member_id": member.member_id}).status_code == 404

    empty = lib.add_book("Clean Code", "Robert C. Martin", CLEAN_CODE_ISBN, stock=0).value
    response = client.post("/loans", headers=HEADERS, json={"book_id": empty.book_id, "member_id": member.member_id})
    assert response.status_code == 409
    assert response.json()["detail"]["outcome"] == "out_of_stock"


def test_delete_book_with_active_loan(client, lib, book, member):
    lib.borrow_book(book.book_id, member.member_id)
    response = client.delete(f"/books/{book.book_id}", headers=HEADERS)
    assert response.status_code == 409
    assert response.json()["detail"]["outcome"] == "has_active_loans"


def test_holidays(client):
    payload = {"holiday_date": "2025-09-03", "description": "Inventory"}
    assert client.post("/holidays", headers=HEADERS, json=payload).status_code == 201
    assert client.post("/holidays", headers=HEADERS, json=payload).status_code == 409
    assert client.get("/holidays").json() == [payload]

    assert client.get("/calendar/2025-09-03").json()["non_lending"] is True
    assert client.get("/calendar/2025-09-04").json()["non_lending"] is False

    assert client.delete("/holidays/2025-09-03", headers=HEADERS).status_code == 200
    assert client.delete("/holidays/2025-09-03", headers=HEADERS).status_code == 404


def test_stats(client, book):
    stats = client.get("/stats").json()
    assert stats["total_titles"] == 1
    assert stats["copies_in_stock"] == 3
