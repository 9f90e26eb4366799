import logging
import uuid

from fastapi.testclient import TestClient
from library_api.main import app

client = TestClient(app)


def _create_author(first="Ursula", last="Le Guin"):
    payload = [{"firstName": first, "lastName": last, "genre": "Fantasy", "dateOfBirth": "1929-10-21"}]
    r = client.post("/api/authorcollections", json=payload)
    assert r.status_code == 201
    return r.json()[0]["id"]


def _create_book(author_id, title="A Wizard of Earthsea", description="Ged learns magic", page_count=183):
    r = client.post(
        f"/api/authors/{author_id}/books",
        json={"title": title, "description": description, "pageCount": page_count},
    )
    assert r.status_code == 201
    return r.json()


# -------------------------------
# GET
# -------------------------------

def test_get_books_returns_wrapper_with_links():
    author_id = _create_author()
    _create_book(author_id, title="The Tombs of Atuan", description="Tenar")
    _create_book(author_id, title="A Wizard of Earthsea", description="Ged")

    r = client.get(f"/api/authors/{author_id}/books")
    assert r.status_code == 200
    body = r.json()

    assert [b["title"] for b in body["value"]] == ["A Wizard of Earthsea", "The Tombs of Atuan"]
    assert body["links"] == [
        {"href": f"http://testserver/api/authors/{author_id}/books", "rel": "self", "method": "GET"}
    ]
    for book in body["value"]:
        assert [l["rel"] for l in book["links"]] == [
            "self", "delete_book", "update_book", "partially_update_book"
        ]


def test_get_books_for_unknown_author_returns_404():
    r = client.get(f"/api/authors/{uuid.uuid4()}/books")
    assert r.status_code == 404


def test_get_book_returns_book_with_links():
    author_id = _create_author()
    book = _create_book(author_id)

    r = client.get(f"/api/authors/{author_id}/books/{book['id']}")
    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "A Wizard of Earthsea"
    assert body["pageCount"] == 183
    assert body["authorId"] == author_id

    book_url = f"http://testserver/api/authors/{author_id}/books/{book['id']}"
    assert [(l["href"], l["method"]) for l in body["links"]] == [
        (book_url, "GET"), (book_url, "DELETE"), (book_url, "PUT"), (book_url, "PATCH")
    ]


def test_get_missing_book_returns_404():
    author_id = _create_author()
    r = client.get(f"/api/authors/{author_id}/books/{uuid.uuid4()}")
    assert r.status_code == 404


def test_get_book_under_wrong_author_returns_404():
    owner = _create_author()
    other = _create_author("Octavia", "Butler")
    book = _create_book(owner)

    r = client.get(f"/api/authors/{other}/books/{book['id']}")
    assert r.status_code == 404


# -------------------------------
# POST
# -------------------------------

def test_post_book_returns_201_with_location_and_four_links():
    author_id = _create_author()
    r = client.post(f"/api/authors/{author_id}/books", json={"title": "X", "description": "Y"})

    assert r.status_code == 201
    body = r.json()
    assert r.headers["location"] == f"http://testserver/api/authors/{author_id}/books/{body['id']}"
    assert [l["rel"] for l in body["links"]] == [
        "self", "delete_book", "update_book", "partially_update_book"
    ]


def test_post_book_with_description_equal_to_title_returns_422():
    author_id = _create_author()
    r = client.post(f"/api/authors/{author_id}/books", json={"title": "X", "description": "X"})

    assert r.status_code == 422
    assert r.json() == {"BookCreate": ["The provided description should be different from the title."]}


def test_post_book_field_violation_returns_422_map():
    author_id = _create_author()
    r = client.post(f"/api/authors/{author_id}/books", json={"title": "T" * 101, "description": "Y"})

    assert r.status_code == 422
    assert "title" in r.json()


def test_post_book_without_body_returns_400():
    author_id = _create_author()
    r = client.post(f"/api/authors/{author_id}/books")
    assert r.status_code == 400


def test_post_book_for_unknown_author_returns_404():
    r = client.post(f"/api/authors/{uuid.uuid4()}/books", json={"title": "X", "description": "Y"})
    assert r.status_code == 404


# -------------------------------
# PUT
# -------------------------------

def test_put_existing_book_updates_in_place():
    author_id = _create_author()
    book = _create_book(author_id)

    r = client.put(
        f"/api/authors/{author_id}/books/{book['id']}",
        json={"title": "The Farthest Shore", "description": "Arren and Ged", "pageCount": 223},
    )
    assert r.status_code == 204
    assert r.content == b""

    r2 = client.get(f"/api/authors/{author_id}/books")
    books = r2.json()["value"]
    assert len(books) == 1
    assert books[0]["id"] == book["id"]
    assert books[0]["title"] == "The Farthest Shore"
    assert books[0]["pageCount"] == 223


def test_put_missing_book_upserts_with_given_id():
    author_id = _create_author()
    book_id = str(uuid.uuid4())

    r = client.put(
        f"/api/authors/{author_id}/books/{book_id}",
        json={"title": "Tehanu", "description": "Tenar and Therru"},
    )
    assert r.status_code == 201
    assert r.json()["id"] == book_id
    assert r.headers["location"].endswith(f"/api/authors/{author_id}/books/{book_id}")

    r2 = client.get(f"/api/authors/{author_id}/books/{book_id}")
    assert r2.status_code == 200
    assert r2.json()["title"] == "Tehanu"


def test_put_requires_description():
    author_id = _create_author()
    r = client.put(f"/api/authors/{author_id}/books/{uuid.uuid4()}", json={"title": "Tehanu"})

    assert r.status_code == 422
    assert "description" in r.json()


def test_put_with_description_equal_to_title_returns_422():
    author_id = _create_author()
    r = client.put(
        f"/api/authors/{author_id}/books/{uuid.uuid4()}",
        json={"title": "Same", "description": "Same"},
    )
    assert r.status_code == 422
    assert "BookUpdate" in r.json()


def test_put_without_body_returns_400():
    author_id = _create_author()
    r = client.put(f"/api/authors/{author_id}/books/{uuid.uuid4()}")
    assert r.status_code == 400


def test_put_for_unknown_author_returns_404():
    r = client.put(
        f"/api/authors/{uuid.uuid4()}/books/{uuid.uuid4()}",
        json={"title": "X", "description": "Y"},
    )
    assert r.status_code == 404


# -------------------------------
# DELETE
# -------------------------------

def test_delete_book_returns_204_and_logs(caplog):
    author_id = _create_author()
    book = _create_book(author_id)

    with caplog.at_level(logging.INFO, logger="library_api.books"):
        r = client.delete(f"/api/authors/{author_id}/books/{book['id']}")

    assert r.status_code == 204
    assert f"Book {book['id']} for author {author_id} was deleted." in caplog.text

    r2 = client.get(f"/api/authors/{author_id}/books/{book['id']}")
    assert r2.status_code == 404


def test_delete_book_under_wrong_author_returns_404_and_keeps_book():
    owner = _create_author()
    other = _create_author("Octavia", "Butler")
    book = _create_book(owner)

    r = client.delete(f"/api/authors/{other}/books/{book['id']}")
    assert r.status_code == 404

    r2 = client.get(f"/api/authors/{owner}/books/{book['id']}")
    assert r2.status_code == 200


def test_delete_missing_book_returns_404():
    author_id = _create_author()
    r = client.delete(f"/api/authors/{author_id}/books/{uuid.uuid4()}")
    assert r.status_code == 404


def test_delete_for_unknown_author_returns_404():
    r = client.delete(f"/api/authors/{uuid.uuid4()}/books/{uuid.uuid4()}")
    assert r.status_code == 404


# -------------------------------
# Malformed bodies and upsert links
# -------------------------------

def test_post_book_with_malformed_json_returns_400():
    author_id = _create_author()
    r = client.post(
        f"/api/authors/{author_id}/books",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert "detail" in r.json()


def test_put_book_with_malformed_json_returns_400():
    author_id = _create_author()
    r = client.put(
        f"/api/authors/{author_id}/books/{uuid.uuid4()}",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 400


def test_put_upsert_response_carries_four_links():
    author_id = _create_author()
    book_id = str(uuid.uuid4())

    r = client.put(
        f"/api/authors/{author_id}/books/{book_id}",
        json={"title": "Always Coming Home", "description": "The Kesh"},
    )
    assert r.status_code == 201
    book_url = f"http://testserver/api/authors/{author_id}/books/{book_id}"
    assert [(l["rel"], l["href"]) for l in r.json()["links"]] == [
        ("self", book_url),
        ("delete_book", book_url),
        ("update_book", book_url),
        ("partially_update_book", book_url),
    ]
