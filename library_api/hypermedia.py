"""
Links attached to book representations.

Both functions return decorated copies; the DTO passed in is left untouched.
"""

from uuid import UUID

from fastapi import Request

from . import schemas


def create_links_for_book(request: Request, book: schemas.Book) -> schemas.Book:
    params = {"author_id": str(book.author_id), "book_id": str(book.id)}
    links = [
        schemas.Link(href=str(request.url_for("get_book_for_author", **params)), rel="self", method="GET"),
        schemas.Link(href=str(request.url_for("delete_book_for_author", **params)), rel="delete_book", method="DELETE"),
        schemas.Link(href=str(request.url_for("update_book_for_author", **params)), rel="update_book", method="PUT"),
        schemas.Link(
            href=str(request.url_for("partially_update_book_for_author", **params)),
            rel="partially_update_book",
            method="PATCH",
        ),
    ]
    return book.model_copy(update={"links": list(book.links) + links})


def create_links_for_books(
    request: Request,
    author_id: UUID,
    wrapper: schemas.LinkedCollection[schemas.Book],
) -> schemas.LinkedCollection[schemas.Book]:
    self_link = schemas.Link(
        href=str(request.url_for("get_books_for_author", author_id=str(author_id))),
        rel="self",
        method="GET",
    )
    return wrapper.model_copy(update={"links": list(wrapper.links) + [self_link]})
