"""
Conversions between ORM entities (``models``) and transfer objects (``schemas``).

Every field correspondence is written out by hand so it can be read at a glance.
"""

from datetime import date
from typing import Optional, Union

from . import models, schemas


def current_age(date_of_birth: date, today: Optional[date] = None) -> int:
    """Whole years elapsed since ``date_of_birth``."""
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


# -------------------------------
# Authors
# -------------------------------

def author_from_create(dto: schemas.AuthorCreate) -> models.Author:
    return models.Author(
        first_name=dto.first_name,
        last_name=dto.last_name,
        genre=dto.genre,
        date_of_birth=dto.date_of_birth,
        books=[book_from_create(b) for b in dto.books],
    )


def author_to_dto(author: models.Author) -> schemas.Author:
    return schemas.Author(
        id=author.id,
        name=f"{author.first_name} {author.last_name}",
        age=current_age(author.date_of_birth),
        genre=author.genre,
    )


# -------------------------------
# Books
# -------------------------------

def book_from_create(dto: Union[schemas.BookCreate, schemas.BookUpdate]) -> models.Book:
    return models.Book(
        title=dto.title,
        description=dto.description,
        page_count=dto.page_count,
    )


def book_to_dto(book: models.Book) -> schemas.Book:
    """Maps a stored book; links are added separately by ``hypermedia``."""
    return schemas.Book(
        id=book.id,
        title=book.title,
        description=book.description,
        page_count=book.page_count,
        author_id=book.author_id,
    )


def book_to_update_document(book: models.Book) -> dict:
    """
    Renders a stored book as the JSON document a patch is applied to.

    Keys are the wire (camelCase) names so patch paths read ``/pageCount``.
    """
    return {
        "title": book.title,
        "description": book.description,
        "pageCount": book.page_count,
    }


def apply_book_update(dto: schemas.BookUpdate, book: models.Book) -> models.Book:
    """Copies every updatable field from ``dto`` onto ``book`` in place."""
    book.title = dto.title
    book.description = dto.description
    book.page_count = dto.page_count
    return book
