"""
Data access for authors and books.

``LibraryRepository`` is the capability set the routers depend on;
``SqlAlchemyLibraryRepository`` implements it on top of a request-scoped
SQLAlchemy session. Mutating methods only stage changes; nothing reaches the
database until ``save()`` commits the unit of work.
"""

import logging
import uuid
from typing import Iterable, List, Optional, Protocol
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .database import get_db
from . import models

logger = logging.getLogger("library_api.repository")


class LibraryRepository(Protocol):
    def author_exists(self, author_id: UUID) -> bool: ...
    def get_authors(self, author_ids: Iterable[UUID]) -> List[models.Author]: ...
    def add_author(self, author: models.Author) -> None: ...
    def get_books_for_author(self, author_id: UUID) -> List[models.Book]: ...
    def get_book_for_author(self, author_id: UUID, book_id: UUID) -> Optional[models.Book]: ...
    def add_book_for_author(self, author_id: UUID, book: models.Book) -> None: ...
    def update_book_for_author(self, book: models.Book) -> None: ...
    def delete_book(self, book: models.Book) -> None: ...
    def save(self) -> bool: ...


class SqlAlchemyLibraryRepository:
    def __init__(self, db_session: Session):
        self.db = db_session

    # --- Authors ---

    def author_exists(self, author_id: UUID) -> bool:
        stmt = select(models.Author.id).where(models.Author.id == author_id)
        return self.db.scalar(stmt) is not None

    def get_authors(self, author_ids: Iterable[UUID]) -> List[models.Author]:
        """Returns the authors that exist among ``author_ids``; missing ids are skipped."""
        stmt = (
            select(models.Author)
            .where(models.Author.id.in_(list(author_ids)))
            .order_by(models.Author.first_name, models.Author.last_name)
        )
        return list(self.db.execute(stmt).scalars().all())

    def add_author(self, author: models.Author) -> None:
        # Ids are assigned up front so callers can reference them before commit
        author.id = uuid.uuid4()
        for book in author.books:
            book.id = uuid.uuid4()
        self.db.add(author)

    # --- Books ---

    def get_books_for_author(self, author_id: UUID) -> List[models.Book]:
        stmt = (
            select(models.Book)
            .where(models.Book.author_id == author_id)
            .order_by(models.Book.title)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_book_for_author(self, author_id: UUID, book_id: UUID) -> Optional[models.Book]:
        stmt = select(models.Book).where(
            models.Book.author_id == author_id,
            models.Book.id == book_id,
        )
        return self.db.scalar(stmt)

    def add_book_for_author(self, author_id: UUID, book: models.Book) -> None:
        """Stages ``book`` under ``author_id``, keeping a client-supplied id if present."""
        if book.id is None:
            book.id = uuid.uuid4()
        book.author_id = author_id
        self.db.add(book)

    def update_book_for_author(self, book: models.Book) -> None:
        # The session already tracks changes made to loaded entities
        pass

    def delete_book(self, book: models.Book) -> None:
        self.db.delete(book)

    def save(self) -> bool:
        try:
            self.db.commit()
        except SQLAlchemyError:
            logger.exception("Commit failed, rolling back")
            self.db.rollback()
            return False
        return True


def get_repository(db: Session = Depends(get_db)) -> LibraryRepository:
    """FastAPI dependency providing a repository bound to the request's session."""
    return SqlAlchemyLibraryRepository(db)
