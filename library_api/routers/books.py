"""
Book endpoints, always scoped to an author: /api/authors/{author_id}/books

- GET    /                -> list books with links
- GET    /{book_id}       -> one book with links
- POST   /                -> create a book
- PUT    /{book_id}       -> full replace, or create under that id when absent
- PATCH  /{book_id}       -> JSON Patch, or create under that id when absent
- DELETE /{book_id}       -> delete a book

Any endpoint answers 404 when the author does not exist. A book that exists
under another author is treated as absent.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import jsonpatch
import jsonpointer
from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .. import mappers, models, schemas
from ..errors import (
    PersistenceError,
    ValidationErrors,
    ValidationProblem,
    check_description_differs,
)
from ..hypermedia import create_links_for_book, create_links_for_books
from ..repository import LibraryRepository, get_repository

logger = logging.getLogger("library_api.books")

router = APIRouter()

# Members a patch document may address
PATCHABLE_MEMBERS = {"title", "description", "pageCount"}


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _ensure_author_exists(repo: LibraryRepository, author_id: UUID) -> None:
    if not repo.author_exists(author_id):
        raise HTTPException(status_code=404, detail=f"Author {author_id} not found")


def _created_book(request: Request, book: models.Book) -> JSONResponse:
    """201 response carrying the book, its links and its Location."""
    book_to_return = create_links_for_book(request, mappers.book_to_dto(book))
    location = request.url_for(
        "get_book_for_author", author_id=str(book.author_id), book_id=str(book.id)
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=jsonable_encoder(book_to_return, by_alias=True),
        headers={"Location": str(location)},
    )


def _apply_patch(document: dict, operations: List[Dict[str, Any]], errors: ValidationErrors) -> dict:
    """
    Applies a JSON Patch to ``document``. Operations that cannot be applied
    are recorded in ``errors`` and the unpatched document is returned.
    """
    key = schemas.BookUpdate.__name__
    try:
        patched = jsonpatch.apply_patch(document, operations)
    except (jsonpatch.JsonPatchException, jsonpointer.JsonPointerException) as e:
        errors.add(key, str(e))
        return document

    if not isinstance(patched, dict):
        errors.add(key, "The patched document must be a JSON object.")
        return document

    for member in sorted(set(patched) - PATCHABLE_MEMBERS):
        errors.add(key, f"The target location specified by path segment '{member}' was not found.")
    return patched


def _is_patch_document(body: Any) -> bool:
    """A patch document is a JSON array of operation objects."""
    return isinstance(body, list) and all(isinstance(op, dict) for op in body)


def _validate_update_document(document: dict, errors: ValidationErrors) -> Optional[schemas.BookUpdate]:
    """Runs the title/description rule and the BookUpdate field rules on a patched document."""
    check_description_differs(
        document.get("title"), document.get("description"), schemas.BookUpdate.__name__, errors
    )
    try:
        book = schemas.BookUpdate.model_validate(document)
    except ValidationError as e:
        errors.add_pydantic(e.errors())
        return None
    return book if errors.is_valid else None


# ---------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------

@router.get(
    "",
    name="get_books_for_author",
    response_model=schemas.LinkedCollection[schemas.Book],
    summary="List the books of an author",
)
def get_books_for_author(
    author_id: UUID,
    request: Request,
    repo: LibraryRepository = Depends(get_repository),
):
    """
    Lists the books of an author, ordered by title.

    Each book carries its own links; the wrapper carries a self link.
    """
    _ensure_author_exists(repo, author_id)

    books = [
        create_links_for_book(request, mappers.book_to_dto(b))
        for b in repo.get_books_for_author(author_id)
    ]
    wrapper = schemas.LinkedCollection[schemas.Book](value=books)
    return create_links_for_books(request, author_id, wrapper)


@router.get(
    "/{book_id}",
    name="get_book_for_author",
    response_model=schemas.Book,
    summary="Get a book of an author",
)
def get_book_for_author(
    author_id: UUID,
    book_id: UUID,
    request: Request,
    repo: LibraryRepository = Depends(get_repository),
):
    """Returns one book of the author, with its links."""
    _ensure_author_exists(repo, author_id)

    book = repo.get_book_for_author(author_id, book_id)
    if book is None:
        raise HTTPException(status_code=404, detail=f"Book {book_id} not found")

    return create_links_for_book(request, mappers.book_to_dto(book))


@router.post(
    "",
    name="create_book_for_author",
    response_model=schemas.Book,
    status_code=status.HTTP_201_CREATED,
    summary="Add a book to an author",
)
def create_book_for_author(
    author_id: UUID,
    request: Request,
    book: Optional[schemas.BookCreate] = Body(default=None),
    repo: LibraryRepository = Depends(get_repository),
):
    """
    Adds a book to an author.

    The description must differ from the title (422 otherwise).
    """
    if book is None:
        raise HTTPException(status_code=400, detail="A book is required")

    errors = ValidationErrors()
    check_description_differs(book.title, book.description, schemas.BookCreate.__name__, errors)
    if not errors.is_valid:
        raise ValidationProblem(errors)

    _ensure_author_exists(repo, author_id)

    book_entity = mappers.book_from_create(book)
    repo.add_book_for_author(author_id, book_entity)

    if not repo.save():
        raise PersistenceError(f"Creating a book for author {author_id} failed on save.")

    return _created_book(request, book_entity)


@router.delete(
    "/{book_id}",
    name="delete_book_for_author",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book of an author",
)
def delete_book_for_author(
    author_id: UUID,
    book_id: UUID,
    repo: LibraryRepository = Depends(get_repository),
):
    """Deletes a book; a book belonging to another author is not found."""
    _ensure_author_exists(repo, author_id)

    book = repo.get_book_for_author(author_id, book_id)
    if book is None:
        raise HTTPException(status_code=404, detail=f"Book {book_id} not found")

    repo.delete_book(book)

    if not repo.save():
        raise PersistenceError(f"Deleting book {book_id} for author {author_id} failed on save.")

    logger.info("Book %s for author %s was deleted.", book_id, author_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/{book_id}",
    name="update_book_for_author",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={201: {"model": schemas.Book, "description": "Book created under the given id"}},
    summary="Replace a book, creating it when absent",
)
def update_book_for_author(
    author_id: UUID,
    book_id: UUID,
    request: Request,
    book: Optional[schemas.BookUpdate] = Body(default=None),
    repo: LibraryRepository = Depends(get_repository),
):
    """
    Replaces a book.

    When the author has no book with that id, the book is created under it
    and 201 is returned instead of 204.
    """
    if book is None:
        raise HTTPException(status_code=400, detail="A book is required")

    errors = ValidationErrors()
    check_description_differs(book.title, book.description, schemas.BookUpdate.__name__, errors)
    if not errors.is_valid:
        raise ValidationProblem(errors)

    _ensure_author_exists(repo, author_id)

    book_from_repo = repo.get_book_for_author(author_id, book_id)
    if book_from_repo is None:
        book_to_add = mappers.book_from_create(book)
        book_to_add.id = book_id
        repo.add_book_for_author(author_id, book_to_add)

        if not repo.save():
            raise PersistenceError(f"Upserting book {book_id} for author {author_id} failed on save.")

        return _created_book(request, book_to_add)

    mappers.apply_book_update(book, book_from_repo)
    repo.update_book_for_author(book_from_repo)

    if not repo.save():
        raise PersistenceError(f"Updating book {book_id} for author {author_id} failed on save.")

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{book_id}",
    name="partially_update_book_for_author",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={201: {"model": schemas.Book, "description": "Book created under the given id"}},
    summary="Apply a JSON Patch to a book, creating it when absent",
)
def partially_update_book_for_author(
    author_id: UUID,
    book_id: UUID,
    request: Request,
    patch_doc: Optional[Any] = Body(default=None),
    repo: LibraryRepository = Depends(get_repository),
):
    """
    Applies a JSON Patch document, e.g.
      [{"op": "replace", "path": "/title", "value": "New title"}]

    A missing book is created from a patched empty book, which must still
    pass full validation.
    """
    if not _is_patch_document(patch_doc):
        raise HTTPException(status_code=400, detail="A patch document is required")

    _ensure_author_exists(repo, author_id)

    errors = ValidationErrors()
    book_from_repo = repo.get_book_for_author(author_id, book_id)

    if book_from_repo is None:
        # Patch an empty book; the result must still be a valid full book
        empty = {member: None for member in sorted(PATCHABLE_MEMBERS)}
        book_dto = _validate_update_document(_apply_patch(empty, patch_doc, errors), errors)
        if book_dto is None:
            raise ValidationProblem(errors)

        book_to_add = mappers.book_from_create(book_dto)
        book_to_add.id = book_id
        repo.add_book_for_author(author_id, book_to_add)

        if not repo.save():
            raise PersistenceError(f"Upserting book {book_id} for author {author_id} failed on save.")

        return _created_book(request, book_to_add)

    document = mappers.book_to_update_document(book_from_repo)
    book_to_patch = _validate_update_document(_apply_patch(document, patch_doc, errors), errors)
    if book_to_patch is None:
        raise ValidationProblem(errors)

    mappers.apply_book_update(book_to_patch, book_from_repo)
    repo.update_book_for_author(book_from_repo)

    if not repo.save():
        raise PersistenceError(f"Patching book {book_id} for author {author_id} failed on save.")

    return Response(status_code=status.HTTP_204_NO_CONTENT)
