"""
Bulk author endpoints under /api/authorcollections.

- POST /                -> creates several authors (and their nested books) in one commit
- GET  /{ids}           -> fetches authors by a comma-separated id list, all or nothing
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .. import mappers, schemas
from ..errors import (
    PersistenceError,
    ValidationErrors,
    ValidationProblem,
    check_description_differs,
)
from ..repository import LibraryRepository, get_repository

router = APIRouter()


def parse_id_list(raw: str) -> List[UUID]:
    """
    Parses ``"id1, id2,id3"`` into UUIDs. Empty entries are ignored.

    Raises 400 when nothing is left or an entry is not a UUID.
    """
    items = [part.strip() for part in raw.split(",") if part.strip()]
    if not items:
        raise HTTPException(status_code=400, detail="No author ids provided")
    try:
        return [UUID(item) for item in items]
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid author id list: {raw}")


@router.post(
    "",
    response_model=List[schemas.Author],
    status_code=status.HTTP_201_CREATED,
    summary="Create a collection of authors",
)
def create_author_collection(
    request: Request,
    author_collection: Optional[List[schemas.AuthorCreate]] = Body(default=None),
    repo: LibraryRepository = Depends(get_repository),
):
    if not author_collection:
        raise HTTPException(status_code=400, detail="An author collection is required")

    errors = ValidationErrors()
    for i, author in enumerate(author_collection):
        for j, book in enumerate(author.books):
            check_description_differs(
                book.title, book.description, f"{i}.books.{j}.{schemas.BookCreate.__name__}", errors
            )
    if not errors.is_valid:
        raise ValidationProblem(errors)

    author_entities = [mappers.author_from_create(a) for a in author_collection]
    for author in author_entities:
        repo.add_author(author)

    if not repo.save():
        raise PersistenceError("Creating an author collection failed on save.")

    authors_to_return = [mappers.author_to_dto(a) for a in author_entities]
    ids_as_string = ",".join(str(a.id) for a in authors_to_return)

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=jsonable_encoder(authors_to_return, by_alias=True),
        headers={"Location": str(request.url_for("get_author_collection", ids=ids_as_string))},
    )


@router.get(
    "/{ids}",
    name="get_author_collection",
    response_model=List[schemas.Author],
    summary="Get a collection of authors",
)
def get_author_collection(ids: str, repo: LibraryRepository = Depends(get_repository)):
    author_ids = parse_id_list(ids)

    author_entities = repo.get_authors(author_ids)

    # Partial results are never returned
    if len(author_ids) != len(author_entities):
        raise HTTPException(status_code=404, detail="One or more authors not found")

    return [mappers.author_to_dto(a) for a in author_entities]
