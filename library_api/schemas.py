from datetime import date
from typing import Generic, List, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# Wire format is camelCase; snake_case is accepted on input too
CAMEL_CASE = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Link(BaseModel):
    href: str
    rel: str
    method: str


class LinkedCollection(BaseModel, Generic[T]):
    """A list of resources plus the links that apply to the list itself."""
    value: List[T] = []
    links: List[Link] = []


# ---------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------

class BookBase(BaseModel):
    model_config = CAMEL_CASE

    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    page_count: Optional[int] = Field(default=None, ge=0)


class BookCreate(BookBase):
    pass


class BookUpdate(BookBase):
    # A full replace must say what the book is about
    description: str = Field(..., min_length=1, max_length=500)


class Book(BaseModel):
    model_config = CAMEL_CASE

    id: UUID
    title: str
    description: Optional[str] = None
    page_count: Optional[int] = None
    author_id: UUID
    links: List[Link] = []


# ---------------------------------------------------------------------
# Authors
# ---------------------------------------------------------------------

class AuthorCreate(BaseModel):
    model_config = CAMEL_CASE

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    date_of_birth: date
    genre: str = Field(..., min_length=1, max_length=50)
    books: List[BookCreate] = []


class Author(BaseModel):
    model_config = CAMEL_CASE

    id: UUID
    name: str
    age: int
    genre: str
