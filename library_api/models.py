from sqlalchemy import Column, Date, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship
from .database import Base


class Author(Base):
    __tablename__ = "authors"

    id = Column(Uuid, primary_key=True, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    genre = Column(String(50), nullable=False)
    date_of_birth = Column(Date, nullable=False)

    # Deleting an author removes its books
    books = relationship(
        "Book",
        back_populates="author",
        cascade="all, delete-orphan",
        order_by="Book.title",
    )

    def __repr__(self):
        return f"Author(id={self.id}, name={self.first_name} {self.last_name})"


class Book(Base):
    __tablename__ = "books"

    id = Column(Uuid, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500))
    page_count = Column(Integer)

    author_id = Column(Uuid, ForeignKey("authors.id"), nullable=False, index=True)
    author = relationship("Author", back_populates="books")

    def __repr__(self):
        return f"<Book id={self.id} title='{self.title}'>"
