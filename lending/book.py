from __future__ import annotations


class Book:
    """Represents a single title in the library and its available copies."""

    def __init__(self, title: str, author: str, isbn: str, publisher: str | None = None, stock: int = 0,
                 book_id: int | None = None, created_at: str | None = None) -> None:
        self.book_id = book_id
        self.title = title.strip()
        self.author = author.strip()
        self.isbn = isbn.strip()
        self.publisher = publisher.strip() if publisher else None
        self.stock = stock
        self.created_at = created_at

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ISBN: {self.isbn}, stock: {self.stock})"

    def to_dict(self) -> dict:
        return {
            "book_id": self.book_id,
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "publisher": self.publisher,
            "stock": self.stock,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            book_id=data.get("book_id"),
            title=data["title"],
            author=data["author"],
            isbn=data["isbn"],
            publisher=data.get("publisher"),
            stock=int(data.get("stock") or 0),
            created_at=data.get("created_at"),
        )
