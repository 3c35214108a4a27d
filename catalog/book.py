from __future__ import annotations


def _text(data: dict, key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string, got {type(value).__name__}")
    return value


class Book:
    """A title held by the library, with copy accounting."""

    def __init__(self, id: str, title: str, author: str, isbn: str | None = None,
                 total_copies: int = 1, available_copies: int | None = None) -> None:
        self.id = id
        self.title = title.strip()
        self.author = author.strip()
        self.isbn = isbn.strip() if isbn is not None else None
        self.total_copies = total_copies
        self.available_copies = total_copies if available_copies is None else available_copies

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} ({self.available_copies}/{self.total_copies} available)"

    def __repr__(self) -> str:
        return f"Book(id={self.id!r}, title={self.title!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def is_available(self) -> bool:
        return self.available_copies > 0

    def borrow_one(self) -> bool:
        """Take one copy off the shelf. Returns False if none are left."""
        if self.available_copies <= 0:
            return False
        self.available_copies -= 1
        return True

    def return_one(self) -> None:
        # Never exceeds total_copies, even on a stray double return
        if self.available_copies < self.total_copies:
            self.available_copies += 1

    def set_total_copies(self, n: int) -> None:
        """Change the copy count, shifting availability by the same delta.

        Values below 1 are ignored. Availability is floored at zero, so shrinking
        the total below the number of copies on loan leaves nothing on the shelf.
        """
        if n < 1:
            return
        delta = n - self.total_copies
        self.total_copies = n
        self.available_copies = max(0, self.available_copies + delta)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "total_copies": self.total_copies,
            "available_copies": self.available_copies,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        total = int(data["total_copies"])
        available = int(data["available_copies"])
        if total < 1 or not 0 <= available <= total:
            raise ValueError(f"Book {data['id']}: invalid copy counts {available}/{total}")
        isbn = data.get("isbn")
        if isbn is not None and not isinstance(isbn, str):
            raise TypeError(f"Book {data['id']}: isbn must be a string or null")
        return Book(
            id=data["id"],
            title=_text(data, "title"),
            author=_text(data, "author"),
            isbn=isbn,
            total_copies=total,
            available_copies=available,
        )
