from __future__ import annotations

from datetime import date

DEFAULT_DAILY_FINE_RATE = 5


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    return date.fromisoformat(value)


class Loan:
    """One copy of a book lent to a member.

    ``book_id`` and ``member_id`` are plain ids resolved against the catalog when
    needed; a loan never holds the records themselves. ``return_date`` is None
    while the loan is outstanding.
    """

    def __init__(self, id: str, book_id: str, member_id: str, issue_date: date,
                 due_date: date, return_date: date | None = None) -> None:
        self.id = id
        self.book_id = book_id
        self.member_id = member_id
        self.issue_date = issue_date
        self.due_date = due_date
        self.return_date = return_date

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        status = f"returned {self.return_date.isoformat()}" if self.return_date else "outstanding"
        return f"Loan {self.id}: book {self.book_id} -> member {self.member_id}, due {self.due_date.isoformat()} ({status})"

    def __repr__(self) -> str:
        return f"Loan(id={self.id!r}, book_id={self.book_id!r}, member_id={self.member_id!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Loan):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def is_active(self) -> bool:
        return self.return_date is None

    def mark_returned(self, when: date) -> None:
        # The catalog guarantees this runs at most once per loan
        self.return_date = when

    def days_overdue(self, as_of: date) -> int:
        """Whole days past the due date, measured to the return date once set."""
        effective = self.return_date if self.return_date is not None else as_of
        return max(0, (effective - self.due_date).days)

    def fine(self, as_of: date, rate: int = DEFAULT_DAILY_FINE_RATE) -> int:
        return self.days_overdue(as_of) * rate

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "book_id": self.book_id,
            "member_id": self.member_id,
            "issue_date": self.issue_date.isoformat(),
            "due_date": self.due_date.isoformat(),
            "return_date": self.return_date.isoformat() if self.return_date else None,
        }

    @staticmethod
    def from_dict(data: dict) -> "Loan":
        return Loan(
            id=data["id"],
            book_id=data["book_id"],
            member_id=data["member_id"],
            issue_date=date.fromisoformat(data["issue_date"]),
            due_date=date.fromisoformat(data["due_date"]),
            return_date=_parse_date(data.get("return_date")),
        )
