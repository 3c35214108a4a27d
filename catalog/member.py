from __future__ import annotations


def _text(data: dict, key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string, got {type(value).__name__}")
    return value


class Member:
    """A registered borrower."""

    def __init__(self, id: str, name: str, email: str, phone: str) -> None:
        self.id = id
        self.name = name.strip()
        self.email = email.strip()
        self.phone = phone.strip()

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.name} <{self.email}>"

    def __repr__(self) -> str:
        return f"Member(id={self.id!r}, name={self.name!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Member):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email, "phone": self.phone}

    @staticmethod
    def from_dict(data: dict) -> "Member":
        return Member(id=data["id"], name=_text(data, "name"), email=_text(data, "email"), phone=_text(data, "phone"))
