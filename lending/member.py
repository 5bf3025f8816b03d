from __future__ import annotations


class Member:
    """A registered borrower."""

    def __init__(self, name: str, phone_number: str | None = None, member_id: int | None = None,
                 created_at: str | None = None) -> None:
        self.member_id = member_id
        self.name = name.strip()
        self.phone_number = phone_number.strip() if phone_number else None
        self.created_at = created_at

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.name} ({self.phone_number or '-'})"

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "name": self.name,
            "phone_number": self.phone_number,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_dict(data: dict) -> "Member":
        return Member(
            member_id=data.get("member_id"),
            name=data["name"],
            phone_number=data.get("phone_number"),
            created_at=data.get("created_at"),
        )
