from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, List, Optional


@dataclass
class Book:
    id: Optional[int] = None
    title: str = ""
    has_sales: bool = False

    @classmethod
    def from_row(cls, row) -> "Book":
        return cls(id=int(row["id"]), title=row["title"], has_sales=bool(row["has_sales"]))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Account:
    id: Optional[int] = None
    name: str = ""
    email: str = ""

    @classmethod
    def from_row(cls, row) -> "Account":
        return cls(id=int(row["id"]), name=row["name"], email=row["email"])

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PaginatedBooks:
    """One page of books plus the size of the whole match set (before LIMIT/OFFSET)."""
    books: List[Book] = field(default_factory=list)
    total_count: int = 0
