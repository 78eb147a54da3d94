from dataclasses import dataclass, field
from math import ceil
from typing import Any, List


@dataclass
class PageResult:
    """One page of rows plus the totals needed to render pagination."""

    items: List[Any] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 25

    @property
    def last_page(self) -> int:
        return max(1, ceil(self.total / self.per_page)) if self.per_page else 1

    @property
    def from_index(self) -> int | None:
        """1-based position of the first row on this page (None when empty)."""
        if not self.items:
            return None
        return (self.page - 1) * self.per_page + 1

    @property
    def to_index(self) -> int | None:
        if not self.items:
            return None
        return (self.page - 1) * self.per_page + len(self.items)

    @property
    def has_more(self) -> bool:
        return self.page < self.last_page
