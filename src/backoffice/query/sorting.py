"""Sort specifier parsing ("-created_at,title")."""

from typing import List, Optional

from pydantic import BaseModel


class SortSpec(BaseModel):
    field: str
    descending: bool = False

    def token(self) -> str:
        return f"-{self.field}" if self.descending else self.field


def parse_sort(value: Optional[str]) -> List[SortSpec]:
    """
    Parse a comma-separated sort string.

    A leading '-' sorts descending, a leading '+' (or none) ascending.
    Blank tokens are skipped; field names are not checked here.
    """
    if not value:
        return []
    specs: List[SortSpec] = []
    for raw in value.split(","):
        token = raw.strip()
        descending = False
        if token.startswith("-"):
            descending = True
            token = token[1:]
        elif token.startswith("+"):
            token = token[1:]
        token = token.strip()
        if token:
            specs.append(SortSpec(field=token, descending=descending))
    return specs
