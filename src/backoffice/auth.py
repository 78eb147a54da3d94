"""The acting principal for a request."""

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_EDITOR = "editor"
ROLE_AUTHOR = "author"
ROLES = (ROLE_ADMIN, ROLE_EDITOR, ROLE_AUTHOR)

ELEVATED_ROLES = frozenset({ROLE_ADMIN})


@dataclass(frozen=True)
class Principal:
    id: int
    role: str
    name: str = ""

    @property
    def is_elevated(self) -> bool:
        return self.role in ELEVATED_ROLES
