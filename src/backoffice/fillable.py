"""Writable-field whitelists per resource, operation and role."""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Mapping

from .auth import Principal
from .utils.logging import get_logger

logger = get_logger(__name__)

CREATE = "create"
UPDATE = "update"


@dataclass(frozen=True)
class FillablePolicy:
    """
    Which fields a write may set.

    fillable: writable by anyone allowed to write the resource
    admin_fillable: additionally writable by elevated principals
    create_only: dropped from updates
    update_only: dropped from creates
    """

    fillable: FrozenSet[str]
    admin_fillable: FrozenSet[str] = frozenset()
    create_only: FrozenSet[str] = frozenset()
    update_only: FrozenSet[str] = frozenset()

    def allowed_fields(self, principal: Principal, operation: str) -> FrozenSet[str]:
        if operation not in (CREATE, UPDATE):
            raise ValueError(f"Unknown operation: {operation}")
        allowed = set(self.fillable)
        if principal.is_elevated:
            allowed |= self.admin_fillable
        if operation == CREATE:
            allowed -= self.update_only
        else:
            allowed -= self.create_only
        return frozenset(allowed)

    def filter(self, data: Mapping[str, Any], principal: Principal, operation: str) -> Dict[str, Any]:
        """Keep only the writable keys of `data`; the rest are dropped silently."""
        allowed = self.allowed_fields(principal, operation)
        kept = {key: value for key, value in data.items() if key in allowed}
        stripped = sorted(set(data) - allowed)
        if stripped:
            logger.debug(
                "Stripped non-fillable fields %s for %s (role=%s)", stripped, operation, principal.role
            )
        return kept


POST_FILLABLE = FillablePolicy(
    fillable=frozenset({"title", "slug", "excerpt", "body", "status", "published_at", "category_ids"}),
    admin_fillable=frozenset({"user_id", "is_featured"}),
    create_only=frozenset({"slug"}),
)

CATEGORY_FILLABLE = FillablePolicy(
    fillable=frozenset({"name", "slug", "description", "status"}),
    create_only=frozenset({"slug"}),
)

USER_FILLABLE = FillablePolicy(
    fillable=frozenset({"name", "email"}),
    admin_fillable=frozenset({"role", "status"}),
    create_only=frozenset({"email"}),
)

AD_ZONE_FILLABLE = FillablePolicy(
    fillable=frozenset({"name", "slug", "description", "width", "height", "status"}),
    create_only=frozenset({"slug"}),
)

ADVERTISEMENT_FILLABLE = FillablePolicy(
    fillable=frozenset({"title", "target_url", "ad_zone_id", "starts_at", "ends_at"}),
    admin_fillable=frozenset({"user_id", "status", "priority"}),
    update_only=frozenset({"status"}),
)

POLICIES: Dict[str, FillablePolicy] = {
    "posts": POST_FILLABLE,
    "categories": CATEGORY_FILLABLE,
    "users": USER_FILLABLE,
    "ad-zones": AD_ZONE_FILLABLE,
    "advertisements": ADVERTISEMENT_FILLABLE,
}
