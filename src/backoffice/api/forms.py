"""Form schemas: which fields a create/edit form may submit, plus select options."""

from typing import Dict, List

from sqlalchemy.orm import Session

from ..auth import ROLES, Principal
from ..database.advertisement_repo import list_ad_zone_options
from ..database.category_repo import list_category_options
from ..database.user_repo import list_user_options
from ..dto.base import ACTIVE_STATUSES
from ..dto.posts import POST_STATUSES
from ..fillable import POLICIES
from .models import FieldOption, FormSchema


def _choices(values) -> List[FieldOption]:
    return [FieldOption(value=value, label=value.replace("_", " ").title()) for value in values]


def _options_for(session: Session, resource: str, fields: List[str]) -> Dict[str, List[FieldOption]]:
    options: Dict[str, List[FieldOption]] = {}
    if "category_ids" in fields:
        options["category_ids"] = [FieldOption(value=c.id, label=c.name) for c in list_category_options(session)]
    if "ad_zone_id" in fields:
        options["ad_zone_id"] = [FieldOption(value=z.id, label=z.name) for z in list_ad_zone_options(session)]
    if "user_id" in fields:
        options["user_id"] = [FieldOption(value=u.id, label=u.name) for u in list_user_options(session)]
    if "role" in fields:
        options["role"] = _choices(ROLES)
    if "status" in fields:
        options["status"] = _choices(POST_STATUSES if resource == "posts" else ACTIVE_STATUSES)
    return options


def form_fields(session: Session, resource: str, principal: Principal, operation: str) -> FormSchema:
    """
    Describe the writable fields of `resource` for `principal`.

    Raises:
        KeyError: unknown resource
        ValueError: unknown operation
    """
    policy = POLICIES[resource]
    fields = sorted(policy.allowed_fields(principal, operation))
    return FormSchema(
        resource=resource,
        operation=operation,
        fields=fields,
        options=_options_for(session, resource, fields),
    )
