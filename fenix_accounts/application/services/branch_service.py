"""Branch resolver — one canonical {site_id, local} pair from overlapping inputs.

Accounts reference a Site by id or carry a legacy free-text branch label.
Callers send any of `site_id`, `branch_id` (a Site id or a legacy label),
`branch_label` (display label) and legacy `local`.
"""

import re
from typing import Any, Mapping, Optional

from fenix_accounts.domain.schemas.branch import (
    BranchAssignment,
    BranchFilter,
    LegacyFilter,
    NoBranchFilter,
    SiteFilter,
)

UUID_REGEX = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

NO_BRANCH_TOKEN = "__none__"
SITE_PREFIX = "site:"

BRANCH_FIELDS = ("site_id", "branch_id", "branch_label", "local")


def is_uuid(value: Optional[str]) -> bool:
    return bool(value and UUID_REGEX.match(value))


def _text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def normalize_branch_payload(payload: Mapping[str, Any]) -> BranchAssignment:
    explicit_site = _text(payload.get("site_id"))
    raw_branch = _text(payload.get("branch_id"))
    branch_label = _text(payload.get("branch_label"))
    legacy_local = _text(payload.get("local"))

    site_id = explicit_site
    if not site_id and is_uuid(raw_branch):
        site_id = raw_branch

    if branch_label:
        local = branch_label
    elif not site_id and raw_branch:
        local = raw_branch
    else:
        local = legacy_local

    return BranchAssignment(site_id=site_id, local=local)


def has_branch_fields(payload: Mapping[str, Any]) -> bool:
    return any(field in payload for field in BRANCH_FIELDS)


def parse_branch_filter(raw: Optional[str]) -> Optional[BranchFilter]:
    """`__none__`, `site:<id>`, a bare UUID, or a legacy substring."""
    raw = (raw or "").strip()
    if not raw:
        return None
    if raw == NO_BRANCH_TOKEN:
        return NoBranchFilter()
    if raw.startswith(SITE_PREFIX):
        site_id = raw[len(SITE_PREFIX):].strip()
        if site_id:
            return SiteFilter(site_id)
    if is_uuid(raw):
        return SiteFilter(raw)
    return LegacyFilter(raw)
