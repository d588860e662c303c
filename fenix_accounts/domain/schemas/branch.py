"""Branch filter tokens, as parsed from the listing `branch` parameter."""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class BranchAssignment:
    site_id: Optional[str]
    local: Optional[str]

    @property
    def is_empty(self) -> bool:
        return self.site_id is None and self.local is None


@dataclass(frozen=True)
class SiteFilter:
    """Exact site match; promoters are excluded."""
    site_id: str


@dataclass(frozen=True)
class LegacyFilter:
    """Case-insensitive substring match on the legacy label."""
    term: str


@dataclass(frozen=True)
class NoBranchFilter:
    """Accounts with neither a site nor a legacy label."""


BranchFilter = Union[SiteFilter, LegacyFilter, NoBranchFilter]
