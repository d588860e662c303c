"""
Account Repository Interface.
Defines specific data access operations for the operator directory.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from fenix_accounts.domain.repositories.base import BaseRepository
from fenix_accounts.domain.schemas.account import AccountFilter
from fenix_accounts.domain.schemas.branch import BranchFilter


class AccountRepository(BaseRepository):
    """Interface for Account-specific operations."""

    def get_summary(self, id: str) -> Optional[Dict[str, Any]]:
        """Listing projection of a single account."""
        ...

    def find_conflict(
        self, username: Optional[str], email: Optional[str], exclude_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """First account owning the given username or email."""
        ...

    def get_with_filters(
        self, filters: AccountFilter, branch_filter: Optional[BranchFilter]
    ) -> Tuple[List[Dict[str, Any]], int]:
        """One filtered page of accounts plus the total match count."""
        ...

    def get_site_names(self, site_ids: Iterable[str]) -> Dict[str, str]:
        """Display names for the given site ids, in one lookup."""
        ...
