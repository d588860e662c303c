"""
SQLAlchemy Implementation of Account Repository.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import not_, or_

from fenix_accounts.domain.models.account import Account
from fenix_accounts.domain.models.roles import PROMOTER_ROLE
from fenix_accounts.domain.models.site import Site
from fenix_accounts.domain.repositories.account_repository import AccountRepository
from fenix_accounts.domain.schemas.account import AccountFilter
from fenix_accounts.domain.schemas.branch import BranchFilter, LegacyFilter, NoBranchFilter, SiteFilter
from fenix_accounts.infrastructure.repositories.base_repository import SQLAlchemyRepository

# Directory listing projection; the legacy label is exposed as branch_id too
LISTING_COLUMNS = (
    Account.id,
    Account.full_name,
    Account.fenix_role,
    Account.privilege_level,
    Account.username,
    Account.email,
    Account.active,
    Account.created_at,
    Account.site_id,
    Account.local,
    Account.local.label("branch_id"),
    Account.phone,
    Account.vehicle_type,
)


class SQLAlchemyAccountRepository(SQLAlchemyRepository, AccountRepository):
    """Account repository implementation using SQLAlchemy."""

    def get_summary(self, id: str) -> Optional[Dict[str, Any]]:
        """Listing projection of a single account."""
        rows = self._read(self.db.query(*LISTING_COLUMNS).filter(Account.id == id).limit(1))
        return rows[0]._asdict() if rows else None

    def find_conflict(
        self, username: Optional[str], email: Optional[str], exclude_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        conditions = []
        if username:
            conditions.append(Account.username == username)
        if email:
            conditions.append(Account.email == email)
        if not conditions:
            return None

        query = self.db.query(
            Account.id,
            Account.full_name,
            Account.username,
            Account.email,
            Account.active,
            Account.fenix_role,
        ).filter(or_(*conditions))
        if exclude_id:
            query = query.filter(Account.id != exclude_id)

        rows = self._read(query.limit(1))
        return rows[0]._asdict() if rows else None

    def get_with_filters(
        self, filters: AccountFilter, branch_filter: Optional[BranchFilter]
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Get accounts with filtering and pagination."""
        query = self.db.query(*LISTING_COLUMNS)

        if filters.q:
            pattern = f"%{filters.q}%"
            query = query.filter(
                or_(
                    Account.full_name.ilike(pattern),
                    Account.username.ilike(pattern),
                    Account.email.ilike(pattern),
                    Account.local.ilike(pattern),
                    Account.phone.ilike(pattern),
                )
            )
        if filters.role:
            query = query.filter(Account.fenix_role == filters.role)

        if isinstance(branch_filter, NoBranchFilter):
            query = query.filter(Account.site_id.is_(None), Account.local.is_(None))
        elif isinstance(branch_filter, SiteFilter):
            # Promoters are excluded regardless of casing or suffix (PROMOTOR / PROMOTORA)
            query = query.filter(
                Account.site_id == branch_filter.site_id,
                not_(Account.fenix_role.ilike(f"{PROMOTER_ROLE}%")),
            )
        elif isinstance(branch_filter, LegacyFilter):
            query = query.filter(Account.local.ilike(f"%{branch_filter.term}%"))

        if filters.active is not None:
            query = query.filter(Account.active == filters.active)

        total = self._count(query)
        offset = (filters.page - 1) * filters.page_size
        rows = self._read(
            query.order_by(Account.created_at.desc(), Account.id.desc())
            .offset(offset)
            .limit(filters.page_size)
        )
        return [row._asdict() for row in rows], total

    def get_site_names(self, site_ids: Iterable[str]) -> Dict[str, str]:
        ids = list(site_ids)
        if not ids:
            return {}
        sites = self._read(self.db.query(Site.id, Site.name).filter(Site.id.in_(ids)))
        return {site.id: (site.name or "").strip() or site.id for site in sites if site.id}
