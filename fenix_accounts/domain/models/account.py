"""Account domain model — maps to the 'people' table."""

import uuid

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, CheckConstraint
from sqlalchemy.sql import func

from fenix_accounts.infrastructure.database import Base
from fenix_accounts.domain.models.roles import (
    ALLOWED_ROLES,
    PEOPLE_ROLE_CHECK,
    PEOPLE_SITE_CHECK,
    PROMOTER_ROLE,
)

_allowed = ", ".join(f"'{r}'" for r in ALLOWED_ROLES)


class Account(Base):
    __tablename__ = "people"
    __table_args__ = (
        CheckConstraint(f"fenix_role IN ({_allowed})", name=PEOPLE_ROLE_CHECK),
        CheckConstraint(
            f"site_id IS NOT NULL OR local IS NOT NULL OR fenix_role LIKE '{PROMOTER_ROLE}%'",
            name=PEOPLE_SITE_CHECK,
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    full_name = Column(String(200), nullable=False)
    fenix_role = Column(String(30), nullable=False)
    role = Column(String(30), nullable=False)  # legacy column, mirrors fenix_role
    privilege_level = Column(Integer, nullable=False, default=1)

    # Credentials
    username = Column(String(150), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=True)
    initial_password_plain_text = Column(Text, nullable=True)

    # Login index (derived from username / email)
    username_norm = Column(String(150), nullable=True, index=True)
    username_flat = Column(String(150), nullable=True, index=True)
    email_norm = Column(String(255), nullable=True, index=True)
    email_flat = Column(String(255), nullable=True, index=True)

    active = Column(Boolean, nullable=False, default=True)

    # Branch: canonical site reference or legacy free-text label
    site_id = Column(String(36), ForeignKey("sites.id"), nullable=True, index=True)
    local = Column(String(200), nullable=True)

    phone = Column(String(30), nullable=True)
    vehicle_type = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Account {self.username}>"
