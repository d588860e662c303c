"""Site domain model — maps to the 'sites' table (canonical branch directory)."""

import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from fenix_accounts.infrastructure.database import Base


class Site(Base):
    __tablename__ = "sites"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Site {self.id} - {self.name}>"
