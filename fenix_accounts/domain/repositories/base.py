"""
Base Repository Interface.
Defines the standard contract for data access operations.
"""

from typing import Any, Dict, Optional, Protocol


class BaseRepository(Protocol):
    """Interface for row-level operations keyed by id."""

    def get_by_id(self, id: str) -> Optional[Dict[str, Any]]:
        """Get a single row by ID."""
        ...

    def insert(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it as stored."""
        ...

    def update(self, id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update one row; None when it does not exist."""
        ...

    def delete(self, id: str) -> bool:
        """Delete a row by ID."""
        ...
