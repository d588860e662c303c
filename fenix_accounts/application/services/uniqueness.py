"""Optimistic regenerate-and-retry for synthesized credentials.

Concurrent creations are never locked against each other: a collision on a
generated username/email shows up as a unique violation, the credentials are
regenerated and the insert is tried again, within a fixed attempt budget.
"""

from typing import Callable, Optional, TypeVar

import structlog

from fenix_accounts.application.services.credential_service import Credentials
from fenix_accounts.core.exceptions import CredentialsExhaustedError
from fenix_accounts.infrastructure.db_errors import FailureKind, StoreError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class UniquenessRetry:
    def __init__(self, attempts: int = 3):
        if attempts < 1:
            raise ValueError("attempts must be >= 1")
        self.attempts = attempts

    def run(
        self,
        attempt: Callable[[Credentials], T],
        credentials: Credentials,
        regenerate: Callable[[Credentials], Credentials],
    ) -> T:
        """Call `attempt` until it succeeds or the budget runs out.

        Only unique violations on generated credentials are retried. Every
        other StoreError, and any collision on caller-supplied credentials,
        propagates on the first occurrence.
        """
        last_error: Optional[StoreError] = None
        for number in range(1, self.attempts + 1):
            try:
                return attempt(credentials)
            except StoreError as exc:
                if exc.kind is not FailureKind.UNIQUE_VIOLATION or credentials.explicit:
                    raise
                last_error = exc
                logger.info(
                    "Generated credentials collided",
                    attempt=number,
                    attempts=self.attempts,
                    username=credentials.username,
                )
                if number < self.attempts:
                    credentials = regenerate(credentials)

        raise CredentialsExhaustedError(
            last_error.failure.message if last_error else "Create user failed",
            details={"attempts": self.attempts},
        )
