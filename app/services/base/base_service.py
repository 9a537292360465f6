"""
Service base class: shared collaborators, transactions and write retries.
"""

import time
from contextlib import contextmanager
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.config.settings import Settings, get_settings
from app.core.clock import Clock, RandomSource, SystemRandom, clock_from_settings
from app.core.exceptions import ConcurrentModificationError
from app.core.logging import get_logger

T = TypeVar("T")


class BaseService:
    """
    Session, settings, clock and randomness shared by every service, plus
    the transaction and optimistic-retry helpers the mutating services use.
    """

    def __init__(
        self,
        db_session: Session,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
        config: Optional[Settings] = None,
    ):
        self.db: Session = db_session
        self.settings: Settings = config or get_settings()
        self.clock: Clock = clock or clock_from_settings(self.settings.FIXED_CLOCK)
        self.rng: RandomSource = rng or SystemRandom()
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self):
        """Commit on success; roll back and re-raise on any exception."""
        try:
            yield self.db
            self.db.commit()
        except Exception as e:
            self._rollback(e)
            raise

    def _rollback(self, cause: Exception) -> None:
        self._logger.debug("Rolling back after %s", type(cause).__name__)
        try:
            self.db.rollback()
        except SQLAlchemyError as e:
            self._logger.warning("Rollback failed: %s", e)

    # -------------------------------------------------------------------------
    # Retry
    # -------------------------------------------------------------------------

    def _with_retry(self, work: Callable[[], T], record_key: str) -> T:
        """
        Run ``work`` in its own transaction, retrying lost optimistic races.

        Each attempt re-reads under lock, so a retry observes the winner's
        state. Other errors roll back and propagate on the first attempt.

        Raises:
            ConcurrentModificationError: retries exhausted
        """
        attempts = max(1, self.settings.MUTATION_RETRY_ATTEMPTS)
        for attempt in range(1, attempts + 1):
            try:
                with self.transaction():
                    return work()
            except (StaleDataError, IntegrityError) as e:
                self._logger.warning(
                    f"Write conflict on {record_key} (attempt {attempt}/{attempts}): {type(e).__name__}"
                )
                if attempt == attempts:
                    raise ConcurrentModificationError(record_key, attempts) from e
                self._backoff(attempt)
        raise ConcurrentModificationError(record_key, attempts)

    def _backoff(self, attempt: int) -> None:
        delay = self.settings.MUTATION_RETRY_BACKOFF_SECONDS * attempt * (1 + self.rng.random())
        if delay > 0:
            time.sleep(delay)
