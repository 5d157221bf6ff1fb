"""Identity store collaborator.

The booking and promotion services only need three questions answered about
customers. Implementations must be swappable; the SQL-backed one reads the
`customers` mirror table in its own session so a slow identity lookup never
shares a transaction with a booking write.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from boxoffice.core.errors import IdentityUnavailableError
from boxoffice.models.customer import Customer

logger = logging.getLogger(__name__)


class IdentityDirectory(ABC):
    """Interface for customer lookups."""

    @abstractmethod
    def customer_exists(self, customer_id: int) -> bool:
        """Return True when the customer is known to the identity store."""
        ...

    @abstractmethod
    def get_customer_email(self, customer_id: int) -> Optional[str]:
        """Return the customer's e-mail address, or None if unknown."""
        ...

    @abstractmethod
    def get_subscribed_customer_emails(self) -> List[str]:
        """Return e-mail addresses of customers who opted into promotions."""
        ...


class SqlIdentityDirectory(IdentityDirectory):
    """Identity directory backed by the `customers` table."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def _query(self, fn):
        db = self._session_factory()
        try:
            return fn(db)
        except SQLAlchemyError as exc:
            logger.exception("Identity lookup failed.")
            raise IdentityUnavailableError() from exc
        finally:
            db.close()

    def customer_exists(self, customer_id: int) -> bool:
        return self._query(
            lambda db: db.query(Customer.id).filter(Customer.id == customer_id).first() is not None
        )

    def get_customer_email(self, customer_id: int) -> Optional[str]:
        row = self._query(
            lambda db: db.query(Customer.email).filter(Customer.id == customer_id).first()
        )
        return row.email if row else None

    def get_subscribed_customer_emails(self) -> List[str]:
        rows = self._query(
            lambda db: db.query(Customer.email)
            .filter(Customer.promotion_subscription == True)  # noqa: E712
            .order_by(Customer.id)
            .all()
        )
        return [r.email for r in rows]
