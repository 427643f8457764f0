"""
BreachWatch - Subscription Manager
Subscriptions are toggled, never deleted.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from breach.emails import require_email
from errors import PersistenceError, UpstreamError
from models import SubscriptionResult
from store.breach_store import BreachStore

logger = logging.getLogger(__name__)


class SubscriptionManager:
    def __init__(self, store: BreachStore):
        self.store = store

    def subscribe(self, email) -> SubscriptionResult:
        normalized = require_email(email)
        logger.info("Subscribing email: %s", normalized)

        try:
            existing = self.store.get_subscription(normalized)
        except SQLAlchemyError as e:
            raise UpstreamError("Failed to look up subscription") from e

        if existing is not None and existing.is_active:
            return SubscriptionResult(
                status="already_subscribed",
                message="Already subscribed",
                already_subscribed=True,
            )

        if existing is not None:
            try:
                self.store.set_subscription_active(normalized, True)
            except SQLAlchemyError as e:
                logger.error("Error reactivating subscription: %s", e)
                raise PersistenceError("Failed to reactivate subscription") from e
            return SubscriptionResult(status="reactivated", message="Subscription reactivated")

        try:
            self.store.add_subscription(normalized)
        except IntegrityError:
            # A concurrent request inserted the same email first
            logger.info("Subscription for %s was created concurrently", normalized)
            return SubscriptionResult(
                status="already_subscribed",
                message="Already subscribed",
                already_subscribed=True,
            )
        except SQLAlchemyError as e:
            logger.error("Error creating subscription: %s", e)
            raise PersistenceError("Failed to subscribe") from e

        logger.info("Successfully subscribed: %s", normalized)
        return SubscriptionResult(status="new", message="Successfully subscribed to breach alerts")

    def unsubscribe(self, email) -> SubscriptionResult:
        """Deactivate the subscription. Unknown emails succeed silently."""
        normalized = require_email(email)
        logger.info("Unsubscribing email: %s", normalized)

        try:
            updated = self.store.set_subscription_active(normalized, False)
        except SQLAlchemyError as e:
            logger.error("Error unsubscribing: %s", e)
            raise PersistenceError("Failed to unsubscribe") from e

        if not updated:
            logger.info("No subscription on record for %s", normalized)
        return SubscriptionResult(status="unsubscribed", message="Successfully unsubscribed")
