from __future__ import annotations

import logging
import random
from typing import Protocol

from core.settings import settings
from models.bundle import SubscriptionBundle
from models.enums import PaymentOutcome

logger = logging.getLogger(__name__)


class PaymentGateway(Protocol):
    def charge_renewal(self, bundle: SubscriptionBundle) -> PaymentOutcome:
        ...


class SimulatedPaymentGateway:
    """Stand-in for a real processor: fails a fixed share of renewal charges."""

    def __init__(self, failure_rate: float = settings.payment_failure_rate, rng: random.Random | None = None):
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be between 0 and 1")
        self.failure_rate = failure_rate
        self._rng = rng or random.Random()

    def charge_renewal(self, bundle: SubscriptionBundle) -> PaymentOutcome:
        if self._rng.random() < self.failure_rate:
            logger.info("Simulated payment failed for bundle %s (%s)", bundle.id, bundle.price)
            return PaymentOutcome.FAILED
        return PaymentOutcome.SUCCEEDED


class FixedPaymentGateway:
    def __init__(self, outcome: PaymentOutcome = PaymentOutcome.SUCCEEDED):
        self.outcome = outcome
        self.charged: list[str] = []

    def charge_renewal(self, bundle: SubscriptionBundle) -> PaymentOutcome:
        self.charged.append(bundle.id)
        return self.outcome


def get_payment_gateway() -> PaymentGateway:
    return SimulatedPaymentGateway()
