"""Port for the third-party payment gateway used at checkout."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.value_objects import Money


class PaymentGateway(ABC):

    @abstractmethod
    def create_order(self, amount: Money, receipt: str, notes: dict[str, str]) -> str:
        """Create a gateway-side payment order and return its id.

        Raises PaymentGatewayError if the gateway rejects the request.
        """
