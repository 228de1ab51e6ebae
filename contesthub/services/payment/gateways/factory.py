"""
Payment Gateway Factory
Creates payment gateway instances from settings
"""
from typing import Dict, Any, Optional, Type

from contesthub.config import Settings
from contesthub.services.payment.gateways.base import BasePaymentGateway
from contesthub.services.payment.gateways.stripe import StripeGateway


class PaymentGatewayFactory:
    """Builds the configured payment gateway from the registry below"""

    # gateway id -> implementation
    _gateways: Dict[str, Type[BasePaymentGateway]] = {
        "stripe": StripeGateway,
    }

    @classmethod
    def get_gateway(cls, gateway_id: str, config: Optional[Dict[str, Any]] = None) -> BasePaymentGateway:
        """
        Create a payment gateway instance.

        Raises:
            ValueError: If gateway is not registered or misconfigured
        """
        if gateway_id not in cls._gateways:
            raise ValueError(f"Unknown payment gateway: {gateway_id}. Available: {list(cls._gateways.keys())}")

        return cls._gateways[gateway_id](config or {})

    @classmethod
    def from_settings(cls, settings: Settings) -> BasePaymentGateway:
        """Build the configured gateway (credentials always come from env)"""
        config = {"secret_key": settings.stripe_secret_key}
        return cls.get_gateway(settings.payment_gateway, config)
