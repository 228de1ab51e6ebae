"""
Base Payment Gateway
Abstract class defining the interface for all payment gateways
"""
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from dataclasses import dataclass, field


@dataclass
class CheckoutSessionResult:
    """Result of creating a hosted checkout session"""
    session_id: str
    url: str
    expires_at: Optional[int] = None


@dataclass
class CheckoutSessionDetails:
    """
    Finalized checkout session as reported by the processor.
    This is the only trusted source of amount and payment status.
    """
    session_id: str
    payment_status: str
    amount: float
    currency: str
    transaction_id: Optional[str] = None
    customer_email: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)


class BasePaymentGateway(ABC):
    """
    Abstract base class for payment gateways.
    All payment gateways must implement these methods.
    """

    gateway_id: str = "base"
    gateway_name: str = "Base Gateway"

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize gateway with configuration.

        Args:
            config: Gateway configuration including API keys, endpoints, etc.
        """
        self.config = config
        self._validate_config()

    @abstractmethod
    def _validate_config(self):
        """Validate required configuration parameters"""
        pass

    @abstractmethod
    async def create_checkout_session(
        self,
        amount: float,
        currency: str,
        product_name: str,
        customer_email: str,
        success_url: str,
        cancel_url: str,
        product_description: Optional[str] = None,
        product_image: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None
    ) -> CheckoutSessionResult:
        """
        Create a hosted checkout session.

        Args:
            amount: Amount to charge in major currency units
            currency: Currency code (usd, eur, ...)
            product_name: Line item name shown at checkout
            customer_email: Payer's email
            success_url: Redirect target after payment
            cancel_url: Redirect target if the payer backs out
            product_description: Line item description (optional)
            product_image: Line item image URL (optional)
            metadata: String key/values stored on the session

        Returns:
            CheckoutSessionResult with the redirect URL

        Raises:
            UpstreamError: the processor rejected or failed the request
        """
        pass

    @abstractmethod
    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSessionDetails:
        """
        Fetch a checkout session from the processor.

        Raises:
            NotFoundError: unknown session
            UpstreamError: the processor failed the request
        """
        pass

    def get_api_url(self, endpoint: str) -> str:
        """Get full API URL for endpoint"""
        base_url = self.config.get("api_url", "")
        return f"{base_url}/{endpoint.lstrip('/')}"
