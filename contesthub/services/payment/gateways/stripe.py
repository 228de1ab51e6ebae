"""
Stripe Payment Gateway Implementation
Implements the BasePaymentGateway for Stripe Checkout Sessions
"""
import httpx
from typing import Dict, Any, Optional
from urllib.parse import quote

from contesthub.core.exceptions import NotFoundError, UpstreamError
from contesthub.services.payment.gateways.base import (
    BasePaymentGateway,
    CheckoutSessionResult,
    CheckoutSessionDetails,
)


class StripeGateway(BasePaymentGateway):
    """
    Stripe Payment Gateway Implementation

    Features:
    - Hosted checkout session creation
    - Session retrieval (authoritative amount, status and metadata)
    """

    gateway_id = "stripe"
    gateway_name = "Stripe"

    API_URL = "https://api.stripe.com/v1"

    # Currencies Stripe charges in whole units
    ZERO_DECIMAL_CURRENCIES = {"bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga",
                               "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf"}

    def __init__(self, config: Dict[str, Any], transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize Stripe gateway"""
        config = dict(config)
        config.setdefault("api_url", self.API_URL)
        config.setdefault("timeout", 30.0)

        super().__init__(config)

        self.secret_key = config["secret_key"]
        self._transport = transport

    def _validate_config(self):
        """Validate required Stripe configuration"""
        if not self.config.get("secret_key"):
            raise ValueError("STRIPE_SECRET_KEY is required")

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for Stripe API requests"""
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Accept": "application/json"
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config["timeout"], transport=self._transport)

    def to_minor_units(self, amount: float, currency: str) -> int:
        if currency.lower() in self.ZERO_DECIMAL_CURRENCIES:
            return int(round(amount))
        return int(round(amount * 100))

    def from_minor_units(self, amount: int, currency: str) -> float:
        if currency.lower() in self.ZERO_DECIMAL_CURRENCIES:
            return float(amount)
        return round(amount / 100, 2)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return response.json().get("error", {}).get("message") or response.text
        except ValueError:
            return response.text

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
        Create a Stripe Checkout Session in payment mode with one line item.
        Stripe takes form-encoded bodies with bracketed keys for nesting.
        """
        payload = {
            "mode": "payment",
            "customer_email": customer_email,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "line_items[0][quantity]": "1",
            "line_items[0][price_data][currency]": currency.lower(),
            "line_items[0][price_data][unit_amount]": str(self.to_minor_units(amount, currency)),
            "line_items[0][price_data][product_data][name]": product_name,
        }
        if product_description:
            payload["line_items[0][price_data][product_data][description]"] = product_description
        if product_image:
            payload["line_items[0][price_data][product_data][images][0]"] = product_image
        for key, value in (metadata or {}).items():
            payload[f"metadata[{key}]"] = str(value)

        try:
            async with self._client() as client:
                response = await client.post(
                    self.get_api_url("/checkout/sessions"),
                    headers=self._get_headers(),
                    data=payload
                )
        except httpx.HTTPError as e:
            print(f"[ERROR] Stripe create_checkout_session failed: {e}")
            raise UpstreamError("Payment processor unavailable")

        if response.status_code not in (200, 201):
            message = self._error_message(response)
            print(f"[ERROR] Stripe rejected checkout session: {response.status_code} {message}")
            raise UpstreamError(f"Failed to create checkout session: {message}")

        data = response.json()
        return CheckoutSessionResult(
            session_id=data["id"],
            url=data["url"],
            expires_at=data.get("expires_at")
        )

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSessionDetails:
        """Retrieve a Checkout Session by id"""
        try:
            async with self._client() as client:
                response = await client.get(
                    self.get_api_url(f"/checkout/sessions/{quote(session_id, safe='')}"),
                    headers=self._get_headers()
                )
        except httpx.HTTPError as e:
            print(f"[ERROR] Stripe retrieve_checkout_session failed: {e}")
            raise UpstreamError("Payment processor unavailable")

        if response.status_code == 404:
            raise NotFoundError("Checkout session not found")
        if response.status_code != 200:
            message = self._error_message(response)
            print(f"[ERROR] Stripe session lookup failed: {response.status_code} {message}")
            raise UpstreamError(f"Failed to retrieve checkout session: {message}")

        data = response.json()
        currency = data.get("currency") or ""

        payment_intent = data.get("payment_intent")
        if isinstance(payment_intent, dict):
            payment_intent = payment_intent.get("id")

        customer_email = data.get("customer_email") or (data.get("customer_details") or {}).get("email")

        return CheckoutSessionDetails(
            session_id=data["id"],
            payment_status=data.get("payment_status", "unpaid"),
            amount=self.from_minor_units(data.get("amount_total") or 0, currency),
            currency=currency,
            transaction_id=payment_intent,
            customer_email=customer_email,
            metadata=data.get("metadata") or {}
        )
