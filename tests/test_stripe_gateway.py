"""Tests for the Stripe Checkout gateway over a mocked HTTP transport."""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from contesthub.core.exceptions import NotFoundError, UpstreamError
from contesthub.services.payment.gateways.factory import PaymentGatewayFactory
from contesthub.services.payment.gateways.stripe import StripeGateway


def make_gateway(handler) -> StripeGateway:
    return StripeGateway({"secret_key": "sk_test_123"}, transport=httpx.MockTransport(handler))


async def create_session(gateway: StripeGateway, **overrides):
    kwargs = {
        "amount": 10.5,
        "currency": "usd",
        "product_name": "Logo Design Sprint",
        "customer_email": "bob@example.com",
        "success_url": "http://client.test/payment-success?session_id={CHECKOUT_SESSION_ID}",
        "cancel_url": "http://client.test/contests/abc",
        "metadata": {"contest_id": "abc", "participant_email": "bob@example.com"},
    }
    kwargs.update(overrides)
    return await gateway.create_checkout_session(**kwargs)


class TestCreateCheckoutSession:
    async def test_form_payload_and_auth(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["form"] = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            return httpx.Response(200, json={
                "id": "cs_test_a1",
                "url": "https://checkout.stripe.com/c/pay/cs_test_a1",
                "expires_at": 1760000000,
            })

        result = await create_session(make_gateway(handler))

        assert result.session_id == "cs_test_a1"
        assert result.url == "https://checkout.stripe.com/c/pay/cs_test_a1"
        assert result.expires_at == 1760000000

        assert captured["method"] == "POST"
        assert captured["url"] == "https://api.stripe.com/v1/checkout/sessions"
        assert captured["auth"] == "Bearer sk_test_123"

        form = captured["form"]
        assert form["mode"] == "payment"
        assert form["customer_email"] == "bob@example.com"
        assert form["line_items[0][quantity]"] == "1"
        assert form["line_items[0][price_data][unit_amount]"] == "1050"
        assert form["line_items[0][price_data][currency]"] == "usd"
        assert form["line_items[0][price_data][product_data][name]"] == "Logo Design Sprint"
        assert form["metadata[contest_id]"] == "abc"
        assert form["metadata[participant_email]"] == "bob@example.com"
        assert form["success_url"].endswith("session_id={CHECKOUT_SESSION_ID}")

    async def test_rejected_request_is_upstream_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": {"message": "Invalid currency"}})

        with pytest.raises(UpstreamError) as exc_info:
            await create_session(make_gateway(handler))
        assert "Invalid currency" in exc_info.value.message

    async def test_network_failure_is_upstream_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError):
            await create_session(make_gateway(handler))


class TestRetrieveCheckoutSession:
    async def test_maps_paid_session(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path == "/v1/checkout/sessions/cs_test_a1"
            return httpx.Response(200, json={
                "id": "cs_test_a1",
                "payment_status": "paid",
                "amount_total": 1050,
                "currency": "usd",
                "payment_intent": "pi_123",
                "customer_details": {"email": "bob@example.com"},
                "metadata": {"contest_id": "abc", "participant_email": "bob@example.com"},
            })

        details = await make_gateway(handler).retrieve_checkout_session("cs_test_a1")

        assert details.payment_status == "paid"
        assert details.amount == 10.5
        assert details.currency == "usd"
        assert details.transaction_id == "pi_123"
        assert details.customer_email == "bob@example.com"
        assert details.metadata["contest_id"] == "abc"

    async def test_expanded_payment_intent(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=json.dumps({
                "id": "cs_test_a1",
                "payment_status": "unpaid",
                "amount_total": 500,
                "currency": "jpy",
                "payment_intent": {"id": "pi_456"},
            }))

        details = await make_gateway(handler).retrieve_checkout_session("cs_test_a1")

        assert details.transaction_id == "pi_456"
        assert details.amount == 500.0
        assert details.metadata == {}

    async def test_missing_session(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": {"message": "No such checkout session"}})

        with pytest.raises(NotFoundError):
            await make_gateway(handler).retrieve_checkout_session("cs_missing")

    async def test_server_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="upstream exploded")

        with pytest.raises(UpstreamError):
            await make_gateway(handler).retrieve_checkout_session("cs_test_a1")


class TestMinorUnits:
    def test_conversion(self) -> None:
        gateway = StripeGateway({"secret_key": "sk_test_123"})
        assert gateway.to_minor_units(19.99, "usd") == 1999
        assert gateway.to_minor_units(500, "JPY") == 500
        assert gateway.from_minor_units(1999, "usd") == 19.99


class TestFactory:
    def test_from_settings(self, settings) -> None:
        gateway = PaymentGatewayFactory.from_settings(settings)
        assert isinstance(gateway, StripeGateway)
        assert gateway.secret_key == "sk_test_123"

    def test_unknown_gateway_in_settings(self, settings) -> None:
        settings.payment_gateway = "cashbox"
        with pytest.raises(ValueError):
            PaymentGatewayFactory.from_settings(settings)

    def test_unknown_gateway(self) -> None:
        with pytest.raises(ValueError):
            PaymentGatewayFactory.get_gateway("cashbox", {"secret_key": "x"})

    def test_missing_secret_key(self) -> None:
        with pytest.raises(ValueError):
            PaymentGatewayFactory.get_gateway("stripe", {})
