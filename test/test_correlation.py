"""Tests for correlation context propagation through callback URLs."""

from urllib.parse import parse_qsl, urlsplit

from callbridge.routing.models import CallContext, CallDirection
from callbridge.telephony.correlation import CorrelationToken, callback_url


def _query(url: str) -> dict[str, str]:
    return dict(parse_qsl(urlsplit(url).query))


class TestCorrelationToken:
    def test_round_trip_through_callback_url(self) -> None:
        token = CorrelationToken(contact_id="123", owner_id=None, customer_phone="+15550000000")

        url = callback_url("https://bridge.example.com", "/call-status", token)
        decoded = CorrelationToken.from_query(_query(url))

        assert decoded.contact_id == "123"
        assert decoded.owner_id is None
        assert decoded.customer_phone == "+15550000000"
        assert "ownerId" not in _query(url)

    def test_literal_undefined_decodes_as_absent(self) -> None:
        decoded = CorrelationToken.from_query(
            {"contactId": "123", "ownerId": "undefined", "customerPhone": "+15550000000"}
        )

        assert decoded.contact_id == "123"
        assert decoded.owner_id is None
        assert decoded.customer_phone == "+15550000000"

    def test_empty_query_is_all_unknown(self) -> None:
        decoded = CorrelationToken.from_query({})

        assert decoded == CorrelationToken()
        assert decoded.to_query() == {}

    def test_is_incoming_flag(self) -> None:
        assert CorrelationToken.from_query({"isIncoming": "true"}).is_incoming is True
        assert CorrelationToken.from_query({"isIncoming": "false"}).is_incoming is False
        assert CorrelationToken.from_query({"isIncoming": "undefined"}).is_incoming is None
        assert CorrelationToken.from_query({"isIncoming": "maybe"}).is_incoming is None

    def test_from_inbound_context(self) -> None:
        context = CallContext(
            direction=CallDirection.INBOUND,
            agent_identity="janice@glive.ca",
            caller_number="+14506001665",
            target_number="+14506001665",
            customer_number="+15551234567",
        )

        token = CorrelationToken.from_context(context)

        assert token.customer_phone == "+15551234567"
        assert token.is_incoming is True
        assert token.agent_number == "+14506001665"
        assert token.to_query() == {
            "customerPhone": "+15551234567",
            "agentNumber": "+14506001665",
            "isIncoming": "true",
        }

    def test_callback_url_without_token(self) -> None:
        assert callback_url("https://bridge.example.com/", "/call-status") == (
            "https://bridge.example.com/call-status"
        )

    def test_values_are_url_encoded(self) -> None:
        url = callback_url(
            "https://bridge.example.com", "/call-status", CorrelationToken(customer_phone="+1 555")
        )

        assert "customerPhone=%2B1+555" in url
        assert _query(url)["customerPhone"] == "+1 555"
