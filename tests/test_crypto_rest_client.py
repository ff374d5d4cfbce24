import json
import unittest
from unittest.mock import MagicMock

import requests

from crypto_gateway.errors import OrderRejectedError, OrderValidationError, TransportNotAttachedError
from crypto_gateway.integrations.crypto_rest import CryptoRestClient
from crypto_gateway.schemas.crypto_order import CryptoOrderOpts, CryptoOrderResult, CurrencyPair


def _response(payload):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = payload
    return response


ORDER_PAYLOAD = {
    "account": "acct-1",
    "average_price": None,
    "cancel": "https://example.test/orders/ord-1/cancel/",
    "created_at": "2024-01-02T03:04:05.000000-05:00",
    "cumulative_quantity": "0.000000000000000000",
    "currency_pair_id": "pair-1",
    "executions": [],
    "id": "ord-1",
    "last_transaction_at": None,
    "price": "1234.50",
    "quantity": "3.000000000000000000",
    "ref_id": "ignored-by-result",
    "reject_reason": None,
    "side": "buy",
    "state": "unconfirmed",
    "stop_price": None,
    "time_in_force": "gtc",
    "type": "limit",
}


class TestCryptoRestClient(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.client = CryptoRestClient(
            account_id="acct-1",
            token="token-123",
            session=self.session,
            base_url="https://example.test/",
        )

    def test_place_order_posts_json_payload(self):
        self.session.request.return_value = _response(ORDER_PAYLOAD)

        result = self.client.place_crypto_order(
            CurrencyPair(id="pair-1"),
            CryptoOrderOpts(side="buy", type="limit", amount_in_dollars=100, price=33.339),
        )

        self.session.request.assert_called_once()
        args = self.session.request.call_args.args
        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(args, ("POST", "https://example.test/orders/"))
        self.assertEqual(kwargs["headers"]["Content-Type"], "application/json")
        self.assertEqual(kwargs["headers"]["authorization"], "Bearer token-123")
        self.assertEqual(kwargs["timeout"], 5.0)

        body = json.loads(kwargs["data"])
        self.assertEqual(body["account_id"], "acct-1")
        self.assertEqual(body["currency_pair_id"], "pair-1")
        self.assertEqual(body["price"], 33.33)
        self.assertEqual(body["quantity"], 3)
        self.assertEqual(body["side"], "buy")
        self.assertEqual(body["type"], "limit")
        self.assertEqual(body["time_in_force"], "gtc")
        self.assertIn("ref_id", body)

        self.assertEqual(result.id, "ord-1")
        self.assertEqual(result.price, 1234.50)
        self.assertEqual(result.average_price, 0.0)
        self.assertEqual(result.reject_reason, "")
        self.assertIs(result.client, self.client)

    def test_place_order_propagates_transport_error(self):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
        self.session.request.return_value = response

        with self.assertRaises(requests.HTTPError):
            self.client.place_crypto_order("pair-1", CryptoOrderOpts(side="buy", quantity=1, price=10))

    def test_place_order_with_invalid_sizing_makes_no_request(self):
        with self.assertRaises(OrderValidationError):
            self.client.place_crypto_order("pair-1", CryptoOrderOpts(side="buy", amount_in_dollars=50))

        self.session.request.assert_not_called()

    def test_get_order_uses_order_collection_url(self):
        self.session.request.return_value = _response(ORDER_PAYLOAD)

        result = self.client.get_crypto_order("ord-1")

        args = self.session.request.call_args.args
        self.assertEqual(args, ("GET", "https://example.test/orders/ord-1"))
        self.assertIsNone(self.session.request.call_args.kwargs["data"])
        self.assertEqual(result.state, "unconfirmed")
        self.assertIs(result.client, self.client)

    def test_without_token_no_authorization_header(self):
        client = CryptoRestClient(account_id="acct-1", session=self.session, base_url="https://example.test")
        self.session.request.return_value = _response(ORDER_PAYLOAD)

        client.get_crypto_order("ord-1")

        self.assertNotIn("authorization", self.session.request.call_args.kwargs["headers"])

    def test_cancel_uses_cancel_url_from_response(self):
        self.session.request.return_value = _response(ORDER_PAYLOAD)
        order = self.client.get_crypto_order("ord-1")
        self.session.request.return_value = _response({"id": "ord-1", "state": "canceled", "reject_reason": ""})

        order.cancel()

        args = self.session.request.call_args.args
        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(args, ("POST", "https://example.test/orders/ord-1/cancel/"))
        self.assertIsNone(kwargs["data"])

    def test_cancel_derives_url_when_missing(self):
        self.session.request.return_value = _response({**ORDER_PAYLOAD, "cancel": None, "id": "ord-9"})
        order = self.client.get_crypto_order("ord-9")
        self.session.request.return_value = _response({"reject_reason": ""})

        order.cancel()

        self.assertEqual(
            self.session.request.call_args.args,
            ("POST", "https://example.test/orders/ord-9/cancel/"),
        )

    def test_cancel_rejected_surfaces_reason(self):
        self.session.request.return_value = _response(ORDER_PAYLOAD)
        order = self.client.get_crypto_order("ord-1")
        self.session.request.return_value = _response({"reject_reason": "insufficient funds"})

        with self.assertRaises(OrderRejectedError) as ctx:
            order.cancel()

        self.assertIn("insufficient funds", str(ctx.exception))
        self.assertEqual(ctx.exception.reason, "insufficient funds")

    def test_cancel_without_transport_fails_fast(self):
        order = CryptoOrderResult(id="ord-1")

        with self.assertRaises(TransportNotAttachedError):
            order.cancel()
        with self.assertRaises(TransportNotAttachedError):
            order.refresh()

    def test_with_client_binds_a_copy(self):
        order = CryptoOrderResult(id="ord-1")
        self.session.request.return_value = _response({"reject_reason": ""})

        bound = order.with_client(self.client)
        bound.cancel()

        self.assertIsNone(order.client)
        self.assertEqual(
            self.session.request.call_args.args,
            ("POST", "https://example.test/orders/ord-1/cancel/"),
        )

    def test_refresh_returns_new_result(self):
        self.session.request.return_value = _response(ORDER_PAYLOAD)
        order = self.client.get_crypto_order("ord-1")
        self.session.request.return_value = _response({**ORDER_PAYLOAD, "state": "filled"})

        refreshed = order.refresh()

        self.assertIsNot(refreshed, order)
        self.assertEqual(refreshed.state, "filled")
        self.assertEqual(order.state, "unconfirmed")

    def test_requires_account_id(self):
        with self.assertRaises(ValueError):
            CryptoRestClient(account_id="", session=self.session)


if __name__ == "__main__":
    unittest.main()
