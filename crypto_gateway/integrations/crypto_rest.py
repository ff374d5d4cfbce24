from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from crypto_gateway.config.settings import Settings
from crypto_gateway.errors import OrderRejectedError, OrderValidationError
from crypto_gateway.schemas.crypto_order import CryptoOrderOpts, CryptoOrderResult, CurrencyPair
from crypto_gateway.services.order_builder import build_order_payload, serialize_payload


class CryptoRestClient:
    """Crypto order REST client: place, cancel and look up orders."""

    DEFAULT_BASE_URL = "https://nummus.robinhood.com"

    def __init__(
        self,
        account_id: str,
        token: Optional[str] = None,
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout: float = 5.0,
    ) -> None:
        if not account_id:
            raise ValueError("account_id is required")

        self.account_id = account_id
        self.token = token
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.session = session or requests
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[Any] = None) -> "CryptoRestClient":
        return cls(
            account_id=settings.CRYPTO_ACCOUNT_ID,
            token=settings.CRYPTO_API_TOKEN,
            session=session,
            base_url=settings.CRYPTO_API_BASE_URL,
            timeout=settings.CRYPTO_HTTP_TIMEOUT,
        )

    @property
    def orders_url(self) -> str:
        return f"{self.base_url}/orders/"

    def do_and_decode(self, request: requests.Request) -> Dict[str, Any]:
        headers = dict(request.headers or {})
        if self.token:
            headers.setdefault("authorization", f"Bearer {self.token}")

        response = self.session.request(
            request.method,
            request.url,
            data=request.data or None,
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def get_and_decode(self, url: str) -> Dict[str, Any]:
        return self.do_and_decode(requests.Request("GET", url))

    def place_crypto_order(self, pair: CurrencyPair | str, opts: CryptoOrderOpts) -> CryptoOrderResult:
        payload = build_order_payload(self.account_id, pair, opts)
        body = serialize_payload(payload)

        print(
            "[CRYPTO][order_place] "
            f"pair={payload.currency_pair_id} side={payload.side} type={payload.type} "
            f"quantity={payload.quantity} price={payload.price} ref_id={payload.ref_id}",
            flush=True,
        )
        request = requests.Request(
            "POST",
            self.orders_url,
            data=body,
            headers={"Content-Type": "application/json"},
        )
        return CryptoOrderResult.from_response(self.do_and_decode(request), self)

    def cancel_crypto_order(self, order: CryptoOrderResult) -> None:
        url = order.cancel_url
        if not url:
            if not order.id:
                raise OrderValidationError("order has neither an id nor a cancel url")
            url = f"{self.orders_url}{order.id}/cancel/"

        print(f"[CRYPTO][order_cancel] order_id={order.id} url={url}", flush=True)
        output = CryptoOrderResult.from_response(
            self.do_and_decode(requests.Request("POST", url)),
            self,
        )
        if output.reject_reason:
            print(
                f"[CRYPTO][order_cancel_rejected] order_id={order.id} reason={output.reject_reason}",
                flush=True,
            )
            raise OrderRejectedError(output.reject_reason)

    def get_crypto_order(self, order_id: str) -> CryptoOrderResult:
        if not order_id:
            raise OrderValidationError("order_id is required")
        return CryptoOrderResult.from_response(self.get_and_decode(f"{self.orders_url}{order_id}"), self)
