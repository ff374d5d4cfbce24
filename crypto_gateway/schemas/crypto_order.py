from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from crypto_gateway.errors import TransportNotAttachedError

if TYPE_CHECKING:
    from crypto_gateway.integrations.crypto_rest import CryptoRestClient


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    MARKET = "market"
    LIMIT = "limit"
    STOP = "stop"
    STOP_LIMIT = "stop_limit"


class TimeInForce(str, Enum):
    GTC = "gtc"
    GFD = "gfd"
    IOC = "ioc"
    OPG = "opg"


class CurrencyPair(BaseModel):
    id: str
    symbol: str | None = None
    name: str | None = None
    code: str | None = None
    tradability: str | None = None


class CryptoOrderOpts(BaseModel):
    """What the caller wants to trade.

    Either ``quantity`` or ``amount_in_dollars`` sizes the order; when
    ``quantity`` is zero it is derived from the dollar amount and ``price``.
    ``extended_hours``, ``stop`` and ``force`` are accepted for callers but
    are not sent to the crypto endpoint.
    """

    side: OrderSide
    type: OrderType = OrderType.MARKET
    amount_in_dollars: float = 0.0
    quantity: float = 0.0
    price: float = 0.0
    time_in_force: TimeInForce = TimeInForce.GTC
    extended_hours: bool = False
    stop: bool = False
    force: bool = False

    @field_validator("side", "type", "time_in_force", mode="before")
    @classmethod
    def normalize_enum(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class CryptoOrderCreate(CryptoOrderOpts):
    currency_pair_id: str


class CryptoOrderPayload(BaseModel):
    account_id: str = ""
    currency_pair_id: str = ""
    price: float = 0.0
    ref_id: str = ""
    side: str = ""
    time_in_force: str = ""
    quantity: float = 0.0
    type: str = ""

    def to_wire(self) -> dict[str, Any]:
        # unset options must not reach the API as "" or 0
        return {k: v for k, v in self.model_dump().items() if v not in ("", 0, None)}


_STRING_FIELDS = (
    "account",
    "cancel_url",
    "created_at",
    "cumulative_quantity",
    "currency_pair_id",
    "id",
    "last_transaction_at",
    "quantity",
    "reject_reason",
    "side",
    "state",
    "time_in_force",
    "type",
    "url",
    "updated_at",
)


class CryptoOrderResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    account: str = ""
    average_price: float = 0.0
    cancel_url: str = Field(default="", alias="cancel")
    created_at: str = ""
    cumulative_quantity: str = ""
    currency_pair_id: str = ""
    executions: list[dict[str, Any]] = Field(default_factory=list)
    id: str = ""
    last_transaction_at: str = ""
    price: float = 0.0
    quantity: str = ""
    reject_reason: str = ""
    side: str = ""
    state: str = ""
    stop_price: float = 0.0
    time_in_force: str = ""
    type: str = ""
    url: str = ""
    updated_at: str = ""

    _client: Any = PrivateAttr(default=None)

    @field_validator("average_price", "price", "stop_price", mode="before")
    @classmethod
    def decode_string_float(cls, value: Any) -> Any:
        if value is None or value == "":
            return 0.0
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError as exc:
                raise ValueError(f"invalid numeric value: {value!r}") from exc
        return value

    @field_validator(*_STRING_FIELDS, mode="before")
    @classmethod
    def null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("executions", mode="before")
    @classmethod
    def null_to_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def from_response(cls, payload: Any, client: CryptoRestClient) -> CryptoOrderResult:
        result = cls.model_validate(payload)
        result._client = client
        return result

    def with_client(self, client: CryptoRestClient) -> CryptoOrderResult:
        bound = self.model_copy()
        bound._client = client
        return bound

    @property
    def client(self) -> CryptoRestClient | None:
        return self._client

    def _require_client(self) -> CryptoRestClient:
        if self._client is None:
            raise TransportNotAttachedError(self.id or None)
        return self._client

    def cancel(self) -> None:
        """Cancel this order through the client that fetched it.

        Raises ``OrderRejectedError`` when the service answers with a
        reject reason.
        """
        self._require_client().cancel_crypto_order(self)

    def refresh(self) -> CryptoOrderResult:
        return self._require_client().get_crypto_order(self.id)
