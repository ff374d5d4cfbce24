from __future__ import annotations

import json
import math
import uuid
from decimal import ROUND_HALF_UP, Decimal, localcontext

from crypto_gateway.errors import OrderSerializationError, OrderValidationError
from crypto_gateway.schemas.crypto_order import CryptoOrderOpts, CryptoOrderPayload, CurrencyPair

# enough digits for any finite float's integer part
_ROUNDING_PRECISION = 400


def round_half_away_from_zero(value: float) -> float:
    if not math.isfinite(value):
        raise OrderValidationError(f"cannot round non-finite value {value!r}")
    # ROUND_HALF_UP in decimal rounds ties away from zero; round() would round to even
    with localcontext() as ctx:
        ctx.prec = _ROUNDING_PRECISION
        return float(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def truncate_to_cents(price: float) -> float:
    scaled = price * 100
    if not math.isfinite(scaled):
        raise OrderValidationError(f"price must be a finite number of cents, got {price!r}")
    return int(scaled) / 100


def derive_quantity(opts: CryptoOrderOpts) -> float:
    if not math.isfinite(opts.quantity):
        raise OrderValidationError(f"quantity must be a finite number, got {opts.quantity!r}")
    if opts.quantity:
        return opts.quantity

    if not math.isfinite(opts.price) or opts.price <= 0:
        raise OrderValidationError(
            f"price must be > 0 to size an order by amount_in_dollars, got {opts.price!r}"
        )
    if not math.isfinite(opts.amount_in_dollars):
        raise OrderValidationError(
            f"amount_in_dollars must be a finite number, got {opts.amount_in_dollars!r}"
        )
    quantity = opts.amount_in_dollars / opts.price
    if not math.isfinite(quantity):
        raise OrderValidationError(
            f"amount_in_dollars / price overflows: {opts.amount_in_dollars!r} / {opts.price!r}"
        )
    return round_half_away_from_zero(quantity)


def new_ref_id() -> str:
    return str(uuid.uuid4())


def build_order_payload(
    account_id: str,
    pair: CurrencyPair | str,
    opts: CryptoOrderOpts,
) -> CryptoOrderPayload:
    """Turn an order intent into the create-order wire payload.

    Quantity is derived from the dollar amount when not given, the price is
    truncated to whole cents and every payload gets a fresh ``ref_id`` so the
    service can deduplicate resubmissions.
    """
    pair_id = pair.id if isinstance(pair, CurrencyPair) else str(pair)

    return CryptoOrderPayload(
        account_id=account_id,
        currency_pair_id=pair_id,
        quantity=derive_quantity(opts),
        price=truncate_to_cents(opts.price),
        ref_id=new_ref_id(),
        side=opts.side.value.lower(),
        time_in_force=opts.time_in_force.value.lower(),
        type=opts.type.value.lower(),
    )


def serialize_payload(payload: CryptoOrderPayload) -> str:
    try:
        return json.dumps(payload.to_wire(), allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise OrderSerializationError(f"could not encode order payload: {exc}") from exc
