import requests
from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError

from crypto_gateway.errors import OrderRejectedError, OrderSerializationError, OrderValidationError
from crypto_gateway.schemas.crypto_order import CryptoOrderCreate, CryptoOrderResult

router = APIRouter()


def _crypto_client(request: Request):
    return request.app.state.get_crypto_client()


def _upstream_error(exc: requests.RequestException) -> HTTPException:
    if exc.response is not None:
        return HTTPException(status_code=502, detail=f'UPSTREAM_HTTP_ERROR status={exc.response.status_code}')
    return HTTPException(status_code=502, detail=f'UPSTREAM_UNAVAILABLE {type(exc).__name__}')


def _upstream_malformed() -> HTTPException:
    return HTTPException(status_code=502, detail='UPSTREAM_MALFORMED_RESPONSE')


@router.post('/crypto/orders')
def create_crypto_order(req: CryptoOrderCreate, request: Request):
    client = _crypto_client(request)
    try:
        result = client.place_crypto_order(req.currency_pair_id, req)
    except (OrderValidationError, OrderSerializationError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except requests.RequestException as exc:
        raise _upstream_error(exc) from exc
    except ValidationError as exc:
        raise _upstream_malformed() from exc
    return result.model_dump(by_alias=True)


@router.get('/crypto/orders/{order_id}')
def get_crypto_order(order_id: str, request: Request):
    client = _crypto_client(request)
    try:
        result = client.get_crypto_order(order_id)
    except requests.RequestException as exc:
        raise _upstream_error(exc) from exc
    except ValidationError as exc:
        raise _upstream_malformed() from exc
    return result.model_dump(by_alias=True)


@router.post('/crypto/orders/{order_id}/cancel')
def cancel_crypto_order(order_id: str, request: Request):
    client = _crypto_client(request)
    try:
        CryptoOrderResult(id=order_id).with_client(client).cancel()
    except OrderRejectedError as exc:
        raise HTTPException(status_code=409, detail=exc.reason) from exc
    except requests.RequestException as exc:
        raise _upstream_error(exc) from exc
    except ValidationError as exc:
        raise _upstream_malformed() from exc
    return {'order_id': order_id, 'canceled': True}
