from __future__ import annotations

from fastapi import FastAPI

from crypto_gateway.api.routes import router
from crypto_gateway.config.settings import get_settings
from crypto_gateway.integrations.crypto_rest import CryptoRestClient


def _build_crypto_client() -> CryptoRestClient:
    return CryptoRestClient.from_settings(app.state.get_settings())


app = FastAPI(title="Crypto Order Gateway", version="0.1.0")
app.include_router(router, prefix="/v1")

# NOTE: lazy-loaded so app import does not require env during tests.
app.state.get_settings = get_settings
app.state.get_crypto_client = _build_crypto_client
