# token_deployer/services/web3_client.py
import os
from functools import lru_cache
from typing import Optional

from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from token_deployer.errors import WalletUnavailable


def make_w3(uri: Optional[str] = None, use_poa: Optional[bool] = None) -> Web3:
    uri = uri or os.getenv("WEB3_PROVIDER_URI")
    if not uri:
        raise WalletUnavailable("WEB3_PROVIDER_URI no está definido: no hay wallet disponible")

    w3 = Web3(Web3.HTTPProvider(uri, request_kwargs={"timeout": 30}))

    if use_poa is None:
        use_poa = os.getenv("WEB3_USE_POA", "false").lower() in ("1", "true", "yes", "on")
    if use_poa:
        w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

    return w3


@lru_cache(maxsize=1)
def get_w3() -> Web3:
    """Singleton perezoso: se crea la primera vez y se reusa."""
    return make_w3()
