# token_deployer/config.py
import os


def _target_chain() -> dict:
    """Network definition handed to the wallet on switch/add requests."""
    chain_id = int(os.environ.get("TARGET_CHAIN_ID", "10143"), 0)
    currency = os.environ.get("TARGET_CHAIN_CURRENCY", "MON")
    return {
        "chainId": hex(chain_id),
        "chainName": os.environ.get("TARGET_CHAIN_NAME", "Monad Testnet"),
        "rpcUrls": [os.environ.get("TARGET_CHAIN_RPC_URL", "https://testnet-rpc.monad.xyz/")],
        "nativeCurrency": {"name": currency, "symbol": currency, "decimals": 18},
        "blockExplorerUrls": [
            os.environ.get("TARGET_CHAIN_EXPLORER_URL", "https://testnet.monadexplorer.com/")
        ],
    }


class BaseConfig:
    CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://redis:6379/0")
    CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", "redis://redis:6379/0")

    # --- DB ---
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", "postgresql+psycopg2://app_user:app_pass@db:5432/app_db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False

    # --- Web3 / wallet ---
    WEB3_PROVIDER_URI = os.environ.get("WEB3_PROVIDER_URI")
    WEB3_USE_POA = os.environ.get("WEB3_USE_POA", "false").lower() in ("1", "true", "yes", "on")
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")
    TARGET_CHAIN = _target_chain()
    RECEIPT_TIMEOUT = float(os.environ.get("RECEIPT_TIMEOUT", "600"))

    # --- Compilador / API ---
    SOLC_VERSION = os.environ.get("SOLC_VERSION", "0.8.20")
    DEPLOYER_API_URL = os.environ.get("DEPLOYER_API_URL", "http://localhost:5000")
    HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "30"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    ENV = "development"


class ProductionConfig(BaseConfig):
    DEBUG = False
    ENV = "production"


class TestingConfig(BaseConfig):
    TESTING = True
    DEBUG = False
    ENV = "testing"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    CELERY_BROKER_URL = "memory://"
    CELERY_RESULT_BACKEND = "cache+memory://"
