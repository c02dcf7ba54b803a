# token_deployer/services/token_store.py
import logging
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from token_deployer.errors import StoreError, ValidationError
from token_deployer.models import db
from token_deployer.models.deployed_token import DeployedToken

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "walletAddress",
    "tokenName",
    "tokenSymbol",
    "tokenSupply",
    "contractAddress",
    "chainId",
)


def _norm_wallet(addr: str) -> str:
    return (addr or "").strip().lower()


def _missing(data: Dict[str, Any]) -> List[str]:
    return [f for f in REQUIRED_FIELDS if data.get(f) is None or str(data.get(f)).strip() == ""]


def save(data: Dict[str, Any]) -> DeployedToken:
    """
    Inserta un despliegue. La wallet se guarda en minúsculas y el supply
    como texto exacto. `id` y `deployed_at` los asigna la DB.
    """
    missing = _missing(data)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    try:
        chain_id = int(data["chainId"])
    except (TypeError, ValueError):
        raise ValidationError("chainId must be an integer")

    rec = DeployedToken(
        wallet_address=_norm_wallet(data["walletAddress"]),
        token_name=str(data["tokenName"]),
        token_symbol=str(data["tokenSymbol"]),
        token_supply=str(data["tokenSupply"]),
        contract_address=str(data["contractAddress"]).strip(),
        chain_id=chain_id,
    )
    try:
        db.session.add(rec)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Error guardando token %s", data.get("contractAddress"))
        raise StoreError("Failed to save token") from e
    return rec


def list_by_wallet(wallet_address: str) -> List[DeployedToken]:
    """Tokens de una wallet (match case-insensitive), en orden de inserción."""
    try:
        return (
            DeployedToken.query
            .filter(DeployedToken.wallet_address == _norm_wallet(wallet_address))
            .order_by(DeployedToken.id.asc())
            .all()
        )
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Error listando tokens de %s", wallet_address)
        raise StoreError("Failed to fetch tokens") from e
