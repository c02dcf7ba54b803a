# token_deployer/models/deployed_token.py
from datetime import datetime
from token_deployer.models import db


def _iso(dt):
    return dt.replace(microsecond=0).isoformat() + "Z" if dt else None


class DeployedToken(db.Model):
    """Registro inmutable de un despliegue; no hay update ni delete."""

    __tablename__ = "deployed_tokens"

    id = db.Column(db.Integer, primary_key=True)
    wallet_address = db.Column(db.Text, index=True, nullable=False)   # siempre en minúsculas
    token_name = db.Column(db.Text, nullable=False)
    token_symbol = db.Column(db.Text, nullable=False)
    token_supply = db.Column(db.Text, nullable=False)                 # texto exacto, sin float
    contract_address = db.Column(db.Text, unique=True, nullable=False)
    chain_id = db.Column(db.Integer, nullable=False)
    deployed_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "walletAddress": self.wallet_address,
            "tokenName": self.token_name,
            "tokenSymbol": self.token_symbol,
            "tokenSupply": self.token_supply,
            "contractAddress": self.contract_address,
            "chainId": self.chain_id,
            "deployedAt": _iso(self.deployed_at),
        }
