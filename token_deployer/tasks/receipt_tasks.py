# token_deployer/tasks/receipt_tasks.py
from datetime import datetime
from typing import Optional

from celery import shared_task
from hexbytes import HexBytes

from token_deployer.models import db, ReceiptJob
from token_deployer.services.web3_client import get_w3


def _to_hex(x):
    return "0x" + bytes(x).hex() if isinstance(x, (bytes, HexBytes)) else x


def clean_receipt(receipt: Optional[dict]) -> Optional[dict]:
    if not receipt:
        return None
    cleaned = {
        "transactionHash": _to_hex(receipt.get("transactionHash")),
        "blockHash": _to_hex(receipt.get("blockHash")),
        "blockNumber": receipt.get("blockNumber"),
        "gasUsed": receipt.get("gasUsed"),
        "effectiveGasPrice": receipt.get("effectiveGasPrice"),
        "status": receipt.get("status"),
        "contractAddress": receipt.get("contractAddress"),
    }
    return {k: v for k, v in cleaned.items() if v is not None}


@shared_task(name="receipt.wait")
def wait_receipt(job_id: int, tx_hash: str, timeout: float = 600):
    """
    Espera el receipt de `tx_hash` y actualiza el ReceiptJob:
    queued -> pending -> done | error.
    """
    job = db.session.get(ReceiptJob, job_id)
    if not job:
        return {"error": f"ReceiptJob id {job_id} not found"}

    job.status = "pending"
    job.updated_at = datetime.utcnow()
    db.session.commit()

    try:
        w3 = get_w3()
        receipt = clean_receipt(dict(w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)))
    except Exception as e:
        job.status = "error"
        job.result = {"error": str(e)}
        job.updated_at = datetime.utcnow()
        db.session.commit()
        raise

    job.status = "done" if receipt.get("status") != 0 else "error"
    job.result = {"tx_hash": tx_hash, "receipt": receipt}
    job.updated_at = datetime.utcnow()
    db.session.commit()
    return {"tx_hash": tx_hash, "status": job.status}
