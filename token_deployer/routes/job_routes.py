# token_deployer/routes/job_routes.py
from flask import Blueprint, jsonify, request

from token_deployer.models import db, ReceiptJob

bp = Blueprint("jobs", __name__)


def _iso(dt):
    return dt.replace(microsecond=0).isoformat() + "Z" if dt else None


@bp.post("/receipt")
def watch_receipt():
    """
    Jobs: esperar la confirmación de una transacción
    ---
    tags:
      - Jobs
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - txHash
          properties:
            txHash:
              type: string
              example: "0x6f1c0a1e4d2b7c1f9a55d6f7a3e0b1c2d4e5f60718293a4b5c6d7e8f90a1b2c3"
            label:
              type: string
              description: Etiqueta libre (p.ej. nombre de la función).
              example: "mint"
    responses:
      202:
        description: Aceptado (job encolado)
      400:
        description: Falta txHash
      501:
        description: Task no disponible
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"ok": False, "error": "Falta 'txHash'"}), 400
    tx_hash = (data.get("txHash") or "").strip()
    label = (data.get("label") or "").strip() or None

    if not tx_hash:
        return jsonify({"ok": False, "error": "Falta 'txHash'"}), 400

    # Import diferido de la task
    try:
        from token_deployer.tasks.receipt_tasks import wait_receipt
    except ImportError:
        return jsonify({"ok": False, "error": "Task 'receipt.wait' no disponible"}), 501

    job = ReceiptJob(status="queued", tx_hash=tx_hash, label=label)
    db.session.add(job)
    db.session.commit()

    async_res = wait_receipt.delay(job.id, tx_hash)
    job.task_id = async_res.id
    db.session.commit()

    return jsonify({"ok": True, "job_id": job.id, "task_id": async_res.id, "status": "queued"}), 202


@bp.get("/<int:job_id>")
def job_status(job_id: int):
    """
    Jobs: estado
    ---
    tags:
      - Jobs
    parameters:
      - in: path
        name: job_id
        required: true
        type: integer
    responses:
      200: {description: OK}
      404: {description: No encontrado}
    """
    job = db.session.get(ReceiptJob, job_id)
    if not job:
        return jsonify({"ok": False, "error": "job no encontrado"}), 404
    return jsonify({
        "ok": True,
        "job_id": job.id,
        "task_id": job.task_id,
        "status": job.status,
        "tx_hash": job.tx_hash,
        "label": job.label,
        "result": job.result,
        "created_at": _iso(job.created_at),
        "updated_at": _iso(job.updated_at),
    }), 200
