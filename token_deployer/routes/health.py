from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from token_deployer.models import db

bp = Blueprint("health", __name__)

@bp.get("/healthz")
def healthz():
    """
    Healthcheck (incluye ping a la DB)
    ---
    tags:
      - Health
    responses:
      200:
        description: OK
      503:
        description: DB no disponible
    """
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        db.session.rollback()
        return jsonify({"ok": False, "db": False}), 503
    return jsonify({"ok": True, "db": True}), 200
