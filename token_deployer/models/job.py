from datetime import datetime
from token_deployer.models import db
from token_deployer.models.types import JSONBCompat

class ReceiptJob(db.Model):
    __tablename__ = "receipt_jobs"

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(db.String(50), index=True, unique=True, nullable=True)
    tx_hash = db.Column(db.String(66), index=True, nullable=False)
    label = db.Column(db.String(64), nullable=True)                  # p.ej. nombre de la función ejecutada
    status = db.Column(db.String(20), default="queued", index=True)  # queued|pending|done|error
    result = db.Column(JSONBCompat(), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
