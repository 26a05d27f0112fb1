from __future__ import annotations

from ..extensions import db
from .base import SerializeMixin, TimestampMixin


class Affidavit(SerializeMixin, TimestampMixin, db.Model):
    """
    Affidavit of destruction for a completed job.

    Lifecycle: pending -> issued -> locked; issued | locked -> revoked.
    Content freezes at issued. Revocation is an audit marker, never a
    delete: the record stays queryable with its reason and timestamp.
    """
    ENTITY_TYPE = "affidavit"
    NUMBER_FIELD = "affidavit_number"
    NUMBER_PREFIX = "AFF"

    __tablename__ = "affidavits"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    affidavit_number = db.Column(db.String(64), nullable=False, unique=True)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    job_id = db.Column(db.Integer, db.ForeignKey("jobs.id"), nullable=False, index=True)
    job_reference = db.Column(db.String(64), nullable=True)
    customer_name = db.Column(db.String(255), nullable=True)
    description_of_materials = db.Column(db.Text, nullable=True)
    description_of_process = db.Column(db.Text, nullable=True)
    authorized_by = db.Column(db.String(255), nullable=True)
    witness_name = db.Column(db.String(255), nullable=True)
    # [{filename, url}] photos / video references from the job
    media_references = db.Column(db.JSON, nullable=False, default=list)

    date_issued = db.Column(db.DateTime(timezone=True), nullable=True)
    locked_timestamp = db.Column(db.DateTime(timezone=True), nullable=True)

    # Revocation audit trail
    revoked_timestamp = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_by = db.Column(db.String(255), nullable=True)
    revocation_reason = db.Column(db.Text, nullable=True)

    job = db.relationship("Job", backref=db.backref("affidavits", lazy=True))
