from __future__ import annotations

from ..extensions import db
from .base import SerializeMixin, TimestampMixin, serialize_value


DESTRUCTION_METHODS = frozenset({
    "mechanical_destruction", "chemical_destruction", "incineration", "shredding", "other",
})
MATERIAL_TYPES = frozenset({
    "alcoholic_beverages", "non_alcoholic_beverages", "food_products", "pharmaceuticals",
    "consumer_goods", "packaging_materials", "hazardous_materials", "other",
})
PACKAGING_TYPES = frozenset({
    "aluminum_cans", "plastic_bottles", "glass_bottles", "tetra_pak", "kegs", "drums",
    "pallets", "bulk", "mixed_packaging", "other",
})
UNITS_OF_MEASURE = frozenset({"cases", "pallets", "pounds", "kilograms", "gallons", "liters", "units", "tons"})
FINAL_DISPOSITIONS = frozenset({
    "landfill", "recycling", "composting", "incineration", "waste_to_energy", "reprocessing",
    "scrap_metal", "other",
})


class Job(SerializeMixin, TimestampMixin, db.Model):
    """
    Destruction job, created from an accepted estimate.

    Lifecycle: scheduled -> in_progress -> completed -> archived. Completing
    requires actual_completion_date; core destruction and scheduling fields
    lock at completed.
    """
    ENTITY_TYPE = "job"
    NUMBER_FIELD = "job_number"
    NUMBER_PREFIX = "JOB"

    __tablename__ = "jobs"
    __table_args__ = (
        db.Index("ix_jobs_status_scheduled", "status", "scheduled_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    job_number = db.Column(db.String(64), nullable=False, unique=True)
    job_name = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="scheduled", index=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    estimate_id = db.Column(db.Integer, db.ForeignKey("estimates.id"), nullable=True, index=True)
    estimate_number = db.Column(db.String(64), nullable=True)

    job_location_id = db.Column(db.String(64), nullable=True)
    scheduled_date = db.Column(db.Date, nullable=True)
    actual_start_date = db.Column(db.Date, nullable=True)
    actual_completion_date = db.Column(db.Date, nullable=True)
    destruction_method = db.Column(db.String(32), nullable=False, default="mechanical_destruction")
    destruction_description = db.Column(db.Text, nullable=True)
    requires_affidavit = db.Column(db.Boolean, nullable=False, default=False)
    special_handling_notes = db.Column(db.Text, nullable=True)

    started_timestamp = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_timestamp = db.Column(db.DateTime(timezone=True), nullable=True)
    archived_timestamp = db.Column(db.DateTime(timezone=True), nullable=True)

    estimate = db.relationship("Estimate", backref=db.backref("jobs", lazy=True))
    materials = db.relationship(
        "JobMaterial",
        backref="job",
        cascade="all, delete-orphan",
        order_by="JobMaterial.sort_order",
        lazy=True,
    )

    def to_dict(self, include_children: bool = True) -> dict:
        data = super().to_dict()
        if include_children:
            data["materials"] = [m.to_dict() for m in self.materials]
        return data


class JobMaterial(db.Model):
    """Descriptive record of what was destroyed; never feeds totals."""
    __tablename__ = "job_materials"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    material_type = db.Column(db.String(32), nullable=False, default="other")
    packaging_type = db.Column(db.String(32), nullable=False, default="other")
    quantity = db.Column(db.Float, nullable=False, default=0.0)
    unit_of_measure = db.Column(db.String(16), nullable=False, default="units")
    container_type = db.Column(db.String(64), nullable=True)
    final_disposition = db.Column(db.String(32), nullable=False, default="other")
    description = db.Column(db.Text, nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "job_id": self.job_id,
            "material_type": self.material_type,
            "packaging_type": self.packaging_type,
            "quantity": self.quantity,
            "unit_of_measure": self.unit_of_measure,
            "container_type": self.container_type,
            "final_disposition": self.final_disposition,
            "description": self.description,
            "sort_order": self.sort_order,
            "created_at": serialize_value(self.created_at),
        }
