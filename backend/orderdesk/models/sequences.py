from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class DisplayIdSequence(db.Model):
    """
    Atomic counters for human-readable display ids.

    WHY: "read the last order, add one" races under concurrent checkouts.
    The counter row is bumped with a single UPDATE instead.
    """
    __tablename__ = "display_id_sequences"
    __table_args__ = (
        db.UniqueConstraint("sequence_key", name="uq_display_id_sequences_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sequence_key = db.Column(db.String(32), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sequence_key": self.sequence_key,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
