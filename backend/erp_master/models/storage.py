from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class StoredDocument(db.Model):
    """
    Durable copy of the shared document, one row per document key.

    The row is replaced wholesale on every commit. The table mirrors the shape
    of the remote erp_storage table so a payload can move between the two
    unchanged.
    """
    __tablename__ = "erp_storage"

    id = db.Column(db.String(128), primary_key=True)
    payload = db.Column(db.JSON, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "payload": self.payload,
            "updated_at": to_utc_z(self.updated_at),
        }
