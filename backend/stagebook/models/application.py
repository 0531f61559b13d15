"""
Application model: an artist's request to fill a slot.

Key design decisions:
- Partial unique index on (slot_id, artist_id) for non-cancelled rows: an
  artist can re-apply after withdrawing, never hold two live applications
- `created_at` orders competing applications (oldest first)
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Index, CheckConstraint, text

from stagebook.db.base import Base, JSONType, TimestampMixin


class ApplicationRow(Base, TimestampMixin):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    slot_id = Column(Integer, ForeignKey("slots.id"), nullable=False, index=True)
    artist_id = Column(String(64), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="PENDING")
    option = Column(JSONType, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'REJECTED', 'CANCELLED')",
            name="check_application_status",
        ),
        Index(
            "uq_applications_active_artist",
            "slot_id",
            "artist_id",
            unique=True,
            postgresql_where=text("status <> 'CANCELLED'"),
            sqlite_where=text("status <> 'CANCELLED'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, slot={self.slot_id}, artist={self.artist_id}, status={self.status})>"
