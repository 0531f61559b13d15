"""
Booking model: the confirmed assignment of one artist to one slot.

Key design decisions:
- Partial unique index on slot_id WHERE status = 'CONFIRMED' is the
  per-slot mutex: concurrent confirmations race on this index and every
  loser gets an IntegrityError, whichever process it runs in
- Cancelled bookings are kept for history, which is why the index is
  partial rather than a plain unique column
- `conditions_snapshot` freezes the resolved conditions at confirmation
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Index, CheckConstraint, text

from stagebook.db.base import Base, JSONType, TimestampMixin


class BookingRow(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    slot_id = Column(Integer, ForeignKey("slots.id"), nullable=False, index=True)
    artist_id = Column(String(64), nullable=False, index=True)
    application_id = Column(Integer, ForeignKey("applications.id"), nullable=True)
    status = Column(String(16), nullable=False, default="CONFIRMED")
    conditions_snapshot = Column(JSONType, nullable=False, default=dict)
    option = Column(JSONType, nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('CONFIRMED', 'CANCELLED')", name="check_booking_status"),
        Index(
            "uq_bookings_confirmed_slot",
            "slot_id",
            unique=True,
            postgresql_where=text("status = 'CONFIRMED'"),
            sqlite_where=text("status = 'CONFIRMED'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, slot={self.slot_id}, artist={self.artist_id}, status={self.status})>"
