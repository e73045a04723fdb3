from tourpay.extensions import db
from tourpay.models.base import PKType, TimestampMixin


class TourAvailability(TimestampMixin, db.Model):
    __tablename__ = "tour_availabilities"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    tour_id = db.Column(PKType, db.ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    max_participants = db.Column(db.Integer, nullable=False)
    booked_participants = db.Column(db.Integer, nullable=False, default=0)
    is_available = db.Column(db.Boolean, nullable=False, default=True)

    tour = db.relationship("Tour", back_populates="availabilities")

    __table_args__ = (
        db.UniqueConstraint("tour_id", "date", name="uq_tour_availability_date"),
        db.CheckConstraint("booked_participants >= 0", name="ck_availability_booked_non_negative"),
    )

    @property
    def available_spots(self):
        return self.max_participants - self.booked_participants
