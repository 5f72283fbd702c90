from sqlalchemy import Column, DateTime, Integer, String, Text, func

from consultation_service.database import Base


class Consultation(Base):
    __tablename__ = "consultations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=False)
    category = Column(String, nullable=False)            # form field projectType
    consultation_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    consultation_time = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="pending")
    payment_id = Column(String, index=True)              # Razorpay payment id
    payment_status = Column(String, nullable=False)      # paid
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self) -> dict:
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}
