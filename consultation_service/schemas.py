from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Every field is optional at the parsing layer: presence is checked by the
# services so that missing receipt fields map to 402 rather than 422.
_request_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, extra="ignore")


class OrderRequest(BaseModel):
    model_config = _request_config

    name: Optional[str] = None
    email: Optional[str] = None


class PaymentReceipt(BaseModel):
    model_config = _request_config

    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None


class BookingRequest(PaymentReceipt):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    project_type: Optional[str] = Field(default=None, alias="projectType")
    consultation_date: Optional[str] = Field(default=None, alias="consultationDate")
    consultation_time: Optional[str] = Field(default=None, alias="consultationTime")
    message: Optional[str] = None


class ConsultationRecord(BaseModel):
    """A persisted consultation as echoed back to the client."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    email: str
    phone: str
    project_type: str = Field(alias="projectType")
    consultation_date: str = Field(alias="consultationDate")
    consultation_time: str = Field(alias="consultationTime")
    message: str
    status: str
    payment_id: str = Field(alias="paymentId")
    payment_status: str = Field(alias="paymentStatus")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @classmethod
    def from_row(cls, row: dict) -> "ConsultationRecord":
        return cls(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            project_type=row["category"],
            consultation_date=row["consultation_date"],
            consultation_time=row["consultation_time"],
            message=row["message"],
            status=row["status"],
            payment_id=row["payment_id"],
            payment_status=row["payment_status"],
            created_at=row.get("created_at"),
        )

    def to_response(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
