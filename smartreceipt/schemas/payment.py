"""
smartreceipt/schemas/payment.py

Purpose: Payment gateway payload schemas

- Virtual account returned when a user agrees to subscribe
- Payment confirmation webhook body (customer keyed by an email-encoded phone)
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class VirtualAccount(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    bank_name: str = Field(..., alias="bankName")
    account_number: str = Field(..., alias="accountNumber")
    account_name: Optional[str] = Field(default=None, alias="accountName")


class PaymentCustomer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str
    name: Optional[str] = None
    phone: Optional[str] = None


class PaymentWebhookPayload(BaseModel):
    """
    Payment confirmation pushed by the gateway.
    `customer.email` is "<11-digit phone>@<PAYMENT_EMAIL_DOMAIN>".
    """
    model_config = ConfigDict(extra="ignore")

    transaction_id: str
    notification_status: Optional[str] = None
    amount_paid: Optional[float] = None
    customer: PaymentCustomer

    @property
    def phone(self) -> str:
        return self.customer.email.split("@", 1)[0].strip()

    @property
    def is_successful(self) -> bool:
        return self.notification_status in (None, "payment_successful", "successful", "success")
