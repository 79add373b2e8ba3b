"""Transaction ledger schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field, field_validator

from ..models.transaction import TransactionStatus, TransactionType
from .common import CamelModel, PaginatedResponse


class TransactionAmount(CamelModel):
    """Amount breakdown of a ledger entry, in rupees."""

    gross: float
    net: float
    tax: float = 0
    processing_fee: float = 0
    platform_fee: float = 0
    discount: float = 0


class Transaction(CamelModel):
    """Ledger entry response schema."""

    id: str
    transaction_id: str
    booking_id: Optional[str] = None
    booking_reference: Optional[str] = None
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    event_id: Optional[str] = None
    event_title: Optional[str] = None
    type: TransactionType
    status: TransactionStatus
    amount: TransactionAmount
    currency: str
    payment_method: str
    payment_gateway: str
    gateway_transaction_id: Optional[str] = None
    gateway_response: Optional[Dict[str, Any]] = None
    description: str
    internal_notes: Optional[str] = None
    initiated_at: datetime
    processed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    is_reconciled: bool
    reconciled_at: Optional[datetime] = None
    reconciled_by: Optional[str] = None
    created_at: datetime


class TransactionSummary(CamelModel):
    """Totals over every entry matching a list filter."""

    total_transactions: int = 0
    total_amount: float = 0
    total_net: float = 0
    total_tax: float = 0
    total_fees: float = 0
    total_discount: float = 0
    completed_transactions: int = 0
    failed_transactions: int = 0
    pending_transactions: int = 0
    reconciled_transactions: int = 0


class TransactionListResponse(PaginatedResponse[Transaction]):
    """Paginated ledger with totals for the whole filter."""

    summary: TransactionSummary


class TransactionFilter(CamelModel):
    """Ledger filter shared by the list and the export."""

    type: Optional[TransactionType] = None
    status: Optional[TransactionStatus] = None
    payment_method: Optional[str] = None
    booking_id: Optional[str] = None
    user_id: Optional[str] = None
    is_reconciled: Optional[bool] = None
    search: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None


class UpdateTransactionRequest(CamelModel):
    """Back-office correction or reconciliation of a ledger entry."""

    status: Optional[TransactionStatus] = None
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    internal_notes: Optional[str] = Field(None, max_length=1000)
    is_reconciled: Optional[bool] = None
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator("status", "description", "is_reconciled")
    @classmethod
    def reject_null(cls, v):
        # Omit the key to leave the field unchanged
        if v is None:
            raise ValueError("cannot be null")
        return v
