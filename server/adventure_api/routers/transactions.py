"""Back-office router for the payment transaction ledger."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import ADMIN_DEPENDENCY, DB_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..models.transaction import TransactionStatus, TransactionType
from ..models.user import User
from ..schemas.common import Pagination
from ..schemas.transaction import (
    Transaction,
    TransactionAmount,
    TransactionFilter,
    TransactionListResponse,
    UpdateTransactionRequest,
)
from ..services.transaction_service import TransactionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/transactions", tags=["transactions"])


def transaction_filter(
    type_: Optional[TransactionType] = Query(None, alias="type"),
    status: Optional[TransactionStatus] = None,
    payment_method: Optional[str] = Query(None, alias="paymentMethod", max_length=30),
    booking_id: Optional[str] = Query(None, alias="bookingId", max_length=64),
    user_id: Optional[str] = Query(None, alias="userId", max_length=64),
    is_reconciled: Optional[bool] = Query(None, alias="isReconciled"),
    search: Optional[str] = Query(None, max_length=100),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    min_amount: Optional[float] = Query(None, alias="minAmount", ge=0),
    max_amount: Optional[float] = Query(None, alias="maxAmount", ge=0),
) -> TransactionFilter:
    """Ledger filter from the query string."""
    return TransactionFilter(
        type=type_,
        status=status,
        payment_method=payment_method,
        booking_id=booking_id,
        user_id=user_id,
        is_reconciled=is_reconciled,
        search=search,
        start_date=start_date,
        end_date=end_date,
        min_amount=min_amount,
        max_amount=max_amount,
    )


FILTER_DEPENDENCY = Depends(transaction_filter)


def _convert_transaction_to_schema(entry) -> Transaction:
    """Convert ledger model to schema."""
    return Transaction(
        id=str(entry.id),
        transaction_id=entry.transaction_id,
        booking_id=str(entry.booking_id) if entry.booking_id else None,
        booking_reference=entry.booking.reference if entry.booking else None,
        user_id=str(entry.user_id) if entry.user_id else None,
        user_name=entry.user.name if entry.user else None,
        user_email=entry.user.email if entry.user else None,
        event_id=str(entry.event_id) if entry.event_id else None,
        event_title=entry.event.title if entry.event else None,
        type=TransactionType(entry.type),
        status=TransactionStatus(entry.status),
        amount=TransactionAmount(
            gross=entry.gross_amount,
            net=entry.net_amount,
            tax=entry.tax_amount,
            processing_fee=entry.processing_fee,
            platform_fee=entry.platform_fee,
            discount=entry.discount_amount,
        ),
        currency=entry.currency,
        payment_method=entry.payment_method,
        payment_gateway=entry.payment_gateway,
        gateway_transaction_id=entry.gateway_transaction_id,
        gateway_response=entry.gateway_response,
        description=entry.description,
        internal_notes=entry.internal_notes,
        initiated_at=entry.initiated_at,
        processed_at=entry.processed_at,
        completed_at=entry.completed_at,
        failed_at=entry.failed_at,
        is_reconciled=entry.is_reconciled,
        reconciled_at=entry.reconciled_at,
        reconciled_by=str(entry.reconciled_by) if entry.reconciled_by else None,
        created_at=entry.created_at,
    )


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    filters: TransactionFilter = FILTER_DEPENDENCY,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Ledger entries, newest first, with totals for the whole filter."""
    transaction_service = TransactionService(db)

    try:
        entries, total, summary = await transaction_service.list_transactions(filters, page=page, limit=limit)
        response_data = TransactionListResponse(
            data=[_convert_transaction_to_schema(entry) for entry in entries],
            pagination=Pagination.build(page, limit, total),
            summary=summary,
        )
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in transaction list",
            extra={"page": page, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/export", response_class=Response)
async def export_transactions(
    filters: TransactionFilter = FILTER_DEPENDENCY,
    max_records: int = Query(10000, alias="maxRecords", ge=1, le=50000),
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> Response:
    """Download matching ledger entries as CSV."""
    transaction_service = TransactionService(db)

    try:
        filename, content = await transaction_service.export(filters, max_records=max_records)
        return Response(
            content=content,
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"', "Cache-Control": "no-cache"},
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error in transaction export", extra={"error": str(e)}, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/{transaction_ref}", response_model=Transaction)
async def get_transaction(
    transaction_ref: str,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """One ledger entry by UUID or transaction ID."""
    transaction_service = TransactionService(db)

    try:
        entry = await transaction_service.get_or_raise(transaction_ref)
        return JSONResponse(status_code=200, content=_convert_transaction_to_schema(entry).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in transaction retrieval",
            extra={"transaction_ref": transaction_ref, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.put("/{transaction_ref}", response_model=Transaction)
async def update_transaction(
    transaction_ref: str,
    request: UpdateTransactionRequest,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY,
) -> JSONResponse:
    """Correct the status or notes of an entry, or mark it reconciled."""
    transaction_service = TransactionService(db)

    try:
        entry = await transaction_service.update(transaction_ref, request, admin)
        return JSONResponse(status_code=200, content=_convert_transaction_to_schema(entry).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in transaction update",
            extra={"transaction_ref": transaction_ref, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
