"""Idempotency service for replaying duplicate booking submissions."""

import hashlib
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import PROBLEM_BASE_URI, ProblemDetailsException
from ..models.idempotency import IdempotencyRecord

logger = logging.getLogger(__name__)


class IdempotencyMismatchError(ProblemDetailsException):
    """Exception when an idempotency key is reused with a different request body."""

    def __init__(self, idempotency_key: str, operation: str):
        super().__init__(
            status_code=422,
            title="Idempotency Key Mismatch",
            detail=(
                f"Idempotency key '{idempotency_key}' was already used for "
                f"'{operation}' with a different request body"
            ),
            type_uri=f"{PROBLEM_BASE_URI}/idempotency-key-mismatch",
            extensions={
                "code": "IDEMPOTENCY_KEY_MISMATCH",
                "retryable": False,
                "idempotency_key": idempotency_key,
                "operation": operation,
            },
        )


class IdempotencyService:
    """Service for handling idempotent operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _compute_request_hash(self, request_body: dict[str, Any]) -> str:
        """Compute SHA-256 hash of normalized request body."""
        normalized = json.dumps(request_body, sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha256(normalized.encode("utf-8")).hexdigest()

    async def check_idempotency(
        self,
        idempotency_key: str,
        operation: str,
        request_body: dict[str, Any],
    ) -> Optional[tuple[int, dict[str, Any]]]:
        """
        Look up a cached response for this key and operation.

        Returns:
            Tuple of (status_code, response_body) when cached, None for a new request

        Raises:
            IdempotencyMismatchError: If the key was used with a different body
        """
        request_hash = self._compute_request_hash(request_body)

        stmt = select(IdempotencyRecord).where(
            IdempotencyRecord.idempotency_key == idempotency_key,
            IdempotencyRecord.operation == operation,
            IdempotencyRecord.expires_at > datetime.utcnow(),
        )
        existing_record = (await self.db.execute(stmt)).scalar_one_or_none()

        if existing_record is None:
            return None

        if existing_record.request_body_hash != request_hash:
            logger.warning(
                "Idempotency key mismatch",
                extra={
                    "idempotency_key": idempotency_key,
                    "operation": operation,
                    "existing_hash": existing_record.request_body_hash[:8],
                    "new_hash": request_hash[:8],
                }
            )
            raise IdempotencyMismatchError(idempotency_key, operation)

        logger.info(
            "Returning cached idempotent response",
            extra={
                "idempotency_key": idempotency_key,
                "operation": operation,
                "status_code": existing_record.response_status_code,
            }
        )
        return existing_record.response_status_code, json.loads(existing_record.response_body)

    async def store_response(
        self,
        idempotency_key: str,
        operation: str,
        request_body: dict[str, Any],
        status_code: int,
        response_body: dict[str, Any],
    ) -> None:
        """Store the response of an idempotent operation."""
        expires_at = datetime.utcnow() + timedelta(hours=settings.idempotency_ttl_hours)

        record = IdempotencyRecord(
            idempotency_key=idempotency_key,
            operation=operation,
            request_body_hash=self._compute_request_hash(request_body),
            response_status_code=status_code,
            response_body=json.dumps(response_body, sort_keys=True, separators=(",", ":"), default=str),
            expires_at=expires_at,
        )

        try:
            self.db.add(record)
            await self.db.commit()
        except IntegrityError as e:
            # A concurrent request stored the same key first
            await self.db.rollback()
            logger.info(
                "Idempotency record already exists",
                extra={"idempotency_key": idempotency_key, "operation": operation, "error": str(e)}
            )

    async def cleanup_expired_records(self) -> int:
        """Delete expired idempotency records, returning how many were removed."""
        stmt = delete(IdempotencyRecord).where(IdempotencyRecord.expires_at <= datetime.utcnow())
        result = await self.db.execute(stmt)
        await self.db.commit()

        deleted_count = result.rowcount or 0
        if deleted_count > 0:
            logger.info("Cleaned up expired idempotency records", extra={"deleted_count": deleted_count})
        return deleted_count
