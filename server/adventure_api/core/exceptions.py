"""Custom exceptions following RFC 9457 Problem Details for HTTP APIs."""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

PROBLEM_BASE_URI = "https://adventures.example.com/problems"


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        # Create the problem details object
        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if self.detail:
            self.problem_details["detail"] = self.detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        # Add extensions
        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )


class ValidationError(ProblemDetailsException):
    """Exception for request validation errors."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        errors: Optional[List[str]] = None,
        violations: Optional[List[Dict[str, str]]] = None,
        instance: Optional[str] = None,
    ):
        extensions: Dict[str, Any] = {}
        if errors:
            extensions["errors"] = errors
        if violations:
            extensions["violations"] = violations

        super().__init__(
            status_code=400,
            title="Validation Error",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/validation-error",
            instance=instance,
            extensions=extensions,
        )


class AuthenticationError(ProblemDetailsException):
    """Exception for authentication errors."""

    def __init__(
        self,
        detail: str = "Authentication credentials are required",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=401,
            title="Authentication Required",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/authentication-required",
            instance=instance,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ProblemDetailsException):
    """Exception for authorization errors."""

    def __init__(
        self,
        detail: str = "Insufficient permissions to access this resource",
        required_role: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if required_role:
            extensions["required_role"] = required_role

        super().__init__(
            status_code=403,
            title="Access Forbidden",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/access-forbidden",
            instance=instance,
            extensions=extensions,
        )


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """Exception for resource conflict errors."""

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Resource Conflict",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/resource-conflict",
            instance=instance,
            extensions=extensions,
        )


class InternalServerError(ProblemDetailsException):
    """Exception for internal server errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred while processing the request",
        error_id: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not error_id:
            error_id = str(uuid.uuid4())

        extensions = {
            "error_id": error_id,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }

        super().__init__(
            status_code=500,
            title="Internal Server Error",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/internal-server-error",
            instance=instance,
            extensions=extensions,
        )


# Business logic exceptions

class InsufficientSeatsError(ProblemDetailsException):
    """Exception when a date group cannot seat the requested participants."""

    def __init__(
        self,
        requested_seats: int,
        available_seats: int,
        event_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = (
                f"Requested seats ({requested_seats}) exceed available seats "
                f"({available_seats}) for the selected date"
            )

        extensions: Dict[str, Any] = {
            "code": "SEATS_UNAVAILABLE",
            "retryable": False,
            "requested_seats": requested_seats,
            "available_seats": available_seats,
        }
        if event_id:
            extensions["event_id"] = event_id

        super().__init__(
            status_code=409,
            title="Insufficient Seats",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/insufficient-seats",
            instance=instance,
            extensions=extensions,
        )


class InvalidStatusTransitionError(ProblemDetailsException):
    """Exception when a booking status change is not an allowed transition."""

    def __init__(
        self,
        current_status: str,
        requested_status: str,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"Booking cannot move from {current_status} to {requested_status}"

        super().__init__(
            status_code=400,
            title="Invalid Status Transition",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/invalid-status-transition",
            instance=instance,
            extensions={
                "code": "INVALID_TRANSITION",
                "current_status": current_status,
                "requested_status": requested_status,
            },
        )


class PaymentVerificationError(ProblemDetailsException):
    """Exception when a payment signature does not match."""

    def __init__(
        self,
        detail: str = "Invalid payment signature",
        booking_reference: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        extensions: Dict[str, Any] = {"code": "INVALID_SIGNATURE", "retryable": True}
        if booking_reference:
            extensions["booking_id"] = booking_reference

        super().__init__(
            status_code=400,
            title="Payment Verification Failed",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/payment-verification-failed",
            instance=instance,
            extensions=extensions,
        )


class PaymentGatewayError(ProblemDetailsException):
    """Exception when the payment gateway rejects or fails a call."""

    def __init__(
        self,
        detail: str = "The payment gateway could not process the request",
        gateway_status: Optional[int] = None,
        instance: Optional[str] = None,
    ):
        extensions: Dict[str, Any] = {"code": "GATEWAY_ERROR", "retryable": True}
        if gateway_status is not None:
            extensions["gateway_status"] = gateway_status

        super().__init__(
            status_code=502,
            title="Payment Gateway Error",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/payment-gateway-error",
            instance=instance,
            extensions=extensions,
        )


class DatabaseUpdateError(ProblemDetailsException):
    """
    Exception for unexpected persistence failures on admin updates.

    Carries the raw driver diagnostics so back-office operators can see
    what the database rejected.
    """

    def __init__(
        self,
        name: str,
        message: str,
        code: Optional[str] = None,
        stack: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=500,
            title="Database update failed",
            detail=message,
            type_uri=f"{PROBLEM_BASE_URI}/database-update-failed",
            instance=instance,
            extensions={
                "details": {
                    "name": name,
                    "code": code,
                    "message": message,
                    "stack": stack,
                }
            },
        )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Convert FastAPI request validation failures to a 400 Problem Details body."""
    violations = [
        {
            "path": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    problem = ValidationError(
        detail="The request data failed validation",
        violations=violations,
        instance=str(request.url),
    )
    return JSONResponse(status_code=400, content=problem.problem_details)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    problem = InternalServerError(instance=str(request.url))

    logger.error(
        "Unhandled exception",
        extra={"error_id": problem.problem_details["error_id"], "path": request.url.path, "error": str(exc)},
        exc_info=exc,
    )

    return JSONResponse(status_code=500, content=problem.problem_details)
