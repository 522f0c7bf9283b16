"""
Leave API collaborators.

``LeaveApiClient`` talks to the HR backend over HTTP with circuit breaker
protection. ``InMemoryLeaveBackend`` serves the same contract from sample
data for development and tests. Both return canonical models only; raw
payloads go through ``leave_portal.normalize``.
"""

from __future__ import annotations

import copy
import itertools
import logging
from dataclasses import dataclass
from datetime import datetime
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

import httpx

from data import sample_leave_data
from leave_portal.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from leave_portal.config import settings
from leave_portal.errors import LeaveApiError
from leave_portal.models import (
    LeaveRequest,
    LeaveStatus,
    LeaveType,
    PTOBalance,
    SubmitLeavePayload,
)
from leave_portal.normalize import (
    created_id_from_api,
    leave_request_from_api,
    leave_requests_from_api,
    leave_types_from_api,
    message_from_api,
    pto_balance_from_api,
)
from leave_portal.observability import trace_span
from leave_portal.session import SessionProvider, require_user

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE = "Leave service is temporarily unavailable. Please try again later."

T = TypeVar("T")


@dataclass(frozen=True)
class SubmitResult:
    message: str
    leave_request_id: int | None = None


class LeaveApi(Protocol):
    """Backend operations the leave workflows depend on."""

    async def list_my_requests(self) -> list[LeaveRequest]: ...

    async def list_leave_types(self) -> list[LeaveType]: ...

    async def submit_request(self, payload: SubmitLeavePayload) -> SubmitResult: ...

    async def cancel_request(self, leave_request_id: int) -> str: ...

    async def get_my_balance(self) -> PTOBalance | None: ...

    async def list_pending_approvals(self) -> list[LeaveRequest]: ...

    async def approve_request(self, leave_request_id: int, approval_notes: str = "") -> str: ...

    async def reject_request(self, leave_request_id: int, rejection_reason: str) -> str: ...


def _is_outage(exc: Exception) -> bool:
    """Only transport failures and 5xx answers count against the circuit."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.HTTPError)


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class LeaveApiClient:
    """
    HTTP client for the leave endpoints.

    Authentication is a bearer token taken from the current user's session,
    falling back to ``LEAVE_API_TOKEN``. Every failure is raised as
    ``LeaveApiError`` carrying the backend's ``message`` when it sent one.
    """

    def __init__(
        self,
        session: SessionProvider,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.session = session
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.leave_api_base_url,
            timeout=settings.leave_api_timeout,
            transport=transport,
        )
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.circuit_breaker_failure_threshold,
            timeout=settings.circuit_breaker_timeout,
            name="LeaveApiCircuitBreaker",
            trip_on=_is_outage,
        )

    def _headers(self) -> dict[str, str]:
        user = self.session.get_current_user()
        token = (user.access_token if user else None) or settings.leave_api_token
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _send(self, method: str, path: str, body: dict[str, Any] | None) -> httpx.Response:
        response = await self._client.request(method, path, json=body, headers=self._headers())
        response.raise_for_status()
        return response

    async def _request(
        self,
        method: str,
        path: str,
        fallback: str,
        parse: Callable[[Any], T],
        body: dict[str, Any] | None = None,
    ) -> T:
        """
        Send one call and hand its decoded body to ``parse``.

        Every failure surfaces as ``LeaveApiError``: error statuses, transport
        errors, an open circuit, and success answers whose body is not JSON or
        does not normalize.
        """
        with trace_span("leave_api", method=method, path=path):
            try:
                response = await self.circuit_breaker.call(self._send, method, path, body)
            except CircuitBreakerOpenError as e:
                raise LeaveApiError(SERVICE_UNAVAILABLE, status_code=503) from e
            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                logger.warning(f"Leave API {method} {path} returned {status_code}")
                raise LeaveApiError(
                    message_from_api(_safe_json(e.response), fallback), status_code=status_code
                ) from e
            except httpx.HTTPError as e:
                logger.error(f"Leave API {method} {path} failed: {e}")
                raise LeaveApiError(fallback) from e

            # pydantic's ValidationError and JSONDecodeError are both ValueErrors
            try:
                return parse(response.json() if response.content else {})
            except ValueError as e:
                logger.error(f"Leave API {method} {path} sent an unreadable body: {e}")
                raise LeaveApiError(fallback, status_code=response.status_code) from e

    async def list_my_requests(self) -> list[LeaveRequest]:
        return await self._request(
            "GET", "/Leave/MyRequests", "Failed to load leave requests", leave_requests_from_api
        )

    async def list_leave_types(self) -> list[LeaveType]:
        return await self._request(
            "GET", "/Leave/Types", "Failed to load leave types", leave_types_from_api
        )

    async def submit_request(self, payload: SubmitLeavePayload) -> SubmitResult:
        def parse(body: Any) -> SubmitResult:
            return SubmitResult(
                message=message_from_api(body, "Leave request submitted successfully!"),
                leave_request_id=created_id_from_api(body),
            )

        return await self._request(
            "POST", "/Leave/Request", "Failed to submit leave request", parse, payload.to_wire()
        )

    async def cancel_request(self, leave_request_id: int) -> str:
        return await self._request(
            "DELETE",
            f"/Leave/Cancel/{leave_request_id}",
            "Failed to cancel leave request",
            lambda body: message_from_api(body, "Leave request cancelled successfully"),
        )

    async def get_my_balance(self) -> PTOBalance | None:
        return await self._request(
            "GET", "/Leave/MyBalance", "Failed to load PTO balance", pto_balance_from_api
        )

    async def list_pending_approvals(self) -> list[LeaveRequest]:
        return await self._request(
            "GET",
            "/Leave/PendingApprovals",
            "Failed to load pending requests",
            leave_requests_from_api,
        )

    async def approve_request(self, leave_request_id: int, approval_notes: str = "") -> str:
        return await self._request(
            "PUT",
            f"/Leave/Approve/{leave_request_id}",
            "Failed to approve leave request",
            lambda body: message_from_api(body, "Leave request approved"),
            {"approvalNotes": approval_notes},
        )

    async def reject_request(self, leave_request_id: int, rejection_reason: str) -> str:
        return await self._request(
            "PUT",
            f"/Leave/Reject/{leave_request_id}",
            "Failed to reject leave request",
            lambda body: message_from_api(body, "Leave request rejected"),
            {"rejectionReason": rejection_reason},
        )

    def bind(self, session: SessionProvider) -> LeaveApiClient:
        """Same connection pool and circuit breaker, acting for another user."""
        bound = copy.copy(self)
        bound.session = session
        return bound

    def get_circuit_breaker_state(self) -> dict:
        """Get circuit breaker state for monitoring."""
        return self.circuit_breaker.get_state()

    async def aclose(self) -> None:
        await self._client.aclose()
        logger.info("Leave API client closed")


class InMemoryLeaveBackend:
    """
    Leave API stand-in backed by ``data.sample_leave_data``.

    Enforces the same server-side rules the workflows rely on: requests
    belong to their employee, only Pending requests change status, and
    approving a PTO request deducts it from the balance.
    """

    def __init__(self, session: SessionProvider):
        self.session = session
        self.leave_types = sample_leave_data.get_leave_types()
        self.requests: dict[int, dict[str, Any]] = {
            raw["leaveRequestId"]: raw for raw in sample_leave_data.get_leave_requests()
        }
        self.balances: dict[int, dict[str, Any] | None] = {}
        self._ids = itertools.count(max(self.requests, default=0) + 1)

    def _user(self):
        return require_user(self.session)

    def _balance(self, employee_id: int) -> dict[str, Any] | None:
        if employee_id not in self.balances:
            self.balances[employee_id] = sample_leave_data.get_pto_balance(employee_id)
        return self.balances[employee_id]

    def _employee_record(self, user) -> dict[str, Any]:
        """Directory entry for the requester; headers win over the directory."""
        known = sample_leave_data.get_employee(user.employee_id) or {}
        return {
            "fullName": user.full_name or known.get("fullName", ""),
            "department": user.department or known.get("department", ""),
        }

    def _get(self, leave_request_id: int) -> dict[str, Any]:
        raw = self.requests.get(leave_request_id)
        if raw is None:
            raise LeaveApiError(f"Leave request {leave_request_id} not found", status_code=404)
        return raw

    def _transition(self, raw: dict[str, Any], target: LeaveStatus) -> None:
        current = leave_request_from_api(raw).status
        if not current.can_transition_to(target):
            raise LeaveApiError(
                f"Leave request is already {current.value.lower()}", status_code=409
            )
        raw["status"] = target.value
        raw["Status"] = target.value
        raw["canCancel"] = False

    def _with_can_cancel(self, raw: dict[str, Any], employee_id: int) -> dict[str, Any]:
        view = dict(raw)
        view["canCancel"] = (
            leave_request_from_api(raw).status is LeaveStatus.PENDING
            and raw["employeeId"] == employee_id
        )
        return view

    async def list_my_requests(self) -> list[LeaveRequest]:
        employee_id = self._user().employee_id
        return leave_requests_from_api(
            [
                self._with_can_cancel(raw, employee_id)
                for raw in self.requests.values()
                if raw["employeeId"] == employee_id
            ]
        )

    async def list_leave_types(self) -> list[LeaveType]:
        return leave_types_from_api(self.leave_types)

    async def submit_request(self, payload: SubmitLeavePayload) -> SubmitResult:
        user = self._user()
        types = {t.leave_type_id: t for t in leave_types_from_api(self.leave_types)}
        leave_type = types.get(payload.leave_type_id)
        if leave_type is None or not leave_type.is_active:
            raise LeaveApiError("Selected leave type is not available", status_code=400)

        leave_request_id = next(self._ids)
        self.requests[leave_request_id] = {
            "leaveRequestId": leave_request_id,
            "employeeId": user.employee_id,
            "employee": self._employee_record(user),
            "leaveTypeName": leave_type.name,
            "isPaidLeave": leave_type.is_paid_leave,
            "startDate": payload.start_date.isoformat(),
            "endDate": payload.end_date.isoformat(),
            "totalDays": payload.total_days,
            "reason": payload.reason,
            "status": LeaveStatus.PENDING.value,
            "requestedAt": datetime.now().isoformat(timespec="seconds"),
        }
        logger.info(f"Stored leave request {leave_request_id} for employee {user.employee_id}")
        return SubmitResult(
            message="Leave request submitted successfully!", leave_request_id=leave_request_id
        )

    async def cancel_request(self, leave_request_id: int) -> str:
        raw = self._get(leave_request_id)
        if raw["employeeId"] != self._user().employee_id:
            raise LeaveApiError("You can only cancel your own leave requests", status_code=403)
        self._transition(raw, LeaveStatus.CANCELLED)
        return "Leave request cancelled successfully"

    async def get_my_balance(self) -> PTOBalance | None:
        return pto_balance_from_api(self._balance(self._user().employee_id))

    async def list_pending_approvals(self) -> list[LeaveRequest]:
        reviewer_id = self._user().employee_id
        return leave_requests_from_api(
            [
                raw
                for raw in self.requests.values()
                if raw["employeeId"] != reviewer_id
                and leave_request_from_api(raw).status is LeaveStatus.PENDING
            ]
        )

    async def approve_request(self, leave_request_id: int, approval_notes: str = "") -> str:
        reviewer = self._user()
        raw = self._get(leave_request_id)
        self._transition(raw, LeaveStatus.APPROVED)
        raw["approvedBy"] = reviewer.full_name
        raw["approvedAt"] = datetime.now().isoformat(timespec="seconds")
        raw["approvalNotes"] = approval_notes

        request = leave_request_from_api(raw)
        balance = self._balance(raw["employeeId"])
        if balance and request.leave_type in settings.pto_deducting_types:
            balance["usedPTODays"] += request.total_days
            balance["remainingPTODays"] -= request.total_days
        return f"Leave request approved for {request.employee_name}"

    async def reject_request(self, leave_request_id: int, rejection_reason: str) -> str:
        if not rejection_reason.strip():
            raise LeaveApiError("Rejection reason is required", status_code=400)
        raw = self._get(leave_request_id)
        self._transition(raw, LeaveStatus.REJECTED)
        raw["rejectionReason"] = rejection_reason
        return f"Leave request rejected for {leave_request_from_api(raw).employee_name}"

    def bind(self, session: SessionProvider) -> InMemoryLeaveBackend:
        """Same stored data, acting for another user."""
        bound = copy.copy(self)
        bound.session = session
        return bound

    def get_circuit_breaker_state(self) -> dict:
        return {"name": "InMemoryLeaveBackend", "state": "closed", "failure_count": 0}

    async def aclose(self) -> None:
        return None


def create_leave_api(session: SessionProvider) -> LeaveApiClient | InMemoryLeaveBackend:
    """Build the configured collaborator: sample data in development, HTTP otherwise."""
    if settings.use_mock_backend:
        logger.info("Using in-memory leave backend")
        return InMemoryLeaveBackend(session)
    return LeaveApiClient(session)
