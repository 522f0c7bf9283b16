"""
FastAPI application serving the leave request workflows as JSON.
Each endpoint drives the same wizard / view objects a UI would.
"""

import logging
import os
import time
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from leave_portal.api_client import create_leave_api
from leave_portal.approval import ApprovalWorkflow
from leave_portal.collection import group_by_month
from leave_portal.config import settings
from leave_portal.errors import DraftValidationError, InvalidTransitionError
from leave_portal.form_fields import describe_field
from leave_portal.formatting import relative_time
from leave_portal.models import FilterState, LeaveRequest, LeaveStatus
from leave_portal.my_requests import MyRequestsView
from leave_portal.session import CurrentUser, StaticSession
from leave_portal.wizard import MY_REQUESTS_ROUTE, LeaveRequestWizard

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# Pydantic models for API
class DraftUpdate(BaseModel):
    """Partial update of the wizard draft. Only fields of the current step are accepted."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"start_date": "2026-11-16", "end_date": "2026-11-18"}}
    )

    leave_type_id: int | None = None
    start_date: str | None = None
    end_date: str | None = None
    is_half_day: bool | None = None
    reason: str | None = None


class ApproveBody(BaseModel):
    comments: str | None = Field(None, description="Optional approval notes")
    confirmed: bool = Field(False, description="Set once the reviewer saw the confirmation")


class RejectBody(BaseModel):
    reason: str = Field(..., description="Shown to the employee; at least 10 characters")
    confirmed: bool = False


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    environment: str
    leave_api_circuit_breaker: dict


class WizardSessionStore:
    """
    In-memory wizard sessions.

    OrderedDict so the least recently used wizard can be evicted
    deterministically once ``max_sessions`` is reached; idle wizards
    expire after ``session_ttl_seconds``.
    """

    def __init__(self):
        self.sessions: OrderedDict[str, dict[str, Any]] = OrderedDict()

    def _prune(self) -> None:
        now = time.time()
        expired = [
            sid
            for sid, meta in self.sessions.items()
            if now - meta["ts"] > settings.session_ttl_seconds
        ]
        for sid in expired:
            self.sessions.pop(sid)["wizard"].close()

        while len(self.sessions) > settings.max_sessions:
            _, meta = self.sessions.popitem(last=False)
            meta["wizard"].close()

    def put(self, session_id: str, wizard: LeaveRequestWizard, employee_id: int) -> None:
        if session_id in self.sessions:
            self.sessions.pop(session_id)["wizard"].close()
        self.sessions[session_id] = {"ts": time.time(), "wizard": wizard, "owner": employee_id}
        self._prune()

    def get(self, session_id: str, employee_id: int) -> LeaveRequestWizard:
        self._prune()
        meta = self.sessions.get(session_id)
        if meta is None or meta["owner"] != employee_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Wizard not found")
        meta["ts"] = time.time()
        self.sessions.move_to_end(session_id)
        return meta["wizard"]

    def discard(self, session_id: str) -> None:
        meta = self.sessions.pop(session_id, None)
        if meta:
            meta["wizard"].close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info("Starting Leave Portal API")
    logger.info(f"Environment: {settings.environment}")

    app.state.leave_api = create_leave_api(StaticSession(None))
    app.state.wizards = WizardSessionStore()

    yield

    logger.info("Shutting down Leave Portal API")
    await app.state.leave_api.aclose()


app = FastAPI(
    title="Leave Portal API",
    description="Leave request, balance and approval workflows for the HR portal",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def current_user(
    x_employee_id: int = Header(..., description="Set by the auth gateway"),
    x_user_id: int | None = Header(None),
    x_employee_name: str = Header(""),
    x_employee_classification: str = Header("Admin Staff"),
    x_employee_role: str = Header("Employee"),
    x_employee_department: str = Header(""),
    authorization: str | None = Header(None),
) -> CurrentUser:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:]
    return CurrentUser(
        user_id=x_user_id or x_employee_id,
        employee_id=x_employee_id,
        full_name=x_employee_name,
        classification=x_employee_classification,
        role=x_employee_role,
        department=x_employee_department,
        access_token=token,
    )


def user_api(request: Request, user: CurrentUser = Depends(current_user)):
    return request.app.state.leave_api.bind(StaticSession(user))


def serialize_request(request: LeaveRequest) -> dict[str, Any]:
    data = request.model_dump(mode="json")
    data["requested_at_label"] = relative_time(request.requested_at)
    return data


def _validation_error(e: DraftValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail=e.errors)


# API Endpoints


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {"message": "Leave Portal API", "version": "1.0.0", "docs": "/docs"}


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Service status and leave API circuit breaker state."""
    return HealthResponse(
        status="healthy",
        environment=settings.environment,
        leave_api_circuit_breaker=request.app.state.leave_api.get_circuit_breaker_state(),
    )


@app.get("/metrics", tags=["Monitoring"])
async def metrics(request: Request):
    return {
        "circuit_breaker": request.app.state.leave_api.get_circuit_breaker_state(),
        "active_wizards": len(request.app.state.wizards.sessions),
        "environment": settings.environment,
    }


# Request wizard


@app.post("/wizard/{session_id}", tags=["Request Leave"])
async def start_wizard(
    session_id: str,
    request: Request,
    user: CurrentUser = Depends(current_user),
    api=Depends(user_api),
):
    """Open a new leave request wizard, preloaded with leave types and PTO balance."""
    wizard = LeaveRequestWizard(api, StaticSession(user))
    await wizard.load()
    request.app.state.wizards.put(session_id, wizard, user.employee_id)
    return wizard.to_dict()


@app.get("/wizard/{session_id}", tags=["Request Leave"])
async def get_wizard(
    session_id: str, request: Request, user: CurrentUser = Depends(current_user)
):
    return request.app.state.wizards.get(session_id, user.employee_id).to_dict()


@app.patch("/wizard/{session_id}", tags=["Request Leave"])
async def update_wizard(
    session_id: str,
    body: DraftUpdate,
    request: Request,
    user: CurrentUser = Depends(current_user),
):
    wizard = request.app.state.wizards.get(session_id, user.employee_id)
    try:
        wizard.apply_input(body.model_dump(exclude_unset=True))
    except DraftValidationError as e:
        raise _validation_error(e) from e
    return wizard.to_dict()


@app.post("/wizard/{session_id}/next", tags=["Request Leave"])
async def wizard_next(
    session_id: str, request: Request, user: CurrentUser = Depends(current_user)
):
    wizard = request.app.state.wizards.get(session_id, user.employee_id)
    wizard.next()
    return wizard.to_dict()


@app.post("/wizard/{session_id}/back", tags=["Request Leave"])
async def wizard_back(
    session_id: str, request: Request, user: CurrentUser = Depends(current_user)
):
    wizard = request.app.state.wizards.get(session_id, user.employee_id)
    wizard.back()
    return wizard.to_dict()


@app.post("/wizard/{session_id}/submit", tags=["Request Leave"])
async def wizard_submit(
    session_id: str, request: Request, user: CurrentUser = Depends(current_user)
):
    """
    Submit the reviewed draft.

    On success the response carries ``redirect_to`` so the client can move
    on after showing the confirmation for a couple of seconds.
    """
    wizard = request.app.state.wizards.get(session_id, user.employee_id)
    submitted = await wizard.submit()
    payload = wizard.to_dict()
    if submitted:
        payload["redirect_to"] = MY_REQUESTS_ROUTE
        payload["redirect_after_seconds"] = settings.post_submit_redirect_seconds
        payload["leave_request"] = wizard.last_payload.to_wire()
    return payload


@app.delete("/wizard/{session_id}", tags=["Request Leave"])
async def discard_wizard(
    session_id: str, request: Request, user: CurrentUser = Depends(current_user)
):
    request.app.state.wizards.get(session_id, user.employee_id)
    request.app.state.wizards.discard(session_id)
    return {"message": f"Wizard {session_id} discarded", "session_id": session_id}


# My requests


@app.get("/requests/mine", tags=["My Requests"])
async def my_requests(
    api=Depends(user_api),
    user: CurrentUser = Depends(current_user),
    search: str = "",
    status_filter: LeaveStatus | None = None,
    leave_type: str = "",
):
    view = MyRequestsView(api, StaticSession(user))
    view.filters = FilterState(
        search_term=search, status_filter=status_filter, leave_type_filter=leave_type
    )
    await view.load()
    projection = view.projection
    return {
        "requests": [serialize_request(r) for r in view.visible_requests],
        "by_month": {
            month: [r.leave_request_id for r in requests]
            for month, requests in group_by_month(view.visible_requests).items()
        },
        "stats": asdict(view.stats),
        "approved_days": view.approved_days,
        "leave_types": view.leave_type_options,
        "balance": view.balance.model_dump() if view.balance else None,
        "projection": {
            "used_pct": projection.used_pct,
            "remaining_pct": projection.remaining_pct,
            "projected_remaining": projection.projected_remaining,
            "status": projection.status.value,
        },
        "error": view.error,
    }


def _backend_refusal(view) -> HTTPException:
    """Client errors from the Leave API pass through; anything else is a bad gateway."""
    code = view.error_status
    if code is None or not 400 <= code < 500:
        code = status.HTTP_502_BAD_GATEWAY
    return HTTPException(status_code=code, detail=view.error)


@app.post("/requests/{leave_request_id}/cancel", tags=["My Requests"])
async def cancel_request(
    leave_request_id: int,
    confirmed: bool = False,
    api=Depends(user_api),
    user: CurrentUser = Depends(current_user),
):
    """Without ``confirmed`` this only returns the confirmation text."""
    view = MyRequestsView(api, StaticSession(user))
    await view.load()
    dialog = view.request_cancel(leave_request_id)
    if dialog is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=view.error)
    if not confirmed:
        return {"confirmation_required": True, "summary": dialog.summary}
    if not await view.confirm_cancel():
        raise _backend_refusal(view)
    return {"message": view.success_message}


# Approvals


async def _approval_view(api, user: CurrentUser) -> ApprovalWorkflow:
    workflow = ApprovalWorkflow(api, StaticSession(user))
    await workflow.refresh()
    if workflow.error:
        raise _backend_refusal(workflow)
    return workflow


@app.get("/approvals/pending", tags=["Approvals"])
async def pending_approvals(
    api=Depends(user_api),
    user: CurrentUser = Depends(current_user),
    search: str = "",
    leave_type: str = "",
):
    workflow = await _approval_view(api, user)
    workflow.filters = FilterState(search_term=search, leave_type_filter=leave_type)
    return {
        "requests": [serialize_request(r) for r in workflow.visible_requests],
        "total_pending": len(workflow.pending),
        "departments": workflow.department_options,
    }


def _open_dialog(workflow: ApprovalWorkflow, opener, leave_request_id: int):
    try:
        return opener(leave_request_id)
    except KeyError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Pending request not found"
        ) from e


def _dialog_fields(workflow: ApprovalWorkflow, dialog) -> list[dict[str, Any]]:
    return [describe_field(f) for f in workflow.dialog_fields(dialog.action)]


@app.post("/approvals/{leave_request_id}/approve", tags=["Approvals"])
async def approve_request(
    leave_request_id: int,
    body: ApproveBody,
    api=Depends(user_api),
    user: CurrentUser = Depends(current_user),
):
    workflow = await _approval_view(api, user)
    dialog = _open_dialog(workflow, workflow.open_approve, leave_request_id)
    if not body.confirmed:
        return {
            "confirmation_required": True,
            "summary": dialog.summary,
            "fields": _dialog_fields(workflow, dialog),
        }
    if not await workflow.approve(leave_request_id, body.comments):
        raise _backend_refusal(workflow)
    return {"message": workflow.success_message, "remaining_pending": len(workflow.pending)}


@app.post("/approvals/{leave_request_id}/reject", tags=["Approvals"])
async def reject_request(
    leave_request_id: int,
    body: RejectBody,
    api=Depends(user_api),
    user: CurrentUser = Depends(current_user),
):
    workflow = await _approval_view(api, user)
    dialog = _open_dialog(workflow, workflow.open_reject, leave_request_id)
    if not body.confirmed:
        return {
            "confirmation_required": True,
            "summary": dialog.summary,
            "fields": _dialog_fields(workflow, dialog),
        }
    try:
        rejected = await workflow.reject(leave_request_id, body.reason)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    if workflow.field_errors:
        raise HTTPException(status_code=422, detail=workflow.field_errors)
    if not rejected:
        raise _backend_refusal(workflow)
    return {"message": workflow.success_message, "remaining_pending": len(workflow.pending)}


if __name__ == "__main__":
    uvicorn.run(
        "leave_portal.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8080)),
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
