"""
Leave request wizard.

Three steps: pick a leave type, choose dates, review and submit. The
wizard owns the draft, validates each step before letting the user move
forward, and keeps the day count in sync with the selected dates.

A failed submission returns to the review step with the draft intact.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import date
from enum import Enum, IntEnum
from typing import Any

from leave_portal import date_range
from leave_portal.config import settings
from leave_portal.eligibility import deducts_pto, eligible_types, empty_state_message
from leave_portal.errors import DraftValidationError, LeaveApiError
from leave_portal.form_fields import (
    CheckboxField,
    DateField,
    FormField,
    MultilineField,
    SelectField,
    describe_field,
    parse_field_value,
)
from leave_portal.formatting import format_date_range, format_days
from leave_portal.models import LeaveRequestDraft, LeaveType, PTOBalance, SubmitLeavePayload
from leave_portal.observability import trace_span
from leave_portal.pto_balance import BalanceProjection, project
from leave_portal.session import SessionProvider, require_user

logger = logging.getLogger(__name__)

MY_REQUESTS_ROUTE = "/leave/my-requests"

# Scheduler signature: (delay_seconds, callback) -> handle with .cancel()
Scheduler = Callable[[float, Callable[[], None]], Any]


class WizardStep(IntEnum):
    SELECT_TYPE = 0
    CHOOSE_DATES = 1
    REVIEW = 2

    @property
    def label(self) -> str:
        return STEP_LABELS[self]


STEP_LABELS = {
    WizardStep.SELECT_TYPE: "Select Leave Type",
    WizardStep.CHOOSE_DATES: "Choose Dates",
    WizardStep.REVIEW: "Review & Submit",
}


class WizardPhase(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    FAILED = "failed"


def _call_later(delay: float, callback: Callable[[], None]):
    return asyncio.get_running_loop().call_later(delay, callback)


class LeaveRequestWizard:
    """
    State machine behind the "Request Leave" form.

    Collaborators are injected: ``api`` provides leave types, balance and
    submission; ``session`` identifies the requester; ``scheduler`` runs
    the post-submit navigation; ``on_navigate`` receives the target route.
    """

    def __init__(
        self,
        api,
        session: SessionProvider,
        *,
        scheduler: Scheduler | None = None,
        on_navigate: Callable[[str], None] | None = None,
        today: date | None = None,
        disable_past_dates: bool | None = None,
    ):
        self.api = api
        self.session = session
        self.scheduler = scheduler or _call_later
        self.on_navigate = on_navigate or (lambda route: None)
        self._today = today
        self.disable_past_dates = (
            settings.disable_past_dates if disable_past_dates is None else disable_past_dates
        )

        self.leave_types: list[LeaveType] = []
        self.balance: PTOBalance | None = None

        self.step = WizardStep.SELECT_TYPE
        self.phase = WizardPhase.EDITING
        self.draft = self._initial_draft()
        self.total_days: float = 0
        self.date_error: str | None = None
        self.errors: dict[str, str] = {}
        self.error = ""
        self.success_message = ""
        self.last_payload: SubmitLeavePayload | None = None
        self.closed = False
        self._redirect_handle = None

        self._recompute()

    @property
    def today(self) -> date:
        return self._today or date.today()

    def _initial_draft(self) -> LeaveRequestDraft:
        return LeaveRequestDraft(start_date=self.today, end_date=self.today)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Fetch leave types (required) and the PTO balance (decoration) in parallel."""
        types_result, balance_result = await asyncio.gather(
            self.api.list_leave_types(), self.api.get_my_balance(), return_exceptions=True
        )
        if self.closed:
            return

        if isinstance(types_result, LeaveApiError):
            self.error = types_result.message
        elif isinstance(types_result, BaseException):
            raise types_result
        else:
            self.leave_types = types_result

        if isinstance(balance_result, LeaveApiError):
            logger.warning(f"PTO balance unavailable: {balance_result.message}")
            self.balance = None
        elif isinstance(balance_result, BaseException):
            raise balance_result
        else:
            self.balance = balance_result

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def available_types(self) -> list[LeaveType]:
        user = require_user(self.session)
        return eligible_types(self.leave_types, user.classification)

    @property
    def empty_state(self) -> str | None:
        if self.available_types:
            return None
        return empty_state_message(require_user(self.session).classification)

    @property
    def selected_type(self) -> LeaveType | None:
        for leave_type in self.leave_types:
            if leave_type.leave_type_id == self.draft.leave_type_id:
                return leave_type
        return None

    @property
    def projection(self) -> BalanceProjection | None:
        """PTO impact of this draft, only for types that draw down PTO."""
        selected = self.selected_type
        if selected is None or not deducts_pto(selected.name):
            return None
        return project(self.balance, self.total_days)

    @property
    def warnings(self) -> list[str]:
        projection = self.projection
        return projection.warnings if projection else []

    @property
    def is_editable(self) -> bool:
        return self.phase in (WizardPhase.EDITING, WizardPhase.FAILED)

    @property
    def min_start_date(self) -> date | None:
        return date_range.minimum_selectable_date(self.disable_past_dates, self.today)

    @property
    def min_end_date(self) -> date | None:
        return date_range.end_date_floor(self.draft.start_date, self.disable_past_dates, self.today)

    def _recompute(self) -> None:
        result = date_range.compute_total_days(
            self.draft.start_date, self.draft.end_date, self.draft.is_half_day
        )
        self.total_days = result.total_days
        self.date_error = result.error

    # ------------------------------------------------------------------
    # Draft edits
    # ------------------------------------------------------------------

    def _ensure_editable(self) -> None:
        if not self.is_editable:
            raise DraftValidationError({"form": "This request can no longer be edited"})

    def select_leave_type(self, leave_type_id: int) -> None:
        self._ensure_editable()
        self.draft.leave_type_id = leave_type_id
        self.errors = {}

    def set_start_date(self, value: date | str | None) -> None:
        self._ensure_editable()
        start = date_range.to_date(value, "start_date")
        self.draft.start_date = start
        self.draft.end_date = date_range.autofill_end_date(start, self.draft.end_date)
        self.errors = {}
        self._recompute()

    def set_end_date(self, value: date | str | None) -> None:
        self._ensure_editable()
        self.draft.end_date = date_range.to_date(value, "end_date")
        self.errors = {}
        self._recompute()

    def set_half_day(self, is_half_day: bool) -> None:
        self._ensure_editable()
        self.draft.is_half_day = bool(is_half_day)
        self._recompute()

    def set_reason(self, reason: str) -> None:
        self._ensure_editable()
        self.draft.reason = reason or ""

    def form_fields(self) -> list[FormField]:
        """Inputs shown on the current step."""
        if self.step == WizardStep.SELECT_TYPE:
            return [
                SelectField(
                    name="leave_type_id",
                    label="Leave Type",
                    options=[(t.leave_type_id, t.name) for t in self.available_types],
                    required=True,
                )
            ]
        if self.step == WizardStep.CHOOSE_DATES:
            return [
                DateField(
                    name="start_date",
                    label="Start Date",
                    min_date=self.min_start_date,
                    required=True,
                ),
                DateField(
                    name="end_date",
                    label="End Date",
                    min_date=self.min_end_date,
                    required=True,
                ),
                CheckboxField(name="is_half_day", label="Half Day"),
                MultilineField(
                    name="reason", label="Reason", rows=4, max_length=settings.max_reason_length
                ),
            ]
        return []

    def apply_input(self, values: dict[str, Any]) -> None:
        """
        Apply raw form input for fields of the current step.

        Unknown or off-step field names are rejected; all field errors are
        collected and raised together.
        """
        fields = {f.name: f for f in self.form_fields()}
        errors: dict[str, str] = {}
        setters = {
            "leave_type_id": self.select_leave_type,
            "start_date": self.set_start_date,
            "end_date": self.set_end_date,
            "is_half_day": self.set_half_day,
            "reason": self.set_reason,
        }

        # start_date first so end-date auto-fill sees it
        for name in sorted(values, key=lambda n: n != "start_date"):
            if name not in fields:
                errors[name] = f"{name} cannot be changed on this step"
                continue
            try:
                setters[name](parse_field_value(fields[name], values[name]))
            except DraftValidationError as e:
                errors.update(e.errors)

        if errors:
            self.errors = errors
            raise DraftValidationError(errors)

    # ------------------------------------------------------------------
    # Validation & navigation
    # ------------------------------------------------------------------

    def validate_step(self, step: WizardStep) -> dict[str, str]:
        errors: dict[str, str] = {}

        if step == WizardStep.SELECT_TYPE:
            if self.draft.leave_type_id is None:
                errors["leave_type_id"] = "Please select a leave type"
            elif self.leave_types and self.draft.leave_type_id not in {
                t.leave_type_id for t in self.available_types
            }:
                errors["leave_type_id"] = "Selected leave type is not available to you"

        elif step == WizardStep.CHOOSE_DATES:
            if self.draft.start_date is None:
                errors["start_date"] = "Start date is required"
            if self.draft.end_date is None:
                errors["end_date"] = "End date is required"
            if self.date_error == date_range.END_BEFORE_START:
                errors["dates"] = "End date cannot be before start date"
            elif self.disable_past_dates and date_range.is_past_date(
                self.draft.start_date, self.today
            ):
                errors["dates"] = "Start date cannot be in the past"
            if len(self.draft.reason) > settings.max_reason_length:
                errors["reason"] = f"Reason cannot exceed {settings.max_reason_length} characters"

        return errors

    def next(self) -> bool:
        """Advance one step if the current step validates. Returns whether it moved."""
        if not self.is_editable or self.step == WizardStep.REVIEW:
            return False

        errors = self.validate_step(self.step)
        if errors:
            self.errors = errors
            return False

        self.errors = {}
        self.step = WizardStep(self.step + 1)
        return True

    def back(self) -> bool:
        if not self.is_editable or self.step == WizardStep.SELECT_TYPE:
            return False
        self.errors = {}
        self.step = WizardStep(self.step - 1)
        return True

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def build_payload(self) -> SubmitLeavePayload:
        return SubmitLeavePayload(
            leave_type_id=self.draft.leave_type_id,
            start_date=self.draft.start_date,
            end_date=self.draft.end_date,
            reason=self.draft.reason,
            total_days=self.total_days,
        )

    async def submit(self) -> bool:
        """
        Send the draft to the backend.

        Validation of the first two steps runs again first; a failure keeps
        the wizard on the review step and never reaches the network. A
        backend failure leaves the draft untouched so the user can resubmit.
        """
        if not self.is_editable or self.step != WizardStep.REVIEW:
            return False

        errors = {
            **self.validate_step(WizardStep.SELECT_TYPE),
            **self.validate_step(WizardStep.CHOOSE_DATES),
        }
        if errors:
            self.errors = errors
            return False

        payload = self.build_payload()
        self.phase = WizardPhase.SUBMITTING
        self.error = ""
        self.errors = {}

        try:
            with trace_span(
                "submit_leave_request",
                leave_type=payload.leave_type_id,
                days=payload.total_days,
            ):
                result = await self.api.submit_request(payload)
        except LeaveApiError as e:
            logger.warning(f"Leave request submission failed: {e.message}")
            self._fail(e.message)
            return False
        except BaseException:
            # includes cancellation; the wizard never stays in SUBMITTING
            self._fail("Failed to submit leave request")
            raise

        self.last_payload = payload
        if self.closed:
            logger.debug("Wizard closed before submission returned; skipping redirect")
            return True

        self.phase = WizardPhase.SUBMITTED
        self.success_message = result.message
        self.draft = self._initial_draft()
        self.step = WizardStep.SELECT_TYPE
        self._recompute()
        self._redirect_handle = self.scheduler(
            settings.post_submit_redirect_seconds, lambda: self._navigate(MY_REQUESTS_ROUTE)
        )
        return True

    def _fail(self, message: str) -> None:
        """Leave SUBMITTING for FAILED on the review step, draft untouched."""
        self.phase = WizardPhase.FAILED
        self.step = WizardStep.REVIEW
        if not self.closed:
            self.error = message

    def _navigate(self, route: str) -> None:
        if self.closed:
            return
        self.on_navigate(route)

    def close(self) -> None:
        """Abandon the wizard: discard late responses and any pending redirect."""
        self.closed = True
        if self._redirect_handle is not None:
            self._redirect_handle.cancel()
            self._redirect_handle = None

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def review_summary(self) -> dict[str, Any]:
        selected = self.selected_type
        return {
            "leave_type": selected.name if selected else None,
            "dates": format_date_range(self.draft.start_date, self.draft.end_date),
            "duration": format_days(self.total_days),
            "reason": self.draft.reason,
            "deducts_pto": bool(selected and deducts_pto(selected.name)),
        }

    def to_dict(self) -> dict[str, Any]:
        projection = self.projection
        values = {
            "leave_type_id": self.draft.leave_type_id,
            "start_date": self.draft.start_date,
            "end_date": self.draft.end_date,
            "is_half_day": self.draft.is_half_day,
            "reason": self.draft.reason,
        }
        return {
            "step": int(self.step),
            "step_label": self.step.label,
            "phase": self.phase.value,
            "draft": {
                k: v.isoformat() if isinstance(v, date) else v for k, v in values.items()
            },
            "total_days": self.total_days,
            "fields": [describe_field(f, values.get(f.name)) for f in self.form_fields()],
            "errors": self.errors,
            "error": self.error,
            "success_message": self.success_message,
            "empty_state": self.empty_state if self.step == WizardStep.SELECT_TYPE else None,
            "projection": (
                {
                    "used_pct": projection.used_pct,
                    "remaining_pct": projection.remaining_pct,
                    "projected_remaining": projection.projected_remaining,
                    "status": projection.status.value,
                    "over_budget": projection.over_budget,
                }
                if projection
                else None
            ),
            "warnings": self.warnings,
            "review": self.review_summary() if self.step == WizardStep.REVIEW else None,
        }
