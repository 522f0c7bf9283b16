"""
Pytest configuration and fixtures.
Shared test utilities and sample data.
"""

from datetime import date, datetime
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from data.sample_leave_data import get_leave_types
from leave_portal.api_client import InMemoryLeaveBackend, SubmitResult
from leave_portal.models import LeaveRequest, LeaveStatus, PTOBalance
from leave_portal.normalize import leave_types_from_api
from leave_portal.session import CurrentUser, StaticSession

TODAY = date(2026, 10, 18)


@pytest.fixture
def admin_user():
    """Admin Staff employee with a PTO balance."""
    return CurrentUser(
        user_id=1,
        employee_id=101,
        full_name="Dana Whitfield",
        classification="Admin Staff",
        department="Operations",
    )


@pytest.fixture
def field_user():
    """Field Staff employee, not eligible for PTO."""
    return CurrentUser(
        user_id=2,
        employee_id=102,
        full_name="Luis Ortega",
        classification="Field Staff",
        department="Field Services",
    )


@pytest.fixture
def reviewer():
    return CurrentUser(
        user_id=3,
        employee_id=103,
        full_name="Morgan Lee",
        classification="Admin Staff",
        role="Director",
        department="Operations",
    )


@pytest.fixture
def admin_session(admin_user):
    return StaticSession(admin_user)


@pytest.fixture
def reviewer_session(reviewer):
    return StaticSession(reviewer)


@pytest.fixture
def leave_types():
    """Sample catalog, normalized."""
    return leave_types_from_api(get_leave_types())


@pytest.fixture
def balance():
    return PTOBalance(total_pto_days=20, used_pto_days=15, remaining_pto_days=5, year=2026)


def make_request(leave_request_id=1, **overrides):
    """Build a LeaveRequest with sensible defaults."""
    fields = {
        "leave_request_id": leave_request_id,
        "employee_id": 101,
        "employee_name": "Dana Whitfield",
        "department": "Operations",
        "leave_type": "PTO",
        "start_date": date(2026, 11, 16),
        "end_date": date(2026, 11, 17),
        "total_days": 2,
        "reason": "Moving apartments",
        "status": LeaveStatus.PENDING,
        "requested_at": datetime(2026, 10, 1, 8, 30),
        "can_cancel": True,
        "is_paid_leave": True,
    }
    fields.update(overrides)
    return LeaveRequest(**fields)


@pytest.fixture
def fake_api(leave_types, balance):
    """Leave API double with async methods and sensible default answers."""
    api = Mock()
    api.list_leave_types = AsyncMock(return_value=leave_types)
    api.get_my_balance = AsyncMock(return_value=balance)
    api.list_my_requests = AsyncMock(return_value=[])
    api.list_pending_approvals = AsyncMock(return_value=[])
    api.submit_request = AsyncMock(
        return_value=SubmitResult("Leave request submitted successfully!", leave_request_id=9)
    )
    api.cancel_request = AsyncMock(return_value="Leave request cancelled successfully")
    api.approve_request = AsyncMock(return_value="Leave request approved")
    api.reject_request = AsyncMock(return_value="Leave request rejected")
    return api


@pytest.fixture
def memory_backend(admin_session):
    return InMemoryLeaveBackend(admin_session)


@pytest.fixture
def test_client():
    """FastAPI test client with the app lifespan running."""
    from leave_portal.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def leave_request():
    """Factory for LeaveRequest objects: ``leave_request(2, status=...)``."""
    return make_request


@pytest.fixture
def today():
    return TODAY
