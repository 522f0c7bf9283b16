"""
Tests for the requester's own leave history view.
"""

import asyncio

import pytest

from leave_portal.errors import LeaveApiError
from leave_portal.models import FilterState, LeaveStatus
from leave_portal.my_requests import MyRequestsView
from leave_portal.pto_balance import BalanceStatus


@pytest.fixture
def view(memory_backend, admin_session):
    view = MyRequestsView(memory_backend, admin_session)
    asyncio.run(view.load())
    return view


class TestLoad:
    def test_only_own_requests_newest_first(self, view):
        assert [r.leave_request_id for r in view.visible_requests] == [2, 3, 1]
        assert view.error == ""
        assert not view.loading

    def test_stats(self, view):
        stats = view.stats

        assert stats.total == 3
        assert stats.pending == 1
        assert stats.approved == 1
        assert stats.rejected == 1
        assert view.approved_days == 5

    def test_projection_counts_pending_pto(self, view):
        """5 remaining minus the 2 pending PTO days."""
        assert view.pending_pto_days == 2
        assert view.projection.projected_remaining == 3
        assert view.projection.status == BalanceStatus.LOW

    def test_filters(self, view):
        view.filters = FilterState(status_filter=LeaveStatus.REJECTED)

        assert [r.leave_request_id for r in view.visible_requests] == [3]

        view.filters = FilterState(search_term="vacation")
        assert [r.leave_request_id for r in view.visible_requests] == [1]

    def test_leave_type_options(self, view):
        assert "Bereavement" in view.leave_type_options

    def test_lookup_failures_degrade(self, fake_api, admin_session, leave_request):
        fake_api.list_my_requests.return_value = [leave_request(2)]
        fake_api.list_leave_types.side_effect = LeaveApiError("Failed to load leave types")
        fake_api.get_my_balance.side_effect = LeaveApiError("Failed to load PTO balance")
        view = MyRequestsView(fake_api, admin_session)

        asyncio.run(view.load())

        assert view.error == ""
        assert len(view.requests) == 1
        assert view.leave_type_options == []
        assert view.projection.status == BalanceStatus.NOT_APPLICABLE

    def test_request_list_failure_is_shown(self, fake_api, admin_session):
        fake_api.list_my_requests.side_effect = LeaveApiError("Failed to load leave requests")
        view = MyRequestsView(fake_api, admin_session)

        asyncio.run(view.load())

        assert view.error == "Failed to load leave requests"
        assert view.requests == []

    def test_unexpected_errors_propagate(self, fake_api, admin_session):
        fake_api.list_my_requests.side_effect = RuntimeError("bug")
        view = MyRequestsView(fake_api, admin_session)

        with pytest.raises(RuntimeError):
            asyncio.run(view.load())

    def test_refresh_reports_success(self, view):
        asyncio.run(view.refresh())

        assert view.success_message == "Leave requests refreshed successfully"

    def test_superseded_refresh_reports_nothing(self, fake_api, admin_session, leave_request):
        async def scenario():
            release = asyncio.Event()
            calls = 0

            async def list_my_requests():
                nonlocal calls
                calls += 1
                if calls == 1:
                    await release.wait()
                return [leave_request(2)]

            fake_api.list_my_requests.side_effect = list_my_requests
            view = MyRequestsView(fake_api, admin_session)

            refresh = asyncio.create_task(view.refresh())
            await asyncio.sleep(0)
            assert await view.load()
            release.set()
            await refresh

            assert view.success_message == ""
            assert len(view.requests) == 1

        asyncio.run(scenario())


class TestCancel:
    def test_cancel_flow(self, view):
        dialog = view.request_cancel(2)
        assert "Cancel your PTO request for 2 days" in dialog.summary

        assert asyncio.run(view.confirm_cancel())

        cancelled = next(r for r in view.requests if r.leave_request_id == 2)
        assert cancelled.status is LeaveStatus.CANCELLED
        assert not cancelled.can_cancel
        assert view.success_message == "Leave request cancelled successfully"
        assert view.dialog is None
        assert view.pending_pto_days == 0

    def test_decided_requests_cannot_be_cancelled(self, view):
        assert view.request_cancel(1) is None
        assert view.error == "Only your own pending requests can be cancelled"
        assert view.dialog is None

    def test_confirm_without_dialog_does_nothing(self, view):
        assert not asyncio.run(view.confirm_cancel())

    def test_backend_refusal_keeps_dialog(self, fake_api, admin_session, leave_request):
        fake_api.list_my_requests.return_value = [leave_request(2)]
        fake_api.cancel_request.side_effect = LeaveApiError(
            "Leave request is already approved", status_code=409
        )
        view = MyRequestsView(fake_api, admin_session)
        asyncio.run(view.load())
        view.request_cancel(2)

        assert not asyncio.run(view.confirm_cancel())

        assert view.error == "Leave request is already approved"
        assert view.error_status == 409
        assert view.dialog is not None
        assert view.requests[0].status is LeaveStatus.PENDING

    def test_dialog_stays_open_while_cancelling(self, fake_api, admin_session, leave_request):
        async def scenario():
            release = asyncio.Event()

            async def slow_cancel(leave_request_id):
                await release.wait()
                return "Leave request cancelled successfully"

            fake_api.list_my_requests.return_value = [leave_request(2)]
            fake_api.cancel_request.side_effect = slow_cancel
            view = MyRequestsView(fake_api, admin_session)
            await view.load()
            view.request_cancel(2)

            task = asyncio.create_task(view.confirm_cancel())
            await asyncio.sleep(0)
            view.dismiss_dialog()
            assert view.dialog is not None
            assert await view.confirm_cancel() is False

            release.set()
            assert await task
            assert view.dialog is None

        asyncio.run(scenario())
