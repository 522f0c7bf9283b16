"""
Sample leave data for development and tests.
Payloads are shaped like the live API responses (camelCase, with the
occasional PascalCase key the backend still emits) so they exercise the
same normalization path.
"""

import copy

LEAVE_TYPES = [
    {
        "leaveTypeId": 1,
        "typeName": "PTO",
        "description": "Paid time off, deducted from the annual PTO balance",
        "isPaidLeave": True,
        "requiresApproval": True,
        "maxDaysPerYear": 20,
        "requiresFullTimeStatus": True,
        "isActive": True,
    },
    {
        "leaveTypeId": 2,
        "typeName": "Unpaid Leave",
        "description": "Time off without pay",
        "isPaidLeave": False,
        "requiresApproval": True,
        "isActive": True,
    },
    {
        "LeaveTypeId": 3,
        "TypeName": "Bereavement",
        "Description": "Paid leave following the death of a family member",
        "IsPaidLeave": True,
        "RequiresApproval": True,
        "MaxDaysPerYear": 5,
        "IsActive": True,
    },
    {
        "leaveTypeId": 4,
        "typeName": "Jury Duty",
        "description": "Court-mandated jury service",
        "isPaidLeave": True,
        "requiresApproval": False,
        "isActive": True,
    },
    {
        "leaveTypeId": 5,
        "typeName": "Medical Leave",
        "description": "Extended unpaid medical leave",
        "isPaidLeave": False,
        "requiresApproval": True,
        "isActive": True,
    },
    {
        "leaveTypeId": 6,
        "typeName": "Sabbatical",
        "description": "Retired leave type",
        "isPaidLeave": True,
        "requiresApproval": True,
        "isActive": False,
    },
]

EMPLOYEES = {
    101: {
        "employeeId": 101,
        "fullName": "Dana Whitfield",
        "department": "Operations",
        "classification": "Admin Staff",
    },
    102: {
        "employeeId": 102,
        "fullName": "Luis Ortega",
        "department": "Field Services",
        "classification": "Field Staff",
    },
    103: {
        "employeeId": 103,
        "fullName": "Morgan Lee",
        "department": "Operations",
        "classification": "Admin Staff",
    },
}

PTO_BALANCES = {
    101: {
        "totalPTODays": 20,
        "usedPTODays": 15,
        "remainingPTODays": 5,
        "pendingPTODays": 2,
        "year": 2026,
        "isEligible": True,
        "accrualRate": 1.67,
    },
    102: None,
    103: {
        "totalPTODays": 15,
        "usedPTODays": 3,
        "remainingPTODays": 12,
        "year": 2026,
        "isEligible": True,
    },
}

LEAVE_REQUESTS = [
    {
        "leaveRequestId": 1,
        "employeeId": 101,
        "employee": {"fullName": "Dana Whitfield", "department": "Operations"},
        "leaveTypeName": "PTO",
        "isPaidLeave": True,
        "startDate": "2026-03-02",
        "endDate": "2026-03-06",
        "totalDays": 5,
        "reason": "Family vacation",
        "status": "Approved",
        "requestedAt": "2026-02-10T09:15:00",
        "approvedBy": "Morgan Lee",
        "approvedAt": "2026-02-11T14:00:00",
    },
    {
        "leaveRequestId": 2,
        "employeeId": 101,
        "employee": {"fullName": "Dana Whitfield", "department": "Operations"},
        "leaveTypeName": "PTO",
        "isPaidLeave": True,
        "startDate": "2026-11-16",
        "endDate": "2026-11-17",
        "totalDays": 2,
        "reason": "Moving apartments",
        "status": "Pending",
        "requestedAt": "2026-10-01T08:30:00",
        "canCancel": True,
    },
    {
        "leaveRequestId": 3,
        "employeeId": 101,
        "employee": {"fullName": "Dana Whitfield", "department": "Operations"},
        "LeaveType": "Unpaid Leave",
        "StartDate": "2026-05-11",
        "EndDate": "2026-05-11",
        "TotalDays": 0.5,
        "Reason": "Dentist appointment",
        "Status": "Rejected",
        "RequestedAt": "2026-05-01T10:00:00",
        "RejectionReason": "Team coverage is too thin that afternoon",
    },
    {
        "leaveRequestId": 4,
        "employeeId": 102,
        "employee": {"fullName": "Luis Ortega", "department": "Field Services"},
        "leaveTypeName": "Unpaid Leave",
        "startDate": "2026-11-02",
        "endDate": "2026-11-04",
        "totalDays": 3,
        "reason": "Personal matters",
        "status": "Pending",
        "requestedAt": "2026-10-05T16:45:00",
        "canCancel": True,
    },
    {
        "leaveRequestId": 5,
        "employeeId": 103,
        "employee": {"fullName": "Morgan Lee", "department": "Operations"},
        "leaveTypeName": "Bereavement",
        "isPaidLeave": True,
        "startDate": "2026-09-21",
        "endDate": "2026-09-23",
        "totalDays": 3,
        "reason": "Funeral",
        "status": "Cancelled",
        "requestedAt": "2026-09-18T07:20:00",
    },
]


def get_leave_types():
    """Return a fresh copy of the leave type catalog."""
    return copy.deepcopy(LEAVE_TYPES)


def get_leave_requests():
    """Return a fresh copy of every leave request."""
    return copy.deepcopy(LEAVE_REQUESTS)


def get_pto_balance(employee_id: int):
    """Get PTO balance payload by employee ID (None for ineligible staff)."""
    return copy.deepcopy(PTO_BALANCES.get(employee_id))


def get_employee(employee_id: int):
    """Get employee data by ID."""
    return copy.deepcopy(EMPLOYEES.get(employee_id))
