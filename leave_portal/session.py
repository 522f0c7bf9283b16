"""
Explicit session context.

Views and workflows receive a ``SessionProvider``; nothing reads the
logged-in user from ambient storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class CurrentUser:
    user_id: int
    employee_id: int
    full_name: str
    classification: str = "Admin Staff"
    role: str = "Employee"
    department: str = ""
    access_token: str | None = None


class SessionProvider(Protocol):
    def get_current_user(self) -> CurrentUser | None: ...


class StaticSession:
    """Session bound to one user for its whole lifetime (one API request, one test)."""

    def __init__(self, user: CurrentUser | None):
        self._user = user

    def get_current_user(self) -> CurrentUser | None:
        return self._user


def require_user(session: SessionProvider) -> CurrentUser:
    user = session.get_current_user()
    if user is None:
        raise PermissionError("No user is signed in")
    return user
