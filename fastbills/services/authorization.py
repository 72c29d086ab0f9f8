# ==============================================================================
# AUTHORIZATION POLICY
# ==============================================================================
# The single place where "may this session do that?" is answered. Every
# mutating entry point calls require_session() or require_role(); the Flask
# decorators in main.py consult authorize() for the same answer.
# ==============================================================================

from dataclasses import dataclass
from typing import Optional, Type

from fastbills.errors import NoSession, PermissionDenied, StoreError
from fastbills.models import User, UserRole


@dataclass(frozen=True)
class AuthDecision:
    """
    Outcome of an authorization check.

    Attributes:
        allowed: Whether the operation may proceed
        reason: Message shown when it may not
        error: StoreError subclass to raise when it may not
    """
    allowed: bool
    reason: str = ''
    error: Optional[Type[StoreError]] = None

    def enforce(self) -> None:
        """Raises the decision's error when the operation is not allowed."""
        if not self.allowed:
            raise self.error(self.reason)


ALLOW = AuthDecision(allowed=True)


def authorize(user: Optional[User], role: Optional[UserRole] = None) -> AuthDecision:
    """
    Decides whether a user may perform an operation.

    Args:
        user: Session user (None when logged out)
        role: Role the operation requires (None = any logged-in user)
    """
    if user is None:
        if role is not None:
            return AuthDecision(False, 'Permission denied', PermissionDenied)
        return AuthDecision(False, 'No user logged in', NoSession)
    if role is not None and user.role != role:
        return AuthDecision(False, f'Only {role.value}s can perform this action', PermissionDenied)
    return ALLOW


def require_session(user: Optional[User]) -> User:
    authorize(user).enforce()
    return user


def require_role(user: Optional[User], role: UserRole) -> User:
    authorize(user, role).enforce()
    return user
