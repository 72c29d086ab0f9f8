# ==============================================================================
# SESSION SERVICE
# ==============================================================================
# Users, login/logout and the current-session holder. There is exactly one
# session per store: the user logged in at the till.
# ==============================================================================

import logging
from typing import List, Optional

from fastbills.models import User, UserRole
from fastbills.repositories import KEY_CURRENT_USER, KEY_USERS
from fastbills.services import authorization
from fastbills.services.credentials import ICredentialVerifier, PlaintextCredentialVerifier
from fastbills.services.persistence_service import PersistenceService
from fastbills.state import StoreState

logger = logging.getLogger(__name__)


class SessionService:
    """
    Identity and session management.

    Responsibilities:
    - Check credentials and open the session
    - Close the session
    - Expose the role gate used by the other services
    """

    def __init__(
        self,
        state: StoreState,
        persistence: PersistenceService,
        verifier: ICredentialVerifier = None
    ):
        """
        Args:
            state: Shared application state
            persistence: Persistence service
            verifier: Credential verifier (plain text by default)
        """
        self.state = state
        self.persistence = persistence
        self.verifier = verifier or PlaintextCredentialVerifier()

    # =========================================================================
    # LOGIN / LOGOUT
    # =========================================================================

    def login(self, name: str, password: str) -> Optional[User]:
        """
        Opens a session for the user with that name and password.

        Args:
            name: Display name used as login
            password: Submitted password

        Returns:
            The user, or None if the credentials do not match
        """
        for user in self.state.users:
            if user.name == name and self.verifier.verify(user.password, password):
                self.state.current_user = user
                self.persistence.persist(KEY_CURRENT_USER)
                logger.info("User %s logged in (%s)", user.name, user.role.value)
                return user

        logger.warning("Failed login for %r", name)
        return None

    def logout(self) -> None:
        user = self.state.current_user
        self.state.current_user = None
        self.persistence.persist(KEY_CURRENT_USER)
        if user is not None:
            logger.info("User %s logged out", user.name)

    @property
    def current_user(self) -> Optional[User]:
        return self.state.current_user

    # =========================================================================
    # ROLE GATE
    # =========================================================================

    def require_session(self) -> User:
        """
        Raises:
            NoSession: Nobody is logged in
        """
        return authorization.require_session(self.state.current_user)

    def require_role(self, role: UserRole) -> User:
        """
        Raises:
            PermissionDenied: No session, or the session has another role
        """
        return authorization.require_role(self.state.current_user, role)

    # =========================================================================
    # USERS
    # =========================================================================

    def get_user(self, user_id: str) -> Optional[User]:
        for user in self.state.users:
            if user.id == user_id:
                return user
        return None

    def list_users(self) -> List[User]:
        return list(self.state.users)

    def add_user(self, user: User) -> User:
        """
        Adds a user to the in-memory list.

        The list is only saved if a later operation persists the users key.

        Raises:
            ValueError: Duplicate id or name
        """
        for existing in self.state.users:
            if existing.id == user.id or existing.name == user.name:
                raise ValueError(f"User {user.name!r} already exists")
        self.state.users.append(user)
        return user

    def persist_users(self) -> None:
        self.persistence.persist(KEY_USERS)
