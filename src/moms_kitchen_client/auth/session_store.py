"""Session store holding the signed-in user's credentials.

The store is the single writer of session state: every change goes through
one of its action methods, is persisted immediately and then announced to
subscribers.
"""

import logging
from collections.abc import Callable

from moms_kitchen_client.models.session_models import Session, UserProfile
from moms_kitchen_client.repositories.local_storage import LocalStorage

logger = logging.getLogger(__name__)

SESSION_STORAGE_KEY = "auth"

SessionListener = Callable[[Session], None]


class SessionStore:
    """Access/refresh tokens and current user profile, persisted across restarts."""

    def __init__(self, storage: LocalStorage) -> None:
        """Initialize an empty (logged out) session.

        Args:
            storage: Durable storage used to persist the session
        """
        self.storage = storage
        self._session = Session()
        self._listeners: list[SessionListener] = []

    @property
    def session(self) -> Session:
        return self._session.model_copy()

    @property
    def access_token(self) -> str | None:
        return self._session.access_token

    @property
    def refresh_token(self) -> str | None:
        return self._session.refresh_token

    @property
    def user(self) -> UserProfile | None:
        return self._session.user

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    def get_access_token(self) -> str | None:
        """Return the current access token, or None when logged out."""
        return self._session.access_token

    def load(self) -> Session:
        """Rehydrate the session persisted by a previous run.

        Unreadable or malformed records leave the session logged out.

        Returns:
            The loaded session
        """
        record = self.storage.get_item(SESSION_STORAGE_KEY)
        if isinstance(record, dict):
            try:
                self._session = Session.from_storage(record)
            except ValueError as e:
                logger.warning(f"Discarding malformed persisted session: {e}")
                self._session = Session()
        self._notify()
        return self.session

    def login(self, access_token: str, refresh_token: str, user: UserProfile | None) -> None:
        """Replace tokens and user together after a successful login."""
        self._session = Session(access_token=access_token, refresh_token=refresh_token, user=user)
        self._persist()
        logger.info("Session started")

    def set_access_token(self, access_token: str) -> None:
        """Store a refreshed access token, keeping refresh token and user."""
        self._session = self._session.model_copy(update={"access_token": access_token})
        self._persist()

    def set_user(self, user: UserProfile) -> None:
        """Store a freshly fetched profile."""
        self._session = self._session.model_copy(update={"user": user})
        self._persist()

    def logout(self) -> None:
        """Null every field and drop the persisted session."""
        self._session = Session()
        self.storage.remove_item(SESSION_STORAGE_KEY)
        self._notify()
        logger.info("Session cleared")

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener called with the new session after every change.

        Returns:
            A function that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _persist(self) -> None:
        if not self.storage.set_item(SESSION_STORAGE_KEY, self._session.to_storage()):
            logger.warning("Session was not persisted and will not survive a restart")
        self._notify()

    def _notify(self) -> None:
        snapshot = self.session
        for listener in list(self._listeners):
            listener(snapshot)
