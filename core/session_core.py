"""
Session Core - Login State and Primary Account.

Keeps at most one Session per app run and the write-once primary account
(the first credentials ever used on the installation).
"""

import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait

from core.errors import InvalidCredentials
from core.models import PrimaryAccountRecord, Session, login_audit_document
from device.interfaces.record_store import LOGIN_COLLECTION, RecordStoreInterface
from logging_config import get_logger
from utils.preferences import FIRST_PASSWORD_KEY, FIRST_USERNAME_KEY, PreferencesStore

logger = get_logger(__name__)

SessionListener = Callable[[Session | None], None]


class SessionManager:
    """
    Tracks the logged-in user.

    `is_primary` is computed once, at login, and never recomputed. A reset
    only forces it to False; the current user becomes primary again only
    by logging in again.
    """

    def __init__(
        self,
        preferences: PreferencesStore,
        record_store: RecordStoreInterface,
        audit_executor: ThreadPoolExecutor | None = None,
    ):
        """
        Initialize the session manager.

        Args:
            preferences: Local key-value store holding the primary account.
            record_store: Backend receiving the login audit log.
            audit_executor: Executor for fire-and-forget audit writes.
        """
        self._preferences = preferences
        self._store = record_store
        self._owns_executor = audit_executor is None
        self._executor = audit_executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="LoginAudit"
        )

        self._session: Session | None = None
        self._lock = threading.Lock()
        self._listeners: list[SessionListener] = []
        self._pending_audits: set[Future] = set()
        self._audit_lock = threading.Lock()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def current_session(self) -> Session | None:
        with self._lock:
            return self._session

    @property
    def is_logged_in(self) -> bool:
        return self.current_session is not None

    @property
    def primary_account(self) -> PrimaryAccountRecord | None:
        """The persisted primary account, if one has been locked in."""
        username = self._preferences.get(FIRST_USERNAME_KEY)
        secret = self._preferences.get(FIRST_PASSWORD_KEY)
        if username is None or secret is None:
            return None
        return PrimaryAccountRecord(username=str(username), secret=str(secret))

    def add_listener(self, listener: SessionListener) -> None:
        """Registers a callback invoked with the new session on every change."""
        self._listeners.append(listener)

    def _set_session(self, session: Session | None) -> None:
        with self._lock:
            self._session = session
        for listener in list(self._listeners):
            listener(session)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def login(self, username: str, secret: str) -> Session:
        """
        Starts a session, locking in the primary account on first login.

        Raises:
            InvalidCredentials: If either field is empty.
            LocalStorageUnavailable: If the primary account cannot be persisted.
        """
        if not username or not secret:
            raise InvalidCredentials()

        primary = self.primary_account
        if primary is None:
            self._preferences.set_many(
                {FIRST_USERNAME_KEY: username, FIRST_PASSWORD_KEY: secret}
            )
            primary = PrimaryAccountRecord(username=username, secret=secret)
            logger.info(f"Primary account set to {username}")

        session = Session(
            username=username,
            secret=secret,
            is_primary=primary.matches(username, secret),
        )
        self._set_session(session)
        logger.info(f"Logged in as {username} (primary={session.is_primary})")

        self._submit_audit(session)
        return session

    def logout(self) -> None:
        """Ends the current session. The primary account is kept."""
        if self.current_session is not None:
            logger.info("Logged out")
        self._set_session(None)

    def reset_primary_account(self) -> None:
        """Forgets the primary account; the current session is no longer primary."""
        self._preferences.remove(FIRST_USERNAME_KEY, FIRST_PASSWORD_KEY)
        with self._lock:
            session = self._session
        if session is not None and session.is_primary:
            self._set_session(
                Session(username=session.username, secret=session.secret, is_primary=False)
            )
        logger.info("Primary account reset")

    # ------------------------------------------------------------------
    # Audit log
    # ------------------------------------------------------------------

    def _submit_audit(self, session: Session) -> None:
        future = self._executor.submit(self._publish_audit, session)
        with self._audit_lock:
            self._pending_audits.add(future)
        future.add_done_callback(self._forget_audit)

    def _forget_audit(self, future: Future) -> None:
        with self._audit_lock:
            self._pending_audits.discard(future)

    def _publish_audit(self, session: Session) -> None:
        try:
            self._store.append(LOGIN_COLLECTION, login_audit_document(session))
        except Exception as e:
            # Best effort: a failed audit write never fails the login.
            logger.warning(f"Login audit for {session.username} not recorded: {e}")

    def flush_audit(self, timeout: float | None = None) -> None:
        """Waits for outstanding audit writes."""
        with self._audit_lock:
            pending = list(self._pending_audits)
        if pending:
            wait(pending, timeout=timeout)

    def close(self) -> None:
        self.flush_audit(timeout=5.0)
        if self._owns_executor:
            self._executor.shutdown(wait=True)
