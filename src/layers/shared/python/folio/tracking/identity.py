"""Visitor and session identifiers for the capture client."""

from collections.abc import MutableMapping

from ulid import ULID

SESSION_TIMEOUT_SECONDS = 30 * 60

VISITOR_KEY = "folio_visitor_id"
SESSION_KEY = "folio_session_id"
LAST_ACTIVITY_KEY = "folio_last_activity"


def generate_visitor_id() -> str:
    return f"vis_{str(ULID()).lower()}"


def generate_session_id() -> str:
    return f"sess_{str(ULID()).lower()}"


class IdentityStore:
    """Assigns visitor and session identifiers.

    The visitor id lives in persistent storage and never expires. The
    session id lives in per-tab storage and is replaced once 30 minutes
    pass without activity.
    """

    def __init__(
        self,
        persistent: MutableMapping[str, str],
        session_storage: MutableMapping[str, str],
        timeout_seconds: float = SESSION_TIMEOUT_SECONDS,
    ):
        """Initialize identity store.

        Args:
            persistent: Storage surviving browser restarts.
            session_storage: Storage scoped to the browsing session.
            timeout_seconds: Inactivity timeout for sessions.
        """
        self.persistent = persistent
        self.session_storage = session_storage
        self.timeout_seconds = timeout_seconds

    @property
    def visitor_id(self) -> str:
        """The visitor id, created on first access."""
        visitor_id = self.persistent.get(VISITOR_KEY)
        if not visitor_id:
            visitor_id = generate_visitor_id()
            self.persistent[VISITOR_KEY] = visitor_id
        return visitor_id

    def resolve_session(self, now: float) -> tuple[str, bool]:
        """Return the current session id, starting a new session if expired.

        Also records `now` as the latest activity.

        Args:
            now: Current time in seconds.

        Returns:
            Tuple of (session_id, is_new).
        """
        session_id = self.session_storage.get(SESSION_KEY)
        last_activity = self.session_storage.get(LAST_ACTIVITY_KEY)

        is_new = False
        if not session_id or last_activity is None or now - float(last_activity) > self.timeout_seconds:
            session_id = generate_session_id()
            self.session_storage[SESSION_KEY] = session_id
            is_new = True

        self.session_storage[LAST_ACTIVITY_KEY] = str(now)
        return session_id, is_new
