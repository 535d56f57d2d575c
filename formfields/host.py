"""
Host collaborators — the services a Container calls into.

The core never talks to a database, a request object or an auth system
directly.  A host supplies one implementation of each interface below,
bundled in a Host:

    host = Host(
        storage=MetaStoreClient(conn),
        security=GrantSecurityPolicy(conn, user="alice", secret=settings.secret),
        submission=FormSubmission(request.form),
        snapshots=RevisionTracker(),
    )

In-memory implementations live in formfields.memory; PostgreSQL-backed
ones live in the store package.
"""

import hashlib
import hmac
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)

# Lifecycle events a Container subscribes to.
RENDER_EVENT = "render_form"
SAVE_EVENT = "save_entity"

DEFAULT_PRIORITY = 10


@dataclass
class Entity:
    """Minimal host object a Container renders and saves against."""
    id: str
    entity_type: str = "post"
    title: str = ""


class MetaStore(ABC):
    """Per-entity key/value storage for field values."""

    @abstractmethod
    def read_value(self, entity_id: str, field_name: str, default: Any = None) -> Any:
        """Return the stored value, or *default* when nothing is stored."""

    @abstractmethod
    def write_value(self, entity_id: str, field_name: str, value: Any) -> None:
        """Insert or replace the stored value."""

    @abstractmethod
    def delete_value(self, entity_id: str, field_name: str) -> bool:
        """Remove the stored value. Returns True if something was removed."""


class SecurityPolicy(ABC):
    """Capability checks and anti-forgery tokens for the current actor."""

    @abstractmethod
    def can_edit_field(self, entity_id: str, field_name: str) -> bool:
        """May the current actor write *field_name* on *entity_id*?"""

    @abstractmethod
    def issue_anti_forgery_token(self, scope: str) -> str:
        """Return an opaque token bound to *scope*."""

    @abstractmethod
    def verify_anti_forgery_token(self, scope: str, token: Optional[str]) -> bool:
        """Check a token previously issued for *scope*."""


class SubmissionCarrier(ABC):
    """Source of raw submitted values (e.g. a POST body)."""

    @abstractmethod
    def read_submitted_value(self, field_name: str) -> Any:
        """Return the raw value, or None when the key was not submitted."""


class SnapshotChecker(ABC):
    """Tells the core whether an entity is a non-final state."""

    @abstractmethod
    def is_transient_snapshot(self, entity_id: str) -> bool:
        """True for revisions and autosaves, which must never be written to."""


@dataclass
class Host:
    """The set of collaborators one Container works with."""
    storage: MetaStore
    security: SecurityPolicy
    submission: SubmissionCarrier
    snapshots: SnapshotChecker


class LifecycleHooks:
    """
    Minimal event bus for "about to render" / "about to save" notifications.

    Handlers run in ascending priority, then in subscription order:

        hooks = LifecycleHooks()
        hooks.add_action(SAVE_EVENT, container.save)
        hooks.do_action(SAVE_EVENT, post.id, post)
    """

    def __init__(self):
        self._handlers: dict[str, list[tuple[int, int, Callable]]] = {}
        self._counter = 0

    def add_action(self, event: str, handler: Callable, priority: int = DEFAULT_PRIORITY) -> None:
        self._counter += 1
        self._handlers.setdefault(event, []).append((priority, self._counter, handler))
        self._handlers[event].sort(key=lambda entry: (entry[0], entry[1]))

    def remove_action(self, event: str, handler: Callable) -> bool:
        entries = self._handlers.get(event, [])
        kept = [e for e in entries if e[2] != handler]
        self._handlers[event] = kept
        return len(kept) != len(entries)

    def has_action(self, event: str, handler: Optional[Callable] = None) -> bool:
        entries = self._handlers.get(event, [])
        if handler is None:
            return bool(entries)
        return any(e[2] == handler for e in entries)

    def do_action(self, event: str, *args, **kwargs) -> list:
        """Call every handler for *event*; returns their results in call order."""
        entries = list(self._handlers.get(event, []))
        logger.debug("Firing %s to %d handler(s)", event, len(entries))
        return [handler(*args, **kwargs) for _, _, handler in entries]


class HmacSecurityPolicy(SecurityPolicy):
    """SecurityPolicy whose anti-forgery tokens are HMACs of (user, scope).

    Subclasses decide can_edit_field().
    """

    def __init__(self, user: str, secret: str):
        if not secret:
            raise ValueError("An anti-forgery secret is required")
        self.user = user
        self._secret = secret.encode("utf-8")

    def issue_anti_forgery_token(self, scope: str) -> str:
        message = f"{self.user}|{scope}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def verify_anti_forgery_token(self, scope: str, token: Optional[str]) -> bool:
        if not token:
            return False
        expected = self.issue_anti_forgery_token(scope).encode("ascii")
        submitted = str(token).encode("utf-8", "surrogatepass")
        return hmac.compare_digest(expected, submitted)
