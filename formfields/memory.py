"""
In-memory host collaborators.

Useful for tests and for embedding the form layer in a process that keeps
its own state.  Nothing here is shared between instances.
"""

from typing import Any, Optional

from formfields.host import HmacSecurityPolicy, MetaStore, SnapshotChecker, SubmissionCarrier


_MISSING = object()


class InMemoryMetaStore(MetaStore):
    """Dict-backed MetaStore that records every write in ``writes``."""

    def __init__(self, values: Optional[dict] = None):
        self._values: dict[tuple, Any] = dict(values or {})
        self.writes: list[tuple] = []

    def read_value(self, entity_id, field_name, default=None):
        return self._values.get((entity_id, field_name), default)

    def write_value(self, entity_id, field_name, value):
        self.writes.append((entity_id, field_name, value))
        self._values[(entity_id, field_name)] = value

    def delete_value(self, entity_id, field_name):
        return self._values.pop((entity_id, field_name), _MISSING) is not _MISSING

    def values_for(self, entity_id) -> dict:
        return {name: v for (eid, name), v in self._values.items() if eid == entity_id}


class FormSubmission(SubmissionCarrier):
    """Submitted values from a plain mapping (e.g. a parsed POST body)."""

    def __init__(self, data: Optional[dict] = None):
        self._data = dict(data or {})

    def read_submitted_value(self, field_name):
        return self._data.get(field_name)

    def update(self, data: dict) -> None:
        self._data.update(data)

    def clear(self) -> None:
        self._data.clear()


class CapabilityPolicy(HmacSecurityPolicy):
    """
    Grants held in memory: (user, entity_id, field_name) with "*" meaning
    every field of the entity.

        policy = CapabilityPolicy("alice", secret="s3cret")
        policy.grant("42")                      # all fields of entity 42
        policy.grant("43", "background_color")  # one field
    """

    def __init__(self, user: str, secret: str, allow_all: bool = False):
        super().__init__(user, secret)
        self.allow_all = allow_all
        self._grants: set[tuple] = set()

    def grant(self, entity_id, field_name="*", user=None) -> None:
        self._grants.add((user or self.user, entity_id, field_name))

    def revoke(self, entity_id, field_name="*", user=None) -> bool:
        key = (user or self.user, entity_id, field_name)
        if key in self._grants:
            self._grants.discard(key)
            return True
        return False

    def can_edit_field(self, entity_id, field_name) -> bool:
        if self.allow_all:
            return True
        return ((self.user, entity_id, field_name) in self._grants
                or (self.user, entity_id, "*") in self._grants)


class RevisionTracker(SnapshotChecker):
    """Tracks revision ids and whether the current request is an autosave."""

    def __init__(self, revisions=(), autosaving: bool = False):
        self.revisions = set(revisions)
        self.autosaving = autosaving

    def mark_revision(self, entity_id) -> None:
        self.revisions.add(entity_id)

    def is_transient_snapshot(self, entity_id) -> bool:
        return self.autosaving or entity_id in self.revisions
