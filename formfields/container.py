"""
Container — a form (e.g. a post meta box) that owns an ordered set of
bound fields and moves their values between the submission and storage.

    box = Container("Post Details", registry, host, hooks=hooks)
    box.add_field("background_color")

    hooks.do_action(RENDER_EVENT, post, out)     # renders the form
    hooks.do_action(SAVE_EVENT, post.id, post)   # saves submitted values

Business logic specific to the entity type (where values live, who may
edit them) is supplied by the Container by default.  A Field overrides
any of it through its sanitizer / authorizer / value_accessor strategies.

Save pipeline, per bound field, in binding order:

    authorization() → submitted_value() → sanitize() → persist()

Denied authorization is a silent skip.  An exception from one field is
logged and recorded, and the remaining fields are still processed.
"""

import logging
import sys
from dataclasses import dataclass, field as dc_field
from html import escape
from typing import Any, Optional

from formfields.fields import Field
from formfields.host import RENDER_EVENT, SAVE_EVENT, Host, LifecycleHooks
from formfields.registry import DuplicateFieldError, FieldRegistry
from formfields.sanitize import slugify


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundField:
    """A shared Field paired with the Container that bound it."""
    field: Field
    container: "Container"

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def label(self) -> str:
        return self.field.label

    def value(self) -> Any:
        return self.field.value(self.container)

    def authorization(self) -> bool:
        return self.field.authorization(self.container)

    def submitted_value(self) -> Any:
        return self.field.submitted_value(self.container)

    def sanitize(self, raw: Any) -> Any:
        return self.field.sanitize(raw)

    def save(self) -> bool:
        return self.field.save(self.container)

    def render_input_element(self) -> str:
        return self.field.render_input_element(self.container)


@dataclass
class SaveResult:
    """Outcome of one Container.save() call.

    - saved: field names written to storage
    - skipped: field names whose authorization was denied
    - failed: field name → exception raised while saving it
    - snapshot: the entity was a revision/autosave, nothing was attempted
    - rejected: the anti-forgery token did not verify, nothing was attempted
    - ignored: the entity is not of this Container's entity type
    """
    saved: list = dc_field(default_factory=list)
    skipped: list = dc_field(default_factory=list)
    failed: dict = dc_field(default_factory=dict)
    snapshot: bool = False
    rejected: bool = False
    ignored: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed and not self.rejected


class Container:
    """
    Form + persistence unit for one entity type.

    Holds the entity currently being rendered or saved; one operation runs
    at a time per Container.
    """

    def __init__(self, title: str, registry: FieldRegistry, host: Host,
                 name: Optional[str] = None, entity_type: str = "post",
                 hooks: Optional[LifecycleHooks] = None,
                 render_unauthorized: bool = False, check_token: bool = False):
        self.title = title
        self.name = name or slugify(title)
        if not self.name:
            raise ValueError("Container needs a title or a name")
        self.registry = registry
        self.host = host
        self.entity_type = entity_type
        self.render_unauthorized = render_unauthorized
        self.check_token = check_token

        self._fields: list[BoundField] = []
        self.entity = None
        self._entity_id = None

        if hooks is not None:
            self.attach(hooks)

    def __repr__(self):
        return f"Container({self.name!r}, entity_type={self.entity_type!r}, fields={len(self._fields)})"

    # ── Wiring ────────────────────────────────────────────────────

    def attach(self, hooks: LifecycleHooks) -> None:
        """Subscribe to the host's render and save notifications."""
        hooks.add_action(RENDER_EVENT, self.render_callback)
        hooks.add_action(SAVE_EVENT, self.save)

    def add_field(self, field_name: str) -> BoundField:
        """Bind a registered field to this Container.

        Raises UnknownFieldError if the registry has no such field for this
        Container's entity type, DuplicateFieldError if already bound.
        """
        field = self.registry.lookup(self.entity_type, field_name)
        if any(b.name == field_name for b in self._fields):
            raise DuplicateFieldError(self.entity_type, field_name)
        bound = BoundField(field, self)
        self._fields.append(bound)
        return bound

    def add_fields(self, *field_names: str) -> list:
        return [self.add_field(name) for name in field_names]

    def fields(self) -> list:
        """Bound fields in binding order."""
        return list(self._fields)

    # ── Entity binding ────────────────────────────────────────────

    def setup_entity_data(self, entity, entity_id: Optional[str] = None) -> None:
        """Bind the entity the next render/save works on.

        The identity defaults to ``entity.id``.
        """
        self.entity = entity
        self._entity_id = entity_id if entity_id is not None else getattr(entity, "id", None)

    @property
    def entity_id(self) -> str:
        if self._entity_id is None:
            raise RuntimeError(
                f"Container '{self.name}' has no entity bound; "
                f"call setup_entity_data() first"
            )
        return self._entity_id

    def accepts(self, entity) -> bool:
        return getattr(entity, "entity_type", self.entity_type) == self.entity_type

    # ── Render ────────────────────────────────────────────────────

    def render_callback(self, entity, out=None) -> str:
        """Render-event handler: bind *entity*, then render the form."""
        if not self.accepts(entity):
            return ""
        self.setup_entity_data(entity)
        return self.render_form(out)

    def render_form(self, out=None) -> str:
        """Write the anti-forgery token and every field's input element.

        Writes to *out* (default sys.stdout) and returns the markup.
        """
        out = sys.stdout if out is None else out
        token = self.host.security.issue_anti_forgery_token(self.name)
        parts = [
            f'<input type="hidden" name="{escape(self.name)}" '
            f'value="{escape(str(token))}">\n'
        ]
        out.write(parts[0])
        for bound in self._fields:
            if not self.render_unauthorized and not bound.authorization():
                continue
            fragment = bound.render_input_element()
            out.write(fragment)
            parts.append(fragment)
        return "".join(parts)

    # ── Save ──────────────────────────────────────────────────────

    def save(self, entity_id: str, entity) -> SaveResult:
        """Save-event handler: persist every bound field's submitted value."""
        if not self.accepts(entity):
            return SaveResult(ignored=True)

        self.setup_entity_data(entity, entity_id)

        if self.host.snapshots.is_transient_snapshot(entity_id):
            logger.info("Entity %s is a transient snapshot; '%s' not saved", entity_id, self.name)
            return SaveResult(snapshot=True)

        if self.check_token:
            token = self.host.submission.read_submitted_value(self.name)
            if not self.host.security.verify_anti_forgery_token(self.name, token):
                logger.warning("Anti-forgery token for '%s' on %s did not verify", self.name, entity_id)
                return SaveResult(rejected=True)

        result = SaveResult()
        for bound in self._fields:
            try:
                written = bound.save()
            except Exception as exc:
                logger.exception("Saving field '%s' on %s failed", bound.name, entity_id)
                result.failed[bound.name] = exc
                continue
            if written:
                result.saved.append(bound.name)
            else:
                result.skipped.append(bound.name)
        return result

    def save_field(self, field: Field) -> bool:
        """Default per-field save. Returns False when authorization is denied."""
        if not field.authorization(self):
            logger.debug("Not authorized to edit '%s' on %s; skipped", field.name, self.entity_id)
            return False
        value = field.sanitize(field.submitted_value(self))
        self.persist(self.entity_id, field.name, value)
        return True

    def persist(self, entity_id: str, field_name: str, value: Any) -> None:
        self.host.storage.write_value(entity_id, field_name, value)

    # ── Defaults a Field may override ─────────────────────────────

    def value(self, field_name: str, default: Any = "") -> Any:
        """Stored value for the bound entity, or *default* if unset."""
        stored = self.host.storage.read_value(self.entity_id, field_name, None)
        return default if stored is None else stored

    def authorization(self, field: Field) -> bool:
        """Default policy: the actor may edit this entity's field metadata."""
        return bool(self.host.security.can_edit_field(self.entity_id, field.name))
