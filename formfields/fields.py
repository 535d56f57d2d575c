"""
Field kinds — one named datum, its sanitizer and its input element.

A Field instance is created once by the FieldRegistry and shared by every
Container that binds it, so it is immutable and never remembers which
Container is using it.  Operations that need container context (value
lookup, authorization, saving) take the Container as an argument; most
code goes through BoundField, which carries the pair.

Default behaviour defers to the Container.  A field overrides it with
explicit strategies rather than subclassing:

    registry.register("post", "rating", "number",
        label="Rating",
        min_value=0, max_value=5,
        authorizer=lambda container, field: container.host.security.can_edit_field(
            container.entity_id, "rating") and is_editor(),
    )
"""

from dataclasses import dataclass
from html import escape
from typing import Any, Callable, ClassVar, Optional

from formfields.sanitize import sanitize_text, sanitize_textarea, to_bool, to_number


def _attr(value) -> str:
    return escape("" if value is None else str(value), quote=True)


@dataclass(frozen=True, eq=False)
class Field:
    """Base field: identity sanitize, container-delegating defaults."""

    kind: ClassVar[str] = ""

    name: str
    entity_type: str
    label: str = ""
    description: str = ""
    default: Any = ""

    # Optional strategies; None means "defer to the kind / container"
    sanitizer: Optional[Callable[[Any], Any]] = None
    authorizer: Optional[Callable[[Any, "Field"], bool]] = None
    value_accessor: Optional[Callable[[Any, "Field"], Any]] = None

    def __post_init__(self):
        if not self.label:
            object.__setattr__(self, "label", self.name)

    # ── Business logic ────────────────────────────────────────────

    def clean(self, raw: Any) -> Any:
        """Kind-specific sanitization. Identity for the base field."""
        return raw

    def sanitize(self, raw: Any) -> Any:
        if self.sanitizer is not None:
            return self.sanitizer(raw)
        return self.clean(raw)

    def value(self, container) -> Any:
        if self.value_accessor is not None:
            return self.value_accessor(container, self)
        return container.value(self.name, self.default)

    def authorization(self, container) -> bool:
        if self.authorizer is not None:
            return bool(self.authorizer(container, self))
        return bool(container.authorization(self))

    def submitted_value(self, container) -> Any:
        """Raw submitted value, or None when the key is absent."""
        return container.host.submission.read_submitted_value(self.name)

    def save(self, container) -> bool:
        return container.save_field(self)

    # ── View ──────────────────────────────────────────────────────

    def render_input_element(self, container) -> str:
        raise NotImplementedError(f"{type(self).__name__} has no input element")

    def _wrap(self, control: str) -> str:
        return (
            "<label>\n"
            f'<span class="field-title">{_attr(self.label)}</span>\n'
            f"{control}\n"
            "</label>\n"
        )


@dataclass(frozen=True, eq=False)
class TextField(Field):
    """Single-line text input."""

    kind: ClassVar[str] = "text"

    max_length: Optional[int] = None

    def clean(self, raw):
        return sanitize_text(raw, max_length=self.max_length)

    def render_input_element(self, container) -> str:
        maxlength = ""
        if self.max_length is not None:
            maxlength = f' maxlength="{int(self.max_length)}"'
        return self._wrap(
            f'<input type="text" name="{_attr(self.name)}" '
            f'value="{_attr(self.value(container))}"{maxlength}>'
        )


@dataclass(frozen=True, eq=False)
class TextareaField(Field):
    kind: ClassVar[str] = "textarea"

    max_length: Optional[int] = None
    rows: int = 4

    def clean(self, raw):
        return sanitize_textarea(raw, max_length=self.max_length)

    def render_input_element(self, container) -> str:
        value = self.value(container)
        return self._wrap(
            f'<textarea name="{_attr(self.name)}" rows="{int(self.rows)}">'
            f"{escape('' if value is None else str(value))}</textarea>"
        )


@dataclass(frozen=True, eq=False)
class NumberField(Field):
    """Numeric input; unparseable submissions become None."""

    kind: ClassVar[str] = "number"

    default: Any = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    integer: bool = False

    def clean(self, raw):
        return to_number(raw, self.min_value, self.max_value, self.integer)

    def render_input_element(self, container) -> str:
        bounds = ""
        if self.min_value is not None:
            bounds += f' min="{_attr(self.min_value)}"'
        if self.max_value is not None:
            bounds += f' max="{_attr(self.max_value)}"'
        step = "1" if self.integer else "any"
        return self._wrap(
            f'<input type="number" name="{_attr(self.name)}" '
            f'value="{_attr(self.value(container))}"{bounds} step="{step}">'
        )


@dataclass(frozen=True, eq=False)
class CheckboxField(Field):
    kind: ClassVar[str] = "checkbox"

    default: Any = False

    def clean(self, raw):
        return to_bool(raw)

    def render_input_element(self, container) -> str:
        checked = " checked" if to_bool(self.value(container)) else ""
        return self._wrap(
            f'<input type="checkbox" name="{_attr(self.name)}" value="1"{checked}>'
        )


@dataclass(frozen=True, eq=False)
class SelectField(Field):
    """Drop-down restricted to a fixed set of choices.

    choices may be plain values or (value, label) pairs.  Anything outside
    the set sanitizes to the field's default.
    """

    kind: ClassVar[str] = "select"

    choices: tuple = ()

    def __post_init__(self):
        super().__post_init__()
        pairs = []
        for choice in self.choices:
            if isinstance(choice, (tuple, list)):
                value, label = choice
            else:
                value, label = choice, choice
            pairs.append((str(value), str(label)))
        object.__setattr__(self, "choices", tuple(pairs))

    def values(self) -> list:
        return [value for value, _ in self.choices]

    def clean(self, raw):
        if raw is None:
            return self.default
        value = str(raw).strip()
        return value if value in self.values() else self.default

    def render_input_element(self, container) -> str:
        current = self.value(container)
        current = "" if current is None else str(current)
        options = "".join(
            f'<option value="{_attr(value)}"'
            f'{" selected" if value == current else ""}>{escape(label)}</option>'
            for value, label in self.choices
        )
        return self._wrap(f'<select name="{_attr(self.name)}">{options}</select>')


BUILTIN_KINDS = {
    cls.kind: cls
    for cls in (TextField, TextareaField, NumberField, CheckboxField, SelectField)
}
