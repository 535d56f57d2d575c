"""
Field Registry — catalog of every field a Container may bind.

Fields are declared once, independently of any Container, keyed by
(entity_type, name).  Registration happens during start-up; after seal()
the catalog is read-only and safe to share across requests.

    registry = FieldRegistry()
    registry.register("post", "background_color", "text",
                      label="Background Color")
    registry.seal()

    registry.lookup("post", "background_color")   # → TextField

Kinds map a kind name to a Field class.  An unknown kind fails at
registration time, not at first render.
"""

import logging
from typing import Iterable, Optional

from formfields.fields import BUILTIN_KINDS, Field


logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Raised when a field definition or lookup fails."""


class UnknownFieldError(RegistryError):
    """Raised when (entity_type, name) has not been registered."""

    def __init__(self, entity_type, name):
        self.entity_type = entity_type
        self.name = name
        super().__init__(
            f"Field '{name}' is not registered for entity type '{entity_type}'"
        )


class DuplicateFieldError(RegistryError):
    """Raised when (entity_type, name) is registered or bound twice."""

    def __init__(self, entity_type, name):
        self.entity_type = entity_type
        self.name = name
        super().__init__(
            f"Field '{name}' is already registered for entity type '{entity_type}'"
        )


class UnknownFieldKindError(RegistryError):
    """Raised when a registration names a kind nobody defined."""

    def __init__(self, kind, known):
        self.kind = kind
        self.known = known
        super().__init__(f"Unknown field kind '{kind}'. Known kinds: {known}")


class RegistrySealedError(RegistryError):
    """Raised when registering after the initialization phase ended."""


class FieldRegistry:
    """
    Catalog of Field instances keyed by (entity_type, name).

    Owns every Field it creates; Containers only hold references.
    """

    def __init__(self, kinds: Optional[dict] = None):
        self._kinds: dict[str, type] = dict(BUILTIN_KINDS if kinds is None else kinds)
        self._fields: dict[str, dict[str, Field]] = {}
        self._sealed = False

    # ── Kinds ─────────────────────────────────────────────────────

    def register_kind(self, kind: str, field_cls: type) -> None:
        """Make a Field subclass available under *kind*."""
        self._check_open()
        if not (isinstance(field_cls, type) and issubclass(field_cls, Field)):
            raise RegistryError(f"Kind '{kind}': {field_cls!r} is not a Field subclass")
        if kind in self._kinds:
            raise RegistryError(f"Kind '{kind}' is already defined")
        self._kinds[kind] = field_cls

    def kinds(self) -> list:
        return sorted(self._kinds)

    # ── Register ──────────────────────────────────────────────────

    def register(self, entity_type: str, name: str, kind: str = "text", **options) -> Field:
        """Create a Field of *kind* and store it under (entity_type, name).

        Raises:
            RegistrySealedError — registry already sealed
            DuplicateFieldError — key already registered
            UnknownFieldKindError — kind not in the catalog
            RegistryError — empty name or options the kind does not accept
        """
        self._check_open()
        field = self._build(entity_type, name, kind, options)
        self._fields.setdefault(entity_type, {})[name] = field
        logger.debug("Registered %s field '%s' for '%s'", kind, name, entity_type)
        return field

    def register_many(self, name: str, entity_types: Iterable[str],
                      kind: str = "text", **options) -> list:
        """Register one definition for several entity types. All or nothing."""
        self._check_open()
        entity_types = list(entity_types)
        if not entity_types:
            raise RegistryError(f"Field '{name}': at least one entity type is required")
        if len(set(entity_types)) != len(entity_types):
            raise RegistryError(f"Field '{name}': entity types must be unique")
        built = [self._build(et, name, kind, options) for et in entity_types]
        for field in built:
            self._fields.setdefault(field.entity_type, {})[name] = field
            logger.debug("Registered %s field '%s' for '%s'", kind, name, field.entity_type)
        return built

    def _build(self, entity_type, name, kind, options) -> Field:
        if not name:
            raise RegistryError("Field name is required")
        if not entity_type:
            raise RegistryError(f"Field '{name}': entity type is required")
        if self.has(entity_type, name):
            raise DuplicateFieldError(entity_type, name)
        if kind not in self._kinds:
            raise UnknownFieldKindError(kind, self.kinds())
        try:
            return self._kinds[kind](name=name, entity_type=entity_type, **options)
        except TypeError as exc:
            raise RegistryError(f"Field '{name}' ({kind}): {exc}") from exc

    # ── Lifecycle ─────────────────────────────────────────────────

    def seal(self) -> None:
        """End the initialization phase. Registration fails afterwards."""
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _check_open(self):
        if self._sealed:
            raise RegistrySealedError("Field registry is sealed; register fields at start-up")

    # ── Lookup ────────────────────────────────────────────────────

    def lookup(self, entity_type: str, name: str) -> Field:
        """Return the Field for (entity_type, name).

        Raises UnknownFieldError if not registered.
        """
        try:
            return self._fields[entity_type][name]
        except KeyError:
            raise UnknownFieldError(entity_type, name) from None

    def has(self, entity_type: str, name: str) -> bool:
        return name in self._fields.get(entity_type, {})

    def fields_for(self, entity_type: str) -> list:
        """Registered fields of one entity type, in registration order."""
        return list(self._fields.get(entity_type, {}).values())

    def entity_types(self) -> list:
        return list(self._fields)
