"""
Extensible form fields: register typed fields once, bind them to
containers, render their inputs and save submitted values.
"""

from formfields.container import BoundField, Container, SaveResult
from formfields.fields import CheckboxField, Field, NumberField, SelectField, TextareaField, TextField
from formfields.host import RENDER_EVENT, SAVE_EVENT, Entity, Host, LifecycleHooks
from formfields.registry import (
    DuplicateFieldError,
    FieldRegistry,
    RegistryError,
    RegistrySealedError,
    UnknownFieldError,
    UnknownFieldKindError,
)
