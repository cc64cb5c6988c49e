"""
Pydantic-backed validation for mox-py models.

Field types are read from the model's annotations, so constraints are
declared with ``typing.Annotated`` and regular Pydantic metadata:

    from typing import Annotated
    import pydantic

    class User(Model):
        id: Annotated[int, pydantic.Field(ge=0)] = 0
        email: Annotated[str, pydantic.StringConstraints(pattern=r".+@.+")] = ""

    user.validate()  # -> [FieldError(field="id", constraints={...}), ...]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, get_type_hints, runtime_checkable

from pydantic import ConfigDict, TypeAdapter, ValidationError

from mox_py.registry import field_registry

if TYPE_CHECKING:
    from mox_py.models import Model

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FieldError:
    """
    A failed field.

    Attributes:
        field: Internal field name, dotted for nested values ("posts.0.title")
        constraints: Failed constraint type -> message
        value: The offending value

    """

    field: str
    constraints: dict[str, str] = field(default_factory=dict)
    value: Any = None


@runtime_checkable
class Validator(Protocol):
    """Protocol for validator callables."""

    def __call__(self, instance: Model) -> list[FieldError]:
        """Return the field errors of ``instance`` (empty when valid)."""
        ...


class PydanticValidator:
    """
    Validator checking each field against its annotation with Pydantic.

    Adapters are built lazily per model class and cached, so annotations
    may use forward references resolved after the class is defined.
    Unset fields report a ``missing`` error. Nested model values are
    validated with their own class's validator.

    Example:
        validator = PydanticValidator(strict=False)

        class Payload(Model):
            __validator__ = validator
            count: int = 0

    """

    __slots__ = ("_strict", "_adapters")

    def __init__(self, *, strict: bool = True) -> None:
        self._strict = strict
        self._adapters: dict[type, dict[str, TypeAdapter[Any]]] = {}

    def _adapters_for(self, model: type[Model]) -> dict[str, TypeAdapter[Any]]:
        adapters = self._adapters.get(model)
        if adapters is None:
            hints = _type_hints(model)
            config = ConfigDict(arbitrary_types_allowed=True)
            adapters = {
                name: TypeAdapter(hints[name], config=config)
                for name in field_registry.fields(model)
                if name in hints
            }
            self._adapters[model] = adapters
        return adapters

    def __call__(self, instance: Model) -> list[FieldError]:
        errors: list[FieldError] = []
        adapters = self._adapters_for(type(instance))
        values = vars(instance)

        for name in field_registry.fields(type(instance)):
            if name not in values:
                errors.append(FieldError(name, {"missing": "Field required"}))
                continue
            value = values[name]
            adapter = adapters.get(name)
            if adapter is not None:
                try:
                    adapter.validate_python(value, strict=self._strict)
                except ValidationError as exc:
                    errors.extend(_field_errors(name, value, exc))
            errors.extend(_nested_errors(name, value))
        return errors


def _type_hints(model: type[Model]) -> dict[str, Any]:
    """
    Evaluated annotations of ``model``.

    Names the defining modules cannot see, such as models declared inside
    a function, are looked up among the registered models. Annotations
    that still do not resolve leave the model without type checks.
    """
    try:
        return get_type_hints(model, include_extras=True)
    except NameError:
        pass
    models = {cls.__name__: cls for cls in field_registry.all_models()}
    try:
        return get_type_hints(model, localns=models, include_extras=True)
    except NameError as exc:
        logger.warning(
            "Cannot resolve annotations of %s (%s); types are not checked",
            model.__qualname__,
            exc,
        )
        return {}


def _field_errors(name: str, value: Any, exc: ValidationError) -> list[FieldError]:
    """Group Pydantic error entries by location."""
    grouped: dict[str, dict[str, str]] = {}
    for error in exc.errors():
        path = ".".join([name, *(str(loc) for loc in error["loc"])])
        grouped.setdefault(path, {})[error["type"]] = error["msg"]
    return [FieldError(path, constraints, value) for path, constraints in grouped.items()]


def _nested_errors(name: str, value: Any) -> list[FieldError]:
    """Validate nested model values and prefix their field paths."""
    if field_registry.is_model(value):
        return [
            FieldError(f"{name}.{error.field}", error.constraints, error.value)
            for error in value.validate()
        ]
    if isinstance(value, (list, tuple)):
        errors: list[FieldError] = []
        for index, item in enumerate(value):
            errors.extend(_nested_errors(f"{name}.{index}", item))
        return errors
    return []


# Default validator instance
default_validator = PydanticValidator()


def validate(instance: Model) -> list[FieldError]:
    """Run the instance's configured validator."""
    return type(instance).__validator__(instance)


def is_valid(instance: Model) -> bool:
    """Whether ``validate(instance)`` reports no errors."""
    return not validate(instance)
