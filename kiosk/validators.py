"""
validators.py - typed validators over the pydantic schemas.

Every validator takes an untrusted mapping and returns either ``Valid(value)``
with the normalized model or ``Invalid(issues)`` with one ``Issue`` per failing
field. Callers branch on ``result.success``, or call ``result.unwrap()`` to get
the value or a ``ValidationError`` carrying the issues.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Generic, List, Mapping, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from kiosk.db.schemas import OrderIdSchema, OrderSchema, ProductSchema, SearchSchema
from kiosk.errors import ValidationError

log = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class Issue:
    """A single field-level problem: dotted field path plus a human-readable message."""
    path: str
    message: str

    @classmethod
    def from_error(cls, error: dict) -> "Issue":
        path = ".".join(str(part) for part in error.get("loc", ()))
        ctx_error = (error.get("ctx") or {}).get("error")
        # Custom validators raise ValueError; keep their text without pydantic's prefix
        message = str(ctx_error) if error.get("type") == "value_error" and ctx_error else error.get("msg", "")
        return cls(path=path, message=message)


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T
    success: bool = field(default=True, init=False)

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Invalid:
    issues: List[Issue]
    success: bool = field(default=False, init=False)

    def unwrap(self):
        raise ValidationError(self.issues)


ValidationResult = Union[Valid, Invalid]


def _validate(schema: Type[T], data: Any) -> ValidationResult:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    if not isinstance(data, Mapping):
        return Invalid([Issue(path="", message="Invalid data")])
    try:
        return Valid(schema.model_validate(dict(data)))
    except PydanticValidationError as e:
        issues = [Issue.from_error(error) for error in e.errors()]
        log.info("%s rejected: %s", schema.__name__, [issue.message for issue in issues])
        return Invalid(issues)


def validate_order(data: Any) -> ValidationResult:
    return _validate(OrderSchema, data)


def validate_product(data: Any) -> ValidationResult:
    return _validate(ProductSchema, data)


def validate_search(data: Any) -> ValidationResult:
    return _validate(SearchSchema, data)


def validate_order_id(data: Any) -> ValidationResult:
    return _validate(OrderIdSchema, data)
