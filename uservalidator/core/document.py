"""Request document model shared by the validation rules.

Inbound documents are JSON-object shaped mappings with heterogeneous values.
Every rule reads values through ``RequestDocument`` so the shape of a value is
decided once by ``kind_of`` and rules branch on ``ValueKind`` instead of
repeating type checks.
"""
from __future__ import annotations
import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .errors import UserValidationError


class Operation(str, Enum):
    """Operation tags routed to the validator."""

    CREATE = "createUser"
    CREATE_V1 = "createUserV1"
    CREATE_V3 = "createUserV3"
    CREATE_V4 = "createUserV4"
    UPDATE = "updateUser"
    UPDATE_V2 = "updateUserV2"
    UPDATE_V3 = "updateUserV3"
    LOOKUP = "userLookup"
    VERIFY = "verifyUser"
    ASSIGN_ROLE = "assignRoles"
    FORGOT_PASSWORD = "forgotPassword"
    MERGE_ACCOUNT = "mergeUser"
    DECLARE = "updateUserDeclarations"


class ValueKind(Enum):
    NULL = "null"
    STRING = "string"
    STRING_LIST = "string_list"
    RECORD_LIST = "record_list"
    LIST = "list"
    DOCUMENT = "document"
    OTHER = "other"


def kind_of(value: Any) -> ValueKind:
    """Classify a document value.

    Empty lists and lists mixing strings and records are plain ``LIST``.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, Mapping):
        return ValueKind.DOCUMENT
    if isinstance(value, (list, tuple)):
        if value and all(isinstance(item, str) for item in value):
            return ValueKind.STRING_LIST
        if value and all(isinstance(item, Mapping) for item in value):
            return ValueKind.RECORD_LIST
        return ValueKind.LIST
    return ValueKind.OTHER


LIST_KINDS = frozenset({ValueKind.LIST, ValueKind.STRING_LIST, ValueKind.RECORD_LIST})


def is_blank(value: Any) -> bool:
    """True for None and whitespace-only strings. Non-string values are never blank."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


class RequestDocument:
    """Mutable view over a request body.

    Rules only write through ``set`` so normalizations stay visible in one place.
    """

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._data: Dict[str, Any] = dict(data or {})

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def kind(self, key: str) -> ValueKind:
        return kind_of(self._data.get(key))

    def text(self, key: str) -> Optional[str]:
        """Return the value when it is a string, otherwise None."""
        value = self._data.get(key)
        return value if isinstance(value, str) else None

    def is_blank(self, key: str) -> bool:
        """A key is blank when absent, null, or a whitespace-only string."""
        return is_blank(self._data.get(key))

    def has_text(self, key: str) -> bool:
        return not self.is_blank(key)

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def to_dict(self) -> Dict[str, Any]:
        return self._data


@dataclass
class Request:
    """A request routed to the validator.

    Attributes:
        operation: Operation tag
        body: Request document (never mutated by validation)
        context: Request-scoped info (tenant/state code, request id, locale)
    """

    operation: str
    body: Dict[str, Any] = field(default_factory=dict)
    context: Dict[str, Any] = field(default_factory=dict)

    def working_copy(self) -> RequestDocument:
        return RequestDocument(copy.deepcopy(self.body))


@dataclass
class ValidationResult:
    """Outcome of validating one request.

    On success ``document`` holds the normalized request body; on failure
    ``error`` holds the first violated rule and ``document`` is None.
    """

    document: Optional[Dict[str, Any]] = None
    error: Optional[UserValidationError] = None
    scope_key: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> Dict[str, Any]:
        """Raise the failure, or return the normalized document."""
        if self.error is not None:
            raise self.error
        return self.document

    @classmethod
    def success(cls, document: RequestDocument, scope_key: Optional[str] = None) -> "ValidationResult":
        return cls(document=document.to_dict(), scope_key=scope_key)

    @classmethod
    def failure(cls, error: UserValidationError) -> "ValidationResult":
        return cls(error=error)
