"""Validation of the ``externalIds`` sub-resource.

An external identifier is a provider-issued credential ``{id, provider,
idType}`` with an optional ``operation`` verb (add/remove/edit). Items are
identified by the case-insensitive ``(provider, idType)`` pair.
"""
from __future__ import annotations
from typing import Any, List, Mapping, Tuple

from .document import LIST_KINDS, RequestDocument, ValueKind, is_blank, kind_of
from .errors import ErrorCode, UserValidationError

EXTERNAL_IDS = "externalIds"
ADD = "add"
REMOVE = "remove"
EDIT = "edit"
OPERATION_VERBS = (ADD, REMOVE, EDIT)
MANDATORY_FIELDS = ("id", "provider", "idType")

CREATE_MODE = "create"
UPDATE_MODE = "update"


def validate_external_ids(document: RequestDocument, mode: str) -> None:
    """Validate ``externalIds`` when the request carries a non-null value.

    Args:
        document: Request document
        mode: ``create`` or ``update``; duplicates are only rejected on create

    Raises:
        UserValidationError: dataTypeError, invalidValue, mandatoryParamsMissing,
            duplicateExternalIds
    """
    kind = document.kind(EXTERNAL_IDS)
    if kind is ValueKind.NULL:
        return
    if kind not in LIST_KINDS:
        raise UserValidationError(ErrorCode.DATA_TYPE_ERROR, field=EXTERNAL_IDS, expected="List")

    external_ids = document.get(EXTERNAL_IDS)
    for identity in external_ids:
        _validate_item(identity, mode)
    if mode == CREATE_MODE:
        check_duplicates(external_ids)


def _validate_item(identity: Any, mode: str) -> None:
    if kind_of(identity) is not ValueKind.DOCUMENT:
        raise UserValidationError(ErrorCode.DATA_TYPE_ERROR, field=EXTERNAL_IDS, expected="List of Map")

    verb = identity.get("operation")
    if not is_blank(verb):
        verb_text = str(verb)
        if verb_text.lower() not in OPERATION_VERBS:
            raise UserValidationError(
                ErrorCode.INVALID_VALUE,
                field=f"{EXTERNAL_IDS}.operation",
                value=verb_text,
                allowed=",".join(OPERATION_VERBS),
            )
        # create accepts add only
        if mode == CREATE_MODE and verb_text.lower() != ADD:
            raise UserValidationError(
                ErrorCode.INVALID_VALUE,
                field=f"{EXTERNAL_IDS}.operation",
                value=verb_text,
                allowed=ADD,
            )

    for name in MANDATORY_FIELDS:
        if is_blank(identity.get(name)):
            raise UserValidationError(ErrorCode.MANDATORY_PARAMS_MISSING, field=f"{EXTERNAL_IDS}.{name}")


def _identity_key(identity: Mapping[str, Any]) -> Tuple[str, str]:
    return (str(identity.get("provider")).lower(), str(identity.get("idType")).lower())


def check_duplicates(external_ids: List[Mapping[str, Any]]) -> None:
    """Reject the first item whose (provider, idType) repeats an earlier item.

    The error names the idType and provider of the earlier item.
    """
    seen = {}
    for identity in external_ids:
        key = _identity_key(identity)
        if key in seen:
            first = seen[key]
            raise UserValidationError(
                ErrorCode.DUPLICATE_EXTERNAL_IDS,
                field=EXTERNAL_IDS,
                id_type=first.get("idType"),
                provider=first.get("provider"),
            )
        seen[key] = identity
