"""Validation of the ``framework`` sub-document.

Three independent checks: the shape of ``framework.id``, the field whitelist
with mandatory fields, and the declared values per framework category.
"""
from __future__ import annotations
from typing import Any, Iterable, List, Mapping

from .document import LIST_KINDS, RequestDocument, ValueKind, is_blank, kind_of
from .errors import ErrorCode, UserValidationError

FRAMEWORK = "framework"
FRAMEWORK_ID = f"{FRAMEWORK}.id"


def validate_framework_details(document: RequestDocument) -> None:
    """Check that ``framework`` is a document whose ``id`` names exactly one framework."""
    if FRAMEWORK not in document:
        return
    if document.kind(FRAMEWORK) is not ValueKind.DOCUMENT:
        raise UserValidationError(ErrorCode.DATA_TYPE_ERROR, field=FRAMEWORK, expected="Map")

    framework = document.get(FRAMEWORK)
    if not framework:
        return

    framework_id = framework.get("id")
    kind = kind_of(framework_id)
    if kind in LIST_KINDS:
        if not framework_id:
            raise UserValidationError(ErrorCode.MANDATORY_PARAMS_MISSING, field=FRAMEWORK_ID)
        if len(framework_id) > 1:
            raise UserValidationError(
                ErrorCode.INVALID_PARAMETER_SIZE,
                field=FRAMEWORK_ID,
                expected=1,
                actual=len(framework_id),
            )
        if is_blank(framework_id[0]):
            raise UserValidationError(ErrorCode.MANDATORY_PARAMS_MISSING, field=FRAMEWORK_ID)
    elif kind is ValueKind.STRING:
        if is_blank(framework_id):
            raise UserValidationError(ErrorCode.MANDATORY_PARAMS_MISSING, field=FRAMEWORK_ID)
    else:
        raise UserValidationError(ErrorCode.MANDATORY_PARAMS_MISSING, field=FRAMEWORK_ID)


def validate_mandatory_framework_fields(
    user_map: Mapping[str, Any],
    framework_fields: Iterable[str],
    mandatory_fields: Iterable[str],
) -> None:
    """Check ``framework`` against the supported and mandatory field lists.

    Args:
        user_map: Request document
        framework_fields: Fields the framework schema supports
        mandatory_fields: Subset of fields that must carry a non-empty list

    Raises:
        UserValidationError: mandatoryParamsMissing, dataTypeError,
            errorMandatoryParamsEmpty, errorUnsupportedField
    """
    if FRAMEWORK not in user_map:
        return
    framework = user_map[FRAMEWORK]
    if kind_of(framework) is not ValueKind.DOCUMENT:
        raise UserValidationError(ErrorCode.DATA_TYPE_ERROR, field=FRAMEWORK, expected="Map")

    supported = list(framework_fields)
    mandatory = set(mandatory_fields or ())
    for name in supported:
        value = framework.get(name)
        kind = kind_of(value)
        if name in mandatory:
            if kind is ValueKind.NULL:
                raise UserValidationError(ErrorCode.MANDATORY_PARAMS_MISSING, field=name)
            if kind not in LIST_KINDS:
                raise UserValidationError(
                    ErrorCode.DATA_TYPE_ERROR, field=f"{FRAMEWORK}.{name}", expected="List"
                )
            if not value:
                raise UserValidationError(ErrorCode.MANDATORY_PARAMS_EMPTY, field=f"{FRAMEWORK}.{name}")
        elif kind is not ValueKind.NULL and kind not in LIST_KINDS:
            raise UserValidationError(ErrorCode.DATA_TYPE_ERROR, field=name, expected="List")

    for name in framework:
        if name not in supported:
            raise UserValidationError(ErrorCode.UNSUPPORTED_FIELD, field=f"{FRAMEWORK}.{name}")


def validate_framework_category_values(
    user_map: Mapping[str, Any],
    framework_map: Mapping[str, List[Mapping[str, Any]]],
) -> None:
    """Check every declared category value against the framework's allowed terms.

    Args:
        user_map: Request document carrying ``framework``
        framework_map: Category name -> list of term records with a ``name``
    """
    framework = user_map.get(FRAMEWORK) or {}
    for category, values in framework.items():
        if not values:
            continue
        if category not in framework_map or framework_map[category] is None:
            raise UserValidationError(ErrorCode.UNSUPPORTED_FIELD, field=f"{category} in {FRAMEWORK}")
        allowed = [term.get("name") for term in framework_map[category]]
        for value in _as_list(values):
            if value not in allowed:
                raise UserValidationError(
                    ErrorCode.INVALID_PARAMETER_VALUE,
                    field=f"{FRAMEWORK}.{category}",
                    value=value,
                )


def _as_list(values: Any) -> List[Any]:
    if kind_of(values) in LIST_KINDS:
        return list(values)
    return [values]

