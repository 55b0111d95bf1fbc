"""Format validators for user request fields.

Each validator takes a single value (plus an auxiliary parameter where the
format depends on one) and either returns normally or raises
``UserValidationError`` naming the offending field.
"""
from __future__ import annotations
import re
from datetime import datetime
from typing import Any, Optional

import phonenumbers
from phonenumbers import NumberParseException

from uservalidator.config.settings import ValidatorConfig, settings
from .document import is_blank
from .errors import ErrorCode, UserValidationError

EMAIL_PATTERN = re.compile(
    r"^[_A-Za-z0-9+-]+(\.[_A-Za-z0-9-]+)*@[A-Za-z0-9-]+(\.[A-Za-z0-9]+)*(\.[A-Za-z]{2,})$"
)
COUNTRY_CODE_PATTERN = re.compile(r"^\+?\d{1,3}$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
YEAR_MONTH_PATTERN = re.compile(r"^\d{4}-\d{2}$")
UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
DATE_FORMAT = "%Y-%m-%d"


def is_email_valid(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email.strip()))


def validate_email(email: str, field: str = "email") -> None:
    """Validate email address format.

    Callers decide whether a blank value counts as "not provided"; a blank
    value reaching this function is malformed.

    Raises:
        UserValidationError: emailFormatError
    """
    if not isinstance(email, str) or not is_email_valid(email):
        raise UserValidationError(ErrorCode.EMAIL_FORMAT_ERROR, field=field)


def is_country_code_valid(country_code: str) -> bool:
    """Check ``+91`` style calling codes against the known calling code table."""
    code = country_code.strip()
    if not COUNTRY_CODE_PATTERN.match(code):
        return False
    return int(code.lstrip("+")) in phonenumbers.COUNTRY_CODE_TO_REGION_CODE


def validate_country_code(country_code: str) -> None:
    if not is_country_code_valid(country_code):
        raise UserValidationError(ErrorCode.INVALID_COUNTRY_CODE, field="countryCode")


def is_phone_valid(phone: str, country_code: Optional[str] = None, config: Optional[ValidatorConfig] = None) -> bool:
    """Check the phone shape for the region owning the country code.

    Args:
        phone: National phone number (no ``+``)
        country_code: Calling code such as ``+91``; the configured default when blank
        config: Settings override
    """
    cfg = config or settings
    code = country_code if not is_blank(country_code) else cfg.default_country_code
    if not is_country_code_valid(code):
        return False
    region = phonenumbers.region_code_for_country_code(int(code.strip().lstrip("+")))
    try:
        parsed = phonenumbers.parse(phone, region)
    except NumberParseException:
        return False
    return phonenumbers.is_valid_number(parsed)


def validate_phone(
    phone: str,
    country_code: Optional[str] = None,
    field: str = "phone",
    config: Optional[ValidatorConfig] = None,
) -> None:
    """Validate a phone number sent separately from its country code.

    Raises:
        UserValidationError: invalidPhoneNumber when the number carries a ``+``,
            phoneNoFormatError when the shape is wrong
    """
    if "+" in phone:
        raise UserValidationError(ErrorCode.INVALID_PHONE_NUMBER, field=field)
    if not is_phone_valid(phone, country_code, config):
        raise UserValidationError(ErrorCode.PHONE_FORMAT_ERROR, field=field)


def is_good_password(password: str, config: Optional[ValidatorConfig] = None) -> bool:
    cfg = config or settings
    return re.fullmatch(cfg.password_regex, password) is not None


def validate_password(password: Optional[str], config: Optional[ValidatorConfig] = None) -> None:
    """Check password strength. Blank passwords are not evaluated."""
    if is_blank(password):
        return
    if not is_good_password(password, config):
        raise UserValidationError(ErrorCode.PASSWORD_VALIDATION, field="password")


def canonical_dob(value: Any, config: Optional[ValidatorConfig] = None) -> str:
    """Expand a year or year-month date of birth to a full ``yyyy-MM-dd`` date.

    Returns:
        Canonical date string

    Raises:
        UserValidationError: dateFormatError
    """
    cfg = config or settings
    raw = str(value).strip()
    if YEAR_MONTH_PATTERN.match(raw):
        candidate = raw + cfg.dob_month_suffix
    else:
        candidate = raw + cfg.dob_year_suffix

    if not DATE_PATTERN.match(candidate):
        raise UserValidationError(ErrorCode.DATE_FORMAT_ERROR, field="dob")
    try:
        datetime.strptime(candidate, DATE_FORMAT)
    except ValueError:
        raise UserValidationError(ErrorCode.DATE_FORMAT_ERROR, field="dob")
    return candidate


def validate_uuid(value: Optional[str], field: str = "userId") -> None:
    """Validate UUID shape; empty values are not checked."""
    if not value:
        return
    if not UUID_PATTERN.match(value):
        raise UserValidationError(ErrorCode.INVALID_REQUEST_PARAMETER, field=field)


def validate_location_type(location_type: Optional[str], config: Optional[ValidatorConfig] = None) -> bool:
    """Validate a location type against the configured location type list."""
    cfg = config or settings
    if location_type is not None and location_type.lower() not in cfg.valid_location_types:
        raise UserValidationError(
            ErrorCode.INVALID_VALUE,
            field="type",
            value=location_type,
            allowed=", ".join(cfg.valid_location_types),
        )
    return True
