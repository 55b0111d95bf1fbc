"""Classified validation failures for user lifecycle requests."""
from __future__ import annotations
from enum import Enum
from typing import Any, Optional

CLIENT_ERROR = 400
SERVER_ERROR = 500


class ErrorCode(Enum):
    """Machine-readable error codes with their message templates.

    Templates use ``str.format`` named placeholders; the values are supplied
    when the error is raised.
    """

    MANDATORY_PARAMS_MISSING = ("mandatoryParamsMissing", "Mandatory parameter {field} is missing.")
    MANDATORY_HEADER_MISSING = ("mandatoryHeaderParamsMissing", "Mandatory header parameter {field} is missing.")
    MANDATORY_PARAMS_EMPTY = ("errorMandatoryParamsEmpty", "Parameter {field} is mandatory and cannot be empty.")
    DEPENDENT_PARAMS_MISSING = ("dependentParamsMissing", "Dependent parameters are missing or invalid: {fields}.")
    DATA_TYPE_ERROR = ("dataTypeError", "Data type of {field} should be {expected}.")
    INVALID_VALUE = ("invalidValue", "Invalid {field}: {value}. Valid values are: {allowed}.")
    INVALID_PARAMETER_VALUE = ("invalidParameterValue", "Invalid value {value} for parameter {field}. Please provide a valid value.")
    INVALID_REQUEST_PARAMETER = ("invalidRequestParameter", "Invalid parameter {field} in request.")
    INVALID_PARAMETER = ("invalidParameter", "Please provide valid {field}.")
    INVALID_PARAMETER_SIZE = ("errorInvalidParameterSize", "Parameter {field} is of invalid size (expected: {expected}, actual: {actual}).")
    UNSUPPORTED_FIELD = ("errorUnsupportedField", "Invalid request, {field} field not supported.")
    DUPLICATE_EXTERNAL_IDS = ("duplicateExternalIds", "Duplicate external IDs for given idType ({id_type}) and provider ({provider}).")
    EMAIL_OR_PHONE_OR_MANAGED_BY_REQUIRED = ("emailorPhoneorManagedByRequired", "Either email, phone or managedBy is required.")
    ONLY_EMAIL_OR_PHONE_OR_MANAGED_BY = ("OnlyEmailorPhoneorManagedByRequired", "Please provide only email or phone or managedBy.")
    MANAGED_BY_NOT_ALLOWED = ("managedByNotAllowed", "managedBy cannot be updated.")
    EMAIL_FORMAT_ERROR = ("emailFormatError", "Email is in incorrect format.")
    PHONE_FORMAT_ERROR = ("phoneNoFormatError", "Phone number is in incorrect format.")
    INVALID_PHONE_NUMBER = ("invalidPhoneNumber", "Please send phone and country code separately.")
    INVALID_COUNTRY_CODE = ("invalidCountryCode", "Country code is invalid.")
    PASSWORD_VALIDATION = ("passwordValidation", "Password must be at least 8 characters and contain upper case, lower case, a digit and a special character.")
    DATE_FORMAT_ERROR = ("dateFormatError", "Date of birth is in incorrect format, expected yyyy-MM-dd.")
    FIRST_NAME_REQUIRED = ("firstNameRequired", "First name is required.")
    ROLES_REQUIRED = ("rolesRequired", "User role is required.")
    USER_ID_REQUIRED = ("userIdRequired", "User id is required.")
    LOGIN_ID_REQUIRED = ("loginIdRequired", "Login id is required.")
    USERNAME_REQUIRED = ("userNameRequired", "Username is required.")
    FROM_ACCOUNT_ID_REQUIRED = ("fromAccountIdRequired", "From account id is required.")
    TO_ACCOUNT_ID_REQUIRED = ("toAccountIdRequired", "To account id is required.")
    INVALID_ROOT_ORG_ID = ("invalidRootOrganisationId", "Root organisation id is invalid.")
    PROFILE_USER_TYPES_REQUIRED = ("profileUserTypesRequired", "Profile user types are required.")
    SELF_DECLARED_PARAMS_MISSING = ("mandatoryParamsMissing", "Mandatory parameters {fields} are missing in self declared fields.")
    USER_TYPE_CONFIG_EMPTY = ("userTypeConfigIsEmpty", "User type configuration is empty for the state code {scope}.", SERVER_ERROR)

    def __init__(self, code: str, template: str, status: int = CLIENT_ERROR):
        self.code = code
        self.template = template
        self.status = status


class UserValidationError(Exception):
    """A request failed one of the user validation rules.

    Attributes:
        error_code: ErrorCode describing the violated rule
        message: Human readable message with the offending values interpolated
        field: Offending field (dotted for nested fields), when one applies
        status: HTTP-style status (400 client error, 500 server error)
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: Optional[str] = None,
        *,
        field: Optional[str] = None,
        **params: Any,
    ):
        self.error_code = error_code
        self.field = field
        self.params = params
        if message is None:
            message = error_code.template.format(field=field, **params)
        self.message = message
        self.status = error_code.status
        super().__init__(message)

    @property
    def code(self) -> str:
        return self.error_code.code

    @property
    def is_client_error(self) -> bool:
        return self.status < SERVER_ERROR

    def to_dict(self) -> dict:
        """Convert to the error body returned to API callers."""
        error_dict = {
            "code": self.code,
            "message": self.message,
            "status": self.status,
        }
        if self.field:
            error_dict["field"] = self.field
        return error_dict
