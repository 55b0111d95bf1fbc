"""
User Request Validation: operation scoped rules

Every create/update/lookup/merge/role-assignment request for a user record
passes through ``UserRequestValidator`` before anything is persisted or
searched. Each operation has one entry point that runs its rules in a fixed
order and stops at the first violation.

Architecture:
    request layer ──> UserRequestValidator ──┬──> validators.py     (formats)
                                             ├──> external_ids.py   (externalIds)
                                             ├──> taxonomy/         (userType, userSubType)
                                             └──> framework.py      (framework)

Results:
    Entry points return a ``ValidationResult``. Rules run on a copy of the
    request body; on success the result carries the normalized copy (DOB
    rewritten, ``dobValidationDone`` set, declaration personas defaulted),
    on failure it carries the ``UserValidationError``. The inbound body is
    never modified.
"""

from __future__ import annotations
import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional

from uservalidator.config.settings import ValidatorConfig, settings
from . import external_ids, framework, validators
from .document import (
    LIST_KINDS,
    Operation,
    Request,
    RequestDocument,
    ValidationResult,
    ValueKind,
    is_blank,
    kind_of,
)
from .errors import ErrorCode, UserValidationError
from .taxonomy import FormsClient, TaxonomyCache, UserTypeResolver

logger = logging.getLogger(__name__)

# Request keys
FIRST_NAME = "firstName"
EMAIL = "email"
PHONE = "phone"
COUNTRY_CODE = "countryCode"
MANAGED_BY = "managedBy"
PASSWORD = "password"
DOB = "dob"
DOB_VALIDATION_DONE = "dobValidationDone"
ROLES = "roles"
USERNAME = "username"
USER_ID = "userId"
ID = "id"
EXTERNAL_ID = "externalId"
EXTERNAL_ID_PROVIDER = "externalIdProvider"
EXTERNAL_ID_TYPE = "externalIdType"
ROOT_ORG_ID = "rootOrgId"
ORGANISATIONS = "organisations"
ORGANISATION_ID = "organisationId"
PROVIDER = "provider"
PROFILE_USER_TYPE = "profileUserType"
PROFILE_USER_TYPES = "profileUserTypes"
RECOVERY_EMAIL = "recoveryEmail"
RECOVERY_PHONE = "recoveryPhone"
LOGIN_ID = "loginId"
FROM_ACCOUNT_ID = "fromAccountId"
TO_ACCOUNT_ID = "toAccountId"
DECLARATIONS = "declarations"
ORG_ID = "orgId"
PERSONA = "persona"
STATE_CODE = "stateCode"

X_AUTHENTICATED_USER_TOKEN = "x-authenticated-user-token"
X_SOURCE_USER_TOKEN = "x-source-user-token"

# Server assigned fields a create request may not carry
CREATE_FORBIDDEN_FIELDS = (
    "registeredOrgId",
    ROOT_ORG_ID,
    PROVIDER,
    EXTERNAL_ID,
    EXTERNAL_ID_PROVIDER,
    EXTERNAL_ID_TYPE,
    "idType",
    PROFILE_USER_TYPES,
)
UPDATE_FORBIDDEN_FIELDS = (
    "registeredOrgId",
    ROOT_ORG_ID,
    "channel",
    USERNAME,
    PROVIDER,
    "idType",
)
LOOKUP_TYPES = ("email", "phone", "username", "externalId")

# Short operation tags accepted by validate() alongside the Operation values
OPERATION_ALIASES = {
    "create": Operation.CREATE,
    "update": Operation.UPDATE,
    "updateV3": Operation.UPDATE_V3,
    "lookup": Operation.LOOKUP,
    "verify": Operation.VERIFY,
    "assignRole": Operation.ASSIGN_ROLE,
    "forgotPassword": Operation.FORGOT_PASSWORD,
    "mergeAccount": Operation.MERGE_ACCOUNT,
    "declare": Operation.DECLARE,
}

Rules = Callable[[RequestDocument, Request], Optional[str]]


def resolve_operation(tag: Any) -> Optional[Operation]:
    """Map an operation tag to its ``Operation``; None when unknown."""
    if isinstance(tag, Operation):
        return tag
    if not isinstance(tag, str):
        return None
    if tag in OPERATION_ALIASES:
        return OPERATION_ALIASES[tag]
    try:
        return Operation(tag)
    except ValueError:
        return None


class UserRequestValidator:
    """Operation scoped validation of user lifecycle requests.

    Args:
        resolver: User type resolver; one backed by ``FormsClient`` and a
            private ``TaxonomyCache`` is built when omitted
        config: Settings override

    Usage:
        cache = TaxonomyCache()
        resolver = UserTypeResolver(FormsClient(), cache)
        validator = UserRequestValidator(resolver)
        result = validator.validate_create(Request(Operation.CREATE, body))
        body = result.raise_for_error()
    """

    def __init__(self, resolver: Optional[UserTypeResolver] = None, config: Optional[ValidatorConfig] = None):
        self.config = config or settings
        self.resolver = resolver or UserTypeResolver(
            FormsClient(config=self.config), TaxonomyCache(), self.config
        )

    # ─────────────────────────────────────────────────────────────────────
    # Entry points
    # ─────────────────────────────────────────────────────────────────────

    def validate(self, request: Request) -> ValidationResult:
        """Dispatch on ``request.operation``.

        Accepts an ``Operation`` value (``createUser``) or a short tag
        (``create``, ``mergeAccount``, ...). Merge requests read their tokens
        from ``request.context["headers"]``.
        """
        operation = resolve_operation(request.operation)
        if operation is Operation.MERGE_ACCOUNT:
            headers = request.context.get("headers") or {}
            return self.validate_merge(
                request,
                headers.get(X_AUTHENTICATED_USER_TOKEN),
                headers.get(X_SOURCE_USER_TOKEN),
            )
        handlers = {
            Operation.CREATE: self.validate_create,
            Operation.CREATE_V1: self.validate_create_v1,
            Operation.CREATE_V3: self.validate_create_v3,
            Operation.CREATE_V4: self.validate_create_v4,
            Operation.UPDATE: self.validate_update,
            Operation.UPDATE_V2: self.validate_update,
            Operation.UPDATE_V3: self.validate_update_v3,
            Operation.LOOKUP: self.validate_lookup,
            Operation.VERIFY: self.validate_verify,
            Operation.ASSIGN_ROLE: self.validate_assign_role,
            Operation.FORGOT_PASSWORD: self.validate_forgot_password,
            Operation.DECLARE: self.validate_declarations,
        }
        handler = handlers.get(operation)
        if handler is None:
            return ValidationResult.failure(
                UserValidationError(
                    ErrorCode.INVALID_VALUE,
                    field="operation",
                    value=request.operation,
                    allowed=", ".join([op.value for op in Operation] + list(OPERATION_ALIASES)),
                )
            )
        return handler(request)

    def validate_create(self, request: Request) -> ValidationResult:
        """Full create: external ids, server assigned fields, profile fields, user type, phone, password."""
        return self._run(request, self._create_rules)

    def validate_create_v1(self, request: Request) -> ValidationResult:
        """Create through the v1 API, which also requires a username."""
        def rules(document: RequestDocument, req: Request) -> Optional[str]:
            self._mandatory(document, USERNAME)
            return self._create_rules(document, req)

        return self._run(request, rules)

    def validate_create_v3(self, request: Request) -> ValidationResult:
        """Light create: profile identity, password, email, phone and DOB."""
        return self._run(request, self._create_v3_rules)

    def validate_create_v4(self, request: Request) -> ValidationResult:
        def rules(document: RequestDocument, req: Request) -> Optional[str]:
            self._create_v3_rules(document, req)
            framework.validate_framework_details(document)
            return None

        return self._run(request, rules)

    def validate_update(self, request: Request) -> ValidationResult:
        """Update through the legacy API (``profileUserType`` singular)."""
        return self._run(request, lambda document, req: self._update_rules(document, legacy_user_type=True))

    def validate_update_v3(self, request: Request) -> ValidationResult:
        """Update through the v3 API (``profileUserTypes`` list)."""
        return self._run(request, lambda document, req: self._update_rules(document, legacy_user_type=False))

    def validate_lookup(self, request: Request) -> ValidationResult:
        def rules(document: RequestDocument, req: Request) -> None:
            self._mandatory(document, "value", "key")
            allowed = list(LOOKUP_TYPES) + [ID]
            key = document.get("key")
            if key not in allowed:
                raise UserValidationError(ErrorCode.INVALID_VALUE, field="key", value=key, allowed=", ".join(allowed))

        return self._run(request, rules)

    def validate_verify(self, request: Request) -> ValidationResult:
        def rules(document: RequestDocument, req: Request) -> None:
            if document.is_blank(LOGIN_ID):
                raise UserValidationError(ErrorCode.LOGIN_ID_REQUIRED, field=LOGIN_ID)

        return self._run(request, rules)

    def validate_forgot_password(self, request: Request) -> ValidationResult:
        def rules(document: RequestDocument, req: Request) -> None:
            if document.is_blank(USERNAME):
                raise UserValidationError(ErrorCode.USERNAME_REQUIRED, field=USERNAME)

        return self._run(request, rules)

    def validate_assign_role(self, request: Request) -> ValidationResult:
        """Assign roles: ``userId``, non-empty ``roles``, and an organisation reference."""
        def rules(document: RequestDocument, req: Request) -> None:
            if document.is_blank(USER_ID):
                raise UserValidationError(ErrorCode.USER_ID_REQUIRED, field=USER_ID)
            roles_kind = document.kind(ROLES)
            if roles_kind not in LIST_KINDS:
                raise UserValidationError(ErrorCode.DATA_TYPE_ERROR, field=ROLES, expected="List")
            if not document.get(ROLES):
                raise UserValidationError(ErrorCode.ROLES_REQUIRED, field=ROLES)
            if document.is_blank(ORGANISATION_ID) and (
                document.is_blank(EXTERNAL_ID) or document.is_blank(PROVIDER)
            ):
                raise UserValidationError(
                    ErrorCode.MANDATORY_PARAMS_MISSING,
                    field=f"{ORGANISATION_ID} or {EXTERNAL_ID} and {PROVIDER}",
                )

        return self._run(request, rules)

    def validate_merge(self, request: Request, auth_user_token: Optional[str],
                       source_user_token: Optional[str]) -> ValidationResult:
        """Merge accounts; both account ids and both header tokens are mandatory."""
        def rules(document: RequestDocument, req: Request) -> None:
            if document.is_blank(FROM_ACCOUNT_ID):
                raise UserValidationError(ErrorCode.FROM_ACCOUNT_ID_REQUIRED, field=FROM_ACCOUNT_ID)
            if document.is_blank(TO_ACCOUNT_ID):
                raise UserValidationError(ErrorCode.TO_ACCOUNT_ID_REQUIRED, field=TO_ACCOUNT_ID)
            if is_blank(auth_user_token):
                raise UserValidationError(ErrorCode.MANDATORY_HEADER_MISSING, field=X_AUTHENTICATED_USER_TOKEN)
            if is_blank(source_user_token):
                raise UserValidationError(ErrorCode.MANDATORY_HEADER_MISSING, field=X_SOURCE_USER_TOKEN)

        return self._run(request, rules)

    def validate_declarations(self, request: Request) -> ValidationResult:
        """Self declared fields; a missing ``persona`` defaults to the default persona."""
        def rules(document: RequestDocument, req: Request) -> None:
            try:
                self._declaration_rules(document)
            except Exception as exc:
                raise UserValidationError(
                    ErrorCode.INVALID_PARAMETER_VALUE,
                    str(exc),
                    field=DECLARATIONS,
                ) from exc

        return self._run(request, rules)

    # Collaborator entry points (raise on failure)

    def validate_user_type(self, user_map: Mapping[str, Any], scope_key: Optional[str] = None,
                           context: Optional[Mapping[str, Any]] = None) -> Optional[str]:
        return self.resolver.validate_user_type(user_map, scope_key, context)

    def validate_user_sub_type(self, user_map: Mapping[str, Any], scope_key: str) -> None:
        self.resolver.validate_user_sub_type(user_map, scope_key)

    def validate_user_id(self, uuid: Optional[str]) -> None:
        validators.validate_uuid(uuid)

    def validate_location_type(self, location_type: Optional[str]) -> bool:
        return validators.validate_location_type(location_type, self.config)

    @staticmethod
    def validate_mandatory_framework_fields(user_map: Mapping[str, Any], framework_fields: Iterable[str],
                                            mandatory_fields: Iterable[str]) -> None:
        framework.validate_mandatory_framework_fields(user_map, framework_fields, mandatory_fields)

    @staticmethod
    def validate_framework_category_values(user_map: Mapping[str, Any],
                                           framework_map: Mapping[str, List[Mapping[str, Any]]]) -> None:
        framework.validate_framework_category_values(user_map, framework_map)

    # ─────────────────────────────────────────────────────────────────────
    # Rule sets
    # ─────────────────────────────────────────────────────────────────────

    def _run(self, request: Request, rules: Rules) -> ValidationResult:
        document = request.working_copy()
        try:
            scope_key = rules(document, request)
        except UserValidationError as exc:
            logger.debug(f"Rejected {request.operation}: code={exc.code} field={exc.field} | {exc.message}")
            return ValidationResult.failure(exc)
        return ValidationResult.success(document, scope_key)

    def _create_rules(self, document: RequestDocument, request: Request) -> Optional[str]:
        external_ids.validate_external_ids(document, external_ids.CREATE_MODE)
        self._fields_not_allowed(document, CREATE_FORBIDDEN_FIELDS)
        self._create_profile_fields(document)
        if document.get(ROLES) is not None and document.kind(ROLES) not in LIST_KINDS:
            raise UserValidationError(ErrorCode.DATA_TYPE_ERROR, field=ROLES, expected="List")
        scope_key = self.resolver.validate_user_type(
            document.to_dict(), request.context.get(STATE_CODE), request.context
        )
        self._phone_rules(document)
        validators.validate_password(document.text(PASSWORD), self.config)
        return scope_key

    def _create_v3_rules(self, document: RequestDocument, request: Request) -> None:
        self._mandatory(document, FIRST_NAME)
        self._identity_triple(document)
        validators.validate_password(document.text(PASSWORD), self.config)
        if document.has_text(EMAIL):
            validators.validate_email(document.get(EMAIL))
        if document.has_text(PHONE):
            validators.validate_phone(str(document.get(PHONE)), config=self.config)
        self._dob(document)

    def _update_rules(self, document: RequestDocument, legacy_user_type: bool) -> None:
        if MANAGED_BY in document:
            raise UserValidationError(ErrorCode.MANAGED_BY_NOT_ALLOWED, field=MANAGED_BY)
        self._empty_phone_and_email(document)
        external_ids.validate_external_ids(document, external_ids.UPDATE_MODE)
        self._phone_rules(document)
        self._update_basic_fields(document, legacy_user_type)
        if ORGANISATIONS in document:
            raise UserValidationError(ErrorCode.UNSUPPORTED_FIELD, field=ORGANISATIONS)
        self._dob(document)
        if ROOT_ORG_ID in document and document.is_blank(ROOT_ORG_ID):
            raise UserValidationError(ErrorCode.INVALID_ROOT_ORG_ID, field=ROOT_ORG_ID)
        self._external_id_triple(document)
        framework.validate_framework_details(document)
        self._recovery_contacts(document)

    def _declaration_rules(self, document: RequestDocument) -> None:
        declarations = document.get(DECLARATIONS)
        if kind_of(declarations) not in LIST_KINDS or not declarations:
            raise UserValidationError(ErrorCode.MANDATORY_PARAMS_MISSING, field=DECLARATIONS)
        for item in declarations:
            if kind_of(item) is not ValueKind.DOCUMENT:
                raise UserValidationError(ErrorCode.DATA_TYPE_ERROR, field=DECLARATIONS, expected="List of Map")
            if is_blank(item.get(USER_ID)) or is_blank(item.get(ORG_ID)):
                raise UserValidationError(
                    ErrorCode.SELF_DECLARED_PARAMS_MISSING,
                    field=DECLARATIONS,
                    fields=f"{USER_ID}, {ORG_ID}",
                )
            if is_blank(item.get(PERSONA)):
                item[PERSONA] = self.config.default_persona

    # ─────────────────────────────────────────────────────────────────────
    # Shared rules
    # ─────────────────────────────────────────────────────────────────────

    @staticmethod
    def _mandatory(document: RequestDocument, *keys: str) -> None:
        for key in keys:
            if document.is_blank(key):
                raise UserValidationError(ErrorCode.MANDATORY_PARAMS_MISSING, field=key)

    @staticmethod
    def _fields_not_allowed(document: RequestDocument, fields: Iterable[str]) -> None:
        for name in fields:
            if document.get(name) is not None:
                raise UserValidationError(ErrorCode.INVALID_REQUEST_PARAMETER, field=name)

    @staticmethod
    def _identity_triple(document: RequestDocument) -> None:
        """At least one of email/phone/managedBy; managedBy excludes email and phone."""
        has_email = document.has_text(EMAIL)
        has_phone = document.has_text(PHONE)
        has_managed_by = document.has_text(MANAGED_BY)
        if not (has_email or has_phone or has_managed_by):
            raise UserValidationError(ErrorCode.EMAIL_OR_PHONE_OR_MANAGED_BY_REQUIRED)
        if (has_email or has_phone) and has_managed_by:
            raise UserValidationError(ErrorCode.ONLY_EMAIL_OR_PHONE_OR_MANAGED_BY, field=MANAGED_BY)

    def _create_profile_fields(self, document: RequestDocument) -> None:
        self._mandatory(document, FIRST_NAME)
        self._identity_triple(document)
        self._dob(document)
        if document.has_text(EMAIL):
            validators.validate_email(document.get(EMAIL))

    def _dob(self, document: RequestDocument) -> None:
        """Canonicalize ``dob`` once; later passes see ``dobValidationDone`` and skip."""
        if document.get(DOB_VALIDATION_DONE) is not None or document.get(DOB) is None:
            return
        document.set(DOB, validators.canonical_dob(document.get(DOB), self.config))
        document.set(DOB_VALIDATION_DONE, True)

    def _phone_rules(self, document: RequestDocument) -> None:
        country_code = document.text(COUNTRY_CODE)
        if not is_blank(country_code):
            validators.validate_country_code(country_code)
        if document.has_text(PHONE):
            validators.validate_phone(str(document.get(PHONE)), country_code, config=self.config)

    @staticmethod
    def _empty_phone_and_email(document: RequestDocument) -> None:
        for key in (PHONE, EMAIL):
            value = document.get(key)
            if isinstance(value, str) and not value.strip():
                raise UserValidationError(ErrorCode.INVALID_PARAMETER_VALUE, field=key, value=value)

    def _update_basic_fields(self, document: RequestDocument, legacy_user_type: bool) -> None:
        self._fields_not_allowed(document, UPDATE_FORBIDDEN_FIELDS)
        if (document.is_blank(USER_ID) and document.is_blank(ID)) and (
            document.is_blank(EXTERNAL_ID)
            or document.is_blank(EXTERNAL_ID_PROVIDER)
            or document.is_blank(EXTERNAL_ID_TYPE)
        ):
            raise UserValidationError(
                ErrorCode.MANDATORY_PARAMS_MISSING,
                field=f"{USER_ID} or {EXTERNAL_ID}, {EXTERNAL_ID_TYPE} and {EXTERNAL_ID_PROVIDER}",
            )
        if FIRST_NAME in document and document.is_blank(FIRST_NAME):
            raise UserValidationError(ErrorCode.FIRST_NAME_REQUIRED, field=FIRST_NAME)
        if document.get(EMAIL) is not None:
            validators.validate_email(document.get(EMAIL))

        if document.get(ROLES) is not None:
            if document.kind(ROLES) not in LIST_KINDS:
                raise UserValidationError(ErrorCode.DATA_TYPE_ERROR, field=ROLES, expected="List")
            if not document.get(ROLES):
                raise UserValidationError(ErrorCode.ROLES_REQUIRED, field=ROLES)

        if legacy_user_type:
            if PROFILE_USER_TYPES in document:
                raise UserValidationError(ErrorCode.INVALID_PARAMETER, field=PROFILE_USER_TYPES)
        elif PROFILE_USER_TYPE in document:
            raise UserValidationError(ErrorCode.INVALID_PARAMETER, field=PROFILE_USER_TYPE)

        profile_user_types = document.get(PROFILE_USER_TYPES)
        if profile_user_types is not None:
            kind = kind_of(profile_user_types)
            if kind in LIST_KINDS and not profile_user_types:
                raise UserValidationError(ErrorCode.PROFILE_USER_TYPES_REQUIRED, field=PROFILE_USER_TYPES)
            if kind is not ValueKind.RECORD_LIST:
                raise UserValidationError(ErrorCode.DATA_TYPE_ERROR, field=PROFILE_USER_TYPES, expected="List")

    @staticmethod
    def _external_id_triple(document: RequestDocument) -> None:
        """externalId, externalIdType and externalIdProvider come together or not at all."""
        present = [document.has_text(key) for key in (EXTERNAL_ID_PROVIDER, EXTERNAL_ID, EXTERNAL_ID_TYPE)]
        if any(present) and not all(present):
            raise UserValidationError(
                ErrorCode.DEPENDENT_PARAMS_MISSING,
                fields=f"{EXTERNAL_ID}, {EXTERNAL_ID_TYPE}, {EXTERNAL_ID_PROVIDER}",
            )

    def _recovery_contacts(self, document: RequestDocument) -> None:
        if document.has_text(RECOVERY_EMAIL):
            validators.validate_email(document.get(RECOVERY_EMAIL), field=RECOVERY_EMAIL)
        if document.has_text(RECOVERY_PHONE):
            validators.validate_phone(str(document.get(RECOVERY_PHONE)), field=RECOVERY_PHONE, config=self.config)
