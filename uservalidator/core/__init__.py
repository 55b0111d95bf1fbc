"""Core Validation Module

Request validation for user lifecycle operations, independent of the HTTP
framework that receives the requests.

Module Structure:
    - document.py       : Request document, value kinds, result type
    - errors.py         : ErrorCode catalogue and UserValidationError
    - validators.py     : Format validators (email, phone, password, DOB, UUID, location type)
    - external_ids.py   : externalIds list validation
    - framework.py      : framework sub-document validation
    - taxonomy/         : userType / userSubType resolution (forms service + cache)
    - user_request_validator.py : Operation scoped rule sets

Usage Pattern:
    Import explicitly when needed:
        from uservalidator.core.user_request_validator import UserRequestValidator
        from uservalidator.core.document import Operation, Request
        from uservalidator.core.taxonomy import FormsClient, TaxonomyCache, UserTypeResolver

Public APIs:
    Validation (uservalidator.core.user_request_validator):
        - UserRequestValidator.validate()
        - UserRequestValidator.validate_create() / _v1 / _v3 / _v4
        - UserRequestValidator.validate_update() / validate_update_v3()
        - UserRequestValidator.validate_lookup(), validate_verify(),
          validate_assign_role(), validate_forgot_password(),
          validate_merge(), validate_declarations()

    Errors (uservalidator.core.errors):
        - ErrorCode
        - UserValidationError (exception)
"""
