"""User lifecycle request validation.

To validate requests:
    from uservalidator.core.user_request_validator import UserRequestValidator
    from uservalidator.core.document import Operation, Request

To expose validation failures from a Flask request layer:
    from uservalidator.api.errors import register_error_handlers
"""
# Note: the api package is not imported by default so core stays usable
# without Flask installed
