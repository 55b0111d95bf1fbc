"""HTTP client for the forms service that publishes profile configuration.

The profile configuration form for a scope key lists the user types
(``persona``) and, per user type, the allowed sub types (``subPersona``).
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from uservalidator.config.settings import ValidatorConfig, settings

logger = logging.getLogger(__name__)

FORM_READ_PATH = "/plugin/v1/form/read"
PROFILE_CONFIG_TYPE = "profileconfig"
PERSONA_CODE = "persona"
SUB_PERSONA_CODE = "subPersona"


def _options(field: Mapping[str, Any]) -> List[str]:
    template_options = field.get("templateOptions") or {}
    return [
        option.get("value")
        for option in template_options.get("options") or []
        if isinstance(option, Mapping) and option.get("value")
    ]


def parse_user_type_config(form_response: Mapping[str, Any]) -> Dict[str, List[str]]:
    """Extract ``{userType: [userSubType, ...]}`` from a form read response.

    Returns an empty dict when the response carries no persona field.
    """
    result = form_response.get("result") or {}
    form = result.get("form") or {}
    data = form.get("data") or {}
    fields = data.get("fields") or []

    persona = next(
        (field for field in fields if isinstance(field, Mapping) and field.get("code") == PERSONA_CODE),
        None,
    )
    if persona is None:
        return {}

    config: Dict[str, List[str]] = {user_type: [] for user_type in _options(persona)}
    for user_type, child_fields in (persona.get("children") or {}).items():
        for child in child_fields or []:
            if isinstance(child, Mapping) and child.get("code") == SUB_PERSONA_CODE:
                config.setdefault(user_type, []).extend(_options(child))
    return config


class FormsClient:
    """Taxonomy provider backed by the forms service.

    Fetch failures are logged and reported as an empty configuration; callers
    fall back to the default persona. No retries are attempted.

    Usage:
        client = FormsClient("http://forms:9000")
        config = client.get_user_type_config("ka", {"requestId": "abc"})
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None,
                 config: Optional[ValidatorConfig] = None):
        cfg = config or settings
        self.base_url = (base_url or cfg.forms_api_base_url).rstrip("/")
        self.timeout = timeout or cfg.forms_api_timeout

    def read_profile_config(self, scope_key: str, context: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Read the profile configuration form for a scope key.

        Raises:
            requests.RequestException: On transport or HTTP error
        """
        context = context or {}
        headers = {"Content-Type": "application/json"}
        request_id = context.get("requestId")
        if request_id:
            headers["X-Request-ID"] = str(request_id)

        body = {
            "request": {
                "type": PROFILE_CONFIG_TYPE,
                "subType": scope_key,
                "action": "get",
                "component": "*",
                "framework": "*",
                "rootOrgId": "*",
            }
        }
        resp = requests.post(
            f"{self.base_url}{FORM_READ_PATH}",
            json=body,
            headers=headers,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def get_user_type_config(self, scope_key: str, context: Optional[Mapping[str, Any]] = None) -> Dict[str, List[str]]:
        try:
            form_response = self.read_profile_config(scope_key, context)
        except (requests.RequestException, ValueError) as exc:
            logger.warning(f"Profile config fetch failed for stateCode:{scope_key}: {exc}")
            return {}
        if not isinstance(form_response, Mapping):
            logger.warning(f"Unexpected profile config payload for stateCode:{scope_key}")
            return {}
        return parse_user_type_config(form_response)
