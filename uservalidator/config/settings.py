"""Settings loader with environment variable integration."""
from __future__ import annotations
import os
from dataclasses import dataclass, field

DEFAULT_PASSWORD_REGEX = (
    r"(?=.*[a-z])(?=.*[A-Z])(?=.*[0-9])"
    r"(?=.*[!\"#$%&'()*+,\-./:;<=>?@\[\]^_`{|}~])(?=\S+$).{8,}"
)
DEFAULT_LOCATION_TYPES = "state,district,block,cluster,school;location"


@dataclass
class ValidatorConfig:
    """Validator configuration container."""
    # Format rules
    password_regex: str = DEFAULT_PASSWORD_REGEX
    dob_year_suffix: str = "-12-31"
    dob_month_suffix: str = "-01"
    default_country_code: str = "+91"
    valid_location_types: list[str] = field(
        default_factory=lambda: parse_location_types(DEFAULT_LOCATION_TYPES)
    )

    # Taxonomy (forms service)
    default_persona: str = "default"
    forms_api_base_url: str = "http://localhost:9000"
    forms_api_timeout: int = 5


def parse_location_types(raw: str) -> list[str]:
    """Split ``state,district;location`` style config into a flat lower-cased list."""
    types = []
    for group in raw.split(";"):
        types.extend(item.strip().lower() for item in group.split(",") if item.strip())
    return types


def load_settings() -> ValidatorConfig:
    """Load validator settings from environment variables."""
    password_regex = os.environ.get("USER_PASSWORD_REGEX") or DEFAULT_PASSWORD_REGEX
    dob_year_suffix = os.environ.get("USER_DOB_SUFFIX", "-12-31")
    dob_month_suffix = os.environ.get("USER_DOB_MONTH_SUFFIX", "-01")
    default_country_code = os.environ.get("USER_DEFAULT_COUNTRY_CODE", "+91").strip()

    valid_location_types = parse_location_types(
        os.environ.get("USER_VALID_LOCATION_TYPES", DEFAULT_LOCATION_TYPES)
    )
    if not valid_location_types:
        valid_location_types = parse_location_types(DEFAULT_LOCATION_TYPES)

    default_persona = os.environ.get("DEFAULT_PERSONA", "default").strip() or "default"
    forms_api_base_url = os.environ.get("FORMS_API_BASE_URL", "http://localhost:9000").rstrip("/")
    try:
        forms_api_timeout = int(os.environ.get("FORMS_API_TIMEOUT", "5"))
    except ValueError:
        print("[settings] WARNING: FORMS_API_TIMEOUT is not an integer, using 5 seconds")
        forms_api_timeout = 5

    print(
        f"[settings] forms_api={forms_api_base_url}; default_persona={default_persona}; "
        f"default_country_code={default_country_code}"
    )

    return ValidatorConfig(
        password_regex=password_regex,
        dob_year_suffix=dob_year_suffix,
        dob_month_suffix=dob_month_suffix,
        default_country_code=default_country_code,
        valid_location_types=valid_location_types,
        default_persona=default_persona,
        forms_api_base_url=forms_api_base_url,
        forms_api_timeout=forms_api_timeout,
    )


# Global settings instance (loaded on first import)
settings: ValidatorConfig = load_settings()
