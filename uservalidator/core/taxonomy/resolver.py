"""User type / sub type resolution against tenant scoped configuration."""
from __future__ import annotations
import logging
from typing import Any, List, Mapping, Optional, Protocol

from uservalidator.config.settings import ValidatorConfig, settings
from ..document import ValueKind, is_blank, kind_of
from ..errors import ErrorCode, UserValidationError
from .cache import TaxonomyCache, UserTypeConfig

logger = logging.getLogger(__name__)

USER_TYPE = "userType"
USER_SUB_TYPE = "userSubType"
PROFILE_USER_TYPES = "profileUserTypes"


class TaxonomyProvider(Protocol):
    def get_user_type_config(self, scope_key: str, context: Optional[Mapping[str, Any]] = None) -> Mapping[str, List[str]]:
        ...


def _checked_text(value: Any, field: str) -> str:
    """Config keys and sub types are strings; any other shape is an invalid value."""
    if kind_of(value) is not ValueKind.STRING:
        raise UserValidationError(ErrorCode.INVALID_PARAMETER_VALUE, field=field, value=value)
    return value


def _profile_user_types(user_map: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    """Return ``profileUserTypes`` items when the list form is in use, else []."""
    items = user_map.get(PROFILE_USER_TYPES)
    if kind_of(items) is ValueKind.RECORD_LIST and items[0]:
        return list(items)
    return []


class UserTypeResolver:
    """Validates ``userType``/``userSubType`` against the scope's configuration.

    Args:
        provider: Taxonomy provider queried on cache misses
        cache: Shared cache (one per process)
        config: Settings override
    """

    def __init__(self, provider: TaxonomyProvider, cache: Optional[TaxonomyCache] = None,
                 config: Optional[ValidatorConfig] = None):
        self.provider = provider
        self.cache = cache if cache is not None else TaxonomyCache()
        self.config = config or settings

    @property
    def default_scope(self) -> str:
        return self.config.default_persona

    def resolve_config(self, scope_key: Optional[str], context: Optional[Mapping[str, Any]] = None) -> tuple[str, UserTypeConfig]:
        """Resolve the configuration for a scope key, falling back to the default persona.

        Returns:
            Tuple of (scope key actually used, configuration)

        Raises:
            UserValidationError: userTypeConfigIsEmpty (server error) when even
                the default persona has no configuration
        """
        scope = scope_key if not is_blank(scope_key) else self.default_scope

        def fetch(key: str):
            return self.provider.get_user_type_config(key, context)

        config = self.cache.get_or_fetch(scope, fetch)
        if not config and scope != self.default_scope:
            logger.info(f"Form config not found for stateCode:{scope}, using {self.default_scope}")
            scope = self.default_scope
            config = self.cache.get_or_fetch(scope, fetch)

        if not config:
            logger.info(f"Form config not found for stateCode:{scope}")
            raise UserValidationError(ErrorCode.USER_TYPE_CONFIG_EMPTY, scope=scope)

        logger.info(f"Available User Type for stateCode:{scope} are {sorted(config.keys())}")
        return scope, config

    def validate_user_type(self, user_map: Mapping[str, Any], scope_key: Optional[str] = None,
                           context: Optional[Mapping[str, Any]] = None) -> Optional[str]:
        """Validate ``userType`` (or each ``profileUserTypes[].type``).

        Returns:
            The scope key used for validation, to be passed to
            ``validate_user_sub_type``. When no ``userType`` is supplied nothing
            is resolved and ``scope_key`` is returned unchanged.
        """
        user_type = user_map.get(USER_TYPE)
        if user_type is None:
            return scope_key

        scope, config = self.resolve_config(scope_key, context)
        items = _profile_user_types(user_map)
        if items:
            for item in items:
                item_type = _checked_text(item.get("type"), USER_TYPE)
                if item_type not in config:
                    raise UserValidationError(ErrorCode.INVALID_PARAMETER_VALUE, field=USER_TYPE, value=item_type)
        elif _checked_text(user_type, USER_TYPE) not in config:
            raise UserValidationError(ErrorCode.INVALID_PARAMETER_VALUE, field=USER_TYPE, value=user_type)
        return scope

    @staticmethod
    def _sub_types(config: Mapping[str, Any], user_type: Any) -> Any:
        if kind_of(user_type) is not ValueKind.STRING:
            return ()
        return config.get(user_type, ())

    def validate_user_sub_type(self, user_map: Mapping[str, Any], scope_key: str) -> None:
        """Validate supplied sub types against the already resolved scope."""
        config = self.cache.get(scope_key) or {}
        items = _profile_user_types(user_map)
        if items:
            for item in items:
                sub_type = item.get("subType")
                if sub_type and _checked_text(sub_type, USER_SUB_TYPE) not in self._sub_types(config, item.get("type")):
                    raise UserValidationError(ErrorCode.INVALID_PARAMETER_VALUE, field=USER_SUB_TYPE, value=sub_type)
            return

        sub_type = user_map.get(USER_SUB_TYPE)
        if sub_type is not None and _checked_text(sub_type, USER_SUB_TYPE) not in self._sub_types(config, user_map.get(USER_TYPE)):
            raise UserValidationError(ErrorCode.INVALID_PARAMETER_VALUE, field=USER_SUB_TYPE, value=sub_type)
