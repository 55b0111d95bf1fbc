"""User type taxonomy: cache, forms service provider and resolver."""
from .cache import TaxonomyCache
from .forms_client import FormsClient, parse_user_type_config
from .resolver import TaxonomyProvider, UserTypeResolver

__all__ = [
    "TaxonomyCache",
    "FormsClient",
    "parse_user_type_config",
    "TaxonomyProvider",
    "UserTypeResolver",
]
