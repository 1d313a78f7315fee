"""
Reader Site Configuration

Per-domain reader mode recipes: which page URLs on a site are eligible and
how their main content is extracted and cleaned.
"""

__version__ = "0.1.0"

# Export main components
from .models.recipe import AttributeRewrite, Configuration, RewriteRuleSet
from .store import (
    ConfigurationError,
    ConfigurationSerializer,
    ConfigurationStore,
    DeserializationError,
    InvalidDomainError,
    SerializationError,
    SiteConfigError,
    StoreSnapshot,
)
from .corpus import load_corpus
from .settings import StoreSettings, build_store

__all__ = [
    "AttributeRewrite",
    "Configuration",
    "RewriteRuleSet",
    "ConfigurationStore",
    "ConfigurationSerializer",
    "StoreSnapshot",
    "load_corpus",
    "StoreSettings",
    "build_store",
    "SiteConfigError",
    "SerializationError",
    "DeserializationError",
    "InvalidDomainError",
    "ConfigurationError",
]
