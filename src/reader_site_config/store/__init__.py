"""Configuration store: domain resolution and persistence."""

from .configuration_store import MIN_DOMAIN_LENGTH, ConfigurationStore
from .exceptions import (
    ConfigurationError,
    DeserializationError,
    InvalidDomainError,
    SerializationError,
    SiteConfigError,
)
from .serialization import (
    ConfigurationSerializer,
    deserialize_configurations,
    serialize_configurations,
)
from .snapshot import StoreSnapshot

__all__ = [
    "MIN_DOMAIN_LENGTH",
    "ConfigurationStore",
    "ConfigurationSerializer",
    "StoreSnapshot",
    "serialize_configurations",
    "deserialize_configurations",
    "SiteConfigError",
    "SerializationError",
    "DeserializationError",
    "InvalidDomainError",
    "ConfigurationError",
]
