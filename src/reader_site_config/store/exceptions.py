"""Custom exceptions for the configuration store."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class SiteConfigError(Exception):
    """
    Base exception for configuration store errors.

    Attributes:
        message: Human-readable error description.
        domain: Domain the error relates to, if any.
        details: Additional error details (offending index, field, etc).
    """
    message: str
    domain: Optional[str] = None
    details: Optional[dict] = field(default_factory=dict)

    def __post_init__(self):
        if self.details is None:
            self.details = {}
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [self.message]
        if self.domain:
            parts.append(f"Domain: {self.domain}")
        if self.details:
            parts.append(
                ", ".join(f"{key}={value}" for key, value in self.details.items())
            )
        return " | ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "domain": self.domain,
            "details": self.details,
        }


@dataclass
class SerializationError(SiteConfigError):
    """Raised when the store cannot be encoded to its persisted form."""


@dataclass
class DeserializationError(SiteConfigError):
    """
    Raised when a persisted blob cannot be turned back into a store.

    Covers payloads that are neither gzip nor valid UTF-8, malformed JSON,
    and JSON that does not describe an array of configurations. There is
    no partial-load mode: a store is either fully built or not at all.
    """

    @property
    def index(self) -> Optional[int]:
        """Position of the offending configuration in the array, if known."""
        return self.details.get("index")


@dataclass
class InvalidDomainError(SiteConfigError):
    """Raised for domains too short to be registered or resolved."""


@dataclass
class ConfigurationError(SiteConfigError):
    """Raised for invalid settings or a missing corpus file."""
