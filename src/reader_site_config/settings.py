"""Runtime settings and store construction."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .store.configuration_store import ConfigurationStore
from .store.exceptions import ConfigurationError
from .store.serialization import DEFAULT_COMPRESSION_LEVEL


logger = logging.getLogger(__name__)

ENV_PREFIX = "READER_SITE_CONFIG_"
_TRUTHY = {"1", "true", "yes", "y"}


@dataclass
class StoreSettings:
    """Settings controlling where the configuration store is loaded from."""

    # Corpus file; None means the packaged sites.json
    corpus_path: Optional[str] = None

    # Persisted store blob, preferred over the corpus when it exists
    blob_path: Optional[str] = None

    load_predefined: bool = True
    compression_level: int = DEFAULT_COMPRESSION_LEVEL

    def __post_init__(self):
        if not 0 <= self.compression_level <= 9:
            raise ConfigurationError(
                "compression_level must be between 0 and 9",
                details={"compression_level": self.compression_level},
            )

    @classmethod
    def from_env(cls) -> "StoreSettings":
        """
        Build settings from ``READER_SITE_CONFIG_*`` environment variables.

        Recognised variables: ``CORPUS``, ``BLOB``, ``LOAD_PREDEFINED``
        ("1", "true", "yes", "y" are truthy) and ``COMPRESSION_LEVEL``.
        """
        return cls(
            corpus_path=os.getenv(f"{ENV_PREFIX}CORPUS") or None,
            blob_path=os.getenv(f"{ENV_PREFIX}BLOB") or None,
            load_predefined=_get_bool_from_env("LOAD_PREDEFINED", default=True),
            compression_level=_get_int_from_env(
                "COMPRESSION_LEVEL", default=DEFAULT_COMPRESSION_LEVEL
            ),
        )


def _get_bool_from_env(name: str, default: bool) -> bool:
    value = os.getenv(f"{ENV_PREFIX}{name}")
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _get_int_from_env(name: str, default: int) -> int:
    value = os.getenv(f"{ENV_PREFIX}{name}")
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} must be an integer", details={"value": value}
        ) from e


def build_store(settings: Optional[StoreSettings] = None) -> ConfigurationStore:
    """
    Construct a populated store.

    A persisted blob is used when ``blob_path`` points at an existing file;
    otherwise the corpus is loaded if ``load_predefined`` is set.
    """
    settings = settings or StoreSettings()

    if settings.blob_path:
        blob = Path(settings.blob_path)
        if blob.exists():
            logger.info(f"Loading configuration store from blob: {blob}")
            return ConfigurationStore.load(blob)
        logger.info(f"Store blob {blob} not found, falling back to corpus")

    store = ConfigurationStore()
    if settings.load_predefined:
        store.load_predefined(settings.corpus_path)
    return store
