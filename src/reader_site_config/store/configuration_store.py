"""Configuration store for reader mode site recipes.

This module owns the per-domain recipe table and answers domain
resolution queries: given a page's host, find the most specific
registered domain that is a suffix of it.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Union

from ..models.recipe import Configuration
from .exceptions import DeserializationError, InvalidDomainError
from .serialization import DEFAULT_COMPRESSION_LEVEL, ConfigurationSerializer


logger = logging.getLogger(__name__)

# Shortest string the suffix scan can handle: it never looks at label
# boundaries inside the final two characters.
MIN_DOMAIN_LENGTH = 2


class ConfigurationStore:
    """
    Table of site recipes keyed by registered domain.

    Populate it during start-up (``add_configuration``, ``load_predefined``
    or ``deserialize``) and treat it as read-only afterwards. Concurrent
    reconfiguration goes through ``StoreSnapshot``.
    """

    def __init__(self, configurations: Optional[Iterable[Configuration]] = None):
        self._map: Dict[str, Configuration] = {}
        for config in configurations or ():
            self.add_configuration(config)

    def __len__(self) -> int:
        return len(self._map)

    def __contains__(self, domain: object) -> bool:
        return domain in self._map

    def __iter__(self) -> Iterator[Configuration]:
        return iter(self._map.values())

    def domains(self) -> List[str]:
        """Get all registered domains."""
        return list(self._map)

    # =========================================================================
    # Insertion
    # =========================================================================

    def add_configuration(self, config: Configuration) -> None:
        """
        Insert a configuration, replacing any entry for the same domain.

        Selectors and URL rules are stored as given. Replacement is
        whole-value; the previous configuration is discarded, not merged.

        Raises:
            InvalidDomainError: If ``config.domain`` is shorter than two
                characters.
        """
        _check_domain(config.domain)
        if config.domain in self._map:
            logger.debug(f"Replacing configuration for {config.domain}")
        self._map[config.domain] = config

    def load_predefined(self, corpus_path: Optional[Union[str, Path]] = None) -> int:
        """
        Insert the built-in site corpus.

        Args:
            corpus_path: Alternative corpus file; the packaged corpus is
                used when None.

        Returns:
            Number of configurations inserted.
        """
        from ..corpus.loader import load_corpus

        configurations = load_corpus(corpus_path)
        for config in configurations:
            self.add_configuration(config)
        logger.info(f"Loaded {len(configurations)} predefined site configurations")
        return len(configurations)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_configuration(self, domain: str) -> Optional[Configuration]:
        """
        Resolve the most specific configuration for a host.

        An exact registration wins. Otherwise the host is scanned left to
        right and each suffix starting after a ``.`` is looked up, so
        ``news.example.com`` is preferred over ``example.com`` for
        ``a.news.example.com``. Boundaries inside the last two characters
        are skipped.

        Args:
            domain: Candidate host, e.g. ``www.example.com``.

        Returns:
            Matching configuration, or None if no registered domain is a
            suffix of the host.

        Raises:
            InvalidDomainError: If the host is shorter than two characters.
        """
        _check_domain(domain)

        config = self._map.get(domain)
        if config is not None:
            return config

        for i, char in enumerate(domain[:-MIN_DOMAIN_LENGTH]):
            if char != ".":
                continue
            config = self._map.get(domain[i + 1:])
            if config is not None:
                logger.debug(f"Resolved {domain} to registered domain {config.domain}")
                return config

        return None

    def get_url_rules(self) -> List[str]:
        """
        Collect the URL rules of every configuration.

        Rules from one configuration stay in their declared order;
        ordering between domains is not guaranteed.
        """
        return [rule for config in self._map.values() for rule in config.url_rules]

    # =========================================================================
    # Persistence
    # =========================================================================

    def serialize(
        self,
        compress: bool = True,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
    ) -> bytes:
        """
        Encode the store as a JSON array, gzip compressed by default.

        Raises:
            SerializationError: If encoding fails.
        """
        configurations = sorted(self._map.values(), key=lambda c: c.domain)
        return ConfigurationSerializer.encode(
            configurations, compress=compress, compression_level=compression_level
        )

    @classmethod
    def deserialize(cls, payload: bytes) -> "ConfigurationStore":
        """
        Build a store from a gzip or plain UTF-8 JSON blob.

        Later entries override earlier ones with the same domain.

        Raises:
            DeserializationError: If the blob cannot be decoded or an entry
                has a domain shorter than two characters.
        """
        configurations = ConfigurationSerializer.decode(payload)
        try:
            store = cls(configurations)
        except InvalidDomainError as e:
            raise DeserializationError(
                f"Invalid domain in payload: {e.message}",
                domain=e.domain,
                details=e.details,
            ) from e
        logger.info(
            f"Deserialized {len(configurations)} configurations "
            f"({len(store)} unique domains)"
        )
        return store

    def save(
        self,
        path: Union[str, Path],
        compress: bool = True,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
    ) -> Path:
        """Write the serialized store to ``path`` and return it."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(
            self.serialize(compress=compress, compression_level=compression_level)
        )
        logger.info(f"Saved {len(self)} configurations to: {path}")
        return path

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ConfigurationStore":
        """Read a store previously written by ``save``."""
        return cls.deserialize(Path(path).read_bytes())


def _check_domain(domain: str) -> None:
    if not isinstance(domain, str) or len(domain) < MIN_DOMAIN_LENGTH:
        raise InvalidDomainError(
            f"Domain must be a string of at least {MIN_DOMAIN_LENGTH} characters",
            domain=domain if isinstance(domain, str) else None,
            details={"value": repr(domain)},
        )
