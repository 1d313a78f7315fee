"""Loader for the built-in corpus of site recipes.

The corpus is a plain JSON array in the same shape as the persisted store
format, shipped as package data so recipes can be curated without touching
the resolver.
"""

import logging
from importlib import resources
from pathlib import Path
from typing import List, Optional, Union

from ..models.recipe import Configuration
from ..store.exceptions import ConfigurationError
from ..store.serialization import ConfigurationSerializer


logger = logging.getLogger(__name__)

CORPUS_PACKAGE = "reader_site_config.corpus.data"
CORPUS_FILENAME = "sites.json"


def read_corpus_bytes(path: Optional[Union[str, Path]] = None) -> bytes:
    """
    Read raw corpus bytes from ``path`` or from the packaged corpus.

    Raises:
        ConfigurationError: If ``path`` does not exist.
    """
    if path is None:
        return resources.files(CORPUS_PACKAGE).joinpath(CORPUS_FILENAME).read_bytes()

    path = Path(path)
    if not path.exists():
        raise ConfigurationError(
            f"Corpus file not found: {path}", details={"path": str(path)}
        )
    return path.read_bytes()


def load_corpus(path: Optional[Union[str, Path]] = None) -> List[Configuration]:
    """
    Load corpus configurations in file order.

    Args:
        path: Corpus file; the packaged ``sites.json`` when None.

    Raises:
        ConfigurationError: If ``path`` does not exist.
        DeserializationError: If the corpus is malformed.
    """
    configurations = ConfigurationSerializer.decode(read_corpus_bytes(path))
    logger.debug(
        f"Read {len(configurations)} corpus entries from {path or CORPUS_FILENAME}"
    )
    return configurations
