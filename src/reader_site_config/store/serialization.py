"""Serialization and deserialization of configuration store contents.

The persisted format is a JSON array of configuration objects, gzip
compressed at rest. Plain UTF-8 JSON is accepted on decode as a legacy
encoding.
"""

import gzip
import json
import logging
import zlib
from typing import Any, Dict, Iterable, List, Optional

from ..models.recipe import AttributeRewrite, Configuration, RewriteRuleSet
from .exceptions import DeserializationError, SerializationError


logger = logging.getLogger(__name__)

DEFAULT_COMPRESSION_LEVEL = 9
GZIP_MAGIC = b"\x1f\x8b"

# Failures that mean "this is not a gzip stream", as opposed to corruption
# of data we already know how to read.
_GZIP_DECODE_ERRORS = (zlib.error, EOFError)


class ConfigurationSerializer:
    """
    Handles conversion between Configuration objects and the persisted format.

    Field names and list order are part of the durable format; encoding
    then decoding a configuration yields an equal configuration.
    """

    @staticmethod
    def encode(
        configurations: Iterable[Configuration],
        compress: bool = True,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
    ) -> bytes:
        """
        Encode configurations as a JSON array, gzip compressed by default.

        Args:
            configurations: Configurations to encode, in output order.
            compress: Whether to gzip the JSON text.
            compression_level: gzip level (0-9).

        Returns:
            Encoded bytes.

        Raises:
            SerializationError: If a value cannot be represented as JSON.
        """
        try:
            data = json.dumps(
                [ConfigurationSerializer.config_to_dict(c) for c in configurations],
                ensure_ascii=False,
            ).encode("utf-8")
        except (TypeError, ValueError, UnicodeEncodeError) as e:
            raise SerializationError(f"Failed to encode configurations: {e}") from e

        if not compress:
            return data
        return gzip.compress(data, compresslevel=compression_level)

    @staticmethod
    def decode(payload: bytes) -> List[Configuration]:
        """
        Decode a persisted blob into configurations, in array order.

        gzip decompression is tried first; only if the payload is not a
        gzip stream is it read as plain UTF-8 JSON.

        Raises:
            DeserializationError: If the payload is not valid UTF-8 or not a
                JSON array of configuration objects.
        """
        text = ConfigurationSerializer._decode_text(payload)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DeserializationError(
                f"Invalid JSON: {e.msg}",
                details={"line": e.lineno, "column": e.colno},
            ) from e
        except RecursionError as e:
            raise DeserializationError(
                "JSON nesting is too deep", details={"size": len(text)}
            ) from e

        if not isinstance(data, list):
            raise DeserializationError(
                "Expected a JSON array of configurations",
                details={"found": type(data).__name__},
            )

        return [
            ConfigurationSerializer.dict_to_config(item, index=i)
            for i, item in enumerate(data)
        ]

    @staticmethod
    def _decode_text(payload: bytes) -> str:
        try:
            raw = _gunzip_first_member(payload)
        except _GZIP_DECODE_ERRORS as e:
            if payload.startswith(GZIP_MAGIC):
                raise DeserializationError(
                    f"Corrupt gzip payload: {e}", details={"size": len(payload)}
                ) from e
            logger.info(f"Payload is not gzip compressed ({e}); reading as plain text")
            raw = payload

        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DeserializationError(
                "Payload is neither gzip compressed nor valid UTF-8",
                details={"position": e.start},
            ) from e

    # ------------------------------------------------------------------
    # Object -> dict
    # ------------------------------------------------------------------

    @staticmethod
    def config_to_dict(config: Configuration) -> Dict[str, Any]:
        """Convert Configuration to dictionary."""
        rewrite = config.declarative_rewrite
        return {
            "domain": config.domain,
            "url_rules": list(config.url_rules),
            "declarative_rewrite": (
                ConfigurationSerializer._rules_to_dict(rewrite)
                if rewrite is not None
                else None
            ),
        }

    @staticmethod
    def _rules_to_dict(rules: RewriteRuleSet) -> Dict[str, Any]:
        return {
            "main_content": list(rules.main_content),
            "main_content_cleanup": list(rules.main_content_cleanup),
            "preprocess": [
                ConfigurationSerializer._rewrite_to_dict(r) for r in rules.preprocess
            ],
            "delazify": rules.delazify,
            "fix_embeds": rules.fix_embeds,
            "content_script": rules.content_script,
        }

    @staticmethod
    def _rewrite_to_dict(rewrite: AttributeRewrite) -> Dict[str, Any]:
        attribute = None
        if rewrite.attribute is not None:
            attribute = list(rewrite.attribute)
            if len(attribute) != 2:
                raise SerializationError(
                    "'attribute' must be a (source, destination) pair",
                    details={"selector": rewrite.selector, "length": len(attribute)},
                )
        return {
            "selector": rewrite.selector,
            "attribute": attribute,
            "element_name": rewrite.element_name,
        }

    # ------------------------------------------------------------------
    # dict -> Object
    # ------------------------------------------------------------------

    @staticmethod
    def dict_to_config(data: Any, index: Optional[int] = None) -> Configuration:
        """
        Convert dictionary to Configuration.

        Missing optional fields take their defaults. Selector and rule
        strings are not validated beyond their JSON type.
        """
        context = {"index": index} if index is not None else {}
        if not isinstance(data, dict):
            raise DeserializationError(
                "Expected object for Configuration", details=dict(context)
            )

        for required in ("domain", "url_rules"):
            if required not in data:
                raise DeserializationError(
                    f"Missing required field '{required}' in Configuration",
                    details=dict(context),
                )

        domain = _expect_str(data["domain"], "domain", context)
        context["domain"] = domain

        rewrite_data = data.get("declarative_rewrite")
        return Configuration(
            domain=domain,
            url_rules=_expect_str_list(data["url_rules"], "url_rules", context),
            declarative_rewrite=(
                ConfigurationSerializer._dict_to_rules(rewrite_data, context)
                if rewrite_data is not None
                else None
            ),
        )

    @staticmethod
    def _dict_to_rules(data: Any, context: Dict[str, Any]) -> RewriteRuleSet:
        if not isinstance(data, dict):
            raise DeserializationError(
                "Expected object for 'declarative_rewrite'", details=dict(context)
            )

        content_script = data.get("content_script")
        if content_script is not None:
            content_script = _expect_str(content_script, "content_script", context)

        return RewriteRuleSet(
            main_content=_expect_str_list(
                data.get("main_content", []), "main_content", context
            ),
            main_content_cleanup=_expect_str_list(
                data.get("main_content_cleanup", []), "main_content_cleanup", context
            ),
            preprocess=[
                ConfigurationSerializer._dict_to_rewrite(item, context)
                for item in _expect_list(data.get("preprocess", []), "preprocess", context)
            ],
            delazify=_expect_bool(data.get("delazify", False), "delazify", context),
            fix_embeds=_expect_bool(data.get("fix_embeds", False), "fix_embeds", context),
            content_script=content_script,
        )

    @staticmethod
    def _dict_to_rewrite(data: Any, context: Dict[str, Any]) -> AttributeRewrite:
        if not isinstance(data, dict):
            raise DeserializationError(
                "Expected object for AttributeRewrite", details=dict(context)
            )

        for required in ("selector", "element_name"):
            if required not in data:
                raise DeserializationError(
                    f"Missing required field '{required}' in AttributeRewrite",
                    details=dict(context),
                )

        attribute = data.get("attribute")
        if attribute is not None:
            pair = _expect_str_list(attribute, "attribute", context)
            if len(pair) != 2:
                raise DeserializationError(
                    "'attribute' must be a [source, destination] pair",
                    details=dict(context, length=len(pair)),
                )
            attribute = (pair[0], pair[1])

        return AttributeRewrite(
            selector=_expect_str(data["selector"], "selector", context),
            attribute=attribute,
            element_name=_expect_str(data["element_name"], "element_name", context),
        )


def _gunzip_first_member(payload: bytes) -> bytes:
    decompressor = zlib.decompressobj(16 + zlib.MAX_WBITS)
    raw = decompressor.decompress(payload)
    if not decompressor.eof:
        raise EOFError("Compressed data ended before the end-of-stream marker")
    if decompressor.unused_data:
        logger.debug(
            f"Ignoring {len(decompressor.unused_data)} bytes after the gzip stream"
        )
    return raw


def _expect_str(value: Any, name: str, context: Dict[str, Any]) -> str:
    if not isinstance(value, str):
        raise DeserializationError(
            f"'{name}' must be a string", details=dict(context, field=name)
        )
    return value


def _expect_bool(value: Any, name: str, context: Dict[str, Any]) -> bool:
    if not isinstance(value, bool):
        raise DeserializationError(
            f"'{name}' must be a boolean", details=dict(context, field=name)
        )
    return value


def _expect_list(value: Any, name: str, context: Dict[str, Any]) -> list:
    if not isinstance(value, list):
        raise DeserializationError(
            f"'{name}' must be a list", details=dict(context, field=name)
        )
    return value


def _expect_str_list(value: Any, name: str, context: Dict[str, Any]) -> List[str]:
    items = _expect_list(value, name, context)
    if not all(isinstance(v, str) for v in items):
        raise DeserializationError(
            f"All items in '{name}' must be strings", details=dict(context, field=name)
        )
    return list(items)


def serialize_configurations(
    configurations: Iterable[Configuration], compress: bool = True
) -> bytes:
    """Convenience function to encode configurations."""
    return ConfigurationSerializer.encode(configurations, compress=compress)


def deserialize_configurations(payload: bytes) -> List[Configuration]:
    """Convenience function to decode configurations."""
    return ConfigurationSerializer.decode(payload)
