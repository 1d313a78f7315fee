"""Unit tests for ConfigurationSerializer."""

import gzip
import json

import pytest

from reader_site_config.models import AttributeRewrite, Configuration, RewriteRuleSet
from reader_site_config.store import (
    ConfigurationSerializer,
    DeserializationError,
    SerializationError,
    deserialize_configurations,
    serialize_configurations,
)


@pytest.fixture
def cnbc_config():
    """Recipe exercising every field, including attribute-less preprocess rules."""
    return Configuration(
        domain="cnbc.com",
        url_rules=[
            "/cnbc.com\\/(\\d){4}\\/(\\d){2}\\/(\\d){2}\\/.*.html/",
            "||cnbc.com/select/*/",
        ],
        declarative_rewrite=RewriteRuleSet(
            main_content=["#main-article-header", '[data-module="ArticleBody"]'],
            main_content_cleanup=[".InlineVideo-videoEmbed"],
            preprocess=[
                AttributeRewrite(
                    selector='[id^="ArticleBody-InlineImage"]',
                    attribute=None,
                    element_name="figure",
                ),
                AttributeRewrite(
                    selector="slide",
                    attribute=("original", "src"),
                    element_name="img",
                ),
            ],
            delazify=False,
            fix_embeds=True,
            content_script="<script>\nlet ü = \"ünïcödé\";\n</script>",
        ),
    )


class TestEncoding:
    """Tests for the persisted layout."""

    def test_dict_layout(self, cnbc_config):
        data = ConfigurationSerializer.config_to_dict(cnbc_config)

        assert list(data) == ["domain", "url_rules", "declarative_rewrite"]
        assert list(data["declarative_rewrite"]) == [
            "main_content",
            "main_content_cleanup",
            "preprocess",
            "delazify",
            "fix_embeds",
            "content_script",
        ]
        assert data["declarative_rewrite"]["preprocess"] == [
            {
                "selector": '[id^="ArticleBody-InlineImage"]',
                "attribute": None,
                "element_name": "figure",
            },
            {"selector": "slide", "attribute": ["original", "src"], "element_name": "img"},
        ]

    def test_missing_rewrite_encodes_as_null(self):
        data = ConfigurationSerializer.config_to_dict(
            Configuration(domain="example.com", url_rules=["||example.com/article"])
        )

        assert data["declarative_rewrite"] is None

    def test_plain_encoding_is_utf8_json_array(self, cnbc_config):
        payload = serialize_configurations([cnbc_config], compress=False)

        decoded = json.loads(payload.decode("utf-8"))
        assert isinstance(decoded, list)
        assert decoded[0]["domain"] == "cnbc.com"
        assert "ünïcödé" in payload.decode("utf-8")

    def test_compressed_encoding_wraps_plain(self, cnbc_config):
        plain = serialize_configurations([cnbc_config], compress=False)
        compressed = serialize_configurations([cnbc_config])

        assert gzip.decompress(compressed) == plain

    def test_unencodable_value_raises(self):
        config = Configuration(domain="example.com", url_rules=[object()])

        with pytest.raises(SerializationError):
            serialize_configurations([config])

    def test_unencodable_string_raises(self):
        """A lone surrogate is a valid str but not valid UTF-8."""
        config = Configuration(domain="example.com", url_rules=["\ud800"])

        with pytest.raises(SerializationError):
            serialize_configurations([config], compress=False)

    @pytest.mark.parametrize("attribute", [(), ("src",), ("a", "b", "c")])
    def test_attribute_must_be_a_pair(self, attribute):
        config = Configuration(
            domain="example.com",
            url_rules=[],
            declarative_rewrite=RewriteRuleSet(
                preprocess=[
                    AttributeRewrite(selector="img", attribute=attribute, element_name="img")
                ]
            ),
        )

        with pytest.raises(SerializationError) as exc_info:
            serialize_configurations([config])

        assert exc_info.value.details["length"] == len(attribute)


class TestDecoding:
    """Tests for decoding both encodings and rejecting malformed input."""

    def test_round_trip_is_lossless(self, cnbc_config):
        decoded = deserialize_configurations(serialize_configurations([cnbc_config]))

        assert decoded == [cnbc_config]
        assert decoded[0].declarative_rewrite.preprocess[1].attribute == ("original", "src")

    def test_gzip_and_plain_decode_identically(self, cnbc_config):
        compressed = serialize_configurations([cnbc_config])
        plain = serialize_configurations([cnbc_config], compress=False)

        assert deserialize_configurations(compressed) == deserialize_configurations(plain)

    def test_optional_fields_take_defaults(self):
        payload = json.dumps(
            [
                {"domain": "example.com", "url_rules": []},
                {
                    "domain": "example.net",
                    "url_rules": ["||example.net/a"],
                    "declarative_rewrite": {"main_content": ["article"]},
                },
            ]
        ).encode("utf-8")

        first, second = deserialize_configurations(payload)

        assert first.declarative_rewrite is None
        assert second.declarative_rewrite == RewriteRuleSet(main_content=["article"])
        assert second.declarative_rewrite.delazify is False
        assert second.declarative_rewrite.content_script is None

    def test_empty_array(self):
        assert deserialize_configurations(b"[]") == []

    def test_invalid_utf8_raises(self):
        with pytest.raises(DeserializationError) as exc_info:
            deserialize_configurations(b"\xff\xfe[]")

        assert "UTF-8" in exc_info.value.message

    def test_invalid_json_raises(self):
        with pytest.raises(DeserializationError) as exc_info:
            deserialize_configurations(gzip.compress(b"[{"))

        assert "Invalid JSON" in exc_info.value.message

    def test_corrupt_gzip_is_not_read_as_plain_text(self, cnbc_config):
        truncated = serialize_configurations([cnbc_config])[:20]

        with pytest.raises(DeserializationError) as exc_info:
            deserialize_configurations(truncated)

        assert "Corrupt gzip" in exc_info.value.message

    def test_deeply_nested_json_raises(self):
        with pytest.raises(DeserializationError) as exc_info:
            deserialize_configurations(b"[" * 200000)

        assert "too deep" in exc_info.value.message

    def test_trailing_bytes_after_gzip_stream_are_ignored(self, cnbc_config):
        payload = serialize_configurations([cnbc_config]) + b"\n"

        assert deserialize_configurations(payload) == [cnbc_config]

    def test_top_level_must_be_array(self):
        with pytest.raises(DeserializationError) as exc_info:
            deserialize_configurations(b'{"domain": "example.com", "url_rules": []}')

        assert exc_info.value.details["found"] == "dict"

    @pytest.mark.parametrize(
        "entry, message",
        [
            ("[1]", "Expected object for Configuration"),
            ('[{"url_rules": []}]', "Missing required field 'domain'"),
            ('[{"domain": "example.com"}]', "Missing required field 'url_rules'"),
            ('[{"domain": 7, "url_rules": []}]', "'domain' must be a string"),
            ('[{"domain": "example.com", "url_rules": "x"}]', "'url_rules' must be a list"),
            ('[{"domain": "example.com", "url_rules": [1]}]', "must be strings"),
            (
                '[{"domain": "example.com", "url_rules": [], "declarative_rewrite": []}]',
                "Expected object for 'declarative_rewrite'",
            ),
            (
                '[{"domain": "example.com", "url_rules": [],'
                ' "declarative_rewrite": {"delazify": "yes"}}]',
                "'delazify' must be a boolean",
            ),
            (
                '[{"domain": "example.com", "url_rules": [],'
                ' "declarative_rewrite": {"preprocess": [{"selector": "a"}]}}]',
                "Missing required field 'element_name'",
            ),
            (
                '[{"domain": "example.com", "url_rules": [],'
                ' "declarative_rewrite": {"preprocess": [{"selector": "a",'
                ' "attribute": ["src"], "element_name": "img"}]}}]',
                "[source, destination] pair",
            ),
        ],
    )
    def test_malformed_configuration_raises(self, entry, message):
        with pytest.raises(DeserializationError) as exc_info:
            deserialize_configurations(entry.encode("utf-8"))

        assert message in exc_info.value.message
        assert exc_info.value.index == 0

    def test_error_reports_offending_index(self):
        payload = b'[{"domain": "example.com", "url_rules": []}, {"domain": "example.net"}]'

        with pytest.raises(DeserializationError) as exc_info:
            deserialize_configurations(payload)

        assert exc_info.value.index == 1
        assert exc_info.value.to_dict()["error_type"] == "DeserializationError"
