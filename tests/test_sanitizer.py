"""Tests for forgeguard.sanitizer — XSS cleaning of user input."""

import pytest

from forgeguard.exceptions import InvalidJSONError
from forgeguard.sanitizer import (
    sanitize_credential_metadata,
    sanitize_json_input,
    sanitize_string,
    sanitize_url,
)


class TestSanitizeString:
    def test_script_tag_removed(self):
        out = sanitize_string("<script>alert(1)</script>Hello")
        assert "<script>" not in out
        assert "Hello" in out

    def test_entities_encoded(self):
        assert sanitize_string("a & b") == "a &amp; b"
        assert sanitize_string("it's \"quoted\"") == "it&#x27;s &quot;quoted&quot;"
        assert sanitize_string("http://x") == "http:&#x2F;&#x2F;x"

    def test_stray_angle_brackets_encoded(self):
        assert sanitize_string("1 < 2") == "1 &lt; 2"

    def test_control_characters_and_null_bytes_removed(self):
        assert sanitize_string("Py\x00th\x07on\x7f") == "Python"

    def test_trims_whitespace(self):
        assert sanitize_string("  \t Rust  \n") == "Rust"

    def test_non_string_is_empty(self):
        assert sanitize_string(None) == ""
        assert sanitize_string(42) == ""

    @pytest.mark.parametrize("raw", [
        "",
        "plain text",
        "<b>bold</b> & <i>italic</i>",
        "<<script>script>alert('x')<</script>/script>",
        "&amp; &lt;tag&gt; &quot; &#x27; &#x2F;",
        "&amp;amp; double",
        "Tom & Jerry's \"show\" / 50% off",
        "  <img src=x onerror=alert(1)>\x00 trailing  ",
        "a < b > c",
        "&#39; &nbsp; &AMP;",
    ])
    def test_idempotent(self, raw):
        once = sanitize_string(raw)
        assert sanitize_string(once) == once


class TestSanitizeUrl:
    def test_https_kept(self):
        assert sanitize_url("https://example.com/proof?id=1") == "https://example.com/proof?id=1"

    def test_empty_path_normalised(self):
        assert sanitize_url("http://example.com") == "http://example.com/"

    @pytest.mark.parametrize("raw,expected", [
        ("https://Example.COM/Proof", "https://example.com/Proof"),
        ("HTTPS://example.com:443/a", "https://example.com/a"),
        ("http://example.com:8080", "http://example.com:8080/"),
        ("https://me@Example.com/", "https://me@example.com/"),
        ("https://[::1]:8443/x", "https://[::1]:8443/x"),
    ])
    def test_host_and_port_normalised(self, raw, expected):
        assert sanitize_url(raw) == expected

    def test_inner_spaces_percent_encoded(self):
        assert sanitize_url("  https://example.com/my proof?q=a b#x y ") == (
            "https://example.com/my%20proof?q=a%20b#x%20y")

    def test_tabs_and_newlines_dropped(self):
        assert sanitize_url("https://exam\tple.com/pa\nth") == "https://example.com/path"

    def test_idempotent(self):
        once = sanitize_url("https://Example.com:443/a b")
        assert sanitize_url(once) == once

    @pytest.mark.parametrize("url", [
        "javascript:alert(1)",
        "ftp://example.com/file",
        "data:text/html,<script>alert(1)</script>",
        "//example.com",
        "https://",
        "https://exa mple.com",
        "http://example.com:99999/",
        "",
        None,
    ])
    def test_rejected(self, url):
        assert sanitize_url(url) == ""


class TestSanitizeCredentialMetadata:
    def test_free_text_fields_cleaned(self):
        out = sanitize_credential_metadata({
            "credential_type": "skill",
            "name": "  <b>React</b> Developer ",
            "description": "Built <script>x</script>dashboards",
            "issuer": "Acme\x00",
            "visibility": "private",
        })
        assert out["name"] == "React Developer"
        assert out["description"] == "Built dashboards"
        assert out["issuer"] == "Acme"
        assert out["visibility"] == "private"

    def test_enum_and_opaque_fields_untouched(self):
        digest = "ab" * 32
        out = sanitize_credential_metadata({
            "credential_type": "<review>", "name": "n", "description": "d", "issuer": "i",
            "rating": 4, "timestamp": "2024-01-01T00:00:00.000Z", "proof_hash": digest,
        })
        assert out["credential_type"] == "<review>"
        assert out["rating"] == 4
        assert out["proof_hash"] == digest
        assert out["timestamp"] == "2024-01-01T00:00:00.000Z"

    def test_unknown_visibility_falls_back_to_public(self):
        assert sanitize_credential_metadata({"visibility": "secret"})["visibility"] == "public"
        assert sanitize_credential_metadata({})["visibility"] == "public"

    def test_nested_metadata(self):
        out = sanitize_credential_metadata({
            "metadata": {
                "platform": "<i>Upwork</i>",
                "external_id": "",
                "verification_url": "javascript:alert(1)",
                "extra": "dropped",
            },
        })
        assert out["metadata"] == {"platform": "Upwork", "verification_url": ""}

    def test_malformed_nested_metadata_dropped(self):
        assert "metadata" not in sanitize_credential_metadata({"metadata": "oops"})

    def test_input_not_mutated(self):
        candidate = {"name": "<b>x</b>"}
        sanitize_credential_metadata(candidate)
        assert candidate == {"name": "<b>x</b>"}


class TestSanitizeJsonInput:
    def test_deep_sanitize_values_and_keys(self):
        out = sanitize_json_input('{"<b>k</b>": ["<i>v</i>", {"n": "a&b"}], "num": 3, "ok": true}')
        assert out == {"k": ["v", {"n": "a&amp;b"}], "num": 3, "ok": True}

    def test_scalar_root(self):
        assert sanitize_json_input('"<s>x</s>"') == "x"

    @pytest.mark.parametrize("payload", ["{", "", "NaN", "[1, Infinity]", "{'a': 1}"])
    def test_malformed_raises(self, payload):
        with pytest.raises(InvalidJSONError, match="Invalid JSON format"):
            sanitize_json_input(payload)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            sanitize_json_input("nope")
