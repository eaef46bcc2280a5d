"""
Unit tests for model identity parsing.

Tests vendor detection, family normalization and brand colors.
"""

import pytest

from session_usage.core.model_identity import (
    ANTHROPIC_COLOR,
    MINIMAX_COLOR,
    UNKNOWN_COLOR,
    ZHIPU_COLOR,
    clean_model_id,
    parse_family,
    parse_model,
)


class TestParseModel:
    """Test raw model ids resolve to vendor and family."""

    @pytest.mark.parametrize("raw_id,vendor,family", [
        ("claude-opus-4-6", "anthropic", "claude-opus"),
        ("claude-opus-4.5", "anthropic", "claude-opus"),
        ("claude-3-5-sonnet-20241022", "anthropic", "claude-sonnet"),
        ("claude-3-5-haiku-20241022", "anthropic", "claude-haiku"),
        ("gpt-5.2-codex", "openai", "gpt-5-codex"),
        ("gpt-5.1-codex-mini", "openai", "gpt-5-codex-mini"),
        ("gpt-5.1-codex-max", "openai", "gpt-5-codex"),
        ("gpt-5.3-codex-spark", "openai", "gpt-5-codex-spark"),
        ("gpt-5-chat-latest", "openai", "gpt-5"),
        ("o3-mini", "openai", "o3-mini"),
        ("codex-mini-latest", "openai", "gpt-5-codex-mini"),
        ("codex-mini", "openai", "gpt-5-codex-mini"),
        ("gemini-3-pro-preview", "google", "gemini-pro"),
        ("gemini-3-flash", "google", "gemini-flash"),
        ("glm-4.7", "zhipu", "glm"),
        ("kimi-k2.5-free", "kimi", "kimi"),
        ("minimax-m2.5-free", "minimax", "minimax"),
        ("qwen3-coder", "qwen", "qwen-coder"),
        ("grok-code-fast-1", "xai", "grok-code"),
    ])
    def test_known_vendors(self, raw_id, vendor, family):
        """Verify known model ids map to their vendor and family."""
        info = parse_model(raw_id)
        assert info.vendor == vendor
        assert info.family == family

    def test_unrecognized_model_returns_cleaned_id(self):
        """Verify unknown ids keep their cleaned form as family."""
        info = parse_model("some-random-model-3.5-preview")
        assert info.vendor == "unknown"
        assert info.family == "some-random-model-3.5"

    def test_empty_string(self):
        """Verify empty id is unknown with empty family."""
        info = parse_model("")
        assert info.vendor == "unknown"
        assert info.family == ""
        assert info.color == UNKNOWN_COLOR


class TestModelColors:
    """Test vendor color assignment."""

    def test_known_vendors_get_brand_color(self):
        """Verify branded vendors are never gray."""
        for raw_id in ["claude-opus-4-6", "gpt-5.2-codex", "gemini-3-flash", "glm-4.7", "minimax-m2.5-free"]:
            assert parse_model(raw_id).color != UNKNOWN_COLOR, raw_id

    def test_same_vendor_same_color(self):
        """Verify color depends only on vendor."""
        assert parse_model("claude-opus-4-6").color == parse_model("claude-3-5-sonnet-20241022").color
        assert parse_model("gpt-5.2-codex").color == parse_model("o3-mini").color
        assert parse_model("claude-opus-4-6").color == ANTHROPIC_COLOR

    def test_unknown_vendor_gets_gray(self):
        """Verify unrecognized vendors use the neutral color."""
        assert parse_model("some-random-model").color == UNKNOWN_COLOR


class TestCleanModelId:
    """Test suffix and qualifier stripping."""

    def test_strips_stacked_suffixes(self):
        """Verify suffixes are removed repeatedly."""
        assert clean_model_id("gpt-5-chat-latest") == "gpt-5"

    def test_strips_date_stamp(self):
        """Verify eight-digit date stamps are removed."""
        assert clean_model_id("claude-3-5-sonnet-20241022") == "claude-3-5-sonnet"

    def test_strips_bedrock_version_qualifier(self):
        """Verify -v1 and -v1:0 qualifiers are removed."""
        assert clean_model_id("claude-sonnet-4-v1:0") == "claude-sonnet-4"
        assert clean_model_id("claude-sonnet-4-v2") == "claude-sonnet-4"


class TestParseFamily:
    """Test vendor lookup for normalized family names."""

    @pytest.mark.parametrize("raw_id", [
        "claude-opus-4-6",
        "gpt-5.1-codex-mini",
        "o3-mini",
        "codex-mini-latest",
        "gemini-3-pro-preview",
        "glm-4.7",
        "kimi-k2.5-free",
        "minimax-m2.5-free",
        "qwen3-coder",
        "grok-code-fast-1",
    ])
    def test_family_keeps_vendor(self, raw_id):
        """Verify a parsed family resolves to the same vendor and color."""
        info = parse_model(raw_id)
        family_info = parse_family(info.family)
        assert family_info.vendor == info.vendor
        assert family_info.color == info.color
        assert family_info.family == info.family

    def test_bare_families_keep_brand_color(self):
        """Verify families equal to a vendor prefix are not unknown."""
        assert parse_family("minimax").color == MINIMAX_COLOR
        assert parse_family("glm").color == ZHIPU_COLOR

    def test_unknown_family(self):
        """Verify unrelated families stay unknown and gray."""
        info = parse_family("some-random-model")
        assert info.vendor == "unknown"
        assert info.color == UNKNOWN_COLOR
