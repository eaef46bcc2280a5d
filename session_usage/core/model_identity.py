"""
Model identity parsing.

Parses raw model IDs into who made the model (vendor) and which product
family it belongs to:

    claude-opus-4-6            -> anthropic / claude-opus
    claude-3-5-haiku-20241022  -> anthropic / claude-haiku
    gpt-5.1-codex-max          -> openai    / gpt-5-codex
    gpt-5-chat-latest          -> openai    / gpt-5
    codex-mini-latest          -> openai    / gpt-5-codex-mini
    gemini-3-pro-preview       -> google    / gemini-pro
    qwen3-coder                -> qwen      / qwen-coder
    grok-code-fast-1           -> xai       / grok-code
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Pattern, Union

from .colors import RGB


@dataclass(frozen=True)
class ModelInfo:
    """Normalized identity of a model."""
    vendor: str
    family: str
    color: RGB


Strategy = Callable[[str], str]


def constant(name: str) -> Strategy:
    """Always returns the same family name."""
    return lambda cleaned: name


def keyword(prefix: str, keywords: List[str]) -> Strategy:
    """Returns `{prefix}-{keyword}` for the first keyword found, else the cleaned id."""
    def strategy(cleaned: str) -> str:
        for kw in keywords:
            if kw in cleaned:
                return f"{prefix}-{kw}"
        return cleaned
    return strategy


def version_strip(prefix: str) -> Strategy:
    """Drops version numbers and keeps a trailing variant: `{prefix}[-{variant}]`."""
    pattern = re.compile(rf"^{re.escape(prefix)}-?[\d.]+(?:-(.+))?$")

    def strategy(cleaned: str) -> str:
        match = pattern.match(cleaned)
        if not match:
            return cleaned
        return f"{prefix}-{match.group(1)}" if match.group(1) else prefix
    return strategy


def major_version_keep(prefix: str) -> Strategy:
    """Keeps the major version, drops the minor: `{prefix}-{major}[-{variant}]`."""
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)(?:\.\d+)?(?:-(.+))?$")

    def strategy(cleaned: str) -> str:
        match = pattern.match(cleaned)
        if not match:
            return cleaned
        major, variant = match.group(1), match.group(2)
        return f"{prefix}-{major}-{variant}" if variant else f"{prefix}-{major}"
    return strategy


def identity() -> Strategy:
    return lambda cleaned: cleaned


@dataclass(frozen=True)
class VendorRule:
    """Maps ids starting with (or matching) `match` to a vendor."""
    vendor: str
    color: RGB
    match: Union[str, Pattern[str]]
    strategy: Strategy

    def matches(self, cleaned: str) -> bool:
        if isinstance(self.match, str):
            return cleaned.startswith(self.match)
        return self.match.search(cleaned) is not None

    def owns_family(self, family: str) -> bool:
        """Whether a family name produced by this rule belongs to its vendor.

        Families drop the version part of the id, so `glm-` also owns the
        bare family `glm`.
        """
        if isinstance(self.match, str):
            return family == self.match.rstrip("-") or family.startswith(self.match)
        return self.match.search(family) is not None


ANTHROPIC_COLOR = RGB(250, 179, 135)  # peach
OPENAI_COLOR = RGB(137, 180, 250)  # blue
GOOGLE_COLOR = RGB(148, 226, 213)  # teal
ZHIPU_COLOR = RGB(249, 226, 175)  # gold
MINIMAX_COLOR = RGB(243, 139, 168)  # red
UNKNOWN_COLOR = RGB(160, 160, 160)  # gray

UNKNOWN_VENDOR = "unknown"

VENDOR_RULES: List[VendorRule] = [
    VendorRule("anthropic", ANTHROPIC_COLOR, "claude-", keyword("claude", ["opus", "sonnet", "haiku"])),
    VendorRule("openai", OPENAI_COLOR, "gpt-", major_version_keep("gpt")),
    VendorRule("openai", OPENAI_COLOR, re.compile(r"^o\d"), identity()),
    VendorRule("google", GOOGLE_COLOR, "gemini-", version_strip("gemini")),
    VendorRule("zhipu", ZHIPU_COLOR, "glm-", version_strip("glm")),
    VendorRule("kimi", UNKNOWN_COLOR, "kimi-", constant("kimi")),
    VendorRule("minimax", MINIMAX_COLOR, "minimax-", constant("minimax")),
    VendorRule("qwen", UNKNOWN_COLOR, "qwen", version_strip("qwen")),
    VendorRule("xai", UNKNOWN_COLOR, "grok-code", constant("grok-code")),
    VendorRule("xai", UNKNOWN_COLOR, "grok-", version_strip("grok")),
]

# Raw ids with no lexical relation to their family; checked before cleaning.
ALIASES: Dict[str, ModelInfo] = {
    "codex-mini-latest": ModelInfo("openai", "gpt-5-codex-mini", OPENAI_COLOR),
    "codex-mini": ModelInfo("openai", "gpt-5-codex-mini", OPENAI_COLOR),
}

# Reasoning effort, chat mode, reasoning mode, pricing tier, release stage, alias.
STRIP_SUFFIXES = ["-max", "-chat", "-thinking", "-free", "-preview", "-latest"]

_DATE_STAMP = re.compile(r"-\d{8}")
_VERSION_QUALIFIER = re.compile(r"-v\d+(?::\d+)?$")


def clean_model_id(model_id: str) -> str:
    """Strip non-identity noise from a raw model id."""
    result = model_id

    changed = True
    while changed:
        changed = False
        for suffix in STRIP_SUFFIXES:
            if result.endswith(suffix):
                result = result[: -len(suffix)]
                changed = True

    # claude-3-5-sonnet-20241022
    result = _DATE_STAMP.sub("", result)
    # Bedrock-style -v1, -v1:0
    result = _VERSION_QUALIFIER.sub("", result)
    return result


def parse_model(model_id: str) -> ModelInfo:
    """Parse a raw model id into vendor, family and display color.

    Args:
        model_id: Free-form model identifier as written in a session log

    Returns:
        ModelInfo; vendor is "unknown" with the neutral color when no
        vendor rule matches
    """
    if not model_id:
        return ModelInfo(UNKNOWN_VENDOR, "", UNKNOWN_COLOR)

    alias = ALIASES.get(model_id)
    if alias is not None:
        return alias

    cleaned = clean_model_id(model_id)
    for rule in VENDOR_RULES:
        if rule.matches(cleaned):
            return ModelInfo(rule.vendor, rule.strategy(cleaned), rule.color)

    return ModelInfo(UNKNOWN_VENDOR, cleaned, UNKNOWN_COLOR)


def parse_family(family: str) -> ModelInfo:
    """Vendor and color of an already-normalized family name.

    Family names are the output of `parse_model`, so they are not fed back
    through id cleaning: `minimax` or `glm` would no longer match their
    vendor's id prefix.
    """
    for rule in VENDOR_RULES:
        if rule.owns_family(family):
            return ModelInfo(rule.vendor, family, rule.color)
    return ModelInfo(UNKNOWN_VENDOR, family, UNKNOWN_COLOR)
