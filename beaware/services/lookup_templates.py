import json
import logging
import re
from typing import Any, Callable
from urllib.parse import quote

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")

INPUT_TOKENS = ("input", "phone", "email", "url", "ip", "domain")
API_KEY_TOKENS = ("apiKey", "key")


def build_token_table(value: str, api_key: str | None) -> dict[str, str]:
    table = {token: value for token in INPUT_TOKENS}
    table.update({token: api_key or "" for token in API_KEY_TOKENS})
    return table


def url_escape(raw: str) -> str:
    # matches encodeURIComponent: only unreserved marks stay literal
    return quote(raw, safe="-_.!~*'()")


def render(template: str, tokens: dict[str, str], escape: Callable[[str], str] | None = None) -> str:
    """
    Substitute {{token}} placeholders in a single pass.
    Unknown tokens are left as they are.
    """

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in tokens:
            return match.group(0)
        replacement = tokens[name]
        return escape(replacement) if escape else replacement

    return TOKEN_PATTERN.sub(_replace, template)


def render_mapping(mapping: dict[str, Any], tokens: dict[str, str]) -> dict[str, Any]:
    """Render every string value; other values pass through unchanged."""
    return {
        key: render(value, tokens) if isinstance(value, str) else value
        for key, value in mapping.items()
    }


def render_url(url: str, tokens: dict[str, str]) -> str:
    return render(url, tokens, escape=url_escape)


def parse_json_object(raw: str | None, label: str, provider: str | None = None) -> dict[str, Any]:
    """
    Parse an admin-supplied JSON object template.
    Blank, malformed or non-object input degrades to {} with a warning.
    """
    if raw is None or not raw.strip():
        return {}

    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("invalid_%s_json provider=%s", label, provider)
        return {}

    if not isinstance(parsed, dict):
        logger.warning("non_object_%s_json provider=%s", label, provider)
        return {}

    return parsed


def has_parameter_mapping(raw: str | None) -> bool:
    if raw is None:
        return False
    stripped = raw.strip()
    return stripped != "" and stripped != "{}"
