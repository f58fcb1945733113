import json
import math
import os
from datetime import datetime, timezone
from uuid import uuid4

import tiktoken

# Encoders are costly to build, keep one per model name
_tiktoken_encoders: dict[str, tiktoken.Encoding] = {}


def generate_id(length: int = 8) -> str:
    """
    Random hex identifier of ``length`` characters (at most 32).

    Examples:
        >>> len(generate_id(24))
        24
    """
    return uuid4().hex[:length]


def get_env_int(name: str, default: int | None = None) -> int | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {v!r}")


def get_env_float(name: str, default: float | None = None) -> float | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    try:
        return float(v)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {v!r}")


def _env_flag(name: str, default: bool = False) -> bool:
    """True for '1', 'true', 'yes' or 'on' (any case); ``default`` when unset."""
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


def _load_json_dict(env_key: str) -> dict[str, object]:
    """Parse a JSON object stored in ``env_key``; empty or unset gives ``{}``."""
    raw_value = os.getenv(env_key, "")
    if not raw_value:
        return {}

    try:
        parsed = json.loads(raw_value)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{env_key} must be valid JSON: {exc}") from exc

    if not isinstance(parsed, dict):
        raise ValueError(f"{env_key} must be a JSON object")
    return parsed


def get_token_count(text: str, model: str | None = None) -> int:
    """Count tokens in text using the tiktoken encoder for ``model`` (TOKENIZER_MODEL by default)."""
    from omnicontext.config import TOKENIZER_MODEL

    model = model or TOKENIZER_MODEL
    encoder = _tiktoken_encoders.get(model)
    if encoder is None:
        try:
            encoder = tiktoken.encoding_for_model(model)
        except KeyError:
            encoder = tiktoken.get_encoding("cl100k_base")
        _tiktoken_encoders[model] = encoder
    return len(encoder.encode(text))


def estimate_tokens_by_chars(text: str, chars_per_token: int = 4) -> int:
    """Rough token estimate: one token per ``chars_per_token`` characters, rounded up."""
    if not text:
        return 0
    return math.ceil(len(text) / chars_per_token)


def utc_now_iso() -> str:
    """Timezone-aware UTC timestamp in ISO-8601."""
    return datetime.now(timezone.utc).isoformat()


__all__ = [
    "generate_id",
    "get_env_int",
    "get_env_float",
    "_env_flag",
    "_load_json_dict",
    "get_token_count",
    "estimate_tokens_by_chars",
    "utc_now_iso",
]
