"""
Utility modules for OmniContext.

This package provides common utilities for:
- General helpers (ID generation, environment variables, token counting)
- Logging with colored output and OpenTelemetry integration
"""

from omnicontext.utils.general import (
    generate_id,
    get_env_int,
    get_env_float,
    _env_flag,
    _load_json_dict,
    get_token_count,
    estimate_tokens_by_chars,
    utc_now_iso,
)

from omnicontext.utils.logger import (
    OTelColorFormatter,
    setup_logging,
)

__all__ = [
    # General utilities
    "generate_id",
    "get_env_int",
    "get_env_float",
    "_env_flag",
    "_load_json_dict",
    "get_token_count",
    "estimate_tokens_by_chars",
    "utc_now_iso",
    # Logging
    "OTelColorFormatter",
    "setup_logging",
]
