"""Runtime settings for definition crawling, read from the environment."""

from __future__ import annotations

import os


def _float_env(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


MAX_CACHE_SIZE = int(os.environ.get("LSPCONTEXT_MAX_CACHE_SIZE", "50"))
MAX_CALL_DISTANCE = int(os.environ.get("LSPCONTEXT_MAX_CALL_DISTANCE", "5"))
CRAWL_DEPTH = int(os.environ.get("LSPCONTEXT_CRAWL_DEPTH", "1"))
SNIPPET_SCORE = _float_env("LSPCONTEXT_SNIPPET_SCORE", 0.8)

# 0 disables the timeout
LOOKUP_TIMEOUT_SECONDS = _float_env("LSPCONTEXT_LOOKUP_TIMEOUT", 0.0)
CRAWL_TIMEOUT_SECONDS = _float_env("LSPCONTEXT_CRAWL_TIMEOUT", 0.0)

LOG_LEVEL = os.environ.get("LSPCONTEXT_LOG_LEVEL", "INFO")
