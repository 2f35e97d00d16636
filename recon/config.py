"""Centralised settings for Recon.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

Core components never read the ``settings`` singleton themselves; the entry
points in ``recon.agent.runner``, the API and the CLI pass explicit values
down to them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from recon.errors import ConfigurationError

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Scrape service
    # ------------------------------------------------------------------
    scrape_api_base: str = field(
        default_factory=lambda: os.environ.get("SCRAPE_API_BASE", "")
    )
    scrape_api_key: str = field(
        default_factory=lambda: os.environ.get("SCRAPE_API_KEY", "")
    )
    scrape_timeout: float = field(
        default_factory=lambda: float(os.environ.get("SCRAPE_TIMEOUT", "45.0"))
    )
    batch_poll_interval: float = field(
        default_factory=lambda: float(os.environ.get("BATCH_POLL_INTERVAL", "5.0"))
    )
    batch_max_wait: float = field(
        default_factory=lambda: float(os.environ.get("BATCH_MAX_WAIT", "120.0"))
    )

    # ------------------------------------------------------------------
    # Language model (OpenAI-compatible chat completions endpoint)
    # ------------------------------------------------------------------
    llm_api: str = field(default_factory=lambda: os.environ.get("LLM_API", ""))
    llm_api_key: str = field(
        default_factory=lambda: os.environ.get("LLM_API_KEY", "")
    )
    llm_api_model: str = field(
        default_factory=lambda: os.environ.get("LLM_API_MODEL", "")
    )
    llm_timeout: float = field(
        default_factory=lambda: float(os.environ.get("LLM_TIMEOUT", "120.0"))
    )

    # ------------------------------------------------------------------
    # Crawl expansion
    # ------------------------------------------------------------------
    crawl_limit_per_site: int = field(
        default_factory=lambda: int(os.environ.get("CRAWL_LIMIT_PER_SITE", "5"))
    )

    # ------------------------------------------------------------------
    # Report synthesis
    # ------------------------------------------------------------------
    source_char_limit: int = field(
        default_factory=lambda: int(os.environ.get("SOURCE_CHAR_LIMIT", "10000"))
    )
    context_window_tokens: int = field(
        default_factory=lambda: int(os.environ.get("CONTEXT_WINDOW_TOKENS", "32000"))
    )
    prompt_overhead_tokens: int = field(
        default_factory=lambda: int(os.environ.get("PROMPT_OVERHEAD_TOKENS", "2000"))
    )
    chars_per_token: int = field(
        default_factory=lambda: int(os.environ.get("CHARS_PER_TOKEN", "3"))
    )
    report_language: str = field(
        default_factory=lambda: os.environ.get("REPORT_LANGUAGE", "English")
    )

    def require_scrape(self) -> None:
        """Raise :class:`ConfigurationError` if the scrape service is not set."""
        if not self.scrape_api_base:
            raise ConfigurationError(
                "Scrape API endpoint not configured. Set SCRAPE_API_BASE."
            )

    def require_llm(self) -> None:
        """Raise :class:`ConfigurationError` if the LLM endpoint or model is missing.

        ``LLM_API_KEY`` is optional so local, unauthenticated models work.
        """
        missing = [
            name
            for name, value in (("LLM_API", self.llm_api), ("LLM_API_MODEL", self.llm_api_model))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"LLM is not configured. Set {', '.join(missing)}."
            )


# Module-level singleton, used by the entry points only:
#   from recon.config import settings
settings = Settings()
