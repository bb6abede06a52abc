from __future__ import annotations
import logging
import os
from typing import Any, Dict

from dotenv import load_dotenv

APP_VERSION = "0.1.0"

# Load .env from the working directory (dev convenience); real env vars win
load_dotenv(override=False)


def get_settings() -> Dict[str, Any]:
    return {
        # empty URLs leave the provider unconfigured, so the offline parser answers
        "OLLAMA_HOST": os.getenv("OLLAMA_HOST", ""),
        "OLLAMA_MODEL": os.getenv("OLLAMA_MODEL", "llama3.2:3b"),
        "LMSTUDIO_BASE_URL": os.getenv("LMSTUDIO_BASE_URL", ""),
        "LMSTUDIO_MODEL": os.getenv("LMSTUDIO_MODEL", "openai/gpt-oss-20b"),
        "TIMEOUT": float(os.getenv("DATEWISE_TIMEOUT", "60")),
        "DEFAULT_PROVIDER": os.getenv("DATEWISE_DEFAULT_PROVIDER", "ollama"),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO"),
    }


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or get_settings()["LOG_LEVEL"]).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
