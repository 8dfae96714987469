"""
OpenAI client construction shared by the vision fallback and the AI field
extractor. The API key is read from the environment variable named in
`ai.api_key_env` (OPENAI_API_KEY by default).
"""

import os
from typing import Optional

from openai import OpenAI

from config import get_config


def get_api_key() -> Optional[str]:
    """Return the configured API key, or None when it is not set."""
    env_name = get_config("ai.api_key_env", "OPENAI_API_KEY")
    key = os.environ.get(env_name, "").strip()
    return key or None


def create_openai_client() -> Optional[OpenAI]:
    """
    Create an OpenAI client from the environment.

    Returns:
        Configured client, or None when no API key is available.
    """
    api_key = get_api_key()
    if api_key is None:
        return None

    timeout = float(get_config("ai.timeout_seconds", 60))
    return OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
