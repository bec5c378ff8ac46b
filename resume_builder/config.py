import logging
import os
from typing import Optional, Tuple

import requests
from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.2
DEFAULT_BASE_URL = "https://api.openai.com/v1"


class Settings(BaseModel):
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    base_url: Optional[str] = None


def load_settings(dotenv: bool = True) -> Settings:
    # `OPENAI_MODEL` keeps working as the model override; `API_KEY` is accepted
    # as a fallback key name.
    if dotenv:
        load_dotenv(override=False)

    api_key = (os.getenv("OPENAI_API_KEY") or os.getenv("API_KEY") or "").strip() or None
    model = os.getenv("OPENAI_MODEL") or DEFAULT_MODEL
    base_url = os.getenv("OPENAI_BASE_URL") or None

    temperature = DEFAULT_TEMPERATURE
    raw_temp = os.getenv("OPENAI_TEMPERATURE")
    if raw_temp:
        try:
            temperature = float(raw_temp)
        except ValueError:
            temperature = DEFAULT_TEMPERATURE

    return Settings(api_key=api_key, model=model, temperature=temperature, base_url=base_url)


def resolve_api_key(manual_key: Optional[str] = None, settings: Optional[Settings] = None) -> Optional[str]:
    """A key typed into the app wins over the environment."""
    manual = (manual_key or "").strip()
    if manual:
        return manual
    settings = settings or load_settings()
    return settings.api_key


def probe_api_key(api_key: Optional[str], base_url: Optional[str] = None, timeout: float = 5) -> Tuple[bool, Optional[str]]:
    """Check the key against the provider's models endpoint.

    Returns (ok, message); message is the provider's error text when the check fails.
    """
    if not api_key:
        return False, "API key not set"
    url = (base_url or DEFAULT_BASE_URL).rstrip("/") + "/models"
    try:
        r = requests.get(url, headers={'Authorization': f'Bearer {api_key}'}, timeout=timeout)
    except requests.exceptions.RequestException as e:
        logger.warning("API key probe failed: %s", e)
        return False, str(e)
    if r.status_code == 200:
        return True, None
    try:
        data = r.json()
        msg = data.get('error', {}).get('message') if isinstance(data, dict) else None
    except ValueError:
        msg = r.text
    return False, f"API key check failed: {r.status_code} - {msg or r.text}"
