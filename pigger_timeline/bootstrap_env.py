"""
Bootstrap environment for Streamlit Cloud & local dev:
- Flatten st.secrets into uppercase os.environ keys (nested -> PREFIX_CHILD)
- If GOOGLE_CREDENTIALS_JSON is provided in secrets (dict or JSON string),
  write it through the feed loader and set GOOGLE_APPLICATION_CREDENTIALS
- Load .env (without overriding existing env vars)
- Configure stdlib logging once for the process
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Iterator, Tuple

import streamlit as st
from dotenv import load_dotenv
from streamlit.errors import StreamlitAPIException

from pigger_timeline.data.loader import materialize_credentials

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _sanitize_key(key: str) -> str:
    # Uppercase and replace non-alphanumeric with underscores
    return re.sub(r"[^A-Za-z0-9_]", "_", key.upper())


def _flatten_secrets(prefix: str, val) -> Iterator[Tuple[str, str]]:
    if isinstance(val, dict):
        for k, v in val.items():
            yield from _flatten_secrets(f"{prefix}_{k}", v)
    else:
        yield _sanitize_key(prefix), str(val)


def _secrets_dict() -> dict:
    # st.secrets raises when no secrets.toml exists outside Streamlit Cloud
    try:
        items = getattr(st, "secrets", None)
        if not items:
            return {}
        try:
            return items.to_dict()  # type: ignore[attr-defined]
        except AttributeError:
            return dict(items)
    except (FileNotFoundError, StreamlitAPIException):
        return {}


def _bridge_secrets_to_env() -> None:
    for key, value in _secrets_dict().items():
        if isinstance(value, dict):
            for flat_k, flat_v in _flatten_secrets(key, value):
                os.environ.setdefault(flat_k, flat_v)
        else:
            os.environ.setdefault(_sanitize_key(key), str(value))


def _materialize_google_credentials() -> None:
    """Create a temp service account file from secrets if needed.

    Only relevant for gsheet:// feed endpoints.

    Priority:
    1) If GOOGLE_APPLICATION_CREDENTIALS already set and exists -> keep
    2) Else if GOOGLE_CREDENTIALS_JSON provided in secrets -> write it via the loader and set env
    3) Else do nothing (the loader fails clearly when a sheet endpoint needs creds)
    """
    existing_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    if existing_path and os.path.exists(existing_path):
        return

    creds = _secrets_dict().get("GOOGLE_CREDENTIALS_JSON")
    if not creds:
        return
    json_text = json.dumps(creds) if isinstance(creds, dict) else str(creds)
    tmp_path = materialize_credentials(json_text)
    if not os.path.exists(tmp_path):
        logging.getLogger(__name__).warning("GOOGLE_CREDENTIALS_JSON secret is not JSON content; ignoring")
        return
    os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = tmp_path


def configure_logging() -> None:
    """Install a root handler once; level comes from LOG_LEVEL (default INFO)."""
    root = logging.getLogger()
    if root.handlers:
        return
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def ensure_env() -> None:
    """Idempotent: make sure env vars and creds are available.
    Safe to call multiple times, both inside and outside Streamlit runtime.
    """
    _bridge_secrets_to_env()
    _materialize_google_credentials()
    # load_dotenv will not override existing env vars by default
    load_dotenv()
    configure_logging()


# Execute on import for Streamlit main process, but also allow explicit calls elsewhere.
ensure_env()
