"""
Request handling helpers for the history API.

Keeps payload parsing and the store lookup out of the route functions.
"""

from typing import Dict, Optional, Tuple

from flask import current_app

from ..store import HistoryStore

STORE_KEY = "history_store"


def get_store() -> HistoryStore:
    """Return the store injected into the running app."""
    return current_app.extensions[STORE_KEY]


def parse_calculation(data: Optional[Dict]) -> Tuple[Optional[str], Optional[str]]:
    """
    Pull equation and result out of a POST body.

    Args:
        data: Decoded JSON body (None when the body was not JSON)

    Returns:
        (equation, result), either may be None when missing or empty
    """
    if not isinstance(data, dict):
        return None, None
    return data.get("equation") or None, data.get("result") or None
