"""Utility functions for the fuusorpy package."""

import logging
import re
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np
import requests

from .exceptions import HttpError
from .models import DataSetData, DataSetOptions

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DEFAULT_TOKEN_LIFETIME = 3600

def validate_date(value: Any) -> bool:
    """Check that a value is a YYYY-MM-DD formatted string."""
    return isinstance(value, str) and DATE_PATTERN.match(value) is not None

def validate_email(value: Any) -> bool:
    """Check that a value looks like an email address."""
    return isinstance(value, str) and EMAIL_PATTERN.match(value) is not None

def is_number(value: Any) -> bool:
    """True for ints, floats and numpy numbers, but not for booleans."""
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, (int, float, np.integer, np.floating))

def is_row_value(value: Any) -> bool:
    """Row values may only be strings, numbers or None."""
    return value is None or isinstance(value, str) or is_number(value)

@dataclass
class CachedToken:
    access_token: str
    expires_at: float

class TokenCache:
    """
    In-memory cache of OAuth access tokens keyed by scope.

    Each entry carries an absolute expiry time which is checked on access;
    expired entries are evicted lazily. Concurrent fetches for the same scope
    are collapsed into one through a per-scope lock.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._tokens: Dict[str, CachedToken] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def __contains__(self, scope: str) -> bool:
        return self.get(scope) is not None

    def __len__(self) -> int:
        """Number of unexpired tokens."""
        now = self._clock()
        return sum(1 for entry in self._tokens.values() if now < entry.expires_at)

    def get(self, scope: str) -> Optional[str]:
        """Get cached token for scope if available and not expired."""
        entry = self._tokens.get(scope)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            logger.debug("Access token for scope '%s' expired", scope)
            self._tokens.pop(scope, None)
            return None
        return entry.access_token

    def set(self, scope: str, access_token: str, expires_in: Any = None) -> None:
        """Cache a token for ``expires_in`` seconds."""
        if not is_number(expires_in):
            logger.warning(
                "Token response for scope '%s' has no usable expires_in, assuming %s seconds",
                scope, DEFAULT_TOKEN_LIFETIME
            )
            expires_in = DEFAULT_TOKEN_LIFETIME
        self._tokens[scope] = CachedToken(access_token, self._clock() + float(expires_in))

    def invalidate(self, scope: str) -> None:
        self._tokens.pop(scope, None)

    def clear(self) -> None:
        """Drop all cached tokens."""
        self._tokens.clear()

    def _lock_for(self, scope: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(scope, threading.Lock())

    def get_or_fetch(self, scope: str, fetch: Callable[[], Tuple[str, Any]]) -> str:
        """
        Return the cached token for scope, fetching a new one when missing.

        Args:
            scope: OAuth scope name
            fetch: Callable returning ``(access_token, expires_in)``

        Returns:
            Access token string
        """
        token = self.get(scope)
        if token is not None:
            logger.debug("Using cached access token for scope '%s'", scope)
            return token

        with self._lock_for(scope):
            # Another caller may have fetched while we waited for the lock
            token = self.get(scope)
            if token is not None:
                return token

            access_token, expires_in = fetch()
            self.set(scope, access_token, expires_in)
            return access_token

def handle_api_errors(response: requests.Response) -> None:
    """Raise HttpError for every response that is not a literal HTTP 200."""
    if response.status_code == 200:
        return

    reason = getattr(response, "reason", "") or ""
    body = getattr(response, "text", "") or ""
    logger.warning("Fuusor API responded with %s %s", response.status_code, reason)
    raise HttpError(response.status_code, reason, body)

def parse_response_body(response: requests.Response) -> Any:
    """Parse a JSON response body; empty bodies give None, non-JSON gives text."""
    text = response.text
    if not text or not text.strip():
        return None
    try:
        return response.json()
    except ValueError:
        return text

def minimize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a new dict with lower-cased top-level keys."""
    return {key.lower(): value for key, value in data.items()}

def serialize_dataset(options: DataSetOptions, data: DataSetData) -> Dict[str, Any]:
    """
    Build the upload payload for a dataset.

    Options come first, then data, using the wire names with their top-level
    keys lower-cased. Options that are not set are left out.

    Args:
        options: Dataset identity and time frame
        data: Accumulated fields, hierarchies and rows

    Returns:
        JSON-serializable dictionary
    """
    wire_options = {
        "groupId": options.group_id,
        "datasetId": options.dataset_id,
        "datasetName": options.dataset_name,
        "datasetType": options.dataset_type,
        "begin": options.begin,
        "end": options.end,
        "primaryDate": options.primary_date,
        "periods": [period.to_dict() for period in options.periods]
        if options.periods is not None else None,
    }
    wire_data = {
        "dimensionFields": [f.to_dict() for f in data.dimension_fields],
        "dateFields": [f.to_dict() for f in data.date_fields],
        "valueFields": [f.to_dict() for f in data.value_fields],
        "descriptionFields": [f.to_dict() for f in data.description_fields],
        "rows": [dict(row) for row in data.rows],
        "dimensionHierarchies": [h.to_dict() for h in data.dimension_hierarchies],
    }

    payload = {key: value for key, value in wire_options.items() if value is not None}
    payload.update(wire_data)
    return minimize_keys(payload)
