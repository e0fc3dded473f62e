"""JSON encoding of stored values, shared by the remote backends."""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def encode_value(value: Any) -> str:
    """Serialise a value for storage. Raises TypeError/ValueError if impossible."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def decode_value(raw: str | bytes | None) -> Any | None:
    """Decode a stored value.

    Older writers JSON-encoded documents twice, so a decoded string that is
    itself a JSON object or array is unwrapped once more.
    """
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return raw
    if isinstance(value, str) and value[:1] in ("{", "["):
        try:
            return json.loads(value)
        except ValueError:
            logger.debug("Stored string looks like JSON but does not parse; returning as-is")
    return value
