"""Pagination cursor codecs.

A cursor is the opaque string handed to callers in place of the store's
native continuation state. Codecs apply exactly one reversible transcoding
step and never alter the native token. `decode` only accepts the exact text
`encode` produces, so `encode(decode(c)) == c` for every accepted cursor:

- DynamoDB: `LastEvaluatedKey` (a dict of typed attribute values) as
  canonical JSON text.
- Cosmos DB: the continuation token string as URL-safe base64.
"""

import base64
import binascii
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from crossdoc.exceptions import InvalidCursor

__all__ = (
    "BaseCursorCodec",
    "JsonCursorCodec",
    "Base64CursorCodec",
)


class BaseCursorCodec(ABC):
    """Abstract cursor codec."""

    @abstractmethod
    def encode(self, token: Any) -> Optional[str]:
        """Native token -> cursor string. `None` (no more pages) stays `None`."""
        raise NotImplementedError

    @abstractmethod
    def decode(self, cursor: str) -> Any:
        """Cursor string -> native token.

        Raises:
            InvalidCursor: If the cursor cannot be decoded
        """
        raise NotImplementedError


class JsonCursorCodec(BaseCursorCodec):
    """JSON codec for dict-shaped tokens (DynamoDB `LastEvaluatedKey`)."""

    def encode(self, token: Optional[Dict[str, Any]]) -> Optional[str]:
        if token is None:
            return None
        return json.dumps(token, sort_keys=True, separators=(",", ":"))

    def decode(self, cursor: str) -> Dict[str, Any]:
        if not isinstance(cursor, str) or not cursor:
            raise InvalidCursor("Cursor must be a non-empty string", backend="dynamodb")
        try:
            token = json.loads(cursor)
        except ValueError as e:
            raise InvalidCursor("Cursor is not valid JSON", backend="dynamodb") from e
        if not isinstance(token, dict) or not token:
            raise InvalidCursor("Cursor does not hold a key object", backend="dynamodb")
        if self.encode(token) != cursor:
            raise InvalidCursor("Cursor was not issued by this codec", backend="dynamodb")
        return token


class Base64CursorCodec(BaseCursorCodec):
    """URL-safe base64 codec for string tokens (Cosmos continuation tokens)."""

    def encode(self, token: Optional[str]) -> Optional[str]:
        if token is None:
            return None
        return base64.urlsafe_b64encode(token.encode("utf-8")).decode("ascii")

    def decode(self, cursor: str) -> str:
        if not isinstance(cursor, str) or not cursor:
            raise InvalidCursor("Cursor must be a non-empty string", backend="cosmos")
        try:
            raw = base64.b64decode(cursor.encode("ascii"), altchars=b"-_", validate=True)
            token = raw.decode("utf-8")
        except (binascii.Error, UnicodeError, ValueError) as e:
            raise InvalidCursor("Cursor is not a valid token", backend="cosmos") from e
        if not token:
            raise InvalidCursor("Cursor holds an empty token", backend="cosmos")
        if self.encode(token) != cursor:
            raise InvalidCursor("Cursor was not issued by this codec", backend="cosmos")
        return token


json_cursor = JsonCursorCodec()
base64_cursor = Base64CursorCodec()
