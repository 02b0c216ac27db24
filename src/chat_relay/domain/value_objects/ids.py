from __future__ import annotations

import hashlib
from typing import NewType

ConversationId = NewType("ConversationId", str)

_SEPARATOR = "-"


def conversation_id_for(user_a: str, user_b: str) -> ConversationId:
    """Derive the conversation id shared by an unordered pair of users.

    The pair is sorted before hashing so both participants compute the same
    SHA-256 hex digest without a lookup.
    """
    ordered = sorted((user_a, user_b))
    digest = hashlib.sha256(_SEPARATOR.join(ordered).encode("utf-8")).hexdigest()
    return ConversationId(digest)
