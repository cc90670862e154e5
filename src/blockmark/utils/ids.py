"""Block id generation for blockmark."""

import uuid
from typing import Iterable, Optional


DEFAULT_ID_LENGTH = 10


class IdGenerator:
    """Produces short opaque block ids that never repeat.

    Ids are the leading hex digits of a random UUID v4. Every id handed out
    (or reserved) is remembered, so a collision on the shortened form is
    simply retried.

    Example:
        >>> ids = IdGenerator()
        >>> ids.next_id()
        "f47ac10b58"
    """

    def __init__(self, length: int = DEFAULT_ID_LENGTH, prefix: str = ""):
        if not 4 <= length <= 32:
            raise ValueError(f"Id length must be between 4 and 32, got {length}")
        self.length = length
        self.prefix = prefix
        self._issued: set[str] = set()

    def next_id(self) -> str:
        """Return a fresh id not issued before by this generator."""
        while True:
            candidate = f"{self.prefix}{uuid.uuid4().hex[: self.length]}"
            if candidate not in self._issued:
                self._issued.add(candidate)
                return candidate

    def reserve(self, ids: Iterable[str]) -> None:
        """Mark ids as taken (e.g. ids of a document loaded from elsewhere)."""
        self._issued.update(ids)

    def __call__(self) -> str:
        return self.next_id()

    def __contains__(self, block_id: Optional[str]) -> bool:
        return block_id in self._issued
