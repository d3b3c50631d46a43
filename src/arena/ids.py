"""
Identifier factories injected into schedule and bracket generation.
"""
import uuid


def random_id() -> str:
    """Return a short random identifier."""
    return uuid.uuid4().hex[:9]


class SequentialIds:
    """Deterministic id factory: prefix1, prefix2, ..."""

    def __init__(self, prefix='m', start=1):
        self.prefix = prefix
        self.next_value = start

    def __call__(self) -> str:
        value = f"{self.prefix}{self.next_value}"
        self.next_value += 1
        return value

    def __repr__(self):
        return f"SequentialIds(prefix={self.prefix}, next_value={self.next_value})"
