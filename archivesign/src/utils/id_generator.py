import random
import string
from typing import Callable

IdentifierGenerator = Callable[[], str]

_ALPHABET = string.ascii_letters + string.digits + "_-"


class ShortIdGenerator:
    """Produces short opaque identifiers for workspace and delivery file names"""

    def __init__(self, length: int = 10, rng: random.Random = None):
        self.length = length
        self._rng = rng or random.SystemRandom()

    def __call__(self) -> str:
        return "".join(self._rng.choices(_ALPHABET, k=self.length))


class SequentialIdGenerator:
    """Deterministic generator: prefix-0, prefix-1, ..."""

    def __init__(self, prefix: str = "id"):
        self.prefix = prefix
        self._next = 0

    def __call__(self) -> str:
        value = f"{self.prefix}-{self._next}"
        self._next += 1
        return value
