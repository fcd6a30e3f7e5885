from __future__ import annotations

"""Injectable randomness.

Price jitter, slippage buffers and synthetic payout references all draw from a
`RandomSource`. `random.Random` satisfies the protocol, so production code
uses a fresh instance and tests pass a seeded one or a scripted stub.
"""
import random
import string
from typing import Protocol, Sequence, TypeVar

T = TypeVar("T")

_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


class RandomSource(Protocol):
    def uniform(self, a: float, b: float) -> float: ...

    def randint(self, a: int, b: int) -> int: ...

    def getrandbits(self, k: int) -> int: ...

    def choice(self, seq: Sequence[T]) -> T: ...


def default_random_source() -> RandomSource:
    return random.Random()


def random_reference(rng: RandomSource, length: int) -> str:
    """Upper-case alphanumeric reference such as a UTR suffix."""
    return "".join(rng.choice(_REFERENCE_ALPHABET) for _ in range(length))


def random_tx_hash(rng: RandomSource) -> str:
    return f"0x{rng.getrandbits(256):064x}"
