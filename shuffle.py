# shuffle.py
import random
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")

Shuffle = Callable[[Sequence[T]], list[T]]


def fisher_yates(items: Sequence[T], rng=None) -> list[T]:
    """Returns a uniformly shuffled copy of ``items``; the input is left alone."""
    rng = rng or random
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


def seeded(seed: int) -> Shuffle:
    """Deterministic shuffle for reproducible runs."""
    rng = random.Random(seed)
    return lambda items: fisher_yates(items, rng)
