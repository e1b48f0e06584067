from __future__ import annotations

import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a shuffled copy of ``items`` (Fisher-Yates). The input is left untouched."""
    r = rng or random
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = r.randrange(i + 1)
        out[i], out[j] = out[j], out[i]
    return out
