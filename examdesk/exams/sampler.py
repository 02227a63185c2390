"""
Mock test question selection.

A test is a fixed number of questions drawn from a course's bank, with a
floor on how many carry an image. Selection is uniform without replacement
and the final order is a Fisher-Yates shuffle.
"""

import random
from typing import List, Optional, Sequence

from examdesk.exams.errors import InsufficientPool, ValidationError

_system_random = random.SystemRandom()


def has_image(question: dict) -> bool:
    image = question.get("image_url")
    return isinstance(image, str) and bool(image.strip())


def fisher_yates_shuffle(items: List, rng: random.Random) -> List:
    """Shuffle in place and return the list."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def draw(items: Sequence, count: int, rng: random.Random) -> List:
    """Uniformly pick count items without replacement (partial Fisher-Yates)."""
    pool = list(items)
    count = min(count, len(pool))
    for i in range(count):
        j = rng.randint(i, len(pool) - 1)
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:count]


def sample(
    pool: Sequence[dict],
    target_count: int,
    min_image_count: int,
    rng: Optional[random.Random] = None,
) -> List[dict]:
    if target_count < 0 or min_image_count < 0:
        raise ValidationError("Question counts cannot be negative")
    if len(pool) < target_count:
        raise InsufficientPool(len(pool), target_count)

    rng = rng or _system_random

    # Indexes into pool, not the question dicts themselves
    image_idx = [i for i, q in enumerate(pool) if has_image(q)]

    picked = draw(image_idx, min(min_image_count, target_count), rng)
    taken = set(picked)
    rest = [i for i in range(len(pool)) if i not in taken]
    picked.extend(draw(rest, target_count - len(picked), rng))

    return [pool[i] for i in fisher_yates_shuffle(picked, rng)]
