import random
from typing import List, MutableSequence, TypeVar

T = TypeVar("T")


class RandomSource:
    """Uniform draws for every game model.

    Backed by ``random.SystemRandom`` unless a generator is injected, so
    outcomes cannot be predicted from earlier ones. Tests pass a seeded
    ``random.Random`` to make rounds reproducible.
    """

    def __init__(self, generator: random.Random | None = None):
        self._gen = generator if generator is not None else random.SystemRandom()

    def uniform(self) -> float:
        return self._gen.random()

    def uniform_int(self, n: int) -> int:
        if n <= 0:
            raise ValueError("n must be positive")
        return self._gen.randrange(n)

    def shuffle(self, items: MutableSequence[T]) -> None:
        # Fisher-Yates, in place
        for i in range(len(items) - 1, 0, -1):
            j = self.uniform_int(i + 1)
            items[i], items[j] = items[j], items[i]

    def sample(self, n: int, k: int) -> List[int]:
        """Draw ``k`` distinct integers from ``range(n)``."""
        if not 0 <= k <= n:
            raise ValueError("k must be between 0 and n")
        pool = list(range(n))
        picked = []
        for _ in range(k):
            idx = self.uniform_int(len(pool))
            pool[idx], pool[-1] = pool[-1], pool[idx]
            picked.append(pool.pop())
        return picked
