import random
from collections.abc import Callable
from datetime import datetime


class ReferenceGenerator:
    """Produces ``PREFIX-YYYYMMDD-NNNNN`` references.

    Uniqueness is advisory: the documents table enforces it.
    """

    SUFFIX_RANGE = 100_000

    def __init__(
        self,
        prefix: str = "REG",
        clock: Callable[[], datetime] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._prefix = prefix
        self._clock = clock or datetime.now
        self._rng = rng or random.Random()

    def generate(self, now: datetime | None = None) -> str:
        moment = now or self._clock()
        suffix = self._rng.randrange(self.SUFFIX_RANGE)
        return f"{self._prefix}-{moment:%Y%m%d}-{suffix:05d}"
