import random
from typing import Sequence

from stakeclaim.config import ConfigError


class EndpointPool:
    """Interchangeable API nodes. Every remote call picks one uniformly at random."""

    def __init__(self, endpoints: Sequence[str], *, rng: random.Random | None = None) -> None:
        self._endpoints = tuple(e for e in endpoints if e)
        if not self._endpoints:
            raise ConfigError("Endpoint pool is empty, configure at least one API node")
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        return len(self._endpoints)

    def pick(self) -> str:
        return self._rng.choice(self._endpoints)
