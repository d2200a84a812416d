"""
Fault injection for the mock backend.

The store and the mock external services never call `random` or
`asyncio.sleep` directly. They ask a FaultInjector instead, so a test can
pin latency to zero, force drops, or seed the generator.
"""

import asyncio
import random


class FaultInjector:
    """Latency and failure strategy shared by the store and services.

    drop_rate: probability that a find_many call returns None
        (a simulated dropped connection) instead of a list.
    min_delay / max_delay: latency range in seconds, sampled uniformly.
    rng: source of randomness. Pass random.Random(seed) for repeatable runs.
    """

    def __init__(
        self,
        drop_rate: float = 0.0,
        min_delay: float = 0.05,
        max_delay: float = 0.08,
        rng: random.Random | None = None,
    ):
        if not 0.0 <= drop_rate <= 1.0:
            raise ValueError(f"drop_rate must be within [0, 1], got {drop_rate}")
        if min_delay < 0 or max_delay < min_delay:
            raise ValueError(f"invalid delay range ({min_delay}, {max_delay})")
        self.drop_rate = drop_rate
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.rng = rng or random.Random()

    @classmethod
    def disabled(cls) -> "FaultInjector":
        """No latency, no drops."""
        return cls(drop_rate=0.0, min_delay=0.0, max_delay=0.0)

    async def sleep(self, scale: float = 1.0) -> None:
        """Await one simulated round trip. `scale` stretches the range."""
        if self.max_delay <= 0:
            return
        await asyncio.sleep(self.rng.uniform(self.min_delay, self.max_delay) * scale)

    def roll(self, probability: float) -> bool:
        """True with the given probability."""
        if probability <= 0:
            return False
        if probability >= 1:
            return True
        return self.rng.random() < probability

    def should_drop(self) -> bool:
        return self.roll(self.drop_rate)

    def __repr__(self) -> str:
        return (
            f"FaultInjector(drop_rate={self.drop_rate}, "
            f"delay=({self.min_delay}, {self.max_delay}))"
        )
