from typing import Callable


class Cooling:
    """Simulated-annealing schedule: iteration count, start temperature, decay.

    Parameters
    --
    iterations : int
        Number of iterations the schedule lasts.
    start_temperature : float
        Temperature of the first iteration, in units relative to the canvas.
    anneal : callable
        ``anneal(t) -> t'`` applied after every iteration.

    """

    def __init__(self, iterations: int, start_temperature: float, anneal: Callable[[float], float]):
        if iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {iterations}")
        self.iterations = int(iterations)
        self.start_temperature = float(start_temperature)
        self.anneal = anneal

    @classmethod
    def exponential(cls, iterations: int, start_temperature: float, rate: float) -> "Cooling":
        """Schedule with ``t <- t * rate`` decay."""
        return cls(iterations, start_temperature, lambda t: t * rate)

    def temperatures(self):
        """Yield the temperature of each iteration, in order."""
        t = self.start_temperature
        for _ in range(self.iterations):
            yield t
            t = self.anneal(t)

    def __repr__(self):
        return f"Cooling(iterations={self.iterations}, start_temperature={self.start_temperature:g})"
