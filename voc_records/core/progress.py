from dataclasses import dataclass
from typing import Callable

@dataclass
class Progress:
    total: int
    value: int = 0
    stage: str = ""
    def step(self, n=1): self.value += n

ProgressCallback = Callable[[Progress], None]
