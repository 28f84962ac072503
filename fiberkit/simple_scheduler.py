"""A minimal first-in first-out fiber scheduler and a demo entry point."""

from __future__ import annotations

from collections import deque
from typing import Optional, Sequence

from fiberkit.fiber import Fiber, get_this

__all__ = ["Scheduler", "main"]


class Scheduler:
    """Queue of fibers, each resumed once, in the order they were added."""

    def __init__(self) -> None:
        self._tasks: deque[Fiber] = deque()

    def __len__(self) -> int:
        return len(self._tasks)

    def schedule(self, task: Fiber) -> None:
        """Add a fiber to the end of the queue."""
        self._tasks.append(task)

    def run(self) -> None:
        """Resume queued fibers until the queue is empty, including ones added meanwhile."""
        while self._tasks:
            self._tasks.popleft().resume()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Schedule ten fibers that each print a greeting, then run them."""
    get_this()
    scheduler = Scheduler()
    for i in range(10):
        scheduler.schedule(Fiber(lambda i=i: print(f"hello world{i}")))
    scheduler.run()
    return 0