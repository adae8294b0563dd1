from __future__ import annotations

import random
import time
from typing import Callable, List, Sequence, Tuple

from selenium.webdriver.common.actions.action_builder import ActionBuilder


def random_delay(rng: random.Random, delay_range_ms: Sequence[int]) -> float:
    """Seconds to wait, drawn uniformly from the task's (min_ms, max_ms)."""
    lo, hi = delay_range_ms
    return rng.uniform(lo, hi) / 1000.0


def bezier_points(start, end, control, steps: int = 20) -> List[Tuple[float, float]]:
    """Calculates points for a quadratic Bezier curve."""
    points = []
    for i in range(steps + 1):
        t = i / steps
        x = (1 - t) ** 2 * start[0] + 2 * (1 - t) * t * control[0] + t ** 2 * end[0]
        y = (1 - t) ** 2 * start[1] + 2 * (1 - t) * t * control[1] + t ** 2 * end[1]
        points.append((x, y))
    return points


def scroll_positions(rng: random.Random, height: int, steps: int) -> List[int]:
    """Absolute scroll targets with growing increments, ending at ``height``."""
    weights = sorted(rng.uniform(0.5, 1.5) for _ in range(steps))
    total = sum(weights)
    # floor keeps the sorted order; the remainder goes on the largest step
    increments = [int(height * w / total) for w in weights]
    increments[-1] += height - sum(increments)
    positions, acc = [], 0
    for inc in increments:
        acc += inc
        positions.append(acc)
    return positions


class HumanBehaviorSimulator:
    """
    Scroll / pointer / pause sequence run between navigation and extraction.

    Nothing here is allowed to fail an attempt: each action is best-effort.
    Every magnitude comes from ``rng`` so no two runs replay the same motion,
    while tests can still pin a seed.
    """

    def __init__(self, driver, rng: random.Random | None = None, sleep: Callable[[float], None] = time.sleep,
                 scroll_steps: Tuple[int, int] = (2, 4), pause_range: Tuple[float, float] = (1.0, 3.0)):
        self.driver = driver
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.scroll_steps = scroll_steps
        self.pause_range = pause_range
        self._pointer: Tuple[int, int] | None = None

    def simulate(self) -> None:
        steps = self.rng.randint(*self.scroll_steps)
        pointer_step = self.rng.randrange(steps)
        height = self._best_effort(self._document_height) or 0
        for idx, y in enumerate(scroll_positions(self.rng, int(height), steps)):
            self._best_effort(self._scroll_to, y)
            self._pause()
            if idx == pointer_step:
                self._best_effort(self._move_pointer)
                self._pause(0.3, 0.6)

    # ---------- actions ----------
    def _document_height(self) -> int:
        return int(self.driver.execute_script("return document.body.scrollHeight;") or 0)

    def _viewport(self) -> Tuple[int, int]:
        size = self.driver.execute_script("return [window.innerWidth, window.innerHeight];") or (0, 0)
        return max(int(size[0]), 1), max(int(size[1]), 1)

    def _scroll_to(self, y: int) -> None:
        self.driver.execute_script(f"window.scrollTo({{top: {y}, behavior: 'smooth'}});")

    def _move_pointer(self) -> None:
        """Glide the pointer along a Bezier curve to a random viewport point."""
        width, height = self._viewport()
        start = self._pointer or (self.rng.randrange(width), self.rng.randrange(height))
        end = (self.rng.randrange(width), self.rng.randrange(height))
        control = (
            min(max((start[0] + end[0]) / 2 + self.rng.randint(-50, 50), 0), width - 1),
            min(max((start[1] + end[1]) / 2 + self.rng.randint(-50, 50), 0), height - 1),
        )
        builder = ActionBuilder(self.driver, duration=self.rng.randint(20, 60))
        for x, y in bezier_points(start, end, control, steps=self.rng.randint(12, 24)):
            builder.pointer_action.move_to_location(int(x), int(y))
            builder.pointer_action.pause(self.rng.uniform(0.005, 0.02))
        builder.perform()
        self._pointer = end

    def _pause(self, lo: float | None = None, hi: float | None = None) -> None:
        lo = self.pause_range[0] if lo is None else lo
        hi = self.pause_range[1] if hi is None else hi
        self.sleep(self.rng.uniform(lo, hi))

    def _best_effort(self, action, *args):
        try:
            return action(*args)
        except Exception as e:
            print(f"    ... human-behavior step {action.__name__} skipped ({type(e).__name__})")
            return None
