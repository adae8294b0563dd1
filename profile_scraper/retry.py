"""
Bounded retry loop around one attempt (navigate -> detect -> simulate -> extract).

    IDLE -> ATTEMPTING -> SUCCEEDED ------------------------> TERMINATED
                       -> BLOCKED         -- budget left -> IDLE
                       -> TRANSIENT_ERROR -- budget left -> IDLE
    IDLE (budget spent) ----------------------------------> TERMINATED (Exhausted)

The counter moves only on BLOCKED / TRANSIENT_ERROR, so there are never more
than ``retry_budget`` attempts.
"""
from __future__ import annotations

import enum
import random
import time
from typing import Callable, List, Optional, Sequence

from .config import BLOCK_BACKOFF_SECONDS, BLOCK_BACKOFF_JITTER_SECONDS, ERROR_BACKOFF_SECONDS
from .exceptions import ConfigurationError, DetectionBlock, describe
from .humanize import random_delay
from .io_utils import log_event
from .models import AttemptOutcome, Blocked, Exhausted, ExtractedRecord, Success, TransientError


class RetryState(enum.Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    BLOCKED = "blocked"
    TRANSIENT_ERROR = "transient_error"
    TERMINATED = "terminated"


class RetryDriver:
    def __init__(self, retry_budget: int, delay_range_ms: Sequence[int], rng: random.Random | None = None,
                 sleep: Callable[[float], None] = time.sleep,
                 block_backoff: float = BLOCK_BACKOFF_SECONDS,
                 block_jitter: float = BLOCK_BACKOFF_JITTER_SECONDS,
                 error_backoff: float = ERROR_BACKOFF_SECONDS,
                 on_event: Callable[[str, dict], None] = log_event):
        if retry_budget < 1:
            raise ConfigurationError("retry budget must be at least 1")
        self.retry_budget = retry_budget
        self.delay_range_ms = tuple(delay_range_ms)
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.block_backoff = block_backoff
        self.block_jitter = block_jitter
        self.error_backoff = error_backoff
        self.on_event = on_event

        self.state = RetryState.IDLE
        self.attempts = 0
        self.history: List[AttemptOutcome] = []

    def run(self, attempt: Callable[[int], ExtractedRecord],
            terminal_record: Callable[[str], ExtractedRecord]) -> AttemptOutcome:
        """
        Drive ``attempt(attempt_number)`` until it returns a record or the budget
        is spent. Returns ``Success`` or ``Exhausted``; the latter carries the
        record built by ``terminal_record(last_error)``.
        """
        last_error: Optional[str] = None
        while self.attempts < self.retry_budget:
            self._transition(RetryState.ATTEMPTING)
            number = self.attempts + 1
            print(f"🚀 Attempt {number}/{self.retry_budget}...")
            try:
                record = attempt(number)
            except ConfigurationError:
                raise
            except DetectionBlock as e:
                outcome: AttemptOutcome = Blocked(reason=describe(e))
                last_error = f"blocked: {describe(e)}"
            except Exception as e:
                outcome = TransientError(cause=describe(e))
                last_error = describe(e)
            else:
                outcome = Success(record=record)
                self.history.append(outcome)
                self._transition(RetryState.SUCCEEDED)
                self._transition(RetryState.TERMINATED)
                return outcome

            self.history.append(outcome)
            self.attempts += 1
            if isinstance(outcome, Blocked):
                self._transition(RetryState.BLOCKED, {"reason": outcome.reason})
                wait = self.block_backoff + self.rng.uniform(0, self.block_jitter)
                print(f"⚠️  Detection possible ({outcome.reason})")
            else:
                self._transition(RetryState.TRANSIENT_ERROR, {"cause": outcome.cause})
                wait = self.error_backoff + random_delay(self.rng, self.delay_range_ms)
                print(f"❌ Attempt failed: {outcome.cause}")

            if self.attempts < self.retry_budget:
                print(f"    ... backing off {wait:.0f}s before retrying")
                self.sleep(wait)
            self._transition(RetryState.IDLE)

        print("⛔ Max retries reached, giving up.")
        exhausted = Exhausted(record=terminal_record(last_error or "retry budget exhausted"), attempts=self.attempts)
        self.history.append(exhausted)
        self._transition(RetryState.TERMINATED, {"exhausted": True})
        return exhausted

    def _transition(self, state: RetryState, data: dict | None = None) -> None:
        self.state = state
        self.on_event("retry_state", {"state": state.value, "attempts": self.attempts, **(data or {})})
