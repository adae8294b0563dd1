from __future__ import annotations

from typing import Callable, NamedTuple

from .models import Exhausted, ExtractedRecord, AttemptOutcome


class PaginationResult(NamedTuple):
    pages_processed: int
    exhausted: bool


class PaginationDriver:
    """
    Outer loop over result pages, bounded by ``page_budget``.

    ``run_page(page_number)`` runs the whole retry sequence for one page and
    returns its outcome; ``advance()`` clicks "next" and reports whether a new
    page of results appeared; ``between_pages()`` applies the same delay and
    human-behavior pass used between attempts.
    """

    def __init__(self, page_budget: int, advance: Callable[[], bool], between_pages: Callable[[], None]):
        self.page_budget = page_budget
        self.advance = advance
        self.between_pages = between_pages

    def run(self, run_page: Callable[[int], AttemptOutcome],
            emit: Callable[[ExtractedRecord], None]) -> PaginationResult:
        processed = 0
        for page_number in range(1, self.page_budget + 1):
            outcome = run_page(page_number)
            emit(outcome.record)
            if isinstance(outcome, Exhausted):
                print(f"⛔ Page {page_number} exhausted its retries; stopping pagination.")
                return PaginationResult(processed, True)
            processed += 1

            if page_number == self.page_budget:
                print(f"🏁 Page budget of {self.page_budget} reached.")
                break
            if not self.advance():
                print("ℹ️ No Next button available (likely last page).")
                break
            self.between_pages()
        return PaginationResult(processed, False)
