"""
Selector-cascade field extraction.

Each logical field owns an ordered list of matchers. The first matcher that
yields a non-empty, accepted value wins; when none do, the field is simply
absent. Extraction never raises: a field that blows up is annotated in
``field_errors`` and the remaining fields are still extracted.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from pydantic import BaseModel

from .exceptions import FieldExtractionError, describe
from .models import ExtractedRecord

Locator = Tuple[str, str]  # (By.*, selector) as in linkedin_selectors
Predicate = Callable[[str], bool]


def normalize_text(text: str | None) -> str:
    return " ".join((text or "").split())


def node_text(node) -> str:
    """Rendered text, falling back to textContent for visually hidden nodes."""
    text = node.text
    if not text or not text.strip():
        text = node.get_attribute("textContent")
    return normalize_text(text)


def contains(substring: str) -> Predicate:
    """Rejection predicate: the value contains ``substring`` (case-insensitive)."""
    needle = substring.casefold()
    return lambda value: needle in value.casefold()


def is_http_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def strip_query(url: str) -> str:
    return url.split("?", 1)[0]


# ---------- matchers ----------
class Matcher:
    """One strategy in a cascade: ``try_match(scope) -> value or None``."""

    def try_match(self, scope) -> Optional[str]:
        raise NotImplementedError


class TextMatcher(Matcher):
    def __init__(self, locator: Locator, reject: Sequence[Predicate] = (),
                 transform: Callable[[str], str] | None = None):
        self.locator = locator
        self.reject = tuple(reject)
        self.transform = transform

    def try_match(self, scope) -> Optional[str]:
        for node in scope.find_elements(*self.locator):
            text = node_text(node)
            if not text or any(pred(text) for pred in self.reject):
                continue
            return self.transform(text) if self.transform else text
        return None

    def __repr__(self):
        return f"TextMatcher({self.locator[1]!r})"


class AttributeMatcher(Matcher):
    def __init__(self, locator: Locator, attribute: str, accept: Predicate | None = None,
                 transform: Callable[[str], str] | None = None):
        self.locator = locator
        self.attribute = attribute
        self.accept = accept
        self.transform = transform

    def try_match(self, scope) -> Optional[str]:
        for node in scope.find_elements(*self.locator):
            value = (node.get_attribute(self.attribute) or "").strip()
            if not value or (self.accept and not self.accept(value)):
                continue
            return self.transform(value) if self.transform else value
        return None

    def __repr__(self):
        return f"AttributeMatcher({self.locator[1]!r}, {self.attribute!r})"


# ---------- rules ----------
class SelectorRule:
    """Scalar field: ordered matcher cascade, ``None`` when nothing matches.

    All rules share the ``evaluate(scope, errors)`` signature; only
    ``EntryRule`` writes per-item annotations into ``errors``.
    """

    def __init__(self, field: str, matchers: Sequence[Matcher]):
        self.field = field
        self.matchers = tuple(matchers)

    def evaluate(self, scope, errors: Dict[str, str] | None = None) -> Optional[str]:
        for matcher in self.matchers:
            value = matcher.try_match(scope)
            if value is not None:
                return value
        return None


class ListRule:
    """Flat list of strings (skills). First locator that yields items wins. Ignores ``errors``."""

    def __init__(self, field: str, locators: Sequence[Locator], cap: int, dedupe: bool = True):
        self.field = field
        self.locators = tuple(locators)
        self.cap = cap
        self.dedupe = dedupe

    def evaluate(self, scope, errors: Dict[str, str] | None = None) -> List[str]:
        for locator in self.locators:
            items: List[str] = []
            seen: set[str] = set()
            for node in scope.find_elements(*locator):
                if len(items) >= self.cap:
                    break
                text = node_text(node)
                if not text or (self.dedupe and text in seen):
                    continue
                seen.add(text)
                items.append(text)
            if items:
                return items
        return []


class EntryRule:
    """Repeating entity (experience, education, search card).

    Every container node gets the sub-field cascades applied inside it. An
    entry without its primary sub-field is skipped, as is one whose
    extraction raises (annotated as ``field[index]``).
    """

    def __init__(self, field: str, containers: Sequence[Locator], fields: Sequence[SelectorRule],
                 primary: str, cap: int, entry_model: Type[BaseModel]):
        self.field = field
        self.containers = tuple(containers)
        self.fields = tuple(fields)
        self.primary = primary
        self.cap = cap
        self.entry_model = entry_model

    def evaluate(self, scope, errors: Dict[str, str] | None = None) -> List[BaseModel]:
        pending: Dict[str, str] = {}
        for locator in self.containers:
            nodes = scope.find_elements(*locator)
            if not nodes:
                continue
            local_errors: Dict[str, str] = {}
            entries = self._entries(nodes, local_errors)
            if entries:
                if errors is not None:
                    errors.update(local_errors)
                return entries
            pending.update(local_errors)
        if errors is not None:
            errors.update(pending)
        return []

    def _entries(self, nodes, errors: Dict[str, str]) -> List[BaseModel]:
        entries: List[BaseModel] = []
        for idx, node in enumerate(nodes):
            if len(entries) >= self.cap:
                break
            try:
                values = {rule.field: rule.evaluate(node) for rule in self.fields}
                if not values.get(self.primary):
                    continue
                entries.append(self.entry_model.model_validate(values))
            except Exception as e:
                errors[f"{self.field}[{idx}]"] = describe(e)
        return entries


class RuleSet:
    """Static extraction configuration for one page type."""

    def __init__(self, name: str, rules: Sequence[Any], record_model: Type[ExtractedRecord],
                 ready_locator: Locator | None = None):
        self.name = name
        self.rules = tuple(rules)
        self.record_model = record_model
        # element whose presence means the content worth extracting has rendered
        self.ready_locator = ready_locator

    @property
    def fields(self) -> List[str]:
        return [rule.field for rule in self.rules]


class FieldExtractor:
    def extract(self, document, rule_set: RuleSet, source_url: str, **extra: Any) -> ExtractedRecord:
        """Apply every rule of ``rule_set`` to ``document`` (a driver or element).

        Total over the field list: a failing field leaves its default absence
        marker in place and is annotated in ``field_errors``.
        """
        values: Dict[str, Any] = {}
        errors: Dict[str, str] = {}
        for rule in rule_set.rules:
            try:
                values[rule.field] = rule.evaluate(document, errors)
            except Exception as e:
                errors[rule.field] = describe(FieldExtractionError(describe(e)))
        return rule_set.record_model(source_url=source_url, field_errors=errors, **values, **extra)
