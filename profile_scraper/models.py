from __future__ import annotations

import datetime as _dt
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, Union
from urllib.parse import urlparse

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .config import MIN_DELAY_MS, MAX_DELAY_MS, RETRY_BUDGET, PAGE_BUDGET
from .exceptions import ConfigurationError, MissingCredentialError, MissingTargetError


def utc_timestamp() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="seconds")


# ---------- input ----------
class SessionCookie(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    value: str = Field(min_length=1)
    domain: str = Field(min_length=1)
    path: str = "/"
    expiry: Optional[int] = Field(default=None, validation_alias=AliasChoices("expiry", "expires"))
    http_only: Optional[bool] = Field(default=None, validation_alias=AliasChoices("http_only", "httpOnly"))
    secure: Optional[bool] = None
    same_site: Optional[Literal["Strict", "Lax", "None"]] = Field(
        default=None, validation_alias=AliasChoices("same_site", "sameSite")
    )

    @field_validator("expiry", mode="before")
    @classmethod
    def session_cookie_has_no_expiry(cls, v):
        # exported session cookies carry -1
        if v is None or float(v) < 0:
            return None
        return int(v)


class ScrapeTask(BaseModel):
    """One unit of work. Built once from validated input, never mutated."""
    model_config = ConfigDict(frozen=True)

    target_url: str
    session_credential: Tuple[SessionCookie, ...] = Field(min_length=1)
    retry_budget: int = Field(default=RETRY_BUDGET, ge=1)
    page_budget: int = Field(default=PAGE_BUDGET, ge=1)
    delay_range: Tuple[int, int] = (MIN_DELAY_MS, MAX_DELAY_MS)

    @field_validator("target_url")
    @classmethod
    def absolute_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"not an absolute URL: {v!r}")
        return v

    @model_validator(mode="after")
    def ordered_delays(self):
        lo, hi = self.delay_range
        if lo < 0 or hi < lo:
            raise ValueError(f"invalid delay range {self.delay_range}")
        return self

    @classmethod
    def from_input(cls, options: Mapping[str, Any]) -> "ScrapeTask":
        """Map the external option names onto a task.

        Raises MissingCredentialError / MissingTargetError for the two fatal
        cases and ConfigurationError for anything else that fails validation.
        """
        cookies = _first(options, "sessionCredential", "linkedinCookies")
        if not cookies or not isinstance(cookies, list):
            raise MissingCredentialError("sessionCredential is required (non-empty list of cookies)")
        target = _first(options, "targetUrl", "startUrl", "profileUrl")
        if not target:
            raise MissingTargetError("targetUrl / startUrl is required")

        try:
            credential = tuple(SessionCookie.model_validate(c) for c in cookies)
        except ValidationError as e:
            raise MissingCredentialError(f"invalid session credential: {e}") from e

        data: Dict[str, Any] = {"target_url": target, "session_credential": credential}
        lo = _first(options, "minDelayMs", "minDelay")
        hi = _first(options, "maxDelayMs", "maxDelay")
        if lo is not None or hi is not None:
            data["delay_range"] = (
                lo if lo is not None else MIN_DELAY_MS,
                hi if hi is not None else MAX_DELAY_MS,
            )
        retry_budget = _first(options, "retryBudget", "maxRetries")
        if retry_budget is not None:
            data["retry_budget"] = retry_budget
        if options.get("pageBudget") is not None:
            data["page_budget"] = options["pageBudget"]

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            if any(err["loc"][:1] == ("target_url",) for err in e.errors()):
                raise MissingTargetError(f"invalid target: {target!r}") from e
            raise ConfigurationError(str(e)) from e


def _first(options: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if options.get(k) is not None:
            return options[k]
    return None


# ---------- extracted data ----------
class _Entry(BaseModel):
    # ensure empty strings become None
    @field_validator("*", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        return v or None


class ExperienceEntry(_Entry):
    title: str
    company: Optional[str] = None
    duration: Optional[str] = None


class EducationEntry(_Entry):
    school: str
    degree: Optional[str] = None
    years: Optional[str] = None


class SearchResultEntry(_Entry):
    name: str
    headline: Optional[str] = None
    location: Optional[str] = None
    profile_url: Optional[str] = None


class ExtractedRecord(BaseModel):
    source_url: str
    capture_timestamp: str = Field(default_factory=utc_timestamp)
    status: Literal["ok", "exhausted"] = "ok"
    error: Optional[str] = None
    field_errors: Dict[str, str] = Field(default_factory=dict)

    def without_timestamp(self) -> str:
        return self.model_dump_json(exclude={"capture_timestamp"})


class ProfileRecord(ExtractedRecord):
    name: Optional[str] = None
    headline: Optional[str] = None
    location: Optional[str] = None
    connections_text: Optional[str] = None
    about: Optional[str] = None
    profile_photo: Optional[str] = None
    experiences: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)


class SearchPageRecord(ExtractedRecord):
    page_number: int = 1
    results: List[SearchResultEntry] = Field(default_factory=list)


# ---------- attempt outcomes ----------
class Success(BaseModel):
    kind: Literal["success"] = "success"
    record: ExtractedRecord


class Blocked(BaseModel):
    kind: Literal["blocked"] = "blocked"
    reason: str


class TransientError(BaseModel):
    kind: Literal["transient_error"] = "transient_error"
    cause: str


class Exhausted(BaseModel):
    kind: Literal["exhausted"] = "exhausted"
    record: ExtractedRecord
    attempts: int


AttemptOutcome = Union[Success, Blocked, TransientError, Exhausted]
