"""Typed tool results and failure classification."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from artifacthub_mcp.hub import FetchError, ResponseParseError, TemplateDecodeError, TemplateFile
from artifacthub_mcp.search import ContextLine, FuzzyHit, LineRecord
from artifacthub_mcp.values import PropertyRecord, ValuesParseError

logger = logging.getLogger(__name__)

FAILURE_FETCH = "fetch"
FAILURE_PARSE = "parse"
FAILURE_INTERNAL = "internal"


@dataclass(slots=True, frozen=True)
class ChartInfo:
    package_id: str
    latest_version: str
    description: str | None


@dataclass(slots=True, frozen=True)
class ValuesDocument:
    text: str


@dataclass(slots=True, frozen=True)
class PropertyLookup:
    path: str
    found: bool
    value: object
    comment: str | None


@dataclass(slots=True, frozen=True)
class PropertySearch:
    query: str
    hits: tuple[FuzzyHit[PropertyRecord], ...]


@dataclass(slots=True, frozen=True)
class TemplateSelection:
    filename: str
    templates: tuple[TemplateFile, ...]


@dataclass(slots=True, frozen=True)
class TemplateMatch:
    """A matched line with its surrounding raw lines."""

    record: LineRecord
    before: tuple[ContextLine, ...]
    after: tuple[ContextLine, ...]


@dataclass(slots=True, frozen=True)
class TemplateMatchGroup:
    """Matches of one template; only the first few carry context."""

    template_name: str
    total_matches: int
    shown: tuple[TemplateMatch, ...]

    @property
    def omitted(self) -> int:
        return self.total_matches - len(self.shown)


@dataclass(slots=True, frozen=True)
class TemplateSearch:
    query: str
    groups: tuple[TemplateMatchGroup, ...]


ToolPayload = (
    ChartInfo
    | ValuesDocument
    | PropertyLookup
    | PropertySearch
    | TemplateSelection
    | TemplateSearch
)


@dataclass(slots=True, frozen=True)
class ToolFailure:
    """A failure caught at the tool boundary."""

    kind: str
    action: str
    message: str


@dataclass(slots=True, frozen=True)
class ToolOutcome:
    """Either a payload or a failure, never both."""

    payload: ToolPayload | None = None
    failure: ToolFailure | None = None

    @property
    def is_error(self) -> bool:
        return self.failure is not None


def classify_failure(action: str, error: Exception) -> ToolFailure:
    """Map an exception raised while serving a tool onto a failure kind."""
    message = str(error) or type(error).__name__
    if isinstance(error, (FetchError, httpx.HTTPError)):
        return ToolFailure(kind=FAILURE_FETCH, action=action, message=message)
    if isinstance(error, (ResponseParseError, TemplateDecodeError, ValuesParseError)):
        return ToolFailure(kind=FAILURE_PARSE, action=action, message=message)
    logger.exception("Unexpected failure while %s", action)
    return ToolFailure(kind=FAILURE_INTERNAL, action=action, message=message)
