"""Artifact Hub API client."""

from .client import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT_SECONDS,
    ArtifactHubClient,
    FetchError,
    TemplateDecodeError,
    decode_template,
    escape_segment,
)
from .models import Package, ResponseParseError, TemplateFile

__all__ = [
    "ArtifactHubClient",
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT_SECONDS",
    "FetchError",
    "Package",
    "ResponseParseError",
    "TemplateDecodeError",
    "TemplateFile",
    "decode_template",
    "escape_segment",
]
