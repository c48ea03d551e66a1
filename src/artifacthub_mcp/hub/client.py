"""HTTP client for the Artifact Hub packages API."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from urllib.parse import quote

import httpx

from artifacthub_mcp.hub.models import Package, ResponseParseError, TemplateFile

DEFAULT_BASE_URL = "https://artifacthub.io/api/v1"
DEFAULT_TIMEOUT_SECONDS = 30.0

# Characters encodeURIComponent leaves untouched besides the unreserved set.
_SEGMENT_SAFE = "!'()*"

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when the API answers with a non-success status."""

    def __init__(self, status_code: int, reason: str) -> None:
        super().__init__(f"API request failed with status {status_code}: {reason}")
        self.status_code = status_code
        self.reason = reason


class TemplateDecodeError(Exception):
    """Raised when a template payload is not valid base64-encoded UTF-8."""

    def __init__(self, name: str, detail: str) -> None:
        super().__init__(f"Template '{name}' could not be decoded: {detail}")
        self.name = name


def escape_segment(value: str) -> str:
    """Percent-escape one URL path segment."""
    return quote(value, safe=_SEGMENT_SAFE)


def decode_template(name: str, data: str) -> TemplateFile:
    """Decode one base64 template payload into UTF-8 text."""
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as error:
        raise TemplateDecodeError(name, str(error)) from error
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError as error:
        raise TemplateDecodeError(name, str(error)) from error
    return TemplateFile(name=name, content=content)


class ArtifactHubClient:
    """Thin synchronous client; one GET per call, no retries."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        headers = {"User-Agent": user_agent} if user_agent else None
        self._http = httpx.Client(
            timeout=timeout_seconds,
            follow_redirects=True,
            headers=headers,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        """Return the API base URL without trailing slash."""
        return self._base_url

    def close(self) -> None:
        """Release pooled connections."""
        self._http.close()

    def fetch(self, url: str, want_yaml: bool = False) -> object:
        """GET a URL, returning decoded JSON or raw text when want_yaml is set."""
        accept = "application/yaml" if want_yaml else "application/json"
        logger.debug("GET %s (Accept: %s)", url, accept)
        response = self._http.get(url, headers={"Accept": accept})
        if not response.is_success:
            raise FetchError(response.status_code, response.reason_phrase)
        if want_yaml:
            return response.text
        try:
            return response.json()
        except json.JSONDecodeError as error:
            raise ResponseParseError(f"Invalid JSON from {url}: {error}") from error

    def get_package(self, repo: str, name: str) -> Package:
        """Look up a Helm chart package by repository and chart name."""
        url = f"{self._base_url}/packages/helm/{escape_segment(repo)}/{escape_segment(name)}"
        return Package.from_payload(self.fetch(url))

    def get_values(self, package_id: str, version: str) -> str:
        """Return the raw values.yaml text for one package version."""
        url = self._artifact_url(package_id, version, "values")
        text = self.fetch(url, want_yaml=True)
        if not isinstance(text, str):
            raise ResponseParseError("Values response must be text.")
        return text

    def get_templates(self, package_id: str, version: str) -> list[TemplateFile]:
        """Return every decoded template of one package version."""
        payload = self.fetch(self._artifact_url(package_id, version, "templates"))
        if not isinstance(payload, dict) or not isinstance(payload.get("templates"), list):
            raise ResponseParseError("Templates response must contain a 'templates' list.")
        templates: list[TemplateFile] = []
        for entry in payload["templates"]:
            if not isinstance(entry, dict):
                raise ResponseParseError("Template entries must be objects.")
            name = entry.get("name")
            data = entry.get("data")
            if not isinstance(name, str) or not isinstance(data, str):
                raise ResponseParseError("Template entries need string 'name' and 'data'.")
            templates.append(decode_template(name, data))
        return templates

    def _artifact_url(self, package_id: str, version: str, artifact: str) -> str:
        return (
            f"{self._base_url}/packages/{escape_segment(package_id)}/"
            f"{escape_segment(version)}/{artifact}"
        )
