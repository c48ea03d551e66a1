"""Typed models for Artifact Hub API payloads."""

from __future__ import annotations

from dataclasses import dataclass


class ResponseParseError(Exception):
    """Raised when an API payload does not have the expected shape."""


@dataclass(slots=True, frozen=True)
class Package:
    """Chart package metadata as returned by the packages endpoint."""

    package_id: str
    name: str
    version: str
    description: str | None
    repository_name: str | None

    @classmethod
    def from_payload(cls, payload: object) -> Package:
        """Build a package from decoded JSON, validating required fields."""
        if not isinstance(payload, dict):
            raise ResponseParseError("Package response must be a JSON object.")
        package_id = payload.get("package_id")
        version = payload.get("version")
        if not isinstance(package_id, str) or not package_id:
            raise ResponseParseError("Package response is missing 'package_id'.")
        if not isinstance(version, str) or not version:
            raise ResponseParseError("Package response is missing 'version'.")
        name = payload.get("name")
        description = payload.get("description")
        repository = payload.get("repository")
        repository_name: str | None = None
        if isinstance(repository, dict) and isinstance(repository.get("name"), str):
            repository_name = repository["name"]
        return cls(
            package_id=package_id,
            name=name if isinstance(name, str) else "",
            version=version,
            description=description if isinstance(description, str) else None,
            repository_name=repository_name,
        )


@dataclass(slots=True, frozen=True)
class TemplateFile:
    """One decoded chart template."""

    name: str
    content: str
