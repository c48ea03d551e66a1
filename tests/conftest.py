from __future__ import annotations

import base64
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import httpx
import pytest

from artifacthub_mcp.server import StdioServer, create_server

API_PREFIX = "/api/v1/packages"


@dataclass
class FakeArtifactHub:
    """In-memory stand-in for the Artifact Hub packages API."""

    packages: dict[tuple[str, str], dict[str, object]] = field(default_factory=dict)
    values: dict[tuple[str, str], str] = field(default_factory=dict)
    templates: dict[tuple[str, str], list[dict[str, str]]] = field(default_factory=dict)
    failures: dict[str, int] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def add_chart(
        self,
        repo: str,
        name: str,
        package_id: str,
        version: str,
        description: str = "A Helm chart",
    ) -> None:
        self.packages[(repo, name)] = {
            "package_id": package_id,
            "name": name,
            "version": version,
            "description": description,
            "repository": {"name": repo},
        }

    def add_values(self, package_id: str, version: str, text: str) -> None:
        self.values[(package_id, version)] = text

    def add_templates(self, package_id: str, version: str, files: dict[str, str]) -> None:
        self.templates[(package_id, version)] = [
            {"name": name, "data": base64.b64encode(content.encode("utf-8")).decode("ascii")}
            for name, content in files.items()
        ]

    def fail(self, path_suffix: str, status_code: int) -> None:
        self.failures[path_suffix] = status_code

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        for suffix, status_code in self.failures.items():
            if path.endswith(suffix):
                return httpx.Response(status_code)
        if not path.startswith(API_PREFIX + "/"):
            return httpx.Response(404)
        parts = path[len(API_PREFIX) + 1 :].split("/")
        if len(parts) == 3 and parts[0] == "helm":
            package = self.packages.get((parts[1], parts[2]))
            if package is None:
                return httpx.Response(404)
            return httpx.Response(200, json=package)
        if len(parts) == 3 and parts[2] == "values":
            text = self.values.get((parts[0], parts[1]))
            if text is None:
                return httpx.Response(404)
            return httpx.Response(200, text=text, headers={"Content-Type": "application/yaml"})
        if len(parts) == 3 and parts[2] == "templates":
            entries = self.templates.get((parts[0], parts[1]))
            if entries is None:
                return httpx.Response(404)
            return httpx.Response(200, content=json.dumps({"templates": entries}).encode("utf-8"))
        return httpx.Response(404)


@pytest.fixture
def fake_hub() -> FakeArtifactHub:
    return FakeArtifactHub()


@pytest.fixture
def make_server(
    tmp_path: Path, fake_hub: FakeArtifactHub
) -> Callable[..., StdioServer]:
    def factory(**kwargs: object) -> StdioServer:
        kwargs.setdefault("data_dir", str(tmp_path / ".artifacthub_mcp"))
        kwargs.setdefault("working_dir", str(tmp_path))
        return create_server(transport=fake_hub.transport, **kwargs)

    return factory


def call_tool(server: StdioServer, name: str, arguments: dict[str, object]) -> str:
    """Call a tool and return its single text content block."""
    response = server.handle_payload(
        {
            "id": f"req-{name}",
            "method": "tools/call",
            "params": {"name": name, "arguments": arguments},
        }
    )
    assert response["ok"] is True, response
    content = response["result"]["content"]
    assert len(content) == 1
    return content[0]["text"]


@pytest.fixture
def tool_text() -> Callable[[StdioServer, str, dict[str, object]], str]:
    return call_tool
