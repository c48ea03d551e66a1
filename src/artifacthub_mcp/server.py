"""STDIO MCP server entrypoint."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

import httpx

from artifacthub_mcp import __version__
from artifacthub_mcp.config import CliOverrides, ServerConfig, load_effective_config
from artifacthub_mcp.hub import ArtifactHubClient
from artifacthub_mcp.logging import AuditEvent, JsonlAuditLogger, sanitize_arguments, utc_timestamp
from artifacthub_mcp.tools import ToolDispatchError, ToolRegistry, render_outcome
from artifacthub_mcp.tools.builtin import register_builtin_tools

SERVER_NAME = "artifacthub-mcp"
SERVER_DESCRIPTION = "MCP server for Artifact Hub charts"
PROTOCOL_VERSION = "2024-11-05"

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Request:
    """Normalized incoming request."""

    request_id: str
    method: str
    params: dict[str, object]


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for server startup configuration."""
    parser = argparse.ArgumentParser(prog=SERVER_NAME, description=SERVER_DESCRIPTION)
    parser.add_argument("--config", required=False, default=None)
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--base-url", required=False, default=None)
    parser.add_argument("--timeout-seconds", type=float, required=False, default=None)
    parser.add_argument("--max-total-bytes-per-response", type=int, required=False, default=None)
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        required=False,
        default="WARNING",
    )
    return parser


class StdioServer:
    """Minimal deterministic STDIO server for tool routing."""

    def __init__(
        self,
        config: ServerConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        self._limits = config.limits
        self._audit_logger = JsonlAuditLogger(path=config.data_dir / "audit.jsonl")
        self._client = ArtifactHubClient(
            base_url=config.hub.base_url,
            timeout_seconds=config.hub.timeout_seconds,
            user_agent=f"{SERVER_NAME}/{__version__}",
            transport=transport,
        )
        self._registry = ToolRegistry()
        register_builtin_tools(self._registry, client=self._client, search=config.search)
        self._fallback_request_counter = 0

    @property
    def registry(self) -> ToolRegistry:
        """Return the tool registry."""
        return self._registry

    def close(self) -> None:
        """Release the upstream HTTP client."""
        self._client.close()

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Process JSON-line requests from stdin and write JSON-line responses."""
        for raw_line in in_stream:
            line = raw_line.strip()
            if not line:
                continue
            response = self.handle_json_line(line)
            out_stream.write(f"{json.dumps(response, sort_keys=True)}\n")
            out_stream.flush()

    def handle_json_line(self, raw_line: str) -> dict[str, object]:
        """Handle a single JSON-line request."""
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            request_id = self.next_request_id()
            response = self.error_response(
                request_id=request_id,
                code="INVALID_JSON",
                message="Request must be valid JSON.",
            )
            self.log_request(
                request_id=request_id,
                tool_name="invalid_json",
                arguments={"raw_line_length": len(raw_line)},
                response=response,
            )
            return response
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object]:
        """Validate and dispatch a parsed payload."""
        parsed = self.parse_request(payload)
        if isinstance(parsed, dict):
            request_id_value = parsed.get("request_id")
            request_id = (
                request_id_value if isinstance(request_id_value, str) else self.next_request_id()
            )
            self.log_request(
                request_id=request_id,
                tool_name="invalid_request",
                arguments={},
                response=parsed,
            )
            return parsed

        request = parsed
        if request.method == "initialize":
            return self.success_response(request.request_id, self.initialize_result())
        if request.method == "tools/list":
            return self.success_response(request.request_id, {"tools": self._registry.describe()})

        tool_name: str
        arguments: dict[str, object]
        if request.method == "tools/call":
            tool_name_value = request.params.get("name")
            arguments_value = request.params.get("arguments", {})
            if not isinstance(tool_name_value, str) or not tool_name_value:
                return self.error_response(
                    request_id=request.request_id,
                    code="INVALID_PARAMS",
                    message="tools/call params.name must be a non-empty string.",
                )
            if not isinstance(arguments_value, dict):
                return self.error_response(
                    request_id=request.request_id,
                    code="INVALID_PARAMS",
                    message="tools/call params.arguments must be an object.",
                )
            tool_name = tool_name_value
            arguments = arguments_value
        else:
            tool_name = request.method
            arguments = request.params

        try:
            outcome = self._registry.dispatch(name=tool_name, arguments=arguments)
        except ToolDispatchError as error:
            response = self.error_response(
                request_id=request.request_id,
                code=error.code,
                message=error.message,
            )
            self.log_request(
                request_id=request.request_id,
                tool_name=tool_name,
                arguments=arguments,
                response=response,
            )
            return response
        except Exception:
            logger.exception("Unhandled error while dispatching %s", tool_name)
            response = self.error_response(
                request_id=request.request_id,
                code="INTERNAL_ERROR",
                message="Unhandled server error while executing tool.",
            )
            self.log_request(
                request_id=request.request_id,
                tool_name=tool_name,
                arguments=arguments,
                response=response,
            )
            return response

        result = {
            "content": [{"type": "text", "text": render_outcome(outcome)}],
            "isError": outcome.is_error,
        }
        response = self.success_response(request_id=request.request_id, result=result)
        enforced = self.enforce_response_size_limit(
            request_id=request.request_id, response=response
        )
        self.log_request(
            request_id=request.request_id,
            tool_name=tool_name,
            arguments=arguments,
            response=enforced,
        )
        return enforced

    def initialize_result(self) -> dict[str, object]:
        """Describe the server for the initialize handshake."""
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "serverInfo": {
                "name": SERVER_NAME,
                "version": __version__,
                "description": SERVER_DESCRIPTION,
            },
            "capabilities": {"tools": {}},
            "effective_config": self._config.to_public_dict(),
        }

    def parse_request(self, payload: object) -> Request | dict[str, object]:
        """Validate request payload and return normalized Request."""
        if not isinstance(payload, dict):
            return self.error_response(
                request_id=self.next_request_id(),
                code="INVALID_REQUEST",
                message="Request must be an object.",
            )

        request_id = self.extract_request_id(payload.get("id"))
        method = payload.get("method")
        params = payload.get("params", {})

        if not isinstance(method, str) or not method:
            return self.error_response(
                request_id=request_id,
                code="INVALID_REQUEST",
                message="Request method must be a non-empty string.",
            )
        if not isinstance(params, dict):
            return self.error_response(
                request_id=request_id,
                code="INVALID_PARAMS",
                message="Request params must be an object.",
            )

        return Request(request_id=request_id, method=method, params=params)

    def extract_request_id(self, request_id: object) -> str:
        """Extract request ID from payload or synthesize deterministic fallback."""
        if isinstance(request_id, str) and request_id:
            return request_id
        if isinstance(request_id, int) and not isinstance(request_id, bool):
            return str(request_id)
        return self.next_request_id()

    def next_request_id(self) -> str:
        """Generate deterministic fallback request IDs for invalid/missing IDs."""
        self._fallback_request_counter += 1
        return f"req-{self._fallback_request_counter:06d}"

    @staticmethod
    def success_response(request_id: str, result: dict[str, object]) -> dict[str, object]:
        """Build success envelope."""
        return {
            "request_id": request_id,
            "ok": True,
            "result": result,
            "warnings": [],
            "blocked": False,
        }

    @staticmethod
    def error_response(request_id: str, code: str, message: str) -> dict[str, object]:
        """Build explicit error envelope."""
        return {
            "request_id": request_id,
            "ok": False,
            "result": {},
            "warnings": [],
            "blocked": False,
            "error": {"code": code, "message": message},
        }

    @staticmethod
    def blocked_response(request_id: str, reason: str, hint: str) -> dict[str, object]:
        """Build explicit blocked response envelope."""
        return {
            "request_id": request_id,
            "ok": False,
            "result": {"reason": reason, "hint": hint},
            "warnings": [],
            "blocked": True,
            "error": {"code": "RESPONSE_TOO_LARGE", "message": reason},
        }

    def enforce_response_size_limit(
        self,
        request_id: str,
        response: dict[str, object],
    ) -> dict[str, object]:
        """Block responses that exceed max_total_bytes_per_response."""
        response_bytes = len(json.dumps(response, sort_keys=True).encode("utf-8"))
        if response_bytes <= self._limits.max_total_bytes_per_response:
            return response
        return self.blocked_response(
            request_id=request_id,
            reason="Response exceeds max_total_bytes_per_response limit.",
            hint="Use a property lookup or fuzzy search instead of the full document.",
        )

    def log_request(
        self,
        request_id: str,
        tool_name: str,
        arguments: dict[str, object],
        response: dict[str, object],
    ) -> None:
        """Log one sanitized request event."""
        error_payload = response.get("error")
        error_code: str | None = None
        if isinstance(error_payload, dict):
            code_value = error_payload.get("code")
            if isinstance(code_value, str):
                error_code = code_value
        result = response.get("result")
        is_error = isinstance(result, dict) and result.get("isError") is True
        event = AuditEvent(
            timestamp=utc_timestamp(),
            request_id=request_id,
            tool=tool_name,
            ok=bool(response.get("ok", False)),
            blocked=bool(response.get("blocked", False)),
            is_error=is_error,
            error_code=error_code,
            metadata=sanitize_arguments(arguments),
        )
        self._audit_logger.append(event)


def create_server(
    config_path: str | None = None,
    data_dir: str | None = None,
    cli_overrides: CliOverrides | None = None,
    transport: httpx.BaseTransport | None = None,
    working_dir: str | None = None,
) -> StdioServer:
    """Create a configured STDIO server instance."""
    overrides = cli_overrides or CliOverrides()
    if data_dir is not None and overrides.data_dir is None:
        overrides = CliOverrides(
            data_dir=Path(data_dir).resolve(),
            base_url=overrides.base_url,
            timeout_seconds=overrides.timeout_seconds,
            max_total_bytes_per_response=overrides.max_total_bytes_per_response,
        )
    config = load_effective_config(
        config_path=Path(config_path) if config_path is not None else None,
        overrides=overrides,
        working_dir=Path(working_dir) if working_dir is not None else None,
    )
    return StdioServer(config=config, transport=transport)


def configure_logging(level: str) -> None:
    """Send diagnostics to stderr; stdout carries protocol responses."""
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level),
        format="[%(levelname)s] %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the Artifact Hub server process."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    overrides = CliOverrides(
        data_dir=Path(args.data_dir).expanduser().resolve() if args.data_dir else None,
        base_url=args.base_url,
        timeout_seconds=args.timeout_seconds,
        max_total_bytes_per_response=args.max_total_bytes_per_response,
    )
    try:
        server = create_server(config_path=args.config, cli_overrides=overrides)
    except ValueError as error:
        logger.error("Invalid configuration: %s", error)
        return 2
    logger.info("MCP server for Artifact Hub started")
    try:
        server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    finally:
        server.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
