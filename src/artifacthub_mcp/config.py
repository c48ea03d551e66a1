"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from artifacthub_mcp.hub import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS
from artifacthub_mcp.search import DEFAULT_CONTEXT_LINES, DEFAULT_THRESHOLD

CONFIG_FILE_NAME = "artifacthub_mcp.toml"

TIMEOUT_SECONDS_CAP = 300.0
CONTEXT_LINES_CAP = 20
MAX_MATCHES_PER_TEMPLATE_CAP = 100
MAX_TOTAL_BYTES_PER_RESPONSE_CAP = 8 * 1024 * 1024

DEFAULT_MAX_MATCHES_PER_TEMPLATE = 5
DEFAULT_MIN_LINE_MATCH_CHARS = 3
DEFAULT_MAX_TOTAL_BYTES_PER_RESPONSE = 2 * 1024 * 1024


@dataclass(slots=True, frozen=True)
class HubConfig:
    """Upstream API settings."""

    base_url: str
    timeout_seconds: float


@dataclass(slots=True, frozen=True)
class SearchConfig:
    """Fuzzy search and result display settings."""

    threshold: float
    context_lines: int
    max_matches_per_template: int
    min_line_match_chars: int


@dataclass(slots=True, frozen=True)
class ResponseLimits:
    """Transport-level response limits."""

    max_total_bytes_per_response: int


@dataclass(slots=True, frozen=True)
class ServerConfig:
    """Fully merged server configuration."""

    data_dir: Path
    hub: HubConfig
    search: SearchConfig
    limits: ResponseLimits

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for protocol responses."""
        return {
            "data_dir": str(self.data_dir),
            "hub": {
                "base_url": self.hub.base_url,
                "timeout_seconds": self.hub.timeout_seconds,
            },
            "search": {
                "threshold": self.search.threshold,
                "context_lines": self.search.context_lines,
                "max_matches_per_template": self.search.max_matches_per_template,
                "min_line_match_chars": self.search.min_line_match_chars,
            },
            "limits": {
                "max_total_bytes_per_response": self.limits.max_total_bytes_per_response,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    base_url: str | None = None
    timeout_seconds: float | None = None
    max_total_bytes_per_response: int | None = None


def default_config() -> ServerConfig:
    """Build default config."""
    return ServerConfig(
        data_dir=Path.home() / ".artifacthub_mcp",
        hub=HubConfig(base_url=DEFAULT_BASE_URL, timeout_seconds=DEFAULT_TIMEOUT_SECONDS),
        search=SearchConfig(
            threshold=DEFAULT_THRESHOLD,
            context_lines=DEFAULT_CONTEXT_LINES,
            max_matches_per_template=DEFAULT_MAX_MATCHES_PER_TEMPLATE,
            min_line_match_chars=DEFAULT_MIN_LINE_MATCH_CHARS,
        ),
        limits=ResponseLimits(max_total_bytes_per_response=DEFAULT_MAX_TOTAL_BYTES_PER_RESPONSE),
    )


def load_config_file(config_path: Path) -> dict[str, object]:
    """Load an optional TOML config file; a missing file is an empty config."""
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{config_path.name} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def merge_config(
    base: ServerConfig, file_payload: dict[str, object], overrides: CliOverrides
) -> ServerConfig:
    """Merge defaults, config file, then CLI/startup overrides."""
    hub_payload = _get_table(file_payload, "hub")
    search_payload = _get_table(file_payload, "search")
    limits_payload = _get_table(file_payload, "limits")

    data_dir = base.data_dir
    if "data_dir" in file_payload:
        raw_data_dir = file_payload["data_dir"]
        if not isinstance(raw_data_dir, str) or not raw_data_dir:
            raise ValueError("Config field 'data_dir' must be a non-empty string.")
        data_dir = Path(raw_data_dir).expanduser()

    base_url = _optional_url(hub_payload.get("base_url"), "hub.base_url", base.hub.base_url)
    timeout_seconds = _optional_positive_number_with_cap(
        hub_payload.get("timeout_seconds"),
        "hub.timeout_seconds",
        base.hub.timeout_seconds,
        TIMEOUT_SECONDS_CAP,
    )

    threshold = base.search.threshold
    if "threshold" in search_payload:
        raw_threshold = search_payload["threshold"]
        if (
            isinstance(raw_threshold, bool)
            or not isinstance(raw_threshold, (int, float))
            or not 0 < raw_threshold <= 1
        ):
            raise ValueError("Config field 'search.threshold' must be a number in (0, 1].")
        threshold = float(raw_threshold)
    context_lines = _optional_int_with_bounds(
        search_payload.get("context_lines"),
        "search.context_lines",
        base.search.context_lines,
        minimum=0,
        cap=CONTEXT_LINES_CAP,
    )
    max_matches_per_template = _optional_int_with_bounds(
        search_payload.get("max_matches_per_template"),
        "search.max_matches_per_template",
        base.search.max_matches_per_template,
        minimum=1,
        cap=MAX_MATCHES_PER_TEMPLATE_CAP,
    )
    min_line_match_chars = _optional_int_with_bounds(
        search_payload.get("min_line_match_chars"),
        "search.min_line_match_chars",
        base.search.min_line_match_chars,
        minimum=1,
        cap=None,
    )
    max_total_bytes_per_response = _optional_int_with_bounds(
        limits_payload.get("max_total_bytes_per_response"),
        "limits.max_total_bytes_per_response",
        base.limits.max_total_bytes_per_response,
        minimum=1,
        cap=MAX_TOTAL_BYTES_PER_RESPONSE_CAP,
    )

    merged = ServerConfig(
        data_dir=data_dir,
        hub=HubConfig(base_url=base_url, timeout_seconds=timeout_seconds),
        search=SearchConfig(
            threshold=threshold,
            context_lines=context_lines,
            max_matches_per_template=max_matches_per_template,
            min_line_match_chars=min_line_match_chars,
        ),
        limits=ResponseLimits(max_total_bytes_per_response=max_total_bytes_per_response),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: ServerConfig, overrides: CliOverrides) -> ServerConfig:
    """Apply startup overrides at highest precedence."""
    base_url = _optional_url(overrides.base_url, "overrides.base_url", config.hub.base_url)
    timeout_seconds = _optional_positive_number_with_cap(
        overrides.timeout_seconds,
        "overrides.timeout_seconds",
        config.hub.timeout_seconds,
        TIMEOUT_SECONDS_CAP,
    )
    max_total_bytes_per_response = _optional_int_with_bounds(
        overrides.max_total_bytes_per_response,
        "overrides.max_total_bytes_per_response",
        config.limits.max_total_bytes_per_response,
        minimum=1,
        cap=MAX_TOTAL_BYTES_PER_RESPONSE_CAP,
    )
    data_dir = overrides.data_dir or config.data_dir
    return ServerConfig(
        data_dir=data_dir.resolve(),
        hub=HubConfig(base_url=base_url, timeout_seconds=timeout_seconds),
        search=config.search,
        limits=ResponseLimits(max_total_bytes_per_response=max_total_bytes_per_response),
    )


def load_effective_config(
    config_path: Path | None = None,
    overrides: CliOverrides | None = None,
    working_dir: Path | None = None,
) -> ServerConfig:
    """Load effective config using merge order defaults -> config file -> overrides."""
    if config_path is None:
        config_path = (working_dir or Path.cwd()) / CONFIG_FILE_NAME
    elif not config_path.exists():
        raise ValueError(f"Config file not found: {config_path}")
    payload = load_config_file(config_path)
    return merge_config(default_config(), payload, overrides or CliOverrides())


def _optional_url(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or not value.startswith(("http://", "https://")):
        raise ValueError(f"Config field '{name}' must be an http(s) URL.")
    return value.rstrip("/")


def _optional_positive_number_with_cap(
    value: object,
    name: str,
    default: float,
    cap: float,
) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"Config field '{name}' must be a positive number.")
    if value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap:g}.")
    return float(value)


def _optional_int_with_bounds(
    value: object,
    name: str,
    default: int,
    minimum: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ValueError(f"Config field '{name}' must be an integer >= {minimum}.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
