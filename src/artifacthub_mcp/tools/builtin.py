"""Built-in Helm chart tools backed by the Artifact Hub API."""

from __future__ import annotations

import logging

from artifacthub_mcp.config import SearchConfig
from artifacthub_mcp.hub import ArtifactHubClient, Package
from artifacthub_mcp.search import LineRecord, context_lines, fuzzy_search, index_lines
from artifacthub_mcp.tools.registry import ToolDispatchError, ToolHandler, ToolRegistry, ToolSpec
from artifacthub_mcp.tools.results import (
    ChartInfo,
    PropertyLookup,
    PropertySearch,
    TemplateMatch,
    TemplateMatchGroup,
    TemplateSearch,
    TemplateSelection,
    ValuesDocument,
)
from artifacthub_mcp.values import flatten, parse_values, resolve

PROPERTY_SEARCH_KEYS = ("name", "path", "comment", "value")
LINE_SEARCH_KEYS = ("content",)

logger = logging.getLogger(__name__)

_CHART_REPO = {"type": "string", "description": "The Helm chart repository name"}
_CHART_NAME = {"type": "string", "description": "The Helm chart name"}
_VERSION = {
    "type": "string",
    "description": "The chart version (optional, defaults to latest)",
}
_SEARCH_QUERY = {"type": "string", "description": "The search query for fuzzy matching"}


def _schema(properties: dict[str, object], required: list[str]) -> dict[str, object]:
    return {"type": "object", "properties": properties, "required": required}


def register_builtin_tools(
    registry: ToolRegistry,
    client: ArtifactHubClient,
    search: SearchConfig,
) -> None:
    """Register the chart tool set in a stable order."""
    registry.register(
        ToolSpec(
            name="helm-chart-info",
            description=(
                "Get information about a Helm chart from Artifact Hub, "
                "including ID, latest version, and description"
            ),
            input_schema=_schema(
                {"chartRepo": _CHART_REPO, "chartName": _CHART_NAME},
                ["chartRepo", "chartName"],
            ),
            action="retrieving chart info",
            handler=_info_handler(client),
        )
    )
    registry.register(
        ToolSpec(
            name="values",
            description="Get the values.yaml file for a specific Helm chart from Artifact Hub",
            input_schema=_schema(
                {"chartRepo": _CHART_REPO, "chartName": _CHART_NAME, "version": _VERSION},
                ["chartRepo", "chartName"],
            ),
            action="retrieving values.yaml",
            handler=_values_handler(client),
        )
    )
    registry.register(
        ToolSpec(
            name="helm-chart-value-property",
            description=(
                "Get a specific property from a Helm chart's values.yaml using a YAML path"
            ),
            input_schema=_schema(
                {
                    "chartRepo": _CHART_REPO,
                    "chartName": _CHART_NAME,
                    "yamlPath": {
                        "type": "string",
                        "description": (
                            "The YAML path to the property (e.g., 'replicaCount' or 'image.tag')"
                        ),
                    },
                    "version": _VERSION,
                },
                ["chartRepo", "chartName", "yamlPath"],
            ),
            action="retrieving value",
            handler=_value_property_handler(client),
        )
    )
    registry.register(
        ToolSpec(
            name="helm-chart-values-fuzzy-search",
            description="Fuzzy search through all properties in a Helm chart's values.yaml file",
            input_schema=_schema(
                {
                    "chartRepo": _CHART_REPO,
                    "chartName": _CHART_NAME,
                    "searchQuery": _SEARCH_QUERY,
                    "version": _VERSION,
                },
                ["chartRepo", "chartName", "searchQuery"],
            ),
            action="performing fuzzy search",
            handler=_values_search_handler(client, search),
        )
    )
    registry.register(
        ToolSpec(
            name="helm-chart-template",
            description="Get the content of a template file from a Helm chart in Artifact Hub",
            input_schema=_schema(
                {
                    "chartRepo": _CHART_REPO,
                    "chartName": _CHART_NAME,
                    "filename": {
                        "type": "string",
                        "description": (
                            "Exact filename (full path) to filter templates by (case-sensitive)"
                        ),
                    },
                    "version": _VERSION,
                },
                ["chartRepo", "chartName", "filename"],
            ),
            action="retrieving templates",
            handler=_template_handler(client),
        )
    )
    registry.register(
        ToolSpec(
            name="helm-chart-templates-fuzzy-search",
            description="Fuzzy search through all template filenames/contents in a Helm chart",
            input_schema=_schema(
                {
                    "chartRepo": _CHART_REPO,
                    "chartName": _CHART_NAME,
                    "searchQuery": _SEARCH_QUERY,
                    "version": _VERSION,
                },
                ["chartRepo", "chartName", "searchQuery"],
            ),
            action="performing template search",
            handler=_templates_search_handler(client, search),
        )
    )


def _required_string(arguments: dict[str, object], key: str, tool: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value:
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message=f"{tool} {key} must be a non-empty string.",
        )
    return value


def _string_argument(arguments: dict[str, object], key: str, tool: str) -> str:
    """Require a string; an empty one reaches the handler and yields no results."""
    value = arguments.get(key)
    if not isinstance(value, str):
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message=f"{tool} {key} must be a string.",
        )
    return value


def _optional_version(arguments: dict[str, object], tool: str) -> str | None:
    value = arguments.get("version")
    if value is None:
        return None
    if not isinstance(value, str):
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message=f"{tool} version must be a string.",
        )
    return value or None


def _chart_arguments(arguments: dict[str, object], tool: str) -> tuple[str, str, str | None]:
    return (
        _required_string(arguments, "chartRepo", tool),
        _required_string(arguments, "chartName", tool),
        _optional_version(arguments, tool),
    )


def _resolve_version(
    client: ArtifactHubClient, repo: str, name: str, version: str | None
) -> tuple[Package, str]:
    package = client.get_package(repo, name)
    return package, version or package.version


def _info_handler(client: ArtifactHubClient) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> ChartInfo:
        repo = _required_string(arguments, "chartRepo", "helm-chart-info")
        name = _required_string(arguments, "chartName", "helm-chart-info")
        package = client.get_package(repo, name)
        return ChartInfo(
            package_id=package.package_id,
            latest_version=package.version,
            description=package.description,
        )

    return handler


def _values_handler(client: ArtifactHubClient) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> ValuesDocument:
        repo, name, version = _chart_arguments(arguments, "values")
        package, chart_version = _resolve_version(client, repo, name, version)
        return ValuesDocument(text=client.get_values(package.package_id, chart_version))

    return handler


def _value_property_handler(client: ArtifactHubClient) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> PropertyLookup:
        tool = "helm-chart-value-property"
        repo, name, version = _chart_arguments(arguments, tool)
        yaml_path = _string_argument(arguments, "yamlPath", tool)
        package, chart_version = _resolve_version(client, repo, name, version)
        document = parse_values(client.get_values(package.package_id, chart_version))
        resolution = resolve(document, yaml_path)
        return PropertyLookup(
            path=yaml_path,
            found=resolution.found,
            value=resolution.value,
            comment=resolution.comment,
        )

    return handler


def _values_search_handler(client: ArtifactHubClient, search: SearchConfig) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> PropertySearch:
        tool = "helm-chart-values-fuzzy-search"
        repo, name, version = _chart_arguments(arguments, tool)
        query = _string_argument(arguments, "searchQuery", tool)
        package, chart_version = _resolve_version(client, repo, name, version)
        document = parse_values(client.get_values(package.package_id, chart_version))
        properties = flatten(document)
        logger.info("Searching for %r in %d properties", query, len(properties))
        hits = fuzzy_search(properties, PROPERTY_SEARCH_KEYS, query, threshold=search.threshold)
        return PropertySearch(query=query, hits=tuple(hits))

    return handler


def _template_handler(client: ArtifactHubClient) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> TemplateSelection:
        tool = "helm-chart-template"
        repo, name, version = _chart_arguments(arguments, tool)
        filename = _string_argument(arguments, "filename", tool)
        package, chart_version = _resolve_version(client, repo, name, version)
        templates = client.get_templates(package.package_id, chart_version)
        selected = tuple(template for template in templates if template.name == filename)
        return TemplateSelection(filename=filename, templates=selected)

    return handler


def _templates_search_handler(client: ArtifactHubClient, search: SearchConfig) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> TemplateSearch:
        tool = "helm-chart-templates-fuzzy-search"
        repo, name, version = _chart_arguments(arguments, tool)
        query = _string_argument(arguments, "searchQuery", tool)
        package, chart_version = _resolve_version(client, repo, name, version)
        templates = client.get_templates(package.package_id, chart_version)
        logger.info("Searching for %r in %d templates", query, len(templates))

        index = index_lines(templates)
        logger.info("Prepared %d lines for fuzzy search", len(index.records))
        hits = fuzzy_search(
            index.records,
            LINE_SEARCH_KEYS,
            query,
            threshold=search.threshold,
            min_match_chars=search.min_line_match_chars,
        )

        # Groups are ordered by each template's best hit.
        grouped: dict[int, list[LineRecord]] = {}
        for hit in hits:
            grouped.setdefault(hit.item.template_index, []).append(hit.item)

        groups: list[TemplateMatchGroup] = []
        for template_index, records in grouped.items():
            shown: list[TemplateMatch] = []
            for record in records[: search.max_matches_per_template]:
                before, after = context_lines(
                    index, template_index, record.line_number, radius=search.context_lines
                )
                shown.append(TemplateMatch(record=record, before=tuple(before), after=tuple(after)))
            groups.append(
                TemplateMatchGroup(
                    template_name=records[0].template_name,
                    total_matches=len(records),
                    shown=tuple(shown),
                )
            )
        return TemplateSearch(query=query, groups=tuple(groups))

    return handler
