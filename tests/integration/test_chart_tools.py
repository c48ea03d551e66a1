from __future__ import annotations

import json

import pytest

from artifacthub_mcp.config import CliOverrides

CHART = {"chartRepo": "bitnami", "chartName": "nginx"}

VALUES = """\
# Number of replicas
replicaCount: 2
# Container image
image:
  repository: nginx
  # Pin a tag
  tag: "1.25"
service:
  type: ClusterIP
"""

DEPLOYMENT = """\
apiVersion: apps/v1
kind: Deployment
spec:
  replicas: {{ .Values.replicaCount }}
  template:
    spec:
      containers:
        - image: {{ .Values.image.repository }}
"""

SERVICE = """\
apiVersion: v1
kind: Service
spec:
  type: {{ .Values.service.type }}
"""


@pytest.fixture
def chart_hub(fake_hub):
    fake_hub.add_chart(
        "bitnami", "nginx", package_id="pkg-1", version="15.0.0", description="NGINX chart"
    )
    fake_hub.add_values("pkg-1", "15.0.0", VALUES)
    fake_hub.add_values("pkg-1", "14.0.0", "replicaCount: 1\n")
    fake_hub.add_templates(
        "pkg-1",
        "15.0.0",
        {"templates/deployment.yaml": DEPLOYMENT, "templates/service.yaml": SERVICE},
    )
    return fake_hub


def test_chart_info_reports_latest_version(make_server, chart_hub, tool_text) -> None:
    text = tool_text(make_server(), "helm-chart-info", CHART)

    assert json.loads(text) == {
        "id": "pkg-1",
        "latest_version": "15.0.0",
        "description": "NGINX chart",
    }
    assert chart_hub.requests[0].url.path == "/api/v1/packages/helm/bitnami/nginx"


def test_chart_info_fetch_error_is_reported_as_error_text(make_server, fake_hub) -> None:
    server = make_server()

    response = server.handle_payload(
        {
            "id": "req-404",
            "method": "tools/call",
            "params": {"name": "helm-chart-info", "arguments": CHART},
        }
    )

    assert response["ok"] is True
    assert response["result"]["isError"] is True
    assert response["result"]["content"][0]["text"] == (
        "Error retrieving chart info: API request failed with status 404: Not Found"
    )


def test_values_defaults_to_latest_version(make_server, chart_hub, tool_text) -> None:
    server = make_server()

    latest = tool_text(server, "values", CHART)
    explicit = tool_text(server, "values", {**CHART, "version": "15.0.0"})
    older = tool_text(server, "values", {**CHART, "version": "14.0.0"})

    assert latest == VALUES
    assert explicit == latest
    assert older == "replicaCount: 1\n"
    assert chart_hub.requests[1].url.path == "/api/v1/packages/pkg-1/15.0.0/values"


def test_values_missing_version_reports_fetch_error(make_server, chart_hub, tool_text) -> None:
    text = tool_text(make_server(), "values", {**CHART, "version": "0.0.1"})

    assert text == "Error retrieving values.yaml: API request failed with status 404: Not Found"


def test_value_property_renders_comment_and_value(make_server, chart_hub, tool_text) -> None:
    text = tool_text(
        make_server(), "helm-chart-value-property", {**CHART, "yamlPath": "image.tag"}
    )

    assert text == "# Comment:\nPin a tag\n\n# Value at path image.tag:\n1.25"


def test_value_property_inherits_ancestor_comment(make_server, chart_hub, tool_text) -> None:
    text = tool_text(
        make_server(), "helm-chart-value-property", {**CHART, "yamlPath": "image.repository"}
    )

    assert text == "# Comment:\nContainer image\n\n# Value at path image.repository:\nnginx"


def test_value_property_container_is_pretty_json(make_server, chart_hub, tool_text) -> None:
    text = tool_text(make_server(), "helm-chart-value-property", {**CHART, "yamlPath": "service"})

    assert text == '# Value at path service:\n{\n  "type": "ClusterIP"\n}'


def test_value_property_not_found(make_server, chart_hub, tool_text) -> None:
    text = tool_text(
        make_server(), "helm-chart-value-property", {**CHART, "yamlPath": "image.digest"}
    )

    assert text == "Property not found at path: image.digest"


def test_value_property_reports_invalid_yaml(make_server, fake_hub, tool_text) -> None:
    fake_hub.add_chart("bitnami", "nginx", package_id="pkg-1", version="1.0.0")
    fake_hub.add_values("pkg-1", "1.0.0", "a: [1, 2\n")

    text = tool_text(make_server(), "helm-chart-value-property", {**CHART, "yamlPath": "a"})

    assert text.startswith("Error retrieving value: ")


def test_values_fuzzy_search_ranks_exact_names_first(make_server, chart_hub, tool_text) -> None:
    text = tool_text(
        make_server(), "helm-chart-values-fuzzy-search", {**CHART, "searchQuery": "tag"}
    )

    assert text.startswith("# Found ")
    assert "## 1. image.tag\nComment: Pin a tag\nValue: 1.25\n" in text


def test_values_fuzzy_search_without_matches(make_server, chart_hub, tool_text) -> None:
    text = tool_text(
        make_server(), "helm-chart-values-fuzzy-search", {**CHART, "searchQuery": "qqqqzzzz"}
    )

    assert text == 'No properties matching "qqqqzzzz" found.'


def test_template_filter_is_exact_and_case_sensitive(make_server, chart_hub, tool_text) -> None:
    server = make_server()

    exact = tool_text(
        server, "helm-chart-template", {**CHART, "filename": "templates/service.yaml"}
    )
    wrong_case = tool_text(
        server, "helm-chart-template", {**CHART, "filename": "templates/Service.yaml"}
    )

    assert exact == f"--- Template: templates/service.yaml ---\n{SERVICE}\n\n"
    assert wrong_case == "No matching templates found for this chart"


def test_template_decode_failure_fails_the_call(make_server, fake_hub, tool_text) -> None:
    fake_hub.add_chart("bitnami", "nginx", package_id="pkg-1", version="1.0.0")
    fake_hub.templates[("pkg-1", "1.0.0")] = [
        {"name": "templates/a.yaml", "data": "a2luZDogQQ=="},
        {"name": "templates/b.yaml", "data": "!!!not-base64!!!"},
    ]

    text = tool_text(
        make_server(), "helm-chart-template", {**CHART, "filename": "templates/a.yaml"}
    )

    assert text.startswith("Error retrieving templates: Template 'templates/b.yaml'")


def test_templates_fuzzy_search_shows_context(make_server, chart_hub, tool_text) -> None:
    text = tool_text(
        make_server(),
        "helm-chart-templates-fuzzy-search",
        {**CHART, "searchQuery": "kind: Service"},
    )

    assert text.startswith("# Found matches in ")
    assert "## 1. templates/service.yaml\n" in text
    assert (
        "#### Match 1:\n```\n1: apiVersion: v1\n2: kind: Service <<< MATCH\n"
        "3: spec:\n4:   type: {{ .Values.service.type }}\n5: \n```\n"
    ) in text


def test_templates_fuzzy_search_caps_matches_per_template(
    make_server, fake_hub, tool_text, tmp_path
) -> None:
    fake_hub.add_chart("bitnami", "nginx", package_id="pkg-1", version="1.0.0")
    fake_hub.add_templates(
        "pkg-1",
        "1.0.0",
        {"templates/configmap.yaml": "\n".join(f"key{n}: replica" for n in range(8))},
    )
    (tmp_path / "artifacthub_mcp.toml").write_text(
        "[search]\nmax_matches_per_template = 2\ncontext_lines = 0\n", encoding="utf-8"
    )

    text = tool_text(
        make_server(),
        "helm-chart-templates-fuzzy-search",
        {**CHART, "searchQuery": "replica"},
    )

    assert "### Matching lines with context (8 total matches):" in text
    assert text.count("<<< MATCH") == 2
    assert "_6 more matches not shown_" in text


def test_templates_fuzzy_search_without_matches(make_server, chart_hub, tool_text) -> None:
    text = tool_text(
        make_server(),
        "helm-chart-templates-fuzzy-search",
        {**CHART, "searchQuery": "qqqqzzzz"},
    )

    assert text == 'No templates matching "qqqqzzzz" found.'


def test_direct_method_call_matches_tools_call(make_server, chart_hub) -> None:
    server = make_server(cli_overrides=CliOverrides())

    direct = server.handle_payload({"id": "r1", "method": "helm-chart-info", "params": CHART})

    assert direct["ok"] is True
    assert json.loads(direct["result"]["content"][0]["text"])["id"] == "pkg-1"


def test_empty_search_and_lookup_arguments_yield_empty_results(
    make_server, chart_hub, tool_text
) -> None:
    server = make_server()

    values_search = tool_text(
        server, "helm-chart-values-fuzzy-search", {**CHART, "searchQuery": ""}
    )
    templates_search = tool_text(
        server, "helm-chart-templates-fuzzy-search", {**CHART, "searchQuery": ""}
    )
    lookup = tool_text(server, "helm-chart-value-property", {**CHART, "yamlPath": ""})
    template = tool_text(server, "helm-chart-template", {**CHART, "filename": ""})

    assert values_search == 'No properties matching "" found.'
    assert templates_search == 'No templates matching "" found.'
    assert lookup == "Property not found at path: "
    assert template == "No matching templates found for this chart"


def test_chart_info_omits_missing_description(make_server, fake_hub, tool_text) -> None:
    fake_hub.packages[("bitnami", "nginx")] = {"package_id": "pkg-1", "version": "1.0.0"}

    text = tool_text(make_server(), "helm-chart-info", CHART)

    assert text == '{\n  "id": "pkg-1",\n  "latest_version": "1.0.0"\n}'
