from __future__ import annotations

__all__ = ["HelmChartConfig", "HelmChartResult", "load_values", "setup_helm_chart"]

from typing import Any

from infragraph.core import ConfigModel, DependencyGraph, ResourceNode
from infragraph.core._yaml_loader import YamlLoader

DEFAULT_CHART = "oci://docker.io/atscaleinc/atscale"
DEFAULT_CHART_VERSION = "2025.12.0"


class HelmChartConfig(ConfigModel):
    namespace: Any
    values_file_path: str = "./helm/atscale-values.yaml"
    chart: str = DEFAULT_CHART
    chart_version: str = DEFAULT_CHART_VERSION


class HelmChartResult(ConfigModel):
    chart: ResourceNode


def load_values(path: str) -> dict[str, Any]:
    return YamlLoader.load(path)


def setup_helm_chart(
    graph: DependencyGraph,
    k8s_provider: ResourceNode,
    config: HelmChartConfig,
    depends_on: list[Any] | None = None,
) -> HelmChartResult:
    """Install the AtScale chart through the given Kubernetes provider.

    The chart values are read from `config.values_file_path` when the
    chart is declared.
    """
    chart = graph.declare(
        "atscale",
        "kubernetes:helm.sh/v3:Chart",
        {
            "chart": config.chart,
            "version": config.chart_version,
            "namespace": config.namespace,
            "values": load_values(config.values_file_path),
            "provider": k8s_provider["id"],
        },
        depends_on=depends_on,
    )
    return HelmChartResult(chart=chart)
