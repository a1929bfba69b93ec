from infragraph.blueprints import StackContext
from infragraph.core import DependencyGraph, Engine, RunResult
from infragraph.core.reference import resolve_value
from infragraph.provisioner import Provisioner

context = StackContext(
    app="atscale",
    env="dev",
    location="eastus2",
    resource_group_name="rg-atscale",
    subscription_id="sub-1",
    tenant_id="tenant-1",
    tags={"owner": "platform"},
)


def apply(graph: DependencyGraph, **parameters) -> tuple[RunResult, Provisioner]:
    provisioner = Provisioner(
        __provider__=dict(
            type="memory",
            parameters={"subscription_id": "sub-1"} | parameters,
        ),
    )
    return Engine(provisioner=provisioner).run(graph), provisioner


def preview(graph: DependencyGraph) -> tuple[RunResult, Provisioner]:
    provisioner = Provisioner(__provider__="dry_run")
    return Engine(provisioner=provisioner).run(graph), provisioner


def value(ref, graph: DependencyGraph):
    return resolve_value(ref, graph)


def inputs(provisioner: Provisioner, id: str) -> dict:
    return provisioner.__provider__.get(id)["inputs"]
