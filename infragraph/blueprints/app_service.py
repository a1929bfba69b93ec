from __future__ import annotations

__all__ = [
    "AppServiceComponent",
    "AppServiceComponentArgs",
    "app_service_component",
    "vnet_resource_id",
]

from typing import Any

from infragraph.core import (
    CompositeGroup,
    ConfigModel,
    DependencyGraph,
    Reference,
    ResourceNode,
)

from ._helper import derive


class AppServiceComponentArgs(ConfigModel):
    resource_group_name: Any
    location: Any
    subnet_id: Any
    app_settings: dict[str, Any] | None = None
    sku_name: str = "B1"
    linux_fx_version: str = "NODE|18-LTS"


class AppServiceComponent(ConfigModel):
    group: CompositeGroup
    plan: ResourceNode
    app_service: ResourceNode
    vnet_connection: ResourceNode
    app_service_name: Reference
    default_host_name: Reference


def vnet_resource_id(subnet_id: str) -> str:
    """Strip the subnet segment from a subnet resource id."""
    return subnet_id.split("/subnets")[0]


def app_service_component(
    graph: DependencyGraph,
    name: str,
    args: AppServiceComponentArgs,
) -> AppServiceComponent:
    """Linux app service plan, a web app and its vnet integration."""
    plan = graph.declare(
        f"{name}-appplan",
        "azure-native:web:AppServicePlan",
        {
            "resourceGroupName": args.resource_group_name,
            "name": f"{name}-appplan",
            "location": args.location,
            "kind": "Linux",
            "reserved": True,
            "sku": {"name": args.sku_name, "tier": "Basic"},
        },
    )
    app_settings = [
        {"name": key, "value": value}
        for key, value in (args.app_settings or {}).items()
    ]
    app_service = graph.declare(
        f"{name}-appservice",
        "azure-native:web:WebApp",
        {
            "resourceGroupName": args.resource_group_name,
            "name": f"{name}-appservice",
            "location": args.location,
            "serverFarmId": plan["id"],
            "httpsOnly": True,
            "siteConfig": {
                "appSettings": app_settings,
                "linuxFxVersion": args.linux_fx_version,
            },
        },
    )
    vnet_connection = graph.declare(
        f"{name}-vnet-connection",
        "azure-native:web:WebAppVnetConnection",
        {
            "resourceGroupName": args.resource_group_name,
            "name": app_service["name"],
            "vnetName": f"{name}-vnet-connection",
            "vnetResourceId": derive(args.subnet_id, vnet_resource_id),
        },
    )
    group = graph.group(
        name,
        [plan, app_service, vnet_connection],
        {
            "app_service_name": app_service["name"],
            "default_host_name": app_service["defaultHostName"],
        },
    )
    return AppServiceComponent(
        group=group,
        plan=plan,
        app_service=app_service,
        vnet_connection=vnet_connection,
        app_service_name=group["app_service_name"],
        default_host_name=group["default_host_name"],
    )
