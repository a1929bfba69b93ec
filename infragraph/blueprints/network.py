from __future__ import annotations

__all__ = ["VnetComponent", "VnetComponentArgs", "vnet_component"]

from typing import Any

from infragraph.core import (
    CompositeGroup,
    ConfigModel,
    DependencyGraph,
    Reference,
    ResourceNode,
)


class VnetComponentArgs(ConfigModel):
    resource_group_name: Any
    location: Any
    vnet_address_space: list[str]
    app_subnet_address_prefix: str
    db_subnet_address_prefix: str


class VnetComponent(ConfigModel):
    group: CompositeGroup
    virtual_network: ResourceNode
    app_subnet: ResourceNode
    db_subnet: ResourceNode
    vnet_name: Reference
    app_subnet_id: Reference
    db_subnet_id: Reference


def vnet_component(
    graph: DependencyGraph,
    name: str,
    args: VnetComponentArgs,
) -> VnetComponent:
    """Virtual network with an app subnet and a database subnet."""
    vnet_name = f"{name}-vnet"
    virtual_network = graph.declare(
        f"{name}-vnet",
        "azure-native:network:VirtualNetwork",
        {
            "resourceGroupName": args.resource_group_name,
            "virtualNetworkName": vnet_name,
            "location": args.location,
            "addressSpace": {
                "addressPrefixes": list(args.vnet_address_space),
            },
        },
    )
    subnets = {}
    for kind, prefix in (
        ("app", args.app_subnet_address_prefix),
        ("db", args.db_subnet_address_prefix),
    ):
        subnets[kind] = graph.declare(
            f"{name}-{kind}-subnet",
            "azure-native:network:Subnet",
            {
                "resourceGroupName": args.resource_group_name,
                "virtualNetworkName": virtual_network["name"],
                "subnetName": f"{name}-{kind}-subnet",
                "addressPrefix": prefix,
            },
            depends_on=[virtual_network],
        )
    group = graph.group(
        name,
        [virtual_network, subnets["app"], subnets["db"]],
        {
            "vnet_name": virtual_network["name"],
            "app_subnet_id": subnets["app"]["id"],
            "db_subnet_id": subnets["db"]["id"],
        },
    )
    return VnetComponent(
        group=group,
        virtual_network=virtual_network,
        app_subnet=subnets["app"],
        db_subnet=subnets["db"],
        vnet_name=group["vnet_name"],
        app_subnet_id=group["app_subnet_id"],
        db_subnet_id=group["db_subnet_id"],
    )
