from __future__ import annotations

from typing import Any, Callable

from infragraph.core import DependencyGraph, Reference, ResourceNode


def derive(value: Any, fn: Callable[[Any], Any]) -> Any:
    if isinstance(value, Reference):
        return value.apply(fn)
    return fn(value)


def subnet_resource_id(
    subscription_id: str,
    resource_group_name: str,
    virtual_network_name: str,
    subnet_name: str,
) -> str:
    return (
        f"/subscriptions/{subscription_id}"
        f"/resourceGroups/{resource_group_name}"
        "/providers/Microsoft.Network"
        f"/virtualNetworks/{virtual_network_name}"
        f"/subnets/{subnet_name}"
    )


def private_endpoint(
    graph: DependencyGraph,
    id: str,
    resource_group_name: Any,
    location: Any,
    subnet_id: Any,
    target: ResourceNode,
    group_ids: list[str],
    tags: dict[str, str] | None = None,
) -> ResourceNode:
    inputs: dict[str, Any] = {
        "resourceGroupName": resource_group_name,
        "location": location,
        "subnet": {"id": subnet_id},
        "privateLinkServiceConnections": [
            {
                "name": f"{id}-plsc",
                "privateLinkServiceId": target["id"],
                "groupIds": list(group_ids),
            }
        ],
    }
    if tags:
        inputs["tags"] = dict(tags)
    return graph.declare(
        id,
        "azure-native:network:PrivateEndpoint",
        inputs,
        depends_on=[target],
    )


def private_dns_zone_group(
    graph: DependencyGraph,
    id: str,
    resource_group_name: Any,
    endpoint: ResourceNode,
    zones: dict[str, str],
) -> ResourceNode:
    """Attach private DNS zones, given as zone name to zone id."""
    return graph.declare(
        id,
        "azure-native:network:PrivateDnsZoneGroup",
        {
            "resourceGroupName": resource_group_name,
            "privateEndpointName": endpoint["name"],
            "privateDnsZoneConfigs": [
                {"name": name, "privateDnsZoneId": zone_id}
                for name, zone_id in zones.items()
            ],
        },
    )
