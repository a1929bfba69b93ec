"""
Redis for the AtScale stack.

The backend is chosen by the config type. A `RedisCacheConfig` creates a
classic Azure Cache for Redis. A `RedisEnterpriseConfig` creates a Redis
Enterprise cluster with one database. Both return the same connection
details.
"""

from __future__ import annotations

__all__ = [
    "RedisCacheConfig",
    "RedisEnterpriseConfig",
    "RedisNetworkConfig",
    "RedisResult",
    "setup_redis",
]

from typing import Any, Literal

from infragraph.core import (
    ConfigModel,
    DependencyGraph,
    Reference,
    ResourceNode,
    interpolate,
)

from ._helper import private_dns_zone_group, private_endpoint, subnet_resource_id
from ._models import StackContext

ENTERPRISE_DEFAULT_PORT = 10000
CACHE_SSL_PORT = 6380


class RedisEnterpriseConfig(ConfigModel):
    sku_name: Literal[
        "Enterprise_E10",
        "Enterprise_E20",
        "Enterprise_E50",
        "Enterprise_E100",
        "EnterpriseFlash_F300",
        "EnterpriseFlash_F700",
        "EnterpriseFlash_F1500",
    ]
    capacity: int
    clustering_policy: Literal["EnterpriseCluster", "OSSCluster"] | None = None
    eviction_policy: (
        Literal[
            "AllKeysLFU",
            "AllKeysLRU",
            "AllKeysRandom",
            "NoEviction",
            "VolatileLFU",
            "VolatileLRU",
            "VolatileRandom",
            "VolatileTTL",
        ]
        | None
    ) = None
    port: int | None = None


class RedisCacheConfig(ConfigModel):
    sku_name: Literal["Basic", "Standard", "Premium"] = "Standard"
    family: Literal["C", "P"] = "C"
    capacity: int = 1
    minimum_tls_version: str = "1.2"


class RedisNetworkConfig(ConfigModel):
    """Where the private endpoint for the cache goes.

    Attributes:
        vnet_resource_group: Resource group of the hub virtual network.
        vnet_name: Name of the hub virtual network.
        private_link_subnet: Subnet the private endpoint is placed in.
        private_dns_zone_id: Private DNS zone registered for the endpoint.
        location: Region of the private endpoint.
    """

    vnet_resource_group: str
    vnet_name: str
    private_link_subnet: str
    private_dns_zone_id: str
    location: str = "eastus2"


class RedisResult(ConfigModel):
    server: ResourceNode
    database: ResourceNode | None = None
    keys: ResourceNode | None = None
    private_endpoint: ResourceNode | None = None
    dns_zone_group: ResourceNode | None = None
    host: Reference
    port: int
    user: str
    password: Reference
    ssl_enabled: bool
    connection_string: Reference


def setup_redis(
    graph: DependencyGraph,
    context: StackContext,
    config: RedisEnterpriseConfig | RedisCacheConfig,
    network: RedisNetworkConfig | None = None,
) -> RedisResult:
    if isinstance(config, RedisEnterpriseConfig):
        return _setup_enterprise(graph, context, config, network)
    if isinstance(config, RedisCacheConfig):
        return _setup_cache(graph, context, config, network)
    raise TypeError(f"Unsupported redis config {type(config).__name__}")


def _setup_enterprise(
    graph: DependencyGraph,
    context: StackContext,
    config: RedisEnterpriseConfig,
    network: RedisNetworkConfig | None,
) -> RedisResult:
    cluster = graph.declare(
        f"atscale-redis-{context.env}",
        "azure-native:cache:RedisEnterprise",
        {
            "resourceGroupName": context.resource_group_name,
            "clusterName": f"atscale-redis-{context.env}",
            "location": context.location,
            "sku": {"name": config.sku_name, "capacity": config.capacity},
            "minimumTlsVersion": "1.2",
            "tags": context.resource_tags(),
        },
    )
    port = config.port if config.port is not None else ENTERPRISE_DEFAULT_PORT
    database = graph.declare(
        f"atscale-redis-db-{context.env}",
        "azure-native:cache:Database",
        {
            "resourceGroupName": context.resource_group_name,
            "clusterName": cluster["name"],
            "databaseName": "default",
            "clientProtocol": "Encrypted",
            "clusteringPolicy": config.clustering_policy or "EnterpriseCluster",
            "evictionPolicy": config.eviction_policy or "NoEviction",
            "port": port,
        },
    )
    keys = graph.declare(
        f"atscale-redis-keys-{context.env}",
        "azure-native:cache:listDatabaseKeys",
        {
            "resourceGroupName": context.resource_group_name,
            "clusterName": cluster["name"],
            "databaseName": database["name"],
        },
    )
    endpoint, dns_zone_group = _private_link(
        graph,
        context,
        network,
        target=cluster,
        group_id="redisEnterprise",
        zone="privatelink.redisenterprise.cache.azure.net",
    )
    return _result(
        server=cluster,
        database=database,
        keys=keys,
        private_endpoint=endpoint,
        dns_zone_group=dns_zone_group,
        host=cluster["hostName"],
        port=port,
        password=keys["primaryKey"],
    )


def _setup_cache(
    graph: DependencyGraph,
    context: StackContext,
    config: RedisCacheConfig,
    network: RedisNetworkConfig | None,
) -> RedisResult:
    cache = graph.declare(
        f"atscale-redis-{context.env}",
        "azure-native:cache:Redis",
        {
            "resourceGroupName": context.resource_group_name,
            "name": f"{context.app}-{context.env}-redis-{context.instance}",
            "location": context.location,
            "sku": {
                "name": config.sku_name,
                "family": config.family,
                "capacity": config.capacity,
            },
            "minimumTlsVersion": config.minimum_tls_version,
            "enableNonSslPort": False,
            "tags": context.resource_tags(),
        },
    )
    endpoint, dns_zone_group = _private_link(
        graph,
        context,
        network,
        target=cache,
        group_id="redisCache",
        zone="privatelink.redis.cache.windows.net",
    )
    return _result(
        server=cache,
        private_endpoint=endpoint,
        dns_zone_group=dns_zone_group,
        host=cache["hostName"],
        port=CACHE_SSL_PORT,
        password=cache["accessKeys"].apply(_primary_key),
    )


def _primary_key(keys: Any) -> str:
    if not isinstance(keys, dict):
        return ""
    return keys.get("primaryKey") or ""


def _private_link(
    graph: DependencyGraph,
    context: StackContext,
    network: RedisNetworkConfig | None,
    target: ResourceNode,
    group_id: str,
    zone: str,
) -> tuple[ResourceNode | None, ResourceNode | None]:
    if network is None:
        return None, None
    endpoint = private_endpoint(
        graph,
        "atscale-redis-endpoint",
        resource_group_name=network.vnet_resource_group,
        location=network.location,
        subnet_id=subnet_resource_id(
            context.subscription_id,
            network.vnet_resource_group,
            network.vnet_name,
            network.private_link_subnet,
        ),
        target=target,
        group_ids=[group_id],
        tags=context.resource_tags(),
    )
    dns_zone_group = private_dns_zone_group(
        graph,
        "atscale-redis-dnszonegroup",
        resource_group_name=network.vnet_resource_group,
        endpoint=endpoint,
        zones={zone: network.private_dns_zone_id},
    )
    return endpoint, dns_zone_group


def _result(host: Reference, port: int, password: Any, **nodes) -> RedisResult:
    return RedisResult(
        host=host,
        port=port,
        user="",
        password=password,
        ssl_enabled=True,
        connection_string=interpolate(
            "rediss://{host}:{port}/0?password={password}",
            host=host,
            port=port,
            password=password,
        ),
        **nodes,
    )
