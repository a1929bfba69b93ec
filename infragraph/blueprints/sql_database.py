from __future__ import annotations

__all__ = [
    "SqlDatabaseComponent",
    "SqlDatabaseComponentArgs",
    "sql_database_component",
]

from typing import Any

from infragraph.core import (
    CompositeGroup,
    ConfigModel,
    DependencyGraph,
    Reference,
    ResourceNode,
)

from ._helper import private_endpoint


class SqlDatabaseComponentArgs(ConfigModel):
    resource_group_name: Any
    location: Any
    subnet_id: Any
    admin_login: str
    admin_password: str
    version: str = "12.0"
    sku: dict[str, str] = {"name": "S0", "tier": "Standard"}


class SqlDatabaseComponent(ConfigModel):
    group: CompositeGroup
    server: ResourceNode
    database: ResourceNode
    private_endpoint: ResourceNode
    server_name: Reference
    database_name: Reference
    fully_qualified_domain_name: Reference


def sql_database_component(
    graph: DependencyGraph,
    name: str,
    args: SqlDatabaseComponentArgs,
) -> SqlDatabaseComponent:
    """SQL server with one database, reachable through a private endpoint."""
    server = graph.declare(
        f"{name}-sqlserver",
        "azure-native:sql:Server",
        {
            "resourceGroupName": args.resource_group_name,
            "serverName": f"{name}-sqlserver",
            "location": args.location,
            "administratorLogin": args.admin_login,
            "administratorLoginPassword": args.admin_password,
            "version": args.version,
            "publicNetworkAccess": "Disabled",
        },
    )
    database = graph.declare(
        f"{name}-sqldb",
        "azure-native:sql:Database",
        {
            "resourceGroupName": args.resource_group_name,
            "serverName": server["name"],
            "databaseName": f"{name}-db",
            "location": args.location,
            "sku": dict(args.sku),
        },
    )
    endpoint = private_endpoint(
        graph,
        f"{name}-sql-pe",
        resource_group_name=args.resource_group_name,
        location=args.location,
        subnet_id=args.subnet_id,
        target=server,
        group_ids=["sqlServer"],
    )
    group = graph.group(
        name,
        [server, database, endpoint],
        {
            "server_name": server["name"],
            "database_name": database["name"],
            "fully_qualified_domain_name": server["fullyQualifiedDomainName"],
        },
    )
    return SqlDatabaseComponent(
        group=group,
        server=server,
        database=database,
        private_endpoint=endpoint,
        server_name=group["server_name"],
        database_name=group["database_name"],
        fully_qualified_domain_name=group["fully_qualified_domain_name"],
    )
