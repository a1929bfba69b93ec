from __future__ import annotations

__all__ = ["PostgresConfig", "PostgresResult", "setup_postgres"]

from typing import Any

from infragraph.core import (
    ConfigModel,
    DependencyGraph,
    Reference,
    ResourceNode,
)

from ._models import StackContext

# Database key to database name.
DATABASES = {
    "atscale": "atscaledb",
    "keycloak": "keycloakdb",
    "pgwire": "pgwiredb",
}


class PostgresConfig(ConfigModel):
    admin_login: str
    admin_password: str
    sku_name: str
    storage_size_gb: int
    version: str = "15"
    backup_retention_days: int = 7


class PostgresResult(ConfigModel):
    server: ResourceNode
    databases: dict[str, ResourceNode]
    host: Reference

    @property
    def atscale_db(self) -> ResourceNode:
        return self.databases["atscale"]

    @property
    def keycloak_db(self) -> ResourceNode:
        return self.databases["keycloak"]

    @property
    def pgwire_db(self) -> ResourceNode:
        return self.databases["pgwire"]


def server_name(context: StackContext) -> str:
    return (
        f"vzn-{context.location}-{context.app}-{context.env}"
        f"-dbflexserver-{context.instance}"
    )


def setup_postgres(
    graph: DependencyGraph,
    context: StackContext,
    config: PostgresConfig,
    delegated_subnet: Any,
    private_dns_zone_id: str,
) -> PostgresResult:
    """Private PostgreSQL flexible server with the AtScale databases.

    Args:
        graph: Graph to declare on.
        context: Stack settings.
        config: Server settings.
        delegated_subnet: Subnet id delegated to the server, or a reference.
        private_dns_zone_id: Private DNS zone the server registers in.
    """
    server = graph.declare(
        f"{context.app}-{context.env}-postgresqlserver",
        "azure-native:dbforpostgresql:Server",
        {
            "serverName": server_name(context),
            "resourceGroupName": context.resource_group_name,
            "location": context.location,
            "administratorLogin": config.admin_login,
            "administratorLoginPassword": config.admin_password,
            "network": {
                "publicNetworkAccess": "Disabled",
                "delegatedSubnetResourceId": delegated_subnet,
                "privateDnsZoneArmResourceId": private_dns_zone_id,
            },
            "createMode": "Default",
            "sku": {"name": config.sku_name, "tier": "GeneralPurpose"},
            "version": config.version,
            "storage": {"storageSizeGB": config.storage_size_gb},
            "backup": {
                "backupRetentionDays": config.backup_retention_days,
                "geoRedundantBackup": "Disabled",
            },
            "tags": context.resource_tags(),
        },
    )
    databases = {
        key: graph.declare(
            f"{key}-{context.env}-db",
            "azure-native:dbforpostgresql:Database",
            {
                "databaseName": name,
                "resourceGroupName": context.resource_group_name,
                "serverName": server["name"],
            },
        )
        for key, name in DATABASES.items()
    }
    return PostgresResult(
        server=server,
        databases=databases,
        host=server["fullyQualifiedDomainName"],
    )
