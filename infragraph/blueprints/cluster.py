"""
Private AKS cluster for the AtScale stack.

Declares the cluster's AD application and service principal, the node
subnet with its route table, the cluster itself, and the Kubernetes
provider built from the admin kubeconfig.
"""

from __future__ import annotations

__all__ = ["ClusterConfig", "ClusterResult", "setup_cluster"]

from infragraph.core import (
    ConfigModel,
    DependencyGraph,
    Reference,
    ResourceNode,
)

from ._models import StackContext

GRAPH_API_APP_ID = "00000003-0000-0000-c000-000000000000"
USER_READ_SCOPE_ID = "e1fe6dd8-ba31-4d61-89e7-88639da4683d"
NETWORK_CONTRIBUTOR = "Network Contributor"
CLUSTER_ADMIN = "Azure Kubernetes Service RBAC Cluster Admin"


class ClusterConfig(ConfigModel):
    cluster_name: str
    node_subnet_address_prefix: str
    system_pool_vm_sku: str
    vnet_name: str
    vnet_resource_group: str
    private_dns_zone_id: str
    availability_zones: list[str] = []
    infra_groups: dict[str, str] = {}
    redirect_uri: str = "https://localhost/notused"
    system_pool_count: int = 3


class ClusterResult(ConfigModel):
    cluster: ResourceNode
    node_subnet: ResourceNode
    admin_group: ResourceNode
    k8s_provider: ResourceNode
    service_principal: ResourceNode
    kubeconfig: Reference


def setup_cluster(
    graph: DependencyGraph,
    context: StackContext,
    config: ClusterConfig,
) -> ClusterResult:
    """Declare the cluster and its identity.

    `config.infra_groups` maps a membership id to the display name of an
    existing AD group the service principal joins.
    """
    app = graph.declare(
        "ad-client-app",
        "azuread:index:Application",
        {
            "displayName": config.cluster_name,
            "publicClient": {"redirectUris": [config.redirect_uri]},
            "requiredResourceAccesses": [
                {
                    "resourceAppId": GRAPH_API_APP_ID,
                    "resourceAccesses": [
                        {"id": USER_READ_SCOPE_ID, "type": "Scope"}
                    ],
                }
            ],
        },
    )
    service_principal = graph.declare(
        "ad-client-sp",
        "azuread:index:ServicePrincipal",
        {"clientId": app["clientId"]},
    )
    password = graph.declare(
        "ad-client-sp-password",
        "azuread:index:ServicePrincipalPassword",
        {
            "servicePrincipalId": service_principal["id"],
            "rotateWhenChanged": {"endDate": "2099-01-01T12:00:00Z"},
        },
    )
    route_table = graph.declare(
        "atscale-nodes-route-table",
        "azure-native:network:RouteTable",
        {
            "resourceGroupName": config.vnet_resource_group,
            "routeTableName": f"atscale-nodes-{context.env}",
            "location": context.location,
            "disableBgpRoutePropagation": True,
            "tags": context.resource_tags(),
        },
    )
    node_subnet = graph.declare(
        "atscale-nodes-subnet",
        "azure-native:network:Subnet",
        {
            "resourceGroupName": config.vnet_resource_group,
            "virtualNetworkName": config.vnet_name,
            "subnetName": f"atscale-nodes-{context.env}",
            "addressPrefix": config.node_subnet_address_prefix,
            "privateLinkServiceNetworkPolicies": "Disabled",
            "routeTable": {"id": route_table["id"]},
        },
    )
    subnet_role = graph.declare(
        "atscale-nodes-subnet-role",
        "azure-native:authorization:RoleAssignment",
        {
            "principalId": service_principal["id"],
            "principalType": "ServicePrincipal",
            "roleDefinitionName": NETWORK_CONTRIBUTOR,
            "scope": node_subnet["id"],
        },
    )

    system_pool = {
        "name": "system",
        "mode": "System",
        "vmSize": config.system_pool_vm_sku,
        "vnetSubnetID": node_subnet["id"],
        "count": config.system_pool_count,
        "nodeLabels": {"node-type": "system", "workload": "system"},
        "nodeTaints": ["CriticalAddonsOnly=true:NoSchedule"],
    }
    if config.availability_zones:
        system_pool["availabilityZones"] = list(config.availability_zones)
    cluster = graph.declare(
        "cluster",
        "azure-native:containerservice:ManagedCluster",
        {
            "resourceGroupName": context.resource_group_name,
            "resourceName": config.cluster_name,
            "location": context.location,
            "enableRBAC": True,
            "aadProfile": {
                "enableAzureRBAC": True,
                "managed": True,
                "tenantID": context.tenant_id,
            },
            "addonProfiles": {
                "azureKeyvaultSecretsProvider": {"enabled": True},
                "azurepolicy": {"enabled": True},
                "httpApplicationRouting": {"enabled": False},
                "kubeDashboard": {"enabled": False},
            },
            "agentPoolProfiles": [system_pool],
            "apiServerAccessProfile": {
                "enablePrivateCluster": True,
                "privateDNSZone": config.private_dns_zone_id,
            },
            "servicePrincipalProfile": {
                "clientId": app["clientId"],
                "secret": password["value"],
            },
            "tags": context.resource_tags(),
        },
        depends_on=[subnet_role],
    )
    credentials = graph.declare(
        "cluster-admin-credentials",
        "azure-native:containerservice:listManagedClusterAdminCredentials",
        {
            "resourceGroupName": context.resource_group_name,
            "resourceName": cluster["name"],
        },
    )
    kubeconfig = credentials["kubeconfig"]
    k8s_provider = graph.declare(
        "k8s-provider",
        "pulumi:providers:kubernetes",
        {"kubeconfig": kubeconfig},
    )

    admin_group = graph.declare(
        "admingroup",
        "azuread:index:Group",
        {
            "displayName": f"AZU-{config.cluster_name}-Admin",
            "description": (
                f"Admin group for Kubernetes cluster {config.cluster_name}"
            ),
            "preventDuplicateNames": True,
            "securityEnabled": True,
        },
    )
    graph.declare(
        "admingroup-role-assignment",
        "azure-native:authorization:RoleAssignment",
        {
            "principalId": admin_group["id"],
            "principalType": "Group",
            "roleDefinitionName": CLUSTER_ADMIN,
            "scope": cluster["id"],
        },
    )
    for membership, display_name in config.infra_groups.items():
        existing = graph.declare(
            f"{membership}-group",
            "azuread:index:getGroup",
            {"displayName": display_name},
        )
        graph.declare(
            membership,
            "azuread:index:GroupMember",
            {
                "groupObjectId": existing["id"],
                "memberObjectId": service_principal["id"],
            },
        )

    return ClusterResult(
        cluster=cluster,
        node_subnet=node_subnet,
        admin_group=admin_group,
        k8s_provider=k8s_provider,
        service_principal=service_principal,
        kubeconfig=kubeconfig,
    )
