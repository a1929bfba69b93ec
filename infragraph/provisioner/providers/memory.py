"""
In-memory provisioning backend.

Records every resource it creates and synthesizes the outputs a cloud
provider would return, such as ids, host names and endpoints. Useful for
tests and for trying out a manifest without touching a real account.
"""

from __future__ import annotations

__all__ = ["Memory"]

import hashlib
import time
from threading import Lock
from typing import Any, Callable

from infragraph.core import Provider, ProvisionRequest, ProvisionResponse
from infragraph.core.exceptions import ProvisionError

# Input keys holding a resource's own name, most specific first.
NAME_KEYS = [
    "name",
    "containerName",
    "databaseName",
    "subnetName",
    "virtualNetworkName",
    "accountName",
    "vaultName",
    "serverName",
    "resourceName",
    "routeTableName",
    "clusterName",
    "displayName",
]


def _key(seed: str) -> str:
    return hashlib.sha256(seed.encode()).hexdigest()[:32]


EXTRA_OUTPUTS: dict[str, Callable[[str], dict[str, Any]]] = {
    "azure-native:web:WebApp": lambda name: {
        "defaultHostName": f"{name}.azurewebsites.net",
    },
    "azure-native:sql:Server": lambda name: {
        "fullyQualifiedDomainName": f"{name}.database.windows.net",
    },
    "azure-native:storage:StorageAccount": lambda name: {
        "primaryEndpoints": {
            "blob": f"https://{name}.blob.core.windows.net/",
            "queue": f"https://{name}.queue.core.windows.net/",
            "table": f"https://{name}.table.core.windows.net/",
        },
    },
    "azure-native:cache:Redis": lambda name: {
        "hostName": f"{name}.redis.cache.windows.net",
        "sslPort": 6380,
        "accessKeys": {"primaryKey": _key(f"{name}:primary")},
    },
    "azure-native:cache:RedisEnterprise": lambda name: {
        "hostName": f"{name}.eastus2.redisenterprise.cache.azure.net",
    },
    "azure-native:cache:listDatabaseKeys": lambda name: {
        "primaryKey": _key(f"{name}:primary"),
        "secondaryKey": _key(f"{name}:secondary"),
    },
    "azure-native:dbforpostgresql:Server": lambda name: {
        "fullyQualifiedDomainName": f"{name}.postgres.database.azure.com",
    },
    "azure-native:cosmosdb:DatabaseAccount": lambda name: {
        "documentEndpoint": f"https://{name}.documents.azure.com:443/",
    },
    "azure-native:keyvault:Vault": lambda name: {
        "properties": {"vaultUri": f"https://{name}.vault.azure.net/"},
    },
    "azure-native:containerservice:listManagedClusterAdminCredentials": (
        lambda name: {"kubeconfig": f"apiVersion: v1\nkind: Config\n# {name}\n"}
    ),
    "azuread:index:Application": lambda name: {
        "clientId": _key(f"{name}:client"),
    },
    "azuread:index:ServicePrincipalPassword": lambda name: {
        "value": _key(f"{name}:password"),
    },
}


class Memory(Provider):
    subscription_id: str
    resource_group: str
    fail_on: dict[str, str]
    latency: float

    resources: dict[str, dict[str, Any]]
    calls: list[str]
    _lock: Lock

    def __init__(
        self,
        subscription_id: str = "00000000-0000-0000-0000-000000000000",
        resource_group: str = "infragraph-rg",
        fail_on: dict[str, str] | list[str] | None = None,
        latency: float = 0.0,
        **kwargs,
    ):
        """Initialize.

        Args:
            subscription_id:
                Subscription used in synthesized resource ids.
            resource_group:
                Default resource group used in synthesized resource ids.
            fail_on:
                Node ids or type tags that fail when provisioned,
                optionally mapped to an error message.
            latency:
                Seconds to sleep in every call.
        """
        super().__init__(**kwargs)
        self.subscription_id = subscription_id
        self.resource_group = resource_group
        if isinstance(fail_on, list):
            fail_on = {key: f"Injected failure for {key}" for key in fail_on}
        self.fail_on = dict(fail_on or {})
        self.latency = latency
        self.resources = dict()
        self.calls = list()
        self._lock = Lock()

    def provision(self, request: ProvisionRequest) -> ProvisionResponse:
        with self._lock:
            self.calls.append(request.id)
        if self.latency:
            time.sleep(self.latency)
        for key in (request.id, request.type):
            if key in self.fail_on:
                raise ProvisionError(self.fail_on[key], kind="Injected")

        name = self._get_name(request)
        outputs: dict[str, Any] = dict(request.inputs)
        outputs["id"] = self._get_resource_id(request, name)
        outputs["name"] = name
        if request.type in EXTRA_OUTPUTS:
            outputs.update(EXTRA_OUTPUTS[request.type](name))
        for output in request.outputs:
            if output not in outputs:
                outputs[output] = f"{name}-{output}"
        with self._lock:
            self.resources[request.id] = {
                "type": request.type,
                "inputs": request.inputs,
                "outputs": outputs,
            }
        return ProvisionResponse(outputs=outputs)

    def get(self, id: str) -> dict[str, Any] | None:
        with self._lock:
            return self.resources.get(id)

    def _get_name(self, request: ProvisionRequest) -> str:
        for key in NAME_KEYS:
            value = request.inputs.get(key)
            if isinstance(value, str) and value:
                return value
        return request.id

    def _get_resource_id(self, request: ProvisionRequest, name: str) -> str:
        resource_group = request.inputs.get("resourceGroupName")
        if not isinstance(resource_group, str):
            resource_group = self.resource_group
        prefix = (
            f"/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{resource_group}"
        )
        if request.type == "azure-native:network:Subnet":
            vnet = request.inputs.get("virtualNetworkName", "vnet")
            return (
                f"{prefix}/providers/Microsoft.Network"
                f"/virtualNetworks/{vnet}/subnets/{name}"
            )
        provider, _, kind = request.type.rpartition(":")
        namespace = provider.replace(":", ".")
        return f"{prefix}/providers/{namespace}/{kind}/{name}"
