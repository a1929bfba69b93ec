import pytest

from infragraph.core import (
    DependencyGraph,
    Engine,
    Provider,
    ProvisionRequest,
    ProvisionResponse,
)
from infragraph.core.exceptions import NotSupportedError, ProvisionError
from infragraph.provisioner import Provisioner, RouteInfo
from infragraph.provisioner.providers.memory import Memory
from infragraph.provisioner.providers.routing import Routing

from ._providers import ProvisionerProvider
from ._sync_and_async_client import ProvisionerSyncAndAsyncClient

providers = [
    ProvisionerProvider.MEMORY,
    ProvisionerProvider.DRY_RUN,
    ProvisionerProvider.ROUTING,
]


class EchoProvider(Provider):
    async def aprovision(self, request: ProvisionRequest) -> ProvisionResponse:
        return ProvisionResponse(outputs={"echo": request.id})


@pytest.mark.asyncio
@pytest.mark.parametrize("provider_type", providers)
@pytest.mark.parametrize("async_call", [False, True])
async def test_provision_returns_requested_outputs(
    provider_type: str, async_call: bool
):
    client = ProvisionerSyncAndAsyncClient(
        provider_type=provider_type, async_call=async_call
    )
    request = ProvisionRequest(
        id="plan",
        type="azure-native:web:AppServicePlan",
        inputs={"name": "web-plan", "resourceGroupName": "rg-web"},
        outputs=["id", "name", "kind"],
    )
    response = await client.provision(request=request)
    assert isinstance(response, ProvisionResponse)
    for output in request.outputs:
        assert output in response.outputs


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_memory(async_call: bool):
    client = ProvisionerSyncAndAsyncClient(
        provider_type=ProvisionerProvider.MEMORY, async_call=async_call
    )
    response = await client.provision(
        request=ProvisionRequest(
            id="cache",
            type="azure-native:cache:Redis",
            inputs={"name": "web-redis"},
            outputs=["hostName", "accessKeys", "missing"],
        )
    )
    outputs = response.outputs
    assert outputs["id"] == (
        "/subscriptions/sub-1/resourceGroups/rg-test"
        "/providers/azure-native.cache/Redis/web-redis"
    )
    assert outputs["name"] == "web-redis"
    assert outputs["hostName"] == "web-redis.redis.cache.windows.net"
    assert outputs["sslPort"] == 6380
    assert len(outputs["accessKeys"]["primaryKey"]) == 32
    assert outputs["missing"] == "web-redis-missing"
    assert client.provider.get("cache")["outputs"] == outputs
    assert client.provider.calls == ["cache"]


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_memory_subnet_id(async_call: bool):
    client = ProvisionerSyncAndAsyncClient(
        provider_type=ProvisionerProvider.MEMORY, async_call=async_call
    )
    response = await client.provision(
        request=ProvisionRequest(
            id="subnet",
            type="azure-native:network:Subnet",
            inputs={
                "resourceGroupName": "rg-net",
                "virtualNetworkName": "hub",
                "subnetName": "app",
            },
        )
    )
    assert response.outputs["id"] == (
        "/subscriptions/sub-1/resourceGroups/rg-net"
        "/providers/Microsoft.Network/virtualNetworks/hub/subnets/app"
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
@pytest.mark.parametrize(
    "fail_on",
    [["db"], {"db": "quota exceeded"}, ["azure-native:sql:Database"]],
)
async def test_memory_fail_on(async_call: bool, fail_on):
    client = ProvisionerSyncAndAsyncClient(
        provider_type=ProvisionerProvider.MEMORY,
        async_call=async_call,
        fail_on=fail_on,
    )
    with pytest.raises(ProvisionError) as exc_info:
        await client.provision(
            request=ProvisionRequest(id="db", type="azure-native:sql:Database")
        )
    assert exc_info.value.kind == "Injected"
    assert client.provider.get("db") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_dry_run(async_call: bool):
    client = ProvisionerSyncAndAsyncClient(
        provider_type=ProvisionerProvider.DRY_RUN, async_call=async_call
    )
    response = await client.provision(
        request=ProvisionRequest(
            id="web",
            type="azure-native:web:WebApp",
            inputs={"location": "eastus2"},
            outputs=["defaultHostName"],
        )
    )
    assert response.outputs == {
        "location": "eastus2",
        "id": "<computed:web.id>",
        "name": "<computed:web.name>",
        "defaultHostName": "<computed:web.defaultHostName>",
    }
    assert [r.id for r in client.provider.planned] == ["web"]


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_routing_longest_prefix(async_call: bool):
    client = ProvisionerSyncAndAsyncClient(
        provider_type=ProvisionerProvider.ROUTING, async_call=async_call
    )
    subnet = await client.provision(
        request=ProvisionRequest(
            id="subnet",
            type="azure-native:network:Subnet",
            inputs={"virtualNetworkName": "hub", "subnetName": "app"},
        )
    )
    assert "/resourceGroups/rg-network/" in subnet.outputs["id"]

    plan = await client.provision(
        request=ProvisionRequest(
            id="plan",
            type="azure-native:web:AppServicePlan",
            inputs={"name": "plan"},
        )
    )
    assert "/resourceGroups/infragraph-rg/" in plan.outputs["id"]

    secret = await client.provision(
        request=ProvisionRequest(id="secret", type="kubernetes:core/v1:Secret")
    )
    assert secret.outputs["id"] == "<computed:secret.id>"


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_routing_default(async_call: bool):
    client = ProvisionerSyncAndAsyncClient(
        provider_type=ProvisionerProvider.ROUTING,
        async_call=async_call,
        default="dry_run",
    )
    response = await client.provision(
        request=ProvisionRequest(id="app", type="azuread:index:Application")
    )
    assert response.outputs["id"] == "<computed:app.id>"


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_routing_not_supported(async_call: bool):
    client = ProvisionerSyncAndAsyncClient(
        provider_type=ProvisionerProvider.ROUTING, async_call=async_call
    )
    assert client.client.__supports__("azure-native:web:WebApp")
    assert not client.client.__supports__("azuread:index:Application")
    with pytest.raises(NotSupportedError):
        await client.provision(
            request=ProvisionRequest(id="app", type="azuread:index:Application")
        )


def test_routing_with_provider_instances():
    memory = Memory()
    echo = EchoProvider()
    routing = Routing(
        routes=[
            RouteInfo(prefix="azure-native:", provider=memory),
            RouteInfo(prefix="azuread:", provider=echo),
        ]
    )
    graph = DependencyGraph()
    app = graph.declare("app", "azuread:index:Application")
    graph.declare(
        "vault",
        "azure-native:keyvault:Vault",
        {"vaultName": "kv", "owner": app["echo"]},
    )
    result = Engine(provisioner=Provisioner(__provider__=routing)).run(graph)

    assert result.succeeded == ["app", "vault"]
    assert memory.get("vault")["inputs"]["owner"] == "app"
    assert memory.calls == ["vault"]


def test_unbound_provisioner():
    with pytest.raises(NotSupportedError):
        Provisioner().provision(ProvisionRequest(id="a", type="t"))


def test_provider_without_operations():
    with pytest.raises(NotSupportedError):
        Provider().provision(ProvisionRequest(id="a", type="t"))
