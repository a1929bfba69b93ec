import asyncio
import threading
import time

import pytest
from common.graphs import TYPE, abc_graph, chain_graph, diamond_graph

from infragraph.core import (
    DependencyGraph,
    Engine,
    NodeState,
    Provider,
    ProvisionRequest,
    ProvisionResponse,
    interpolate,
)
from infragraph.core.exceptions import CycleDetectedError

from ._sync_and_async_client import EngineSyncAndAsyncClient


def _outputs(request: ProvisionRequest) -> dict:
    outputs = {"id": request.id}
    for name in request.outputs:
        outputs.setdefault(name, f"{request.id}-{name}")
    return outputs


class FlakyProvider(Provider):
    """Raises a plain exception for one node id."""

    def __init__(self, fail_id: str):
        super().__init__()
        self.fail_id = fail_id

    def provision(self, request: ProvisionRequest) -> ProvisionResponse:
        if request.id == self.fail_id:
            raise RuntimeError("connection reset")
        return ProvisionResponse(outputs=_outputs(request))


class CancellingProvider(Provider):
    """Sets the cancel event while provisioning one node."""

    def __init__(self, cancel_on: str, cancel: threading.Event):
        super().__init__()
        self.cancel_on = cancel_on
        self.cancel = cancel
        self.calls = []

    def provision(self, request: ProvisionRequest) -> ProvisionResponse:
        self.calls.append(request.id)
        if request.id == self.cancel_on:
            self.cancel.set()
        return ProvisionResponse(outputs=_outputs(request))


class InvalidResponseProvider(Provider):
    """Returns a list instead of outputs for one node id."""

    def __init__(self, bad_id: str):
        super().__init__()
        self.bad_id = bad_id

    def provision(self, request: ProvisionRequest) -> ProvisionResponse:
        if request.id == self.bad_id:
            return ["not", "outputs"]  # type: ignore[return-value]
        return ProvisionResponse(outputs=_outputs(request))


class ConcurrencyProvider(Provider):
    def __init__(self):
        super().__init__()
        self.active = 0
        self.peak = 0

    async def aprovision(self, request: ProvisionRequest) -> ProvisionResponse:
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        return ProvisionResponse(outputs={"id": request.id})


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_all_succeed(async_call: bool):
    client = EngineSyncAndAsyncClient(async_call=async_call)
    graph = abc_graph()
    result = await client.run(graph)

    assert result.succeeded == ["A", "B", "C"]
    assert result.failed == []
    assert result.skipped == []
    assert result.ok
    assert client.provider.calls.index("A") < client.provider.calls.index("B")
    # B saw A's resolved output, not a reference
    b_inputs = client.provider.get("B")["inputs"]
    assert b_inputs["source"] == "a-out"
    for node in graph:
        assert node.state == NodeState.RESOLVED


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_failure_skips_dependents(async_call: bool):
    client = EngineSyncAndAsyncClient(
        async_call=async_call,
        fail_on={"A": "quota exceeded"},
    )
    graph = abc_graph()
    result = await client.run(graph)

    assert result.succeeded == ["C"]
    assert [(f.id, f.kind, f.message) for f in result.failed] == [
        ("A", "Injected", "quota exceeded")
    ]
    assert [(s.id, s.reason) for s in result.skipped] == [
        ("B", "UpstreamFailed")
    ]
    assert "B" not in client.provider.calls
    assert not result.ok


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_failure_propagates_transitively(async_call: bool):
    client = EngineSyncAndAsyncClient(
        async_call=async_call,
        fail_on=["left"],
    )
    result = await client.run(diamond_graph())

    assert result.succeeded == ["root", "right", "branch"]
    assert result.failed_ids() == ["left"]
    assert result.skipped_ids() == ["join"]


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_chain_failure(async_call: bool):
    client = EngineSyncAndAsyncClient(async_call=async_call, fail_on=["n1"])
    result = await client.run(chain_graph(5))

    assert result.succeeded == ["n0"]
    assert result.failed_ids() == ["n1"]
    assert result.skipped_ids() == ["n2", "n3", "n4"]
    assert all(s.reason == "UpstreamFailed" for s in result.skipped)


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_cycle_makes_no_calls(async_call: bool):
    client = EngineSyncAndAsyncClient(async_call=async_call)
    graph = abc_graph()
    graph.add_dependency("A", "B")
    with pytest.raises(CycleDetectedError):
        await client.run(graph)
    assert client.provider.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_rerun_is_noop(async_call: bool):
    client = EngineSyncAndAsyncClient(async_call=async_call, fail_on=["A"])
    graph = abc_graph()
    first = await client.run(graph)
    calls = list(client.provider.calls)
    second = await client.run(graph)

    assert second == first
    assert client.provider.calls == calls


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_cancelled_before_start(async_call: bool):
    client = EngineSyncAndAsyncClient(async_call=async_call)
    cancel = threading.Event()
    cancel.set()
    result = await client.run(abc_graph(), cancel=cancel)

    assert result.succeeded == []
    assert result.skipped_ids() == ["A", "B", "C"]
    assert all(s.reason == "Cancelled" for s in result.skipped)
    assert client.provider.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_cancelled_mid_run(async_call: bool):
    cancel = threading.Event()
    provider = CancellingProvider(cancel_on="n0", cancel=cancel)
    engine = Engine(provisioner=provider)
    graph = chain_graph(4)
    if async_call:
        result = await engine.arun(graph, cancel=cancel)
    else:
        result = engine.run(graph, cancel=cancel)

    # the in-flight call completes and nothing new starts
    assert result.succeeded == ["n0"]
    assert result.skipped_ids() == ["n1", "n2", "n3"]
    assert all(s.reason == "Cancelled" for s in result.skipped)
    assert provider.calls == ["n0"]


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_provider_exception_is_wrapped(async_call: bool):
    engine = Engine(provisioner=FlakyProvider(fail_id="B"))
    graph = abc_graph()
    if async_call:
        result = await engine.arun(graph)
    else:
        result = engine.run(graph)

    assert result.succeeded == ["A", "C"]
    assert result.failed[0].id == "B"
    assert result.failed[0].kind == "ProviderException"
    assert "connection reset" in result.failed[0].message


@pytest.mark.asyncio
@pytest.mark.parametrize("max_workers", [None, 1, 2])
async def test_max_workers(max_workers: int | None):
    provider = ConcurrencyProvider()
    graph = DependencyGraph()
    for i in range(6):
        graph.declare(f"n{i}", TYPE)
    result = await Engine(provisioner=provider, max_workers=max_workers).arun(
        graph
    )

    assert len(result.succeeded) == 6
    if max_workers is None:
        assert provider.peak == 6
    else:
        assert provider.peak <= max_workers


def test_invalid_max_workers():
    with pytest.raises(ValueError):
        Engine(provisioner=None, max_workers=0)


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_independent_nodes_run_concurrently(async_call: bool):
    client = EngineSyncAndAsyncClient(async_call=async_call, latency=0.1)
    graph = DependencyGraph()
    for i in range(5):
        graph.declare(f"n{i}", TYPE)
    start = time.monotonic()
    result = await client.run(graph)

    assert len(result.succeeded) == 5
    assert time.monotonic() - start < 0.45


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_exports(async_call: bool):
    client = EngineSyncAndAsyncClient(async_call=async_call, fail_on=["C"])
    graph = abc_graph()
    a, c = graph.get_node("A"), graph.get_node("C")
    graph.export("a_name", a["name"])
    graph.export("url", interpolate("https://{}.example.com", a["name"]))
    graph.export("c_id", c["id"])
    result = await client.run(graph)

    assert result.exports == {"a_name": "a", "url": "https://a.example.com"}
    assert [(e.id, e.reason) for e in result.unresolved_exports] == [
        ("c_id", "UpstreamFailed")
    ]
    assert not result.ok


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_derived_input_error_fails_node(async_call: bool):
    client = EngineSyncAndAsyncClient(async_call=async_call)
    graph = DependencyGraph()
    a = graph.declare("A", TYPE, {"out": "plain"})
    graph.declare("B", TYPE, {"x": a["out"].apply(lambda v: v["missing"])})
    graph.declare(
        "C", TYPE, {"url": interpolate("{host}:{port}", host=a["name"])}
    )
    graph.export("b_x", graph.get_node("B")["x"])
    graph.export("a_len", a["out"].apply(lambda v: v + 1))
    result = await client.run(graph)

    assert result.succeeded == ["A"]
    assert [(f.id, f.kind) for f in result.failed] == [
        ("B", "InputError"),
        ("C", "InputError"),
    ]
    assert "TypeError" in result.failed[0].message
    assert "KeyError" in result.failed[1].message
    assert result.skipped == []
    assert client.provider.calls == ["A"]
    assert [(e.id, e.reason) for e in result.unresolved_exports] == [
        ("b_x", "InputError"),
        ("a_len", "InputError"),
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_invalid_response_fails_node(async_call: bool):
    engine = Engine(provisioner=InvalidResponseProvider(bad_id="A"))
    graph = abc_graph()
    if async_call:
        result = await engine.arun(graph)
    else:
        result = engine.run(graph)

    assert result.succeeded == ["C"]
    assert [(f.id, f.kind) for f in result.failed] == [("A", "InvalidResponse")]
    assert result.skipped_ids() == ["B"]
    assert graph.get_node("A").state == NodeState.FAILED


@pytest.mark.asyncio
@pytest.mark.parametrize("async_call", [False, True])
async def test_group_dependency(async_call: bool):
    client = EngineSyncAndAsyncClient(async_call=async_call, fail_on=["slow"])
    graph = DependencyGraph()
    fast = graph.declare("fast", TYPE, {"name": "fast"})
    slow = graph.declare("slow", TYPE, {"name": "slow"})
    group = graph.group("bundle", [fast, slow], {"fast_id": fast["id"]})
    graph.declare("consumer", TYPE, {"source": group["fast_id"]})
    result = await client.run(graph)

    # a group output is only ready when every member resolved
    assert result.succeeded == ["fast"]
    assert result.skipped_ids() == ["consumer"]
