import json
import sys
import textwrap

import pytest
import yaml

from infragraph.core import Engine, Interpolation, Loader, OutputRef
from infragraph.core.exceptions import DanglingReferenceError, LoadError
from infragraph.core.main import apply, main, plan
from infragraph.core.manifest import MANIFEST_FILE, Manifest

MANIFEST = """
metadata:
  name: webstack
  version: "1.0"
variables:
  location: eastus2
  prefix: web
provisioner:
  type: memory
  parameters:
    subscription_id: ${env.INFRAGRAPH_TEST_SUBSCRIPTION}
settings:
  max_workers: 2
resources:
  vnet:
    type: azure-native:network:VirtualNetwork
    inputs:
      virtualNetworkName: ${variables.prefix}-vnet
      location: ${variables.location}
      addressSpace:
        addressPrefixes: ["10.0.0.0/16"]
  subnet:
    type: azure-native:network:Subnet
    inputs:
      virtualNetworkName: ${vnet.name}
      subnetName: app
      addressPrefix: 10.0.1.0/24
  storage:
    type: azure-native:storage:StorageAccount
    inputs:
      accountName: ${variables.prefix}sa
      location: ${variables.location}
  app:
    type: azure-native:web:WebApp
    inputs:
      name: ${metadata.name}-app
      subnetId: ${network.subnet_id}
      blobEndpoint: ${storage.primaryEndpoints.blob}
      url: https://${storage.name}.example.com/{path}
    depends_on: [storage]
groups:
  network:
    members: [vnet, subnet]
    outputs:
      subnet_id: ${subnet.id}
exports:
  host: ${app.defaultHostName}
  network: ${network.subnet_id}
"""


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.setenv("INFRAGRAPH_TEST_SUBSCRIPTION", "sub-1")
    (tmp_path / MANIFEST_FILE).write_text(textwrap.dedent(MANIFEST))
    return tmp_path


def test_parse_manifest(project):
    manifest = Manifest.parse(str(project / MANIFEST_FILE))
    assert manifest.metadata.name == "webstack"
    assert list(manifest.resources) == ["vnet", "subnet", "storage", "app"]
    assert manifest.resources["app"].depends_on == ["storage"]
    assert manifest.groups["network"].members == ["vnet", "subnet"]
    assert manifest.settings.max_workers == 2


def test_load_graph(project):
    loader = Loader(path=str(project))
    graph = loader.load_graph()

    assert graph.name == "webstack"
    assert list(graph.nodes) == ["vnet", "subnet", "storage", "app"]
    vnet = graph.get_node("vnet")
    assert vnet.inputs["virtualNetworkName"] == "web-vnet"
    assert vnet.inputs["location"] == "eastus2"
    assert graph.get_node("subnet").inputs["virtualNetworkName"] == OutputRef(
        "vnet", "name"
    )
    app = graph.get_node("app")
    assert app.inputs["name"] == "webstack-app"
    assert isinstance(app.inputs["url"], Interpolation)
    assert graph.dependencies_of("app") == ["vnet", "subnet", "storage"]
    assert graph.get_node("subnet").parent is graph.get_group("network")


def test_load_provisioner(project):
    loader = Loader(path=str(project))
    provisioner = loader.load_provisioner()
    provider = provisioner.__provider__
    assert provider.subscription_id == "sub-1"
    assert loader.load_max_workers() == 2

    override = loader.load_provisioner(type="dry_run")
    assert type(override.__provider__).__name__ == "DryRun"


def test_missing_manifest(tmp_path):
    with pytest.raises(LoadError):
        Loader(path=str(tmp_path))


@pytest.mark.parametrize(
    "resources, error",
    [
        (
            {"a": {"type": "t", "inputs": {"x": "${variables.missing}"}}},
            LoadError,
        ),
        (
            {"a": {"type": "t", "inputs": {"x": "${b.id}"}}},
            DanglingReferenceError,
        ),
        (
            {"a": {"type": "t", "inputs": {"x": "${justone}"}}},
            LoadError,
        ),
    ],
)
def test_invalid_references(tmp_path, resources, error):
    (tmp_path / MANIFEST_FILE).write_text(yaml.safe_dump({"resources": resources}))
    with pytest.raises(error):
        Loader(path=str(tmp_path)).load_graph()


def test_unset_env(tmp_path, monkeypatch):
    monkeypatch.delenv("INFRAGRAPH_TEST_UNSET", raising=False)
    resources = {
        "a": {"type": "t", "inputs": {"whole": "${env.INFRAGRAPH_TEST_UNSET}"}},
    }
    (tmp_path / MANIFEST_FILE).write_text(yaml.safe_dump({"resources": resources}))
    graph = Loader(path=str(tmp_path)).load_graph()
    assert graph.get_node("a").inputs["whole"] is None

    resources["b"] = {
        "type": "t",
        "inputs": {"host": "${env.INFRAGRAPH_TEST_UNSET}.example.com"},
    }
    (tmp_path / MANIFEST_FILE).write_text(yaml.safe_dump({"resources": resources}))
    with pytest.raises(LoadError) as exc_info:
        Loader(path=str(tmp_path)).load_graph()
    assert "INFRAGRAPH_TEST_UNSET" in str(exc_info.value)


def test_plan(project):
    result = plan(path=str(project), manifest=MANIFEST_FILE)
    assert result["order"] == ["vnet", "storage", "subnet", "app"]
    assert result["levels"] == [["vnet", "storage"], ["subnet"], ["app"]]
    assert result["groups"] == {"network": ["vnet", "subnet"]}


def test_apply(project):
    result = apply(
        path=str(project),
        manifest=MANIFEST_FILE,
        provisioner=None,
        max_workers=None,
    )
    assert result.succeeded == ["vnet", "subnet", "storage", "app"]
    assert result.exports["host"] == "webstack-app.azurewebsites.net"
    assert result.exports["network"] == (
        "/subscriptions/sub-1/resourceGroups/infragraph-rg"
        "/providers/Microsoft.Network/virtualNetworks/web-vnet/subnets/app"
    )


def test_apply_resolves_inputs(project):
    loader = Loader(path=str(project))
    graph = loader.load_graph()
    provisioner = loader.load_provisioner()
    Engine(provisioner=provisioner).run(graph)
    inputs = provisioner.__provider__.get("app")["inputs"]
    assert inputs["blobEndpoint"] == "https://websa.blob.core.windows.net/"
    assert inputs["url"] == "https://websa.example.com/{path}"


def test_main_apply_exit_code(project, monkeypatch, capsys):
    manifest = project / MANIFEST_FILE
    manifest.write_text(
        manifest.read_text().replace(
            "parameters:\n", "parameters:\n    fail_on: [storage]\n", 1
        )
    )
    monkeypatch.setattr(
        sys, "argv", ["infragraph", "apply", "--path", str(project)]
    )
    with pytest.raises(SystemExit) as exc_info:
        main()
    assert exc_info.value.code == 1
    output = json.loads(capsys.readouterr().out)
    assert output["failed"][0]["id"] == "storage"
    assert [s["id"] for s in output["skipped"]] == ["app"]


def test_main_plan(project, monkeypatch, capsys):
    monkeypatch.setattr(
        sys, "argv", ["infragraph", "plan", "--path", str(project)]
    )
    main()
    output = json.loads(capsys.readouterr().out)
    assert output["levels"][0] == ["vnet", "storage"]


@pytest.mark.parametrize("text", ["- just\n- a list\n", "resources: [unclosed\n"])
def test_invalid_manifest(tmp_path, text):
    (tmp_path / MANIFEST_FILE).write_text(text)
    with pytest.raises(LoadError):
        Loader(path=str(tmp_path))
