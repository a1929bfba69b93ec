from infragraph.blueprints import (
    AppServiceComponentArgs,
    RedisCacheConfig,
    StackContext,
    StandardStorageAccountArgs,
    VnetComponentArgs,
    app_service_component,
    setup_redis,
    standard_storage_account,
    vnet_component,
)
from infragraph.core import DependencyGraph, Engine
from infragraph.core.main import plan
from infragraph.provisioner import Provisioner


def playWebStack():
    print("\n----- ----- ----- ----- ----- ----- \nWeb Stack\n----- -----")
    graph = DependencyGraph(name="web")
    network = vnet_component(
        graph,
        "web",
        VnetComponentArgs(
            resource_group_name="web-rg",
            location="eastus2",
            vnet_address_space=["10.0.0.0/16"],
            app_subnet_address_prefix="10.0.1.0/24",
            db_subnet_address_prefix="10.0.2.0/24",
        ),
    )
    app = app_service_component(
        graph,
        "site",
        AppServiceComponentArgs(
            resource_group_name="web-rg",
            location="eastus2",
            subnet_id=network.app_subnet_id,
        ),
    )
    storage = standard_storage_account(
        graph,
        "assets",
        StandardStorageAccountArgs(
            resource_group_name="web-rg",
            location="eastus2",
            name_prefix="assets",
        ),
    )
    graph.export("host", app.default_host_name)
    graph.export("blob", storage.primary_blob_endpoint)
    engine = Engine(provisioner=Provisioner(__provider__="memory"))
    print(engine.run(graph).to_json(indent=2))


def playRedisPreview():
    print("\n----- ----- ----- ----- ----- ----- \nRedis Preview\n----- -----")
    graph = DependencyGraph(name="redis")
    context = StackContext(
        app="atscale",
        env="dev",
        location="eastus2",
        resource_group_name="atscale-rg",
    )
    redis = setup_redis(graph, context, RedisCacheConfig())
    graph.export("connection_string", redis.connection_string)
    engine = Engine(provisioner=Provisioner(__provider__="dry_run"))
    print(engine.run(graph).to_json(indent=2))


def playManifest():
    print("\n----- ----- ----- ----- ----- ----- \nManifest\n----- -----")
    print(plan(path="playground", manifest="infragraph.yaml"))


playWebStack()
playRedisPreview()
playManifest()
