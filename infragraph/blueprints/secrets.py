from __future__ import annotations

__all__ = ["AtScaleSecretsConfig", "AtScaleSecretsResult", "setup_atscale_secrets"]

from typing import Any

from infragraph.core import ConfigModel, DependencyGraph, ResourceNode

from ._helper import derive


class AtScaleSecretsConfig(ConfigModel):
    k8s_provider: ResourceNode
    namespace: Any

    postgres_host: Any
    postgres_port: int = 5432

    atscale_user: Any
    atscale_password: Any
    atscale_db_name: Any

    keycloak_user: Any
    keycloak_password: Any
    keycloak_db_name: Any

    pgwire_user: Any
    pgwire_password: Any
    pgwire_db_name: Any

    redis_host: Any
    redis_port: Any = 6380
    redis_user: Any = ""
    redis_password: Any


class AtScaleSecretsResult(ConfigModel):
    atscale_postgres_secret: ResourceNode
    keycloak_postgres_secret: ResourceNode
    pgwire_postgres_secret: ResourceNode
    engine_redis_secret: ResourceNode


def setup_atscale_secrets(
    graph: DependencyGraph,
    config: AtScaleSecretsConfig,
) -> AtScaleSecretsResult:
    def secret(name: str, data: dict[str, Any]) -> ResourceNode:
        return graph.declare(
            name,
            "kubernetes:core/v1:Secret",
            {
                "metadata": {"name": name, "namespace": config.namespace},
                "type": "Opaque",
                "stringData": data,
                "provider": config.k8s_provider["id"],
            },
        )

    postgres = {
        "host": config.postgres_host,
        "port": str(config.postgres_port),
    }
    return AtScaleSecretsResult(
        atscale_postgres_secret=secret(
            "atscale-postgres-external",
            {
                **postgres,
                "database": config.atscale_db_name,
                "user": config.atscale_user,
                "password": config.atscale_password,
                "sslEnabled": "true",
                "sslMode": "require",
            },
        ),
        keycloak_postgres_secret=secret(
            "keycloak-postgres-external",
            {
                **postgres,
                "database": config.keycloak_db_name,
                "user": config.keycloak_user,
                "password": config.keycloak_password,
            },
        ),
        pgwire_postgres_secret=secret(
            "pgwire-postgres-external",
            {
                **postgres,
                "database": config.pgwire_db_name,
                "user": config.pgwire_user,
                "password": config.pgwire_password,
            },
        ),
        engine_redis_secret=secret(
            "engine-redis-external",
            {
                "host": config.redis_host,
                "port": derive(config.redis_port, str),
                "user": config.redis_user,
                "password": config.redis_password,
                "sslEnabled": "true",
            },
        ),
    )
