from ._models import StackContext
from .app_service import (
    AppServiceComponent,
    AppServiceComponentArgs,
    app_service_component,
)
from .cluster import ClusterConfig, ClusterResult, setup_cluster
from .helm_chart import HelmChartConfig, HelmChartResult, setup_helm_chart
from .network import VnetComponent, VnetComponentArgs, vnet_component
from .postgres import PostgresConfig, PostgresResult, setup_postgres
from .redis import (
    RedisCacheConfig,
    RedisEnterpriseConfig,
    RedisNetworkConfig,
    RedisResult,
    setup_redis,
)
from .secrets import (
    AtScaleSecretsConfig,
    AtScaleSecretsResult,
    setup_atscale_secrets,
)
from .sql_database import (
    SqlDatabaseComponent,
    SqlDatabaseComponentArgs,
    sql_database_component,
)
from .storage_account import (
    StandardStorageAccount,
    StandardStorageAccountArgs,
    standard_storage_account,
)

__all__ = [
    "AppServiceComponent",
    "AppServiceComponentArgs",
    "AtScaleSecretsConfig",
    "AtScaleSecretsResult",
    "ClusterConfig",
    "ClusterResult",
    "HelmChartConfig",
    "HelmChartResult",
    "PostgresConfig",
    "PostgresResult",
    "RedisCacheConfig",
    "RedisEnterpriseConfig",
    "RedisNetworkConfig",
    "RedisResult",
    "SqlDatabaseComponent",
    "SqlDatabaseComponentArgs",
    "StackContext",
    "StandardStorageAccount",
    "StandardStorageAccountArgs",
    "VnetComponent",
    "VnetComponentArgs",
    "app_service_component",
    "setup_atscale_secrets",
    "setup_cluster",
    "setup_helm_chart",
    "setup_postgres",
    "setup_redis",
    "sql_database_component",
    "standard_storage_account",
    "vnet_component",
]
