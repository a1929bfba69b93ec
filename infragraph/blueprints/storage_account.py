from __future__ import annotations

__all__ = [
    "StandardStorageAccount",
    "StandardStorageAccountArgs",
    "standard_storage_account",
    "storage_account_name",
]

import uuid
from typing import Any

from infragraph.core import (
    CompositeGroup,
    ConfigModel,
    DependencyGraph,
    Reference,
    ResourceNode,
)

# Azure caps storage account names at 24 characters.
MAX_NAME_LENGTH = 24


class StandardStorageAccountArgs(ConfigModel):
    resource_group_name: Any
    location: Any
    name_prefix: str
    suffix: str | None = None
    sku_name: str = "Standard_LRS"


class StandardStorageAccount(ConfigModel):
    group: CompositeGroup
    storage_account: ResourceNode
    storage_account_name: Reference
    primary_blob_endpoint: Reference


def storage_account_name(prefix: str, suffix: str | None = None) -> str:
    if suffix is None:
        suffix = uuid.uuid4().hex[:8]
    return f"{prefix}{suffix}"[:MAX_NAME_LENGTH]


def _blob_endpoint(endpoints: Any) -> str:
    if not isinstance(endpoints, dict):
        return ""
    return endpoints.get("blob") or ""


def standard_storage_account(
    graph: DependencyGraph,
    name: str,
    args: StandardStorageAccountArgs,
) -> StandardStorageAccount:
    storage_account = graph.declare(
        f"{name}-sa",
        "azure-native:storage:StorageAccount",
        {
            "resourceGroupName": args.resource_group_name,
            "accountName": storage_account_name(args.name_prefix, args.suffix),
            "location": args.location,
            "kind": "StorageV2",
            "sku": {"name": args.sku_name},
        },
    )
    group = graph.group(
        name,
        [storage_account],
        {
            "storage_account_name": storage_account["name"],
            "primary_blob_endpoint": storage_account["primaryEndpoints"].apply(
                _blob_endpoint
            ),
        },
    )
    return StandardStorageAccount(
        group=group,
        storage_account=storage_account,
        storage_account_name=group["storage_account_name"],
        primary_blob_endpoint=group["primary_blob_endpoint"],
    )
