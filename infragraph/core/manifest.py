from __future__ import annotations

from typing import Any

from ._yaml_loader import YamlLoader
from .data_model import DataModel

__all__ = [
    "GroupConfig",
    "Manifest",
    "ManifestMetadata",
    "MANIFEST_FILE",
    "ProvisionerConfig",
    "ResourceConfig",
    "Settings",
]


MANIFEST_FILE = "infragraph.yaml"


class ManifestMetadata(DataModel):
    name: str | None = None
    description: str | None = None
    version: str | None = None


class ProvisionerConfig(DataModel):
    type: str = "memory"
    parameters: dict[str, Any] = dict()


class Settings(DataModel):
    max_workers: int | None = None


class ResourceConfig(DataModel):
    type: str
    inputs: dict[str, Any] = dict()
    depends_on: list[str] = list()


class GroupConfig(DataModel):
    members: list[str]
    outputs: dict[str, str] = dict()


class Manifest(DataModel):
    metadata: ManifestMetadata = ManifestMetadata()
    variables: dict[str, Any] = dict()
    provisioner: ProvisionerConfig = ProvisionerConfig()
    settings: Settings = Settings()
    resources: dict[str, ResourceConfig] = dict()
    groups: dict[str, GroupConfig] = dict()
    exports: dict[str, Any] = dict()

    @staticmethod
    def parse(path: str) -> Manifest:
        obj = YamlLoader.load(path=path)
        manifest = Manifest.from_dict(obj)
        return manifest
