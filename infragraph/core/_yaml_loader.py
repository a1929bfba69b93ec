from typing import Any

import yaml

from .exceptions import LoadError


class YamlLoader:
    @staticmethod
    def load(path: str) -> dict:
        try:
            with open(path, "r") as file:
                return YamlLoader._as_mapping(yaml.safe_load(file), path)
        except yaml.YAMLError as e:
            raise LoadError(f"Invalid YAML in {path}: {e}") from e

    @staticmethod
    def loads(text: str) -> dict:
        try:
            return YamlLoader._as_mapping(yaml.safe_load(text), "<string>")
        except yaml.YAMLError as e:
            raise LoadError(f"Invalid YAML: {e}") from e

    @staticmethod
    def _as_mapping(obj: Any, source: str) -> dict:
        if obj is None:
            return {}
        if not isinstance(obj, dict):
            raise LoadError(f"{source} must contain a mapping")
        return obj
