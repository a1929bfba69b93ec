from __future__ import annotations

import importlib
import importlib.util
import inspect
import os
import re
import sys
from enum import Enum
from typing import Any

from ._log_helper import warn
from ._provider import Provider
from ._type_converter import TypeConverter
from .exceptions import LoadError
from .graph import DependencyGraph
from .manifest import MANIFEST_FILE, Manifest
from .reference import Interpolation, OutputRef, Reference

REF_PATTERN = r"^\$\{([^{}]+)\}$"
EMBEDDED_REF_PATTERN = r"\$\{([^{}]+)\}"
PROVISIONER_MODULE = "infragraph.provisioner"


class Loader:
    path: str
    manifest_path: str

    manifest: Manifest

    def __init__(
        self,
        path: str = ".",
        manifest: str = MANIFEST_FILE,
    ):
        self.path = path
        self.manifest_path = os.path.join(
            path,
            manifest,
        )
        if not os.path.exists(self.manifest_path):
            raise LoadError(f"Manifest {self.manifest_path} not found")
        self.manifest = Manifest.parse(path=self.manifest_path)
        abs_project_folder = os.path.abspath(path)
        if abs_project_folder not in sys.path:
            sys.path.append(abs_project_folder)

    def load_graph(self) -> DependencyGraph:
        graph = DependencyGraph(name=self.manifest.metadata.name)
        pending_groups = dict(self.manifest.groups)
        for id, rconfig in self.manifest.resources.items():
            inputs = self._resolve_param(dict(rconfig.inputs), graph)
            graph.declare(
                id=id,
                type=rconfig.type,
                inputs=inputs,
                depends_on=rconfig.depends_on,
            )
            self._register_ready_groups(graph, pending_groups)
        if pending_groups:
            self._register_ready_groups(graph, pending_groups, force=True)
        for name, value in self.manifest.exports.items():
            graph.export(name, self._resolve_param(value, graph))
        return graph

    def load_provisioner(self, type: str | None = None) -> Any:
        from infragraph.provisioner import Provisioner

        pconfig = self.manifest.provisioner
        if type is not None and type != pconfig.type:
            parameters: dict[str, Any] = dict()
        else:
            type = pconfig.type
            parameters = self._resolve_param(dict(pconfig.parameters), None)
        return Provisioner(
            __provider__={"type": type, "parameters": parameters},
            __handle__=self.manifest.metadata.name,
        )

    def load_max_workers(self) -> int | None:
        return self.manifest.settings.max_workers

    def _register_ready_groups(
        self,
        graph: DependencyGraph,
        pending_groups: dict,
        force: bool = False,
    ) -> None:
        for gid in list(pending_groups):
            gconfig = pending_groups[gid]
            if not force and not all(m in graph.nodes for m in gconfig.members):
                continue
            pending_groups.pop(gid)
            outputs: dict[str, Reference] = {}
            for name, value in gconfig.outputs.items():
                ref = self._resolve_param(value, graph)
                if not isinstance(ref, Reference):
                    raise LoadError(
                        f"Group {gid} output {name} must be a reference"
                    )
                outputs[name] = ref
            graph.group(gid, gconfig.members, outputs)

    def _resolve_param(self, value: Any, graph: DependencyGraph | None) -> Any:
        if isinstance(value, dict):
            for k, v in value.items():
                value[k] = self._resolve_param(value=v, graph=graph)
            return value
        elif isinstance(value, list):
            for i, item in enumerate(value):
                value[i] = self._resolve_param(value=item, graph=graph)
            return value
        elif isinstance(value, str) and self._is_ref(value):
            ref_info = self._get_ref_info(value)
            return self._resolve_ref(ref_info=ref_info, graph=graph)
        elif isinstance(value, str) and self._has_ref(value):
            return self._resolve_interpolation(value, graph)
        return value

    def _resolve_interpolation(
        self, value: str, graph: DependencyGraph | None
    ) -> Any:
        template = ""
        refs: list[Reference] = []
        position = 0
        for match in re.finditer(EMBEDDED_REF_PATTERN, value):
            template += _escape(value[position : match.start()])
            position = match.end()
            resolved = self._resolve_ref(
                ref_info=self._get_ref_info(match.group(0)),
                graph=graph,
            )
            if isinstance(resolved, Reference):
                template += "{" + str(len(refs)) + "}"
                refs.append(resolved)
            elif resolved is None:
                raise LoadError(
                    f"{match.group(0)} has no value and cannot be embedded "
                    f"in {value!r}"
                )
            else:
                template += _escape(str(resolved))
        template += _escape(value[position:])
        if not refs:
            return template.replace("{{", "{").replace("}}", "}")
        return Interpolation(template, *refs)

    def _resolve_ref(
        self, ref_info: RefInfo, graph: DependencyGraph | None
    ) -> Any:
        if ref_info.type == RefType.ENV:
            return self._resolve_param(
                value=self._resolve_env(ref_info.param),
                graph=graph,
            )
        if ref_info.type == RefType.VARIABLE:
            return self._resolve_param(
                value=self._resolve_variable(ref_info.param),
                graph=graph,
            )
        if ref_info.type == RefType.METADATA:
            return self._resolve_metadata(
                param=ref_info.param,
            )
        if graph is None:
            raise LoadError(f"{ref_info.value} cannot reference a resource")
        return self._resolve_output(ref_info, graph)

    def _resolve_output(
        self, ref_info: RefInfo, graph: DependencyGraph
    ) -> Reference:
        ref: Reference
        if ref_info.handle in graph.groups:
            ref = graph.groups[ref_info.handle].output(ref_info.param)
        else:
            ref = OutputRef(ref_info.handle, ref_info.param)
        if ref_info.path:
            ref = ref.apply(_path_getter(ref_info.path))
        return ref

    def _resolve_env(self, param: str) -> Any:
        value = os.getenv(param)
        if value is None:
            warn("Environment variable %s is not set", param)
        return value

    def _resolve_variable(self, param: str) -> Any:
        if param in self.manifest.variables:
            return self.manifest.variables[param]
        raise LoadError(f"Variable {param} not defined")

    def _resolve_metadata(self, param: str) -> Any:
        if param in self.manifest.metadata.__dict__:
            return self.manifest.metadata.__dict__[param]
        return None

    def _get_ref_info(self, string: str) -> RefInfo:
        match = re.match(REF_PATTERN, string)
        if not match:
            raise LoadError(f"{string} not a ref")

        value = match.group(1).strip()
        ref_info = RefInfo()
        ref_info.value = value
        ref_info.path = []
        prefix_map = {
            "env.": RefType.ENV,
            "metadata.": RefType.METADATA,
            "variables.": RefType.VARIABLE,
        }

        for prefix, ref_type in prefix_map.items():
            if value.startswith(prefix):
                ref_info.type = ref_type
                ref_info.param = value[len(prefix) :]
                return ref_info

        parts = value.split(".")
        if len(parts) < 2 or not all(parts):
            raise LoadError(
                f"Reference {string} must name a resource and an output"
            )
        ref_info.type = RefType.OUTPUT
        ref_info.handle = parts[0]
        ref_info.param = parts[1]
        ref_info.path = parts[2:]
        return ref_info

    def _is_ref(self, str: str) -> bool:
        return bool(re.match(REF_PATTERN, str))

    def _has_ref(self, str: str) -> bool:
        return bool(re.search(EMBEDDED_REF_PATTERN, str))

    @staticmethod
    def get_provider_path(
        component_module: str,
        provider_type: str,
    ) -> str:
        if ":" in provider_type or "." in provider_type:
            return provider_type
        return f"{component_module}.providers.{provider_type}"

    @staticmethod
    def load_provider_instance(
        path: str | None = None,
        parameters: dict[str, Any] = dict(),
    ) -> Provider:
        if path is None:
            return Provider(**parameters)
        provider = Loader.load_class(path, Provider)
        converted_parameters = TypeConverter.convert_args(
            provider.__init__, parameters
        )
        return provider(**converted_parameters)

    @staticmethod
    def load_class(path: str, type: Any) -> Any:
        class_name = None
        if ":" in path:
            module_name, class_name = path.rsplit(":", 1)
        else:
            module_name = path
        if module_name.endswith(".py"):
            normalized_module_name = (
                os.path.normpath(module_name)
                .replace("\\", "/")
                .split(".py")[0]
                .replace("/", ".")
                .lstrip(".")
            )
            spec = importlib.util.spec_from_file_location(
                normalized_module_name, os.path.abspath(module_name)
            )
            if spec is None or spec.loader is None:
                raise LoadError(f"Cannot load {module_name}")
            module = importlib.util.module_from_spec(spec)
            sys.modules[normalized_module_name] = module
            spec.loader.exec_module(module)
            module_name = normalized_module_name
        else:
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                raise LoadError(f"Cannot import {module_name}: {e}") from e
        if class_name is not None:
            return getattr(module, class_name)
        for name, cls in inspect.getmembers(module, inspect.isclass):
            if issubclass(cls, type) and cls.__module__ == module_name:
                return cls
        raise LoadError(f"{type.__name__} not found at {module_name}")


class RefInfo:
    type: RefType
    handle: str
    param: str
    path: list[str]
    value: str


class RefType(str, Enum):
    ENV = "env"
    METADATA = "metadata"
    VARIABLE = "variable"
    OUTPUT = "output"


def _escape(text: str) -> str:
    return text.replace("{", "{{").replace("}", "}}")


def _path_getter(path: list[str]):
    def get(value: Any) -> Any:
        for key in path:
            if isinstance(value, dict):
                value = value.get(key)
            else:
                value = getattr(value, key, None)
        return value

    return get
