"""Namespace scanning for command modules.

A namespace is a dotted import path. Plain modules are scanned
directly; packages are walked recursively so every submodule is
imported and inspected.
"""

import importlib
import pkgutil
from types import ModuleType
from typing import Iterable, List, Set, Union

import structlog

from .exceptions import ConfigurationError
from .module import is_module_type

logger = structlog.get_logger("chatcmd.registry")


def _import(name: str, namespace: str) -> ModuleType:
    try:
        return importlib.import_module(name)
    except Exception as e:
        raise ConfigurationError(
            f"Cannot import {name!r}: {e}",
            namespace=namespace,
            module="discovery",
            error_type=type(e).__name__,
        ) from e


def _iter_namespace_modules(namespace: str) -> List[ModuleType]:
    root = _import(namespace, namespace)
    modules = [root]
    search_path = getattr(root, "__path__", None)
    if search_path is None:
        return modules

    def _on_error(name: str) -> None:
        raise ConfigurationError(
            f"Cannot import {name!r} while walking namespace",
            namespace=namespace,
            module="discovery",
        )

    for info in pkgutil.walk_packages(search_path, prefix=namespace + ".", onerror=_on_error):
        modules.append(_import(info.name, namespace))
    return modules


def _in_namespace(cls: type, namespace: str) -> bool:
    owner = cls.__module__
    return owner == namespace or owner.startswith(namespace + ".")


def scan_namespace(namespace: str) -> Set[type]:
    """Return every CommandModule subclass defined under ``namespace``.

    Raises:
        ConfigurationError: If the namespace or one of its submodules
            cannot be imported.
    """
    if not isinstance(namespace, str) or not namespace.strip():
        raise ConfigurationError(
            "Namespace must be a non-empty dotted module path",
            namespace=str(namespace),
            module="discovery",
        )

    found: Set[type] = set()
    for mod in _iter_namespace_modules(namespace):
        for attr in vars(mod).values():
            if is_module_type(attr) and _in_namespace(attr, namespace):
                found.add(attr)

    if not found:
        logger.warning("namespace_has_no_modules", namespace=namespace)
    else:
        logger.debug(
            "namespace_scanned",
            namespace=namespace,
            modules=sorted(cls.__qualname__ for cls in found),
        )
    return found


def scan_namespaces(namespaces: Union[str, Iterable[str]]) -> Set[type]:
    """Union of scan_namespace() over every namespace.

    A single dotted path given as a plain string is scanned as one namespace.
    """
    if isinstance(namespaces, str):
        namespaces = [namespaces]
    found: Set[type] = set()
    for namespace in dict.fromkeys(namespaces):
        found |= scan_namespace(namespace)
    return found
