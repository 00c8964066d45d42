from __future__ import annotations

import importlib
from typing import Any

from ghsidebar.core.errors import AdapterError


def load_adapter(dotted_path: str) -> type:
    """Resolve a ``package.module:ClassName`` path to the adapter class."""
    try:
        module_path, class_name = dotted_path.split(":", 1)
        module = importlib.import_module(module_path)
        adapter_cls = getattr(module, class_name)
    except (ValueError, ImportError, AttributeError) as exc:
        raise AdapterError(f"Unable to load adapter: {dotted_path}") from exc
    if not callable(adapter_cls):
        raise AdapterError(f"Adapter is not callable: {dotted_path}")
    return adapter_cls


def build_adapter(dotted_path: str, **kwargs: Any) -> Any:
    adapter_cls = load_adapter(dotted_path)
    try:
        return adapter_cls(**kwargs)
    except TypeError as exc:
        raise AdapterError(f"Unable to construct adapter {dotted_path}: {exc}") from exc
