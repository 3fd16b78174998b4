"""FastAPI route auto-discovery.

Conventions:
- Route modules live under `rangpic/routes/` and export `router: APIRouter`.
- Files starting with `_` are ignored.
- A router without its own prefix is mounted at `ROUTER_CONFIG["prefix"]` when
  the module exports one (an empty string mounts it at the root), otherwise at
  `/api/<module name>`.
- Other `ROUTER_CONFIG` keys are passed to `include_router(...)` unchanged.
"""

import importlib
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from fastapi import APIRouter, FastAPI

logger = logging.getLogger(__name__)

_ROUTES_DIR = Path(__file__).parent.parent / "routes"


class RouterDiscoveryError(Exception):
    """Raised when router discovery fails."""


def _module_path(routes_dir: Path, py_file: Path) -> str:
    # rangpic/routes/delivery.py -> rangpic.routes.delivery
    rel = py_file.relative_to(routes_dir).with_suffix("").parts
    return ".".join((routes_dir.parent.name, routes_dir.name, *rel))


def _include_kwargs(module: Any, router: APIRouter, py_file: Path) -> dict[str, Any]:
    config = getattr(module, "ROUTER_CONFIG", {})
    if not isinstance(config, Mapping):
        msg = f"ROUTER_CONFIG in '{py_file}' must be a mapping, got {type(config).__name__}"
        raise RouterDiscoveryError(msg)

    kwargs = {key: value for key, value in config.items() if key not in {"prefix", "tags"}}
    if not router.prefix:
        prefix = config.get("prefix", f"/api/{py_file.stem}")
        if not isinstance(prefix, str):
            msg = f"ROUTER_CONFIG['prefix'] in '{py_file}' must be a string"
            raise RouterDiscoveryError(msg)
        kwargs["prefix"] = prefix
    if not router.tags:
        kwargs["tags"] = list(config.get("tags", [py_file.stem]))
    return kwargs


def discover_routers(routes_dir: Path) -> list[tuple[APIRouter, dict[str, Any]]]:
    """Import every route module and return `(router, include_kwargs)` pairs."""
    routers: list[tuple[APIRouter, dict[str, Any]]] = []

    py_files = sorted(p for p in routes_dir.rglob("*.py") if not p.name.startswith("_"))
    for py_file in py_files:
        module_path = _module_path(routes_dir, py_file)
        try:
            module = importlib.import_module(module_path)
        except Exception as e:
            msg = f"Failed to import route module '{module_path}' ({py_file})"
            raise RouterDiscoveryError(msg) from e

        router = getattr(module, "router", None)
        if not isinstance(router, APIRouter):
            msg = f"Route module '{module_path}' must export 'router' as an APIRouter"
            raise RouterDiscoveryError(msg)

        routers.append((router, _include_kwargs(module, router, py_file)))

    return routers


def register_routers(app: FastAPI, routes_dir: Path | None = None) -> None:
    """Discover and register routers with a FastAPI app.

    Fails fast on startup if a route module can't be imported or doesn't export a
    valid `router`.
    """
    routes_dir = routes_dir or _ROUTES_DIR
    if not routes_dir.is_dir():
        raise FileNotFoundError(f"Routes directory not found: {routes_dir}")

    routers = discover_routers(routes_dir)
    if not routers:
        logger.warning("No routers discovered in %s", routes_dir)
        return

    for router, config in routers:
        app.include_router(router, **config)
        logger.info(
            "Registered router %r (tags: %s)",
            config.get("prefix", router.prefix) or "/",
            config.get("tags") or list(router.tags or []),
        )
