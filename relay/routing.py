import os
import pkgutil
from importlib import import_module

from fastapi import APIRouter

from relay.logging import logger

_registered_modules: set[str] = set()


def collect_subrouters() -> APIRouter:
    """
    Collects the HTTP and WebSocket routers of the application.

    Every module in `api/http` and `api/ws/consumers` is imported and its
    `router` is included in the returned router.
    """
    main_router: APIRouter = APIRouter()

    app_dir = os.path.dirname(__file__)
    app_name = os.path.basename(app_dir)

    for package in ("api.http", "api.ws.consumers"):
        package_dir = os.path.join(app_dir, *package.split("."))

        for _, module, _ in pkgutil.iter_modules([package_dir]):
            mod = import_module(f".{module}", package=f"{app_name}.{package}")
            main_router.include_router(mod.router)

            # Only log on first registration
            key = f"{package}.{module}"
            if key not in _registered_modules:
                logger.info(f'Register "{module}" {package.split(".")[1]} router')
                _registered_modules.add(key)

    return main_router
