"""
Dependency injection configuration for FastAPI.

The broadcast hub is created once per application by the factory and kept
on ``app.state``. HTTP routes receive it through ``HubDep``, which can be
replaced in tests using ``app.dependency_overrides``.

Example:
    ```python
    from fastapi import APIRouter
    from relay.dependencies import HubDep

    router = APIRouter()

    @router.get("/participants")
    async def participants(hub: HubDep) -> list[str]:
        return [p.name for p in await hub.participants()]
    ```
"""

from typing import Annotated

from fastapi import Depends, Request

from relay.managers.broadcast_hub import BroadcastHub


def get_hub(request: Request) -> BroadcastHub:
    """
    Get the broadcast hub of the running application.

    Args:
        request: The incoming request.

    Returns:
        The application's BroadcastHub instance.
    """
    return request.app.state.hub


HubDep = Annotated[BroadcastHub, Depends(get_hub)]
