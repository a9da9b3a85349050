from fastapi import HTTPException, Request, status

from courier_push.services.dispatcher import PushDispatcher, VapidConfig


def get_dispatcher(request: Request) -> PushDispatcher:
    """Built once in the app lifespan; tests swap it via dependency_overrides."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Push dispatcher is not ready.",
        )
    return dispatcher


def get_vapid(request: Request) -> VapidConfig | None:
    return getattr(request.app.state, "vapid", None)
