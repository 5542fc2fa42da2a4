"""Request-scoped dependencies shared by the routers."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from backoffice.application.container import ServiceContainer
from backoffice.domain.value_objects import Actor, ActorRole

# Roles a caller may claim through headers
HEADER_ROLES = {"admin": ActorRole.ADMIN, "seller": ActorRole.SELLER}


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_actor(
    x_actor_role: Annotated[str | None, Header()] = None,
    x_seller_id: Annotated[str | None, Header()] = None,
) -> Actor:
    """Resolve the acting identity from the ``X-Actor-Role`` and ``X-Seller-ID`` headers.

    Raises:
        HTTPException: 400 if the headers are missing or inconsistent.
    """
    role = HEADER_ROLES.get((x_actor_role or "").strip().lower())
    seller_id = (x_seller_id or "").strip() or None
    if role is None or (role == ActorRole.SELLER and seller_id is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error_code": "INVALID_ACTOR",
                "message": "X-Actor-Role must be 'admin' or 'seller'; sellers must send X-Seller-ID",
            },
        )
    return Actor(role=role, seller_id=seller_id)


def require_seller(actor: Annotated[Actor, Depends(get_actor)]) -> Actor:
    if actor.role != ActorRole.SELLER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error_code": "FORBIDDEN", "message": "This endpoint is for sellers"},
        )
    return actor


def require_admin(actor: Annotated[Actor, Depends(get_actor)]) -> Actor:
    if not actor.is_privileged:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error_code": "FORBIDDEN", "message": "This endpoint is for admins"},
        )
    return actor


Container = Annotated[ServiceContainer, Depends(get_container)]
CurrentActor = Annotated[Actor, Depends(get_actor)]
SellerActor = Annotated[Actor, Depends(require_seller)]
AdminActor = Annotated[Actor, Depends(require_admin)]
