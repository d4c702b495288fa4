"""
Caller identity.

Identity is asserted by the upstream API gateway through the ``X-Actor-Role``
and ``X-Actor-Id`` headers. Services never read ambient state: every
dispatch operation receives the ``Actor`` explicitly.
"""
from dataclasses import dataclass
from typing import Optional

from channels.middleware import BaseMiddleware
from rest_framework import authentication, exceptions

ROLE_HEADER = "X-Actor-Role"
ID_HEADER = "X-Actor-Id"


class Roles:
    CUSTOMER = "customer"
    ADMIN = "admin"
    RIDER = "rider"

    ALL = (CUSTOMER, ADMIN, RIDER)


@dataclass(frozen=True)
class Actor:
    role: str
    id: str

    # DRF checks request.user.is_authenticated
    is_authenticated = True

    @property
    def is_admin(self) -> bool:
        return self.role == Roles.ADMIN

    @property
    def is_rider(self) -> bool:
        return self.role == Roles.RIDER

    @property
    def is_customer(self) -> bool:
        return self.role == Roles.CUSTOMER

    def __str__(self):
        return f"{self.role}:{self.id}"


def actor_from_headers(role: Optional[str], actor_id: Optional[str]) -> Optional[Actor]:
    if not role or not actor_id:
        return None
    role = role.strip().lower()
    if role not in Roles.ALL:
        return None
    actor_id = actor_id.strip()
    if role == Roles.CUSTOMER:
        # customers are identified by the email they check out with
        actor_id = actor_id.lower()
    return Actor(role=role, id=actor_id)


class GatewayHeaderAuthentication(authentication.BaseAuthentication):
    def authenticate(self, request):
        role = request.headers.get(ROLE_HEADER)
        actor_id = request.headers.get(ID_HEADER)
        if role is None and actor_id is None:
            return None
        actor = actor_from_headers(role, actor_id)
        if actor is None:
            raise exceptions.AuthenticationFailed("Invalid actor headers")
        return (actor, None)

    def authenticate_header(self, request):
        return ROLE_HEADER


class GatewayHeaderMiddleware(BaseMiddleware):
    """Resolves the actor of a WebSocket handshake into ``scope["actor"]``"""

    async def __call__(self, scope, receive, send):
        headers = {
            name.decode("latin1").lower(): value.decode("latin1")
            for name, value in scope.get("headers", [])
        }
        scope = dict(scope)
        scope["actor"] = actor_from_headers(
            headers.get(ROLE_HEADER.lower()), headers.get(ID_HEADER.lower())
        )
        return await super().__call__(scope, receive, send)
