"""
Role policy: the fixed mapping from actor role to reachable screens and
permitted actions.

The mapping is pure: the same role always yields the same (immutable)
policy. The routing layer treats it as authoritative and redirects to
``landing_route`` on a mismatch; the API enforces ``allowed_actions``
through ``require_action`` in ``foodrescue.api.v1.deps``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    CONSUMER = "consumer"
    RESTAURANT = "restaurant"
    GROCERY = "grocery"
    NGO = "ngo"
    ADMIN = "admin"


class Route(str, Enum):
    LANDING = "landing"
    LOGIN = "login"
    SIGNUP = "signup"
    HOME = "home"
    CHECKOUT = "checkout"
    ORDERS = "orders"
    ONBOARDING = "onboarding"
    PROFILE = "profile"
    SELLER_DASHBOARD = "seller_dashboard"
    ANALYTICS = "analytics"
    VERIFICATION = "verification"
    ADMIN_DASHBOARD = "admin_dashboard"


class Action(str, Enum):
    ORDER_CREATE = "order:create"
    ORDER_REDEEM = "order:redeem"
    ORDER_EXPIRE = "order:expire"
    LISTING_CREATE = "listing:create"
    USER_MANAGE = "user:manage"


SELLER_ROLES = frozenset({Role.RESTAURANT, Role.GROCERY})
SELF_SERVICE_ROLES = frozenset({Role.CONSUMER, Role.NGO, Role.RESTAURANT, Role.GROCERY})


@dataclass(frozen=True)
class RoutePolicy:
    landing_route: Route
    allowed_routes: frozenset[Route]
    allowed_actions: frozenset[Action] = frozenset()

    def allows_route(self, route: Route | str) -> bool:
        return Route(route) in self.allowed_routes

    def allows_action(self, action: Action | str) -> bool:
        return Action(action) in self.allowed_actions


PUBLIC_POLICY = RoutePolicy(
    landing_route=Route.LANDING,
    allowed_routes=frozenset({Route.LANDING, Route.LOGIN, Route.SIGNUP}),
)

_RECIPIENT_POLICY = RoutePolicy(
    landing_route=Route.HOME,
    allowed_routes=frozenset(
        {Route.HOME, Route.CHECKOUT, Route.ORDERS, Route.ONBOARDING, Route.PROFILE}
    ),
    allowed_actions=frozenset({Action.ORDER_CREATE}),
)

_SELLER_POLICY = RoutePolicy(
    landing_route=Route.SELLER_DASHBOARD,
    allowed_routes=frozenset(
        {
            Route.SELLER_DASHBOARD,
            Route.ORDERS,
            Route.ANALYTICS,
            Route.VERIFICATION,
            Route.PROFILE,
        }
    ),
    allowed_actions=frozenset({Action.LISTING_CREATE, Action.ORDER_REDEEM}),
)

_ADMIN_POLICY = RoutePolicy(
    landing_route=Route.ADMIN_DASHBOARD,
    allowed_routes=frozenset(
        {Route.ADMIN_DASHBOARD, Route.HOME, Route.ORDERS, Route.ANALYTICS, Route.PROFILE}
    ),
    allowed_actions=frozenset({Action.ORDER_REDEEM, Action.ORDER_EXPIRE, Action.USER_MANAGE}),
)

_POLICIES: dict[Role, RoutePolicy] = {
    Role.CONSUMER: _RECIPIENT_POLICY,
    Role.NGO: _RECIPIENT_POLICY,
    Role.RESTAURANT: _SELLER_POLICY,
    Role.GROCERY: _SELLER_POLICY,
    Role.ADMIN: _ADMIN_POLICY,
}


def policy_for(role: Role | str | None) -> RoutePolicy:
    """Return the policy for *role*; ``None`` means an unauthenticated caller."""
    if role is None:
        return PUBLIC_POLICY
    return _POLICIES[Role(role)]
