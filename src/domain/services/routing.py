"""Named-route dispatch for inbox items."""

from dataclasses import dataclass, field

from domain.entities.notification import POST_ACTIVITY_TYPES, NotificationTypes

FRIEND_REQUEST_KIND = "friend_request"


@dataclass(frozen=True, slots=True)
class Route:
    """Destination a presentation layer should open for an item."""

    name: str
    params: dict[str, str] = field(default_factory=dict)


# kind -> (route name, route param, attribute holding the param value)
_ROUTE_TABLE: dict[str, tuple[str, str, str]] = {
    **{kind: ("PostDetail", "post_id", "post_id") for kind in POST_ACTIVITY_TYPES},
    NotificationTypes.GROUP_INVITATION: ("GroupDetail", "group_id", "group_id"),
    NotificationTypes.GROUP_MESSAGE: ("GroupDetail", "group_id", "group_id"),
    FRIEND_REQUEST_KIND: ("UserProfile", "user_id", "from_user_id"),
}


def route_for(kind: str, item: object) -> Route | None:
    """Look up the route for an item of the given kind.

    Returns None for unknown kinds, or when the item lacks the id the
    route needs.
    """
    entry = _ROUTE_TABLE.get(kind)
    if entry is None:
        return None
    name, param, attribute = entry
    value = getattr(item, attribute, None)
    if not value:
        return None
    return Route(name=name, params={param: str(value)})
