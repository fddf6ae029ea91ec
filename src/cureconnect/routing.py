"""Route table: literal URL paths to controller actions.

Matching is exact string equality on the request path. There are no
path parameters; per-resource ids and slugs travel in the query string.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from cureconnect.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition: ``path`` dispatches to ``controller.action``."""

    path: str
    controller: type
    action: str

    @property
    def target(self) -> str:
        return f"{self.controller.__name__}.{self.action}"


class RouteTable:
    """One entry per literal path.

    Built once during boot; read-only afterwards.
    """

    __slots__ = ("_routes",)

    def __init__(self, routes: tuple[Route, ...] = ()) -> None:
        self._routes: dict[str, Route] = {}
        for route in routes:
            self.add(route.path, route.controller, route.action)

    def add(self, path: str, controller: type, action: str) -> Route:
        """Register *path*.

        Raises:
            ConfigurationError: The path is not absolute, is already
                registered, or the controller has no such action.
        """
        if not path.startswith("/"):
            msg = f"Route path must start with '/': {path!r}"
            raise ConfigurationError(msg)
        if path in self._routes:
            msg = f"Duplicate route {path!r} ({self._routes[path].target})"
            raise ConfigurationError(msg)
        if not callable(getattr(controller, action, None)):
            msg = f"{controller.__name__} has no action {action!r} for route {path!r}"
            raise ConfigurationError(msg)
        route = Route(path=path, controller=controller, action=action)
        self._routes[path] = route
        return route

    def match(self, path: str) -> Route | None:
        return self._routes.get(path)

    @property
    def routes(self) -> tuple[Route, ...]:
        return tuple(self._routes.values())

    def __contains__(self, path: object) -> bool:
        return path in self._routes

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes.values())

    def __len__(self) -> int:
        return len(self._routes)
