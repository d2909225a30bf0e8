"""Route and service lookups backing the documentation tree."""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

VERSION_SEPARATOR = "?version="


@dataclass(frozen=True)
class SwaggerResource:
    """A gateway swagger resource, e.g. name "iam:iam-service", location "/docs/iam?version=v1"."""

    name: str
    location: str


class ServiceRegistry(ABC):
    """Source of the swagger resources published through the gateway."""

    @abstractmethod
    def get_swagger_resources(self) -> List[SwaggerResource]:
        """Return every published swagger resource."""
        pass


class RouteRepository(ABC):
    """Resolves gateway route names to service ids."""

    @abstractmethod
    def get_service_id(self, route_name: str) -> Optional[str]:
        """Return the service id behind a route, or None if the route is unknown."""
        pass


class StaticServiceRegistry(ServiceRegistry):
    """Registry over a fixed list of resources."""

    def __init__(self, resources: Iterable[SwaggerResource]):
        self.resources = list(resources)

    def get_swagger_resources(self) -> List[SwaggerResource]:
        return list(self.resources)


class InMemoryRouteRepository(RouteRepository):
    """Route repository backed by a {route_name: service_id} dict."""

    def __init__(self, routes: Optional[Dict[str, str]] = None):
        self.routes = dict(routes or {})

    def get_service_id(self, route_name: str) -> Optional[str]:
        return self.routes.get(route_name)

    def add_route(self, route_name: str, service_id: str) -> None:
        self.routes[route_name] = service_id


class RegistryRouteRepository(RouteRepository):
    """Route repository derived from the registry's "route:service" resource names."""

    def __init__(self, registry: ServiceRegistry):
        self.registry = registry

    def get_service_id(self, route_name: str) -> Optional[str]:
        for resource in self.registry.get_swagger_resources():
            parsed = parse_resource(resource)
            if parsed is not None and parsed[0] == route_name:
                return parsed[1]
        return None


def parse_resource(resource: SwaggerResource) -> Optional[Tuple[str, str, str]]:
    """
    Split a swagger resource into (route_name, service_id, version).

    Returns:
        The triple, or None if the name is not "route:service" or the
        location carries no "?version=" suffix.
    """
    name_parts = resource.name.split(":")
    location_parts = resource.location.split(VERSION_SEPARATOR)
    if len(name_parts) != 2 or len(location_parts) != 2:
        logger.warning(
            f"Resource name is not 'route:service' or location is not "
            f"'/docs/xx?version=xx', name: {resource.name}, location: {resource.location}"
        )
        return None
    return name_parts[0], name_parts[1], location_parts[1]


def group_services(resources: Iterable[SwaggerResource]) -> Dict[Tuple[str, str], List[str]]:
    """
    Group swagger resources by (route_name, service_id).

    The result is ordered by route name then service id, and each version
    list is sorted and de-duplicated, so positional tree keys are stable
    across runs.

    Args:
        resources: Swagger resources from the registry

    Returns:
        {(route_name, service_id): [version, ...]}
    """
    grouped: Dict[Tuple[str, str], set] = {}
    for resource in resources:
        parsed = parse_resource(resource)
        if parsed is None:
            continue
        route_name, service_id, version = parsed
        grouped.setdefault((route_name, service_id), set()).add(version)

    return {key: sorted(grouped[key]) for key in sorted(grouped)}
