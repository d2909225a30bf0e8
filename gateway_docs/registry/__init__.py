"""Service registry and route lookup collaborators."""

from .service_registry import (
    SwaggerResource,
    ServiceRegistry,
    RouteRepository,
    StaticServiceRegistry,
    InMemoryRouteRepository,
    RegistryRouteRepository,
    parse_resource,
    group_services,
)

__all__ = [
    "SwaggerResource",
    "ServiceRegistry",
    "RouteRepository",
    "StaticServiceRegistry",
    "InMemoryRouteRepository",
    "RegistryRouteRepository",
    "parse_resource",
    "group_services",
]
