"""
API Documentation Service - Console-facing queries over gateway services

Wires route lookup, document fetching, the builders and the stores into:
- controller listing and path detail of one service version
- the documentation tree menu
- service-level and API-level invocation statistics
- documented API counts per service
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from config import AppConfig
from gateway_docs.builder.endpoint_assembler import (
    ControllerDoc,
    EndpointAssembler,
    EndpointDoc,
    iter_documented_operations,
)
from gateway_docs.errors import DocumentationError, ErrorCode
from gateway_docs.introspection.document_client import DocumentSource, SwaggerDocumentClient
from gateway_docs.registry.service_registry import (
    RegistryRouteRepository,
    RouteRepository,
    ServiceRegistry,
    group_services,
)
from gateway_docs.stats.invocation_stats import InvocationStatsAggregator
from gateway_docs.store.cache_store import CacheStore, FileCacheStore, InMemoryCacheStore
from gateway_docs.store.counter_store import CounterStore, FileCounterStore
from gateway_docs.tree.tree_builder import DocumentationTreeBuilder

logger = logging.getLogger(__name__)

PATH_DETAIL = "path-detail"


def path_detail_cache_key(name: str, version: str, controller_name: str, operation_id: str) -> str:
    return f"{PATH_DETAIL}:{name}:{version}:{controller_name}:{operation_id}"


def create_cache_store(config: AppConfig) -> CacheStore:
    """Build the cache store selected by configuration"""
    if config.cache.backend == "file":
        return FileCacheStore(Path(config.cache.cache_dir))
    return InMemoryCacheStore()


class ApiDocumentationService:
    """
    Facade over the documentation core

    Usage:
    ```python
    service = ApiDocumentationService.from_config(app_config)
    menu = service.query_tree_menu()
    controllers = service.get_controllers("iam", "v1")
    ```
    """

    def __init__(
        self,
        document_source: DocumentSource,
        registry: ServiceRegistry,
        route_repository: RouteRepository,
        cache_store: CacheStore,
        counter_store: CounterStore,
        ttl_days: float = 10,
        extra_data_field: str = "description",
    ):
        self.document_source = document_source
        self.registry = registry
        self.route_repository = route_repository
        self.cache_store = cache_store
        self.ttl_days = ttl_days
        self.extra_data_field = extra_data_field
        self.tree_builder = DocumentationTreeBuilder(
            registry,
            document_source,
            cache_store,
            ttl_days=ttl_days,
            extra_data_field=extra_data_field,
        )
        self.stats = InvocationStatsAggregator(counter_store)

    @classmethod
    def from_config(cls, config: AppConfig) -> "ApiDocumentationService":
        """Wire the gateway client, a registry-derived route lookup and the configured stores"""
        client = SwaggerDocumentClient(config.documents)
        return cls(
            document_source=client,
            registry=client,
            route_repository=RegistryRouteRepository(client),
            cache_store=create_cache_store(config),
            counter_store=FileCounterStore(Path(config.counters_dir)),
            ttl_days=config.cache.tree_ttl_days,
            extra_data_field=config.extra_data_field,
        )

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def get_service_id(self, route_name: str) -> str:
        """
        Raises:
            DocumentationError: ROUTE_NOT_FOUND
        """
        service_id = self.route_repository.get_service_id(route_name)
        if service_id is None:
            raise DocumentationError(ErrorCode.ROUTE_NOT_FOUND, route_name)
        return service_id

    def get_swagger_json(self, route_name: str, version: str) -> str:
        """
        Fetch the raw Swagger document behind a route

        Raises:
            DocumentationError: ROUTE_NOT_FOUND, SERVICE_NOT_RUN or SWAGGER_JSON_EMPTY
        """
        service_id = self.get_service_id(route_name)
        text = self.document_source.fetch_swagger_json(service_id, version)
        if not text:
            raise DocumentationError(ErrorCode.SWAGGER_JSON_EMPTY, route_name, version)
        return text

    def load_document(self, route_name: str, version: str) -> Dict[str, Any]:
        """
        Fetch and parse the Swagger document behind a route

        Raises:
            DocumentationError: as get_swagger_json, plus PARSE_JSON
        """
        text = self.get_swagger_json(route_name, version)
        try:
            document = json.loads(text)
        except ValueError:
            raise DocumentationError(ErrorCode.PARSE_JSON, route_name, version)
        if not isinstance(document, dict):
            raise DocumentationError(ErrorCode.PARSE_JSON, route_name, version)
        return document

    def _assembler(self, route_name: str) -> EndpointAssembler:
        return EndpointAssembler(route_name, extra_data_field=self.extra_data_field)

    def get_controllers(self, route_name: str, version: str) -> List[ControllerDoc]:
        """Controllers of a service version with their documented endpoints"""
        document = self.load_document(route_name, version)
        return self._assembler(route_name).controllers(document)

    def get_endpoints(self, route_name: str, version: str) -> List[EndpointDoc]:
        """Documented endpoints of a service version"""
        document = self.load_document(route_name, version)
        return self._assembler(route_name).assemble(document)

    def query_path_detail(
        self,
        route_name: str,
        version: str,
        controller_name: str,
        operation_id: str,
    ) -> ControllerDoc:
        """
        Detail of one operation, cache-aside

        Returns:
            The controller holding the matching endpoint(s)

        Raises:
            DocumentationError: ROUTE_NOT_FOUND, SERVICE_NOT_RUN, SWAGGER_JSON_EMPTY,
                PARSE_JSON or CONTROLLER_NOT_FOUND
        """
        key = path_detail_cache_key(route_name, version, controller_name, operation_id)
        cached = self._load_cached_controller(key)
        if cached is not None:
            logger.debug(f"Path detail cache hit: {key}")
            return cached

        document = self.load_document(route_name, version)
        controller = self._assembler(route_name).path_detail(document, controller_name, operation_id)
        try:
            self.cache_store.set(key, json.dumps(controller.to_dict()), self.ttl_days)
        except Exception as e:
            logger.warning(f"Error caching {key}: {e}")
        return controller

    def _load_cached_controller(self, key: str) -> Optional[ControllerDoc]:
        try:
            raw = self.cache_store.get(key) if self.cache_store.has_key(key) else None
        except Exception as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return ControllerDoc.from_dict(json.loads(raw))
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.error(f"Cached value of {key} is unreadable, processing from swagger: {e}")
            return None

    # ------------------------------------------------------------------
    # Tree menu
    # ------------------------------------------------------------------

    def query_tree_menu(self) -> Dict[str, List[Dict[str, Any]]]:
        return self.tree_builder.build()

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def _services(self) -> Dict[Tuple[str, str], List[str]]:
        return group_services(self.registry.get_swagger_resources())

    def query_service_invoke(self, begin: str, end: str) -> Dict[str, Any]:
        """Daily invocation counts of every registered service"""
        services = [service for _, service in self._services()]
        return self.stats.query_service_invoke(begin, end, services).to_dict()

    def query_api_invoke(self, begin: str, end: str, service: str) -> Dict[str, Any]:
        """Daily invocation counts of each API of one service"""
        return self.stats.query_api_invoke(begin, end, service).to_dict()

    def query_instances_and_api_count(self) -> Dict[str, List[Any]]:
        """
        Number of documented APIs per service

        Only the first version (in sorted order) of each service is counted.
        """
        services: List[str] = []
        api_counts: List[int] = []

        for (route_name, service), versions in self._services().items():
            count = 0
            if versions:
                count = self._count_documented_apis(service, versions[0])
            services.append(service)
            api_counts.append(count)

        return {"services": services, "apiCounts": api_counts}

    def _count_documented_apis(self, service: str, version: str) -> int:
        try:
            text = self.document_source.fetch_swagger_json(service, version)
        except DocumentationError as e:
            logger.warning(f"Swagger json of service {service} version {version} unavailable, count 0: {e}")
            return 0
        if not text:
            logger.warning(f"The swagger json of service {service} version {version} is empty, skip")
            return 0
        try:
            document = json.loads(text)
        except ValueError as e:
            logger.error(f"Read tree error, service: {service}, version: {version}: {e}")
            return 0
        if not isinstance(document, dict):
            return 0
        return sum(1 for _ in iter_documented_operations(document))
