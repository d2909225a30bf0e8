"""
Documentation Tree Builder - service -> version -> controller -> endpoint menu

Features:
- Services and versions grouped from the gateway's swagger resources,
  ordered by route name, service id and version
- Cache-aside controller sub-trees keyed by (service, version), 10 day TTL
- Corrupt or unreadable cache entries are rebuilt from the Swagger document
- Positional keys ("0", "0-1", "0-1-2", ...) reassigned on every pass
"""

import json
import logging
from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, List, Optional

from gateway_docs.builder.endpoint_assembler import EndpointAssembler
from gateway_docs.errors import DocumentationError
from gateway_docs.introspection.document_client import DocumentSource
from gateway_docs.registry.service_registry import ServiceRegistry, group_services
from gateway_docs.store.cache_store import CacheStore

logger = logging.getLogger(__name__)

API_TREE_DOC = "api-tree-doc"
CONTROLLER_MARKERS = ("-controller", "-endpoint")


def tree_cache_key(service: str, version: str) -> str:
    return f"{API_TREE_DOC}:{service}:{version}"


@dataclass
class TreeNode:
    """A menu node; endpoint leaves carry their routing attributes in `extra`"""
    title: str
    key: str = ""
    children: List["TreeNode"] = dataclass_field(default_factory=list)
    extra: Dict[str, Any] = dataclass_field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        data = {"title": self.title, "key": self.key}
        data.update(self.extra)
        data["children"] = [child.to_dict() for child in self.children]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TreeNode":
        extra = {k: v for k, v in data.items() if k not in ("title", "key", "children")}
        return cls(
            title=data["title"],
            key=str(data.get("key", "")),
            children=[cls.from_dict(child) for child in data.get("children") or []],
            extra=extra,
        )


def assign_keys(nodes: List[TreeNode], parent_key: Optional[str] = None) -> None:
    """Give each node a key derived from its sibling index, recursively"""
    for index, node in enumerate(nodes):
        node.key = str(index) if parent_key is None else f"{parent_key}-{index}"
        assign_keys(node.children, node.key)


class DocumentationTreeBuilder:
    """
    Builds the API documentation menu of every service behind the gateway

    Usage:
    ```python
    builder = DocumentationTreeBuilder(registry, client, InMemoryCacheStore())
    menu = builder.build()
    # {"service": [{"title": "iam-service", "key": "0", "children": [...]}]}
    ```
    """

    def __init__(
        self,
        registry: ServiceRegistry,
        document_source: DocumentSource,
        cache_store: CacheStore,
        ttl_days: float = 10,
        extra_data_field: str = "description",
    ):
        """
        Initialize DocumentationTreeBuilder

        Args:
            registry: Source of (route, service, version) triples
            document_source: Fetches Swagger documents
            cache_store: Advisory cache for controller sub-trees
            ttl_days: Lifetime of cached sub-trees
            extra_data_field: Operation field holding the permission blob
        """
        self.registry = registry
        self.document_source = document_source
        self.cache_store = cache_store
        self.ttl_days = ttl_days
        self.extra_data_field = extra_data_field

    def build(self) -> Dict[str, List[Dict[str, Any]]]:
        """Build the whole menu as plain dictionaries"""
        return {"service": [node.to_dict() for node in self.build_nodes()]}

    def build_nodes(self) -> List[TreeNode]:
        """Build the service nodes of the menu"""
        services = group_services(self.registry.get_swagger_resources())
        nodes = []

        for service_index, ((route_name, service), versions) in enumerate(services.items()):
            service_key = str(service_index)
            service_node = TreeNode(title=service, key=service_key)

            for version_index, version in enumerate(versions):
                version_key = f"{service_key}-{version_index}"
                version_node = TreeNode(title=version, key=version_key)
                version_node.children = self.controller_nodes(route_name, service, version)
                assign_keys(version_node.children, version_key)
                service_node.children.append(version_node)

            nodes.append(service_node)

        logger.info(f"Built documentation tree for {len(nodes)} services")
        return nodes

    def controller_nodes(self, route_name: str, service: str, version: str) -> List[TreeNode]:
        """
        Controller sub-tree of one service version, cache-aside

        Returns:
            Controller nodes; empty if the document is unavailable
        """
        cache_key = tree_cache_key(service, version)
        cached = self._load_cached(cache_key)
        if cached is not None:
            logger.debug(f"Tree cache hit: {cache_key}")
            return cached

        logger.debug(f"Tree cache miss: {cache_key}")
        document = self._fetch_document(service, version)
        if document is None:
            return []

        nodes = self.build_controller_nodes(route_name, service, version, document)
        self._save_cached(cache_key, nodes)
        return nodes

    def build_controller_nodes(
        self,
        route_name: str,
        service: str,
        version: str,
        document: Dict[str, Any],
    ) -> List[TreeNode]:
        """
        Build controller nodes from a Swagger document, without touching the cache

        Only tags named like "*-controller" or "*-endpoint" become controllers,
        and controllers without documented endpoints are dropped.
        """
        controllers: Dict[str, TreeNode] = {}
        for tag in document.get("tags") or []:
            name = tag.get("name") if isinstance(tag, dict) else None
            if not name or not any(marker in name for marker in CONTROLLER_MARKERS):
                continue
            controllers[name] = TreeNode(title=name)

        assembler = EndpointAssembler(route_name, extra_data_field=self.extra_data_field)
        for endpoint in assembler.assemble(document):
            for tag in endpoint.tags:
                controller = controllers.get(tag)
                if controller is None:
                    continue
                controller.children.append(
                    TreeNode(
                        title=endpoint.url,
                        extra={
                            "method": endpoint.method,
                            "operationId": endpoint.operation_id,
                            "service": service,
                            "version": version,
                            "servicePrefix": route_name,
                            "refController": tag,
                        },
                    )
                )

        nodes = [c for c in controllers.values() if c.children]
        assign_keys(nodes)
        return nodes

    def _fetch_document(self, service: str, version: str) -> Optional[Dict[str, Any]]:
        try:
            text = self.document_source.fetch_swagger_json(service, version)
        except DocumentationError as e:
            logger.warning(f"Swagger json of service {service} version {version} unavailable, skip: {e}")
            return None

        if not text:
            logger.warning(f"The swagger json of service {service} version {version} is empty, skip")
            return None

        try:
            document = json.loads(text)
        except ValueError as e:
            logger.error(f"Read tree error, service: {service}, version: {version}: {e}")
            return None
        if not isinstance(document, dict):
            logger.error(f"Swagger json of service {service} version {version} is not an object")
            return None
        return document

    def _load_cached(self, cache_key: str) -> Optional[List[TreeNode]]:
        """Read a cached sub-tree; any failure counts as a miss"""
        try:
            if not self.cache_store.has_key(cache_key):
                return None
            raw = self.cache_store.get(cache_key)
        except Exception as e:
            logger.warning(f"Cache read failed for {cache_key}: {e}")
            return None
        if raw is None:
            return None

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            return [TreeNode.from_dict(item) for item in data]
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.error(f"Cached value of {cache_key} is unreadable, rebuilding from swagger: {e}")
            return None

    def _save_cached(self, cache_key: str, nodes: List[TreeNode]) -> None:
        try:
            self.cache_store.set(cache_key, json.dumps([n.to_dict() for n in nodes]), self.ttl_days)
        except Exception as e:
            logger.warning(f"Error caching {cache_key}: {e}")
