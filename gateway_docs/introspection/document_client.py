"""
Swagger Document Client - Fetches service Swagger documents through the gateway.

Features:
- Per-service, per-version document fetch (/docs/<service>?version=<v>)
- Swagger resource listing (/swagger-resources) for the service registry
- Bearer token authentication
- Network failures surfaced as SERVICE_NOT_RUN domain errors
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from config import DocumentServiceConfig
from gateway_docs.errors import DocumentationError, ErrorCode
from gateway_docs.registry.service_registry import ServiceRegistry, SwaggerResource

logger = logging.getLogger(__name__)


class DocumentSource(ABC):
    """Anything able to hand out the raw Swagger JSON of a service version"""

    @abstractmethod
    def fetch_swagger_json(self, service: str, version: str) -> Optional[str]:
        """
        Fetch the raw Swagger document of a service version

        Returns:
            JSON text, or None when the service published an empty document

        Raises:
            DocumentationError: SERVICE_NOT_RUN if the document is unreachable
        """
        pass


class StaticDocumentSource(DocumentSource):
    """Document source over a {(service, version): json_text} dict"""

    def __init__(self, documents: Optional[Dict[tuple, str]] = None):
        self.documents = dict(documents or {})

    def fetch_swagger_json(self, service: str, version: str) -> Optional[str]:
        return self.documents.get((service, version))


class SwaggerDocumentClient(DocumentSource, ServiceRegistry):
    """
    Fetches Swagger documents and resources from the gateway

    Usage:
    ```python
    client = SwaggerDocumentClient(DocumentServiceConfig(base_url="http://gateway:8080"))
    resources = client.get_swagger_resources()
    json_text = client.fetch_swagger_json("iam-service", "v1")
    ```
    """

    DOCS_PATH = "/docs/{service}"
    RESOURCES_PATH = "/swagger-resources"

    def __init__(self, config: DocumentServiceConfig):
        """
        Initialize the client

        Args:
            config: Gateway URL, token and timeout
        """
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.session = requests.Session()

        if config.api_key:
            self.session.headers.update({"Authorization": f"Bearer {config.api_key}"})

    def fetch_swagger_json(self, service: str, version: str) -> Optional[str]:
        url = f"{self.base_url}{self.DOCS_PATH.format(service=service)}"
        try:
            logger.debug(f"Fetching swagger document: {url} version={version}")
            response = self.session.get(url, params={"version": version}, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Fetch swagger json error, service: {service}, version: {version}, exception: {e}")
            raise DocumentationError(ErrorCode.SERVICE_NOT_RUN, service, version) from e

        text = response.text
        if not text or not text.strip():
            logger.warning(f"The swagger json of service {service} version {version} is empty")
            return None
        return text

    def get_swagger_resources(self) -> List[SwaggerResource]:
        """
        List the swagger resources registered in the gateway

        Returns:
            Resources; an unreachable gateway or malformed body yields an empty list
        """
        url = f"{self.base_url}{self.RESOURCES_PATH}"
        try:
            response = self.session.get(url, timeout=self.config.timeout)
            response.raise_for_status()
            payload: Any = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to list swagger resources from {url}: {e}")
            return []
        except ValueError as e:
            logger.warning(f"Invalid JSON from {url}: {e}")
            return []

        resources = []
        for item in payload if isinstance(payload, list) else []:
            if not isinstance(item, dict) or "name" not in item or "location" not in item:
                logger.warning(f"Skipping malformed swagger resource: {item}")
                continue
            resources.append(SwaggerResource(name=item["name"], location=item["location"]))

        logger.info(f"Found {len(resources)} swagger resources")
        return resources
