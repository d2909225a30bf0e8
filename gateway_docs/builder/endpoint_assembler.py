"""
Endpoint Assembler - Builds per-endpoint documentation from a Swagger document

Integrates:
- SchemaGraph + ExampleSynthesizer: example bodies for body parameters and responses
- Permission side channel: JSON blob in an operation field -> permission code
- Controller grouping: an endpoint is attached to every controller it is tagged with

Operations without a `description` are treated as undocumented and never
appear in any output.
"""

import json
import logging
from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from gateway_docs.errors import DocumentationError, ErrorCode
from gateway_docs.introspection.schema_graph import SchemaGraph, ref_name
from .example_synthesizer import ExampleSynthesizer

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "patch", "delete", "head", "options")
CONTROLLER_SUFFIX = "-controller"


@dataclass
class ParameterDoc:
    """A single operation parameter; only `in: body` parameters get a body"""
    name: str
    location: str
    description: Optional[str] = None
    required: bool = False
    type: Optional[str] = None
    format: Optional[str] = None
    collection_format: Optional[str] = None
    items: Optional[Dict[str, Any]] = None
    default: Any = None
    schema: Optional[Dict[str, Any]] = None
    body: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        return {
            "name": self.name,
            "in": self.location,
            "description": self.description,
            "required": self.required,
            "type": self.type,
            "format": self.format,
            "collectionFormat": self.collection_format,
            "items": self.items,
            "default": self.default,
            "schema": self.schema,
            "body": self.body,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParameterDoc":
        return cls(
            name=data.get("name", ""),
            location=data.get("in", ""),
            description=data.get("description"),
            required=bool(data.get("required", False)),
            type=data.get("type"),
            format=data.get("format"),
            collection_format=data.get("collectionFormat"),
            items=data.get("items"),
            default=data.get("default"),
            schema=data.get("schema"),
            body=data.get("body"),
        )


@dataclass
class ResponseDoc:
    """One documented response status"""
    http_status: str
    description: Optional[str] = None
    body: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"httpStatus": self.http_status, "description": self.description, "body": self.body}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResponseDoc":
        return cls(
            http_status=str(data.get("httpStatus", "")),
            description=data.get("description"),
            body=data.get("body"),
        )


@dataclass
class EndpointDoc:
    """Documentation record of one (url, method) pair"""
    url: str
    method: str
    base_path: Optional[str] = None
    operation_id: Optional[str] = None
    description: Optional[str] = None
    remark: Optional[str] = None  # operation summary
    consumes: List[str] = dataclass_field(default_factory=list)
    produces: List[str] = dataclass_field(default_factory=list)
    parameters: List[ParameterDoc] = dataclass_field(default_factory=list)
    responses: List[ResponseDoc] = dataclass_field(default_factory=list)
    tags: List[str] = dataclass_field(default_factory=list)
    code: Optional[str] = None
    inner_interface: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        return {
            "url": self.url,
            "method": self.method,
            "basePath": self.base_path,
            "operationId": self.operation_id,
            "description": self.description,
            "remark": self.remark,
            "consumes": list(self.consumes),
            "produces": list(self.produces),
            "parameters": [p.to_dict() for p in self.parameters],
            "responses": [r.to_dict() for r in self.responses],
            "tags": list(self.tags),
            "code": self.code,
            "innerInterface": self.inner_interface,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EndpointDoc":
        return cls(
            url=data["url"],
            method=data["method"],
            base_path=data.get("basePath"),
            operation_id=data.get("operationId"),
            description=data.get("description"),
            remark=data.get("remark"),
            consumes=list(data.get("consumes") or []),
            produces=list(data.get("produces") or []),
            parameters=[ParameterDoc.from_dict(p) for p in data.get("parameters") or []],
            responses=[ResponseDoc.from_dict(r) for r in data.get("responses") or []],
            tags=list(data.get("tags") or []),
            code=data.get("code"),
            inner_interface=data.get("innerInterface"),
        )


@dataclass
class ControllerDoc:
    """A controller (document tag) with the endpoints tagged with it"""
    name: str
    description: Optional[str] = None
    paths: List[EndpointDoc] = dataclass_field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "paths": [p.to_dict() for p in self.paths],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ControllerDoc":
        return cls(
            name=data["name"],
            description=data.get("description"),
            paths=[EndpointDoc.from_dict(p) for p in data.get("paths") or []],
        )


def iter_documented_operations(document: Dict[str, Any]) -> Iterator[Tuple[str, str, Dict[str, Any]]]:
    """Yield (url, method, operation) for every operation that has a description"""
    paths = document.get("paths") or {}
    for url, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        for method, operation in path_item.items():
            if method.lower() not in HTTP_METHODS or not isinstance(operation, dict):
                continue
            if operation.get("description") is None:
                continue
            yield url, method, operation


class EndpointAssembler:
    """
    Builds EndpointDoc and ControllerDoc records for one service

    Usage:
    ```python
    assembler = EndpointAssembler("iam")
    endpoints = assembler.assemble(document)
    controllers = assembler.controllers(document)
    ```
    """

    def __init__(
        self,
        service_name: str,
        synthesizer: Optional[ExampleSynthesizer] = None,
        extra_data_field: str = "description",
    ):
        """
        Initialize EndpointAssembler

        Args:
            service_name: Service name used as permission code prefix
            synthesizer: Example body renderer
            extra_data_field: Operation field holding the permission JSON blob
        """
        self.service_name = service_name
        self.synthesizer = synthesizer or ExampleSynthesizer()
        self.extra_data_field = extra_data_field

    def example_bodies(self, document: Dict[str, Any]) -> Dict[str, str]:
        """Render the example body of every definition in the document"""
        return self.synthesizer.render_all(SchemaGraph.parse(document))

    def assemble(
        self,
        document: Dict[str, Any],
        bodies: Optional[Dict[str, str]] = None,
    ) -> List[EndpointDoc]:
        """
        Build one EndpointDoc per documented (url, method) pair

        Args:
            document: Swagger document
            bodies: Precomputed example bodies (rendered from the document if omitted)

        Returns:
            Endpoint records in document order
        """
        if bodies is None:
            bodies = self.example_bodies(document)
        base_path = document.get("basePath")

        endpoints = [
            self._build_endpoint(url, method, operation, bodies, base_path)
            for url, method, operation in iter_documented_operations(document)
        ]
        logger.info(f"Assembled {len(endpoints)} endpoints for service {self.service_name}")
        return endpoints

    def controllers(self, document: Dict[str, Any]) -> List[ControllerDoc]:
        """
        Group the document's endpoints under its tags

        Returns:
            One ControllerDoc per document tag, in tag order
        """
        controllers = self._collect_controllers(document)
        by_name = {c.name: c for c in controllers}
        for endpoint in self.assemble(document):
            for tag in endpoint.tags:
                if tag in by_name:
                    by_name[tag].paths.append(endpoint)
        return controllers

    def path_detail(self, document: Dict[str, Any], controller_name: str, operation_id: str) -> ControllerDoc:
        """
        Build the controller holding the endpoint(s) with the given operationId

        Raises:
            DocumentationError: CONTROLLER_NOT_FOUND if no tag has that name
        """
        targets = [c for c in self._collect_controllers(document) if c.name == controller_name]
        if not targets:
            raise DocumentationError(ErrorCode.CONTROLLER_NOT_FOUND, controller_name)
        controller = targets[0]

        for endpoint in self.assemble(document):
            if endpoint.operation_id == operation_id and controller_name in endpoint.tags:
                controller.paths.append(endpoint)
        return controller

    def _collect_controllers(self, document: Dict[str, Any]) -> List[ControllerDoc]:
        controllers = []
        for tag in document.get("tags") or []:
            if not isinstance(tag, dict) or "name" not in tag:
                continue
            controllers.append(ControllerDoc(name=tag["name"], description=tag.get("description")))
        return controllers

    def _build_endpoint(
        self,
        url: str,
        method: str,
        operation: Dict[str, Any],
        bodies: Dict[str, str],
        base_path: Optional[str],
    ) -> EndpointDoc:
        tags = [str(t) for t in operation.get("tags") or []]
        endpoint = EndpointDoc(
            url=url,
            method=method,
            base_path=base_path,
            operation_id=operation.get("operationId"),
            description=operation.get("description"),
            remark=operation.get("summary"),
            consumes=list(operation.get("consumes") or []),
            produces=list(operation.get("produces") or []),
            tags=tags,
        )

        self._apply_permission(endpoint, operation.get(self.extra_data_field), tags)
        endpoint.parameters = [self._build_parameter(p, bodies) for p in operation.get("parameters") or []]
        endpoint.responses = [
            self._build_response(status, node, bodies)
            for status, node in (operation.get("responses") or {}).items()
        ]
        return endpoint

    def _apply_permission(self, endpoint: EndpointDoc, extra_data: Any, tags: List[str]) -> None:
        """Decode the permission blob; failures leave code and flag unset"""
        if extra_data is None:
            return
        try:
            permission = json.loads(extra_data)["permission"]
            action = permission["action"]
            within = parse_flag(permission.get("permissionWithin"))
        except (ValueError, TypeError, KeyError) as e:
            logger.info(f"Extra data read failed for {endpoint.method} {endpoint.url}: {e}")
            return

        resource_code = None
        for tag in tags:
            if tag.endswith(CONTROLLER_SUFFIX):
                resource_code = tag[: -len(CONTROLLER_SUFFIX)]

        endpoint.inner_interface = within
        if resource_code is None:
            logger.info(f"No controller tag on {endpoint.method} {endpoint.url}, permission code left unset")
            return
        endpoint.code = f"{self.service_name}-service.{resource_code}.{action}"

    def _build_parameter(self, node: Dict[str, Any], bodies: Dict[str, str]) -> ParameterDoc:
        parameter = ParameterDoc.from_dict(node)
        if parameter.location == "body" and isinstance(parameter.schema, dict):
            parameter.body = resolve_body(parameter.schema, bodies)
        return parameter

    def _build_response(self, status: Any, node: Dict[str, Any], bodies: Dict[str, str]) -> ResponseDoc:
        node = node or {}
        response = ResponseDoc(http_status=str(status), description=node.get("description"))
        schema = node.get("schema")
        if isinstance(schema, dict):
            response.body = resolve_body(schema, bodies)
        return response


def resolve_body(schema: Dict[str, Any], bodies: Dict[str, str]) -> Optional[str]:
    """
    Resolve the example body of a parameter or response schema

    Resolution order:
    1. {$ref} -> the entity's example body
    2. array of {$ref} items -> the body wrapped in brackets
    3. array of scalars / plain scalar -> the type token
    4. object with array-typed additionalProperties -> "[{}]"
    5. any other object -> "{}"
    """
    if schema.get("$ref"):
        return bodies.get(ref_name(schema["$ref"]))

    schema_type = schema.get("type")
    items = schema.get("items")
    item_ref = items.get("$ref") if isinstance(items, dict) else None

    if item_ref:
        body = bodies.get(ref_name(item_ref))
        if schema_type != "array":
            return body
        if not body:
            return "[]"
        return f"[\n{body}\n]"

    if schema_type == "object":
        additional = schema.get("additionalProperties")
        if isinstance(additional, dict) and additional.get("type") == "array":
            return "[{}]"
        return "{}"

    return schema_type


def parse_flag(value: Any) -> bool:
    """
    Read a boolean from the permission blob

    Accepts JSON booleans and the strings "true"/"false" (any case); a missing
    value is False.

    Raises:
        ValueError: for any other value
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"permissionWithin is not a boolean: {value!r}")
