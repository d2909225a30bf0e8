"""
Schema Graph - Parses Swagger 2.0 definitions into an entity graph.

Supports:
- Scalar, object and array properties
- Direct $ref references and array item references
- Opaque definitions (type object, no properties)
- Cyclic and diamond-shaped reference graphs (the graph is stored as-is;
  traversal is the renderer's concern)
"""

from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, Optional
from enum import Enum
import logging

logger = logging.getLogger(__name__)

SCALAR_TYPES = ("integer", "string", "boolean")


class FieldKind(str, Enum):
    """How a property is rendered in an example body"""
    SCALAR = "scalar"
    OBJECT = "object"
    ARRAY = "array"
    REFERENCE = "reference"
    UNKNOWN = "unknown"


def ref_name(ref: Optional[str]) -> Optional[str]:
    """Return the entity name of a $ref (e.g. "#/definitions/RouteDTO" -> "RouteDTO")"""
    if not ref:
        return None
    return ref.split("/")[-1]


@dataclass
class FieldSpec:
    """A single property of a definition"""
    name: str
    type: Optional[str] = None
    description: Optional[str] = None
    ref: Optional[str] = None
    item_type: Optional[str] = None
    item_ref: Optional[str] = None

    @property
    def kind(self) -> FieldKind:
        if self.type == "array":
            return FieldKind.ARRAY
        if self.type in SCALAR_TYPES:
            return FieldKind.SCALAR
        if self.ref:
            return FieldKind.REFERENCE
        if self.type == "object":
            return FieldKind.OBJECT
        return FieldKind.UNKNOWN

    @property
    def target(self) -> Optional[str]:
        """Name of the referenced entity, direct or through array items"""
        if self.kind == FieldKind.ARRAY:
            return ref_name(self.item_ref)
        return ref_name(self.ref)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "type": self.type,
            "description": self.description,
            "ref": self.ref,
            "item_type": self.item_type,
            "item_ref": self.item_ref,
        }


@dataclass
class EntitySpec:
    """A named definition; opaque entities have no fields and render as {}"""
    name: str
    fields: Dict[str, FieldSpec] = dataclass_field(default_factory=dict)
    opaque: bool = False

    def references(self) -> Dict[str, str]:
        """Field name -> referenced entity name, for every reference field"""
        return {
            name: spec.target
            for name, spec in self.fields.items()
            if spec.target is not None
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        return {
            "name": self.name,
            "opaque": self.opaque,
            "fields": {k: v.to_dict() for k, v in self.fields.items()},
        }


class SchemaGraph:
    """Builds the entity map of a Swagger document's `definitions` section"""

    @staticmethod
    def parse(document: Dict[str, Any]) -> Dict[str, EntitySpec]:
        """
        Parse the definitions of a Swagger document

        Args:
            document: Swagger document (parsed JSON)

        Returns:
            Mapping of entity name to EntitySpec. A document without
            definitions yields an empty mapping.
        """
        graph: Dict[str, EntitySpec] = {}
        definitions = document.get("definitions") or {}

        for class_name, definition in definitions.items():
            if not isinstance(definition, dict):
                logger.debug(f"Skipping malformed definition: {class_name}")
                continue

            properties = definition.get("properties")
            if properties is None:
                if definition.get("type") == "object":
                    graph[class_name] = EntitySpec(name=class_name, opaque=True)
                continue

            entity = EntitySpec(name=class_name)
            for field_name, field_node in properties.items():
                entity.fields[field_name] = SchemaGraph._create_field(field_name, field_node or {})
            graph[class_name] = entity

        logger.debug(f"Parsed {len(graph)} definitions")
        return graph

    @staticmethod
    def _create_field(name: str, field_node: Dict[str, Any]) -> FieldSpec:
        """Create a FieldSpec from a property node"""
        spec = FieldSpec(
            name=name,
            type=field_node.get("type"),
            description=field_node.get("description"),
            ref=field_node.get("$ref"),
        )

        items = field_node.get("items")
        if isinstance(items, dict):
            spec.item_type = items.get("type")
            spec.item_ref = items.get("$ref")

        return spec
