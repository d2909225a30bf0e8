"""
Introspection Module

Reads Swagger documents published by gateway services.
Supports:
- Definitions graph parsing ($ref, arrays, opaque objects)
- Document and swagger-resource fetching through the gateway
"""

from .schema_graph import SchemaGraph, EntitySpec, FieldSpec, FieldKind, ref_name
from .document_client import SwaggerDocumentClient, DocumentSource

__all__ = [
    "SchemaGraph",
    "EntitySpec",
    "FieldSpec",
    "FieldKind",
    "ref_name",
    "SwaggerDocumentClient",
    "DocumentSource",
]
