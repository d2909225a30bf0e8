"""Shared fixtures: a gateway Swagger document and its registry entries."""
import json

import pytest

from gateway_docs.registry.service_registry import SwaggerResource


def permission_blob(action: str, within: bool = False) -> str:
    return json.dumps({"permission": {"action": action, "permissionWithin": within}})


@pytest.fixture
def sample_swagger():
    """Swagger 2.0 document of an "iam" service

    Documented operations: GET /v1/users, POST /v1/users, GET /v1/roles/{id}, GET /health.
    DELETE /v1/roles/{id} and POST /v1/internal have no description.
    """
    return {
        "swagger": "2.0",
        "basePath": "/iam",
        "tags": [
            {"name": "user-controller", "description": "User Controller"},
            {"name": "role-controller", "description": "Role Controller"},
            {"name": "health-endpoint", "description": "Health Endpoint"},
            {"name": "empty-controller", "description": "Nothing documented"},
            {"name": "misc", "description": "Not a controller"},
        ],
        "definitions": {
            "UserDTO": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer", "description": "primary key"},
                    "loginName": {"type": "string"},
                    "enabled": {"type": "boolean"},
                    "roles": {
                        "type": "array",
                        "description": "granted roles",
                        "items": {"$ref": "#/definitions/RoleDTO"},
                    },
                    "tags": {"type": "array", "items": {"type": "string"}},
                    "extra": {"type": "object", "description": "free-form"},
                },
            },
            "RoleDTO": {
                "type": "object",
                "properties": {
                    "code": {"type": "string", "description": "role code"},
                    "users": {"type": "array", "items": {"$ref": "#/definitions/UserDTO"}},
                },
            },
            "Map«string,object»": {"type": "object"},
        },
        "paths": {
            "/v1/users": {
                "get": {
                    "tags": ["user-controller"],
                    "summary": "List users",
                    "description": permission_blob("list"),
                    "operationId": "listUsingGET",
                    "consumes": ["application/json"],
                    "produces": ["*/*"],
                    "parameters": [
                        {"name": "page", "in": "query", "required": False, "type": "integer", "format": "int32"},
                    ],
                    "responses": {
                        "200": {
                            "description": "OK",
                            "schema": {"type": "array", "items": {"$ref": "#/definitions/UserDTO"}},
                        },
                    },
                },
                "post": {
                    "tags": ["user-controller", "role-controller"],
                    "summary": "Create user",
                    "description": permission_blob("create", within=True),
                    "operationId": "createUsingPOST",
                    "consumes": ["application/json"],
                    "produces": ["*/*"],
                    "parameters": [
                        {"name": "user", "in": "body", "required": True, "schema": {"$ref": "#/definitions/UserDTO"}},
                    ],
                    "responses": {
                        "201": {"description": "Created", "schema": {"$ref": "#/definitions/UserDTO"}},
                    },
                },
            },
            "/v1/roles/{id}": {
                "parameters": [{"name": "id", "in": "path", "type": "integer"}],
                "get": {
                    "tags": ["role-controller"],
                    "summary": "Query role",
                    "description": "plain description",
                    "operationId": "queryUsingGET",
                    "consumes": ["application/json"],
                    "produces": ["*/*"],
                    "parameters": [
                        {"name": "id", "in": "path", "required": True, "type": "integer", "format": "int64"},
                    ],
                    "responses": {
                        "200": {"description": "OK", "schema": {"$ref": "#/definitions/RoleDTO"}},
                    },
                },
                "delete": {
                    "tags": ["role-controller"],
                    "summary": "Delete role",
                    "operationId": "deleteUsingDELETE",
                    "responses": {"204": {"description": "No Content"}},
                },
            },
            "/health": {
                "get": {
                    "tags": ["health-endpoint"],
                    "summary": "Health",
                    "description": "health check",
                    "operationId": "healthUsingGET",
                    "produces": ["application/json"],
                    "responses": {
                        "200": {
                            "description": "OK",
                            "schema": {"type": "object", "additionalProperties": {"type": "array"}},
                        },
                    },
                },
            },
            "/v1/internal": {
                "post": {
                    "tags": ["empty-controller"],
                    "summary": "Hidden",
                    "operationId": "hiddenUsingPOST",
                    "responses": {},
                },
            },
        },
    }


@pytest.fixture
def sample_swagger_json(sample_swagger):
    return json.dumps(sample_swagger)


@pytest.fixture
def sample_resources():
    """Gateway resources: iam with two versions, file with one, plus a malformed entry"""
    return [
        SwaggerResource(name="iam:iam-service", location="/docs/iam?version=v2"),
        SwaggerResource(name="file:file-service", location="/docs/file?version=v1"),
        SwaggerResource(name="iam:iam-service", location="/docs/iam?version=v1"),
        SwaggerResource(name="broken", location="/docs/broken"),
    ]
