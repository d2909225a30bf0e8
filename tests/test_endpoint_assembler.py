"""
Unit tests for EndpointAssembler

Tests:
- Documented-operation filtering
- Permission codes and inner-interface flag
- Parameter and response body resolution
- Controller grouping and path detail
"""

import json
import logging

import pytest

from gateway_docs.builder.endpoint_assembler import (
    EndpointAssembler,
    EndpointDoc,
    ControllerDoc,
    iter_documented_operations,
    resolve_body,
)
from gateway_docs.errors import DocumentationError, ErrorCode

from conftest import permission_blob


def operation_doc(operation, tags=None):
    """Single-path document wrapping one operation"""
    return {
        "basePath": "/svc",
        "tags": [{"name": t} for t in (tags or [])],
        "paths": {"/v1/things": {"get": operation}},
    }


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def assembler():
    return EndpointAssembler("iam")


@pytest.fixture
def endpoints(assembler, sample_swagger):
    return {(e.url, e.method): e for e in assembler.assemble(sample_swagger)}


# ============================================================================
# TEST: Operation filtering
# ============================================================================


class TestDocumentedOperations:
    """Tests for the description-based operation filter"""

    def test_only_described_operations_are_kept(self, endpoints):
        """Test operations without description are dropped"""
        assert set(endpoints) == {
            ("/v1/users", "get"),
            ("/v1/users", "post"),
            ("/v1/roles/{id}", "get"),
            ("/health", "get"),
        }

    def test_path_level_parameters_are_not_operations(self, sample_swagger):
        """Test non-method keys of a path item are ignored"""
        methods = [method for _, method, _ in iter_documented_operations(sample_swagger)]

        assert "parameters" not in methods

    def test_document_order_is_kept(self, assembler, sample_swagger):
        """Test endpoints come out in document order"""
        result = assembler.assemble(sample_swagger)

        assert [(e.url, e.method) for e in result] == [
            ("/v1/users", "get"),
            ("/v1/users", "post"),
            ("/v1/roles/{id}", "get"),
            ("/health", "get"),
        ]

    def test_document_without_paths(self, assembler):
        """Test a document without paths yields no endpoints"""
        assert assembler.assemble({"swagger": "2.0"}) == []

    def test_endpoint_fields(self, endpoints):
        """Test plain fields are copied from the operation"""
        endpoint = endpoints[("/v1/users", "get")]

        assert endpoint.base_path == "/iam"
        assert endpoint.operation_id == "listUsingGET"
        assert endpoint.remark == "List users"
        assert endpoint.consumes == ["application/json"]
        assert endpoint.produces == ["*/*"]
        assert endpoint.tags == ["user-controller"]


# ============================================================================
# TEST: Permission codes
# ============================================================================


class TestPermissionCodes:
    """Tests for the permission side channel"""

    def test_code_from_controller_tag(self, endpoints):
        """Test code = <service>-service.<resource>.<action>"""
        endpoint = endpoints[("/v1/users", "get")]

        assert endpoint.code == "iam-service.user.list"
        assert endpoint.inner_interface is False

    def test_last_controller_tag_wins(self, endpoints):
        """Test the resource code comes from the last -controller tag"""
        endpoint = endpoints[("/v1/users", "post")]

        assert endpoint.code == "iam-service.role.create"
        assert endpoint.inner_interface is True

    def test_plain_description_leaves_permission_unset(self, endpoints):
        """Test a description that is not a permission blob"""
        endpoint = endpoints[("/v1/roles/{id}", "get")]

        assert endpoint.description == "plain description"
        assert endpoint.code is None
        assert endpoint.inner_interface is None

    def test_decode_failure_is_logged(self, assembler, sample_swagger, caplog):
        """Test blob decode failures are reported at INFO"""
        with caplog.at_level(logging.INFO, logger="gateway_docs.builder.endpoint_assembler"):
            assembler.assemble(sample_swagger)

        assert "Extra data read failed for get /v1/roles/{id}" in caplog.text

    @pytest.mark.parametrize(
        "description",
        [
            '{"other": 1}',
            '{"permission": {"permissionWithin": true}}',
            '"just a string"',
            "[1, 2]",
        ],
    )
    def test_incomplete_blob(self, assembler, description):
        """Test blobs without permission.action leave code and flag unset"""
        document = operation_doc(
            {"tags": ["thing-controller"], "description": description, "operationId": "op"},
            tags=["thing-controller"],
        )

        endpoint = assembler.assemble(document)[0]

        assert endpoint.code is None
        assert endpoint.inner_interface is None

    def test_no_controller_tag(self, assembler):
        """Test the flag is set but the code is not when no tag ends in -controller"""
        document = operation_doc(
            {"tags": ["misc"], "description": permission_blob("read", within=True)},
            tags=["misc"],
        )

        endpoint = assembler.assemble(document)[0]

        assert endpoint.code is None
        assert endpoint.inner_interface is True

    def test_permission_within_defaults_to_false(self, assembler):
        """Test a blob without permissionWithin"""
        document = operation_doc(
            {"tags": ["thing-controller"], "description": '{"permission": {"action": "read"}}'},
            tags=["thing-controller"],
        )

        endpoint = assembler.assemble(document)[0]

        assert endpoint.code == "iam-service.thing.read"
        assert endpoint.inner_interface is False

    @pytest.mark.parametrize(
        "within, expected",
        [
            (True, True),
            (False, False),
            ("true", True),
            ("false", False),
            ("FALSE", False),
            (None, False),
        ],
    )
    def test_permission_within_values(self, assembler, within, expected):
        """Test JSON booleans and "true"/"false" strings set the flag as written"""
        blob = json.dumps({"permission": {"action": "list", "permissionWithin": within}})
        document = operation_doc(
            {"tags": ["thing-controller"], "description": blob},
            tags=["thing-controller"],
        )

        endpoint = assembler.assemble(document)[0]

        assert endpoint.inner_interface is expected
        assert endpoint.code == "iam-service.thing.list"

    @pytest.mark.parametrize("within", ["yes", 1, [True]])
    def test_permission_within_not_boolean(self, assembler, within):
        """Test a non-boolean permissionWithin is a decode failure"""
        blob = json.dumps({"permission": {"action": "list", "permissionWithin": within}})
        document = operation_doc(
            {"tags": ["thing-controller"], "description": blob},
            tags=["thing-controller"],
        )

        endpoint = assembler.assemble(document)[0]

        assert endpoint.inner_interface is None
        assert endpoint.code is None

    def test_custom_extra_data_field(self):
        """Test the blob can be read from another operation field"""
        assembler = EndpointAssembler("file", extra_data_field="x-extra-data")
        document = operation_doc(
            {
                "tags": ["upload-controller"],
                "description": "Upload a file",
                "x-extra-data": permission_blob("upload"),
            },
            tags=["upload-controller"],
        )

        endpoint = assembler.assemble(document)[0]

        assert endpoint.description == "Upload a file"
        assert endpoint.code == "file-service.upload.upload"


# ============================================================================
# TEST: Body resolution
# ============================================================================


class TestBodyResolution:
    """Tests for parameter and response example bodies"""

    def test_body_parameter_uses_entity_body(self, assembler, sample_swagger, endpoints):
        """Test an in: body parameter referencing an entity"""
        bodies = assembler.example_bodies(sample_swagger)
        parameter = endpoints[("/v1/users", "post")].parameters[0]

        assert parameter.location == "body"
        assert parameter.required is True
        assert parameter.body == bodies["UserDTO"]

    def test_non_body_parameter_has_no_body(self, endpoints):
        """Test query and path parameters never get a body"""
        page = endpoints[("/v1/users", "get")].parameters[0]
        path_id = endpoints[("/v1/roles/{id}", "get")].parameters[0]

        assert page.body is None
        assert page.type == "integer"
        assert page.format == "int32"
        assert path_id.body is None

    def test_array_response_wraps_body(self, assembler, sample_swagger, endpoints):
        """Test an array-of-entity response is wrapped in brackets"""
        bodies = assembler.example_bodies(sample_swagger)
        response = endpoints[("/v1/users", "get")].responses[0]

        assert response.http_status == "200"
        assert response.description == "OK"
        assert response.body == "[\n" + bodies["UserDTO"] + "\n]"

    def test_ref_response(self, assembler, sample_swagger, endpoints):
        """Test a $ref response uses the entity body"""
        bodies = assembler.example_bodies(sample_swagger)

        assert endpoints[("/v1/roles/{id}", "get")].responses[0].body == bodies["RoleDTO"]
        assert endpoints[("/v1/users", "post")].responses[0].http_status == "201"

    def test_map_of_arrays_response(self, endpoints):
        """Test an object with array additionalProperties renders [{}]"""
        assert endpoints[("/health", "get")].responses[0].body == "[{}]"

    @pytest.mark.parametrize(
        "schema, expected",
        [
            ({"type": "string"}, "string"),
            ({"type": "array", "items": {"type": "integer"}}, "array"),
            ({"type": "object"}, "{}"),
            ({"type": "object", "additionalProperties": {"type": "string"}}, "{}"),
            ({"type": "object", "additionalProperties": {"type": "array"}}, "[{}]"),
            ({"$ref": "#/definitions/Missing"}, None),
            ({"type": "array", "items": {"$ref": "#/definitions/Missing"}}, "[]"),
            ({"items": {"$ref": "#/definitions/Foo"}}, "{\n  \"a\": \"string\"\n}"),
            ({}, None),
        ],
    )
    def test_resolve_body(self, schema, expected):
        """Test schema to body resolution rules"""
        bodies = {"Foo": '{\n  "a": "string"\n}'}

        assert resolve_body(schema, bodies) == expected

    def test_precomputed_bodies_are_used(self, assembler, sample_swagger):
        """Test assemble uses the given bodies instead of rendering"""
        result = assembler.assemble(sample_swagger, bodies={"UserDTO": "<user>"})
        by_key = {(e.url, e.method): e for e in result}

        assert by_key[("/v1/users", "post")].parameters[0].body == "<user>"
        assert by_key[("/v1/roles/{id}", "get")].responses[0].body is None


# ============================================================================
# TEST: Controllers and path detail
# ============================================================================


class TestControllers:
    """Tests for controller grouping"""

    def test_controllers_follow_tag_order(self, assembler, sample_swagger):
        """Test one controller per document tag"""
        controllers = assembler.controllers(sample_swagger)

        assert [c.name for c in controllers] == [
            "user-controller",
            "role-controller",
            "health-endpoint",
            "empty-controller",
            "misc",
        ]
        assert controllers[0].description == "User Controller"

    def test_endpoint_listed_under_every_tag(self, assembler, sample_swagger):
        """Test a multi-tagged endpoint appears in each of its controllers"""
        controllers = {c.name: c for c in assembler.controllers(sample_swagger)}

        assert [p.operation_id for p in controllers["user-controller"].paths] == [
            "listUsingGET",
            "createUsingPOST",
        ]
        assert [p.operation_id for p in controllers["role-controller"].paths] == [
            "createUsingPOST",
            "queryUsingGET",
        ]
        assert [p.operation_id for p in controllers["health-endpoint"].paths] == ["healthUsingGET"]
        assert controllers["empty-controller"].paths == []

    def test_path_detail(self, assembler, sample_swagger):
        """Test path detail keeps only the matching operation"""
        controller = assembler.path_detail(sample_swagger, "role-controller", "createUsingPOST")

        assert isinstance(controller, ControllerDoc)
        assert controller.name == "role-controller"
        assert controller.description == "Role Controller"
        assert len(controller.paths) == 1
        assert controller.paths[0].method == "post"
        assert controller.paths[0].code == "iam-service.role.create"

    def test_path_detail_operation_under_other_controller(self, assembler, sample_swagger):
        """Test an operation not tagged with the controller is not included"""
        controller = assembler.path_detail(sample_swagger, "user-controller", "queryUsingGET")

        assert controller.paths == []

    def test_path_detail_unknown_controller(self, assembler, sample_swagger):
        """Test CONTROLLER_NOT_FOUND for a missing tag"""
        with pytest.raises(DocumentationError) as exc_info:
            assembler.path_detail(sample_swagger, "nope-controller", "listUsingGET")

        assert exc_info.value.code == ErrorCode.CONTROLLER_NOT_FOUND
        assert exc_info.value.params == ("nope-controller",)

    def test_controller_restored_from_dict(self, assembler, sample_swagger):
        """Test a serialized controller loads back to an equal record"""
        controller = assembler.path_detail(sample_swagger, "user-controller", "listUsingGET")

        restored = ControllerDoc.from_dict(controller.to_dict())

        assert restored == controller
        assert isinstance(restored.paths[0], EndpointDoc)

    def test_endpoint_to_dict_keys(self, endpoints):
        """Test serialized endpoint key names"""
        data = endpoints[("/v1/users", "post")].to_dict()

        assert data["basePath"] == "/iam"
        assert data["operationId"] == "createUsingPOST"
        assert data["innerInterface"] is True
        assert data["parameters"][0]["in"] == "body"
        assert data["responses"][0]["httpStatus"] == "201"
