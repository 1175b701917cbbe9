"""End-to-end generation over the fixture application."""

import json
import random
from pathlib import Path

import pytest

from api_autodoc.config import load_options
from api_autodoc.document.assembler import generate_document
from api_autodoc.sources import FileSystemSourceLoader

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(scope="module")
def document():
    routes = json.loads((FIXTURES / "routes.json").read_text())["root"]
    options = load_options(FIXTURES / "config.yaml")
    loader = FileSystemSourceLoader(FIXTURES / "app")
    return generate_document(routes, loader, options, rng=random.Random(42))


class TestFixtureDocument:
    def test_paths_and_methods(self, document):
        assert {path: list(ops) for path, ops in document["paths"].items()} == {
            "/api/users": ["get", "post"],
            "/api/users/{id}": ["get", "put", "delete"],
            "/api/users/{id}/avatar": ["post"],
            "/api/health/{check}": ["get"],
        }

    def test_tags(self, document):
        assert [tag["name"] for tag in document["tags"]] == ["USERS", "HEALTH"]

    def test_index_operation(self, document):
        op = document["paths"]["/api/users"]["get"]
        assert op["operationId"] == "listUsers"
        assert op["description"] == "Returns a paginated list of users"
        assert op["summary"] == "Get a list of users"
        assert [p["name"] for p in op["parameters"]] == ["sort", "order", "page"]
        assert op["parameters"][2]["schema"] == {"type": "integer", "example": 1}
        assert op["security"] == [{"BearerAuth": ["access"]}]

        response = op["responses"]["200"]
        assert response["description"].startswith("Returns a **list** of type `User` **including** _posts_")
        assert list(response["headers"]) == ["X-Total-Count", "X-Page", "X-Request-Id"]
        assert response["headers"]["X-Request-Id"]["schema"]["example"] == "abc-123"

        (user,) = response["content"]["application/json"]["example"]
        assert "password" not in user
        assert not {"created_at", "updated_at", "deleted_at"} & set(user)
        assert user["role"] == "admin"
        (post,) = user["posts"]
        assert set(post) == {"id", "title", "body", "user_id"}

    def test_store_operation(self, document):
        op = document["paths"]["/api/users"]["post"]
        assert op["summary"] == "Create a user"
        assert op["security"] == []
        body = op["requestBody"]["content"]["application/json"]["example"]
        assert set(body["profile"]) == {"total", "per_page", "current_page", "next_page_url"}
        created = op["responses"]["201"]["content"]["application/json"]["example"]
        assert created["meta"] == {"token": "abc"}
        assert "posts" not in created["user"]
        assert created["user"]["email"] == "johndoe@example.com"

    def test_show_operation(self, document):
        op = document["paths"]["/api/users/{id}"]["get"]
        assert op["parameters"] == [
            {
                "in": "path",
                "name": "id",
                "description": "The user identifier",
                "schema": {"type": "integer", "example": 1},
                "required": True,
            }
        ]
        assert op["responses"]["404"] == {"description": "Not Found: User not found"}
        assert op["responses"]["200"]["content"]["application/json"]["schema"] == {"$ref": "#/components/schemas/User"}

    def test_update_operation(self, document):
        op = document["paths"]["/api/users/{id}"]["put"]
        assert op["summary"] == "Update users"
        assert op["requestBody"]["content"]["application/json"]["example"] == {
            "email": "johndoe@example.com",
            "full_name": "John Doe",
        }
        assert "204" in op["responses"]

    def test_destroy_operation(self, document):
        op = document["paths"]["/api/users/{id}"]["delete"]
        assert op["summary"] == "Delete users"
        assert op["operationId"] == "usersControllerDestroy"
        assert "requestBody" not in op
        assert op["responses"]["202"]["description"] == "Accepted"

    def test_form_data_upload(self, document):
        op = document["paths"]["/api/users/{id}/avatar"]["post"]
        assert "multipart/form-data" in op["requestBody"]["content"]

    def test_closure_route(self, document):
        op = document["paths"]["/api/health/{check}"]["get"]
        assert op["parameters"][0]["required"] is False
        assert op["summary"] == ""

    def test_schema_catalog(self, document):
        schemas = document["components"]["schemas"]
        user = schemas["User"]["properties"]
        assert user["posts"] == {"type": "array", "items": {"$ref": "#/components/schemas/Post", "example": None}}
        assert user["role"]["enum"] == ["admin", "editor", "viewer"]
        assert schemas["LoginPayload"]["properties"]["password"]["format"] == "password"

    def test_document_is_json_serializable(self, document):
        json.dumps(document)
