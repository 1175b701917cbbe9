import random

import pytest

from api_autodoc.config import GeneratorOptions
from api_autodoc.document.assembler import (
    default_summary,
    emitted_methods,
    format_operation_id,
    generate_document,
    merge_params,
)
from api_autodoc.parser.base import ParamDescriptor
from api_autodoc.schema.base import SourceBlob
from api_autodoc.sources import InMemorySourceLoader

CONTROLLER = """
export default class PostsController {
  /**
   * @index
   * @responseBody 200 - <Post[]>
   */
  async index() {}

  /**
   * @show
   * @summary Fetch one post
   * @paramPath id - Post identifier - type(integer)
   * @responseBody 200 - The post
   */
  async show() {}

  /**
   * @update
   * @responseBody 403 - Only the author may edit
   */
  async update() {}
}
"""

POST_MODEL = """
export default class Post extends BaseModel {
  declare id: number
  declare title: string
}
"""


def _route(pattern, methods, action=None, middleware=()):
    handler = {"name": "inline"} if action is None else f"#controllers/posts_controller.{action}"
    return {"pattern": pattern, "methods": methods, "handler": handler, "middleware": list(middleware)}


@pytest.fixture
def loader():
    return InMemorySourceLoader(
        controllers={"app/controllers/posts_controller": CONTROLLER},
        blobs={"models": [SourceBlob(path="app/models/post.ts", text=POST_MODEL)]},
    )


def _generate(routes, loader, **options):
    return generate_document(routes, loader, GeneratorOptions(**options), rng=random.Random(0))


class TestHelpers:
    def test_format_operation_id(self):
        assert format_operation_id("UsersController.index") == "usersControllerIndex"
        assert format_operation_id("users_controller.show") == "usersControllerShow"

    def test_emitted_methods(self):
        assert emitted_methods(["GET", "HEAD"]) == ["GET"]
        assert emitted_methods(["PUT", "PATCH"]) == ["PUT"]
        assert emitted_methods(["PUT", "PATCH"], "PATCH") == ["PATCH"]
        assert emitted_methods(["PATCH"]) == ["PATCH"]

    def test_merge_params(self):
        path = [ParamDescriptor(name="id")]
        annotated = {"id": ParamDescriptor(name="id", type="integer"), "q": ParamDescriptor(name="q", location="query")}
        merged = merge_params(path, annotated)
        assert [p.name for p in merged] == ["id", "q"]
        assert merged[0].type == "integer"

    def test_default_summary(self):
        assert default_summary("index", "POSTS") == "Get a list of posts"
        assert default_summary("show", "POSTS") == "Get a single instance of posts"
        assert default_summary("store", "POSTS") == ""


class TestGenerateDocument:
    def test_document_skeleton(self, loader):
        doc = _generate([], loader, title="Blog", version="3.0.0")
        assert doc["openapi"] == "3.0.0"
        assert doc["info"] == {"title": "Blog", "version": "3.0.0"}
        assert doc["paths"] == {}
        assert doc["tags"] == []
        assert set(doc["components"]["schemas"]) == {"Any", "Post"}
        assert doc["components"]["securitySchemes"] == {"BearerAuth": {"type": "http", "scheme": "bearer"}}

    def test_head_is_skipped(self, loader):
        doc = _generate([_route("/api/posts", ["GET", "HEAD"], "index")], loader)
        assert list(doc["paths"]["/api/posts"]) == ["get"]

    def test_put_patch_preference(self, loader):
        routes = [_route("/api/posts/:id", ["PUT", "PATCH"], "update")]
        assert list(_generate(routes, loader)["paths"]["/api/posts/{id}"]) == ["put"]
        assert list(_generate(routes, loader, preferredPutPatch="PATCH")["paths"]["/api/posts/{id}"]) == ["patch"]

    def test_array_response_schema(self, loader):
        doc = _generate([_route("/api/posts", ["GET"], "index")], loader)
        content = doc["paths"]["/api/posts"]["get"]["responses"]["200"]["content"]["application/json"]
        assert content["schema"] == {"type": "array", "items": {"$ref": "#/components/schemas/Post"}}
        assert len(content["example"]) == 1
        assert set(content["example"][0]) == {"id", "title"}

    def test_security_adds_401_and_403(self, loader):
        doc = _generate([_route("/api/posts", ["GET"], "index", middleware=["auth"])], loader)
        op = doc["paths"]["/api/posts"]["get"]
        assert op["security"] == [{"BearerAuth": ["access"]}]
        assert op["responses"]["401"] == {"description": "Unauthorized"}
        assert op["responses"]["403"] == {"description": "Forbidden"}

    def test_annotated_response_overrides_security_default(self, loader):
        doc = _generate([_route("/api/posts/:id", ["PUT"], "update", middleware=["auth:api"])], loader)
        responses = doc["paths"]["/api/posts/{id}"]["put"]["responses"]
        assert responses["403"] == {"description": "Forbidden: Only the author may edit"}
        assert responses["204"] == {"description": "No Content", "content": {"application/json": {}}}

    def test_default_status_per_method(self, loader):
        routes = [
            _route("/api/posts", ["POST"]),
            _route("/api/posts/:id", ["DELETE"]),
        ]
        doc = _generate(routes, loader)
        assert "201" in doc["paths"]["/api/posts"]["post"]["responses"]
        assert "202" in doc["paths"]["/api/posts/{id}"]["delete"]["responses"]

    def test_request_body_placeholder(self, loader):
        doc = _generate([_route("/api/posts", ["POST"]), _route("/api/posts", ["GET"])], loader)
        assert doc["paths"]["/api/posts"]["post"]["requestBody"] == {"content": {"application/json": {}}}
        assert "requestBody" not in doc["paths"]["/api/posts"]["get"]

    def test_summaries_and_operation_ids(self, loader):
        routes = [_route("/api/posts", ["GET"], "index"), _route("/api/posts/:id", ["GET"], "show")]
        doc = _generate(routes, loader)
        index = doc["paths"]["/api/posts"]["get"]
        show = doc["paths"]["/api/posts/{id}"]["get"]
        assert index["summary"] == "Get a list of posts"
        assert index["operationId"] == "postsControllerIndex"
        assert show["summary"] == "Fetch one post"
        assert show["description"] == "OK: The post"

    def test_path_params_merged_with_annotation(self, loader):
        doc = _generate([_route("/api/posts/:id", ["GET"], "show")], loader)
        (param,) = doc["paths"]["/api/posts/{id}"]["get"]["parameters"]
        assert param == {
            "in": "path",
            "name": "id",
            "description": "Post identifier",
            "schema": {"type": "integer", "example": 1},
            "required": True,
        }

    def test_closure_route(self, loader):
        doc = _generate([_route("/api/ping/:token?", ["GET"])], loader)
        op = doc["paths"]["/api/ping/{token}"]["get"]
        assert op["summary"] == ""
        assert "operationId" not in op
        assert op["parameters"][0]["required"] is False
        assert op["tags"] == ["PING"]

    def test_tags_deduplicated_in_order(self, loader):
        routes = [
            _route("/api/posts", ["GET"], "index"),
            _route("/api/posts/:id", ["GET"], "show"),
            _route("/api/ping", ["GET"]),
        ]
        assert _generate(routes, loader)["tags"] == [
            {"name": "POSTS", "description": "Everything related to POSTS"},
            {"name": "PING", "description": "Everything related to PING"},
        ]

    def test_ignored_routes(self, loader):
        doc = _generate([_route("/api/ping", ["GET"])], loader, ignore=["/api/ping"])
        assert doc["paths"] == {}
        assert doc["tags"] == []

    def test_controller_parsed_once(self, loader):
        routes = [_route("/api/posts", ["GET"], "index"), _route("/api/posts/:id", ["GET", "PUT"], "show")]
        _generate(routes, loader)
        assert loader.reads == ["app/controllers/posts_controller"]

    def test_documents_do_not_share_state(self, loader):
        routes = [_route("/api/posts", ["GET"], "index", middleware=["auth"])]
        first = _generate(routes, loader)
        first["components"]["responses"]["Forbidden"]["description"] = "changed"
        first["components"]["securitySchemes"]["BearerAuth"]["scheme"] = "basic"
        first["paths"]["/api/posts"]["get"]["security"][0]["BearerAuth"].append("admin")

        second = _generate(routes, loader)
        assert second["components"]["responses"]["Forbidden"] == {"description": "Access token is missing or invalid"}
        assert second["components"]["securitySchemes"]["BearerAuth"]["scheme"] == "bearer"
        assert second["paths"]["/api/posts"]["get"]["security"] == [{"BearerAuth": ["access"]}]

    def test_missing_controller_raises(self):
        with pytest.raises(FileNotFoundError):
            _generate([_route("/api/posts", ["GET"], "index")], InMemorySourceLoader())
