import pytest

from api_autodoc.parser.annotations import AnnotationParser
from api_autodoc.parser.comments import AnnotationCache, extract_block_comments, parse_controller
from api_autodoc.schema.registry import SchemaRegistry
from api_autodoc.sources import InMemorySourceLoader

CONTROLLER = """
export default class PostsController {
  /**
   * @index
   * @summary List posts
   */
  async index() {}

  // @show is not a block comment

  /*
   * @show
   * @update
   * @responseBody 200 - Shared block
   */
  async show() {}
}
"""


@pytest.fixture
def parser():
    return AnnotationParser(SchemaRegistry())


class TestExtractBlockComments:
    def test_finds_block_comments_only(self):
        comments = extract_block_comments(CONTROLLER)
        assert len(comments) == 2
        assert "@index" in comments[0]


class TestParseController:
    def test_every_action_in_the_file(self, parser):
        annotations = parse_controller(CONTROLLER, parser)
        assert set(annotations) == {"index", "show", "update"}
        assert annotations["index"].summary == "List posts"
        assert annotations["update"].responses["200"].description == "OK: Shared block"

    def test_no_annotations(self, parser):
        assert parse_controller("export default class Empty {}", parser) == {}


class TestAnnotationCache:
    def test_file_is_read_once(self, parser):
        loader = InMemorySourceLoader(controllers={"app/controllers/posts_controller": CONTROLLER})
        cache = AnnotationCache(loader, parser)

        assert cache.get("app/controllers/posts_controller", "index").summary == "List posts"
        assert cache.get("app/controllers/posts_controller", "show") is not None
        assert cache.get("app/controllers/posts_controller", "missing") is None

        assert loader.reads == ["app/controllers/posts_controller"]
        assert cache.parsed_files == ["app/controllers/posts_controller"]

    def test_missing_file_propagates(self, parser):
        cache = AnnotationCache(InMemorySourceLoader(), parser)
        with pytest.raises(FileNotFoundError):
            cache.get("app/controllers/nope", "index")
