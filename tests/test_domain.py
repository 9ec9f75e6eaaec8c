"""Tests for the domain layer: filename convention, frontmatter codec, value objects."""

import pytest

from gitcms import frontmatter as fm_codec
from gitcms.domain import (
    FileContent,
    NamespaceContext,
    RevisionAuthor,
    RevisionHistoryEntry,
    SchemaInfo,
    TemplateInfo,
    build_filename,
    get_display_name,
    get_schema_type,
    is_valid_filename_format,
    parse_filename,
)


class TestParseFilename:
    """Tests for the {name}.{schema_type}.md convention."""

    def test_parse_standard_name(self):
        """Test a well-formed filename."""
        parsed = parse_filename("customer-service.simple-agent.md")
        assert parsed is not None
        assert parsed.name == "customer-service"
        assert parsed.schema_type == "simple-agent"

    def test_plain_markdown_is_unparseable(self):
        """Test that a name without a schema type parses to None."""
        assert parse_filename("readme.md") is None

    def test_non_markdown_is_unparseable(self):
        assert parse_filename("notes.user-story.txt") is None

    def test_dotted_display_name(self):
        """Everything before the last segment is the display name."""
        parsed = parse_filename("v1.2.release.md")
        assert parsed.name == "v1.2"
        assert parsed.schema_type == "release"

    def test_path_prefix_is_ignored(self):
        """Test parsing a filename inside a namespace directory."""
        parsed = parse_filename("team-x/login.user-story.md")
        assert parsed.name == "login"
        assert parsed.full_path == "team-x/login.user-story.md"

    def test_empty_segments(self):
        assert parse_filename(".user-story.md") is None
        assert parse_filename("login..md") is None

    def test_helpers(self):
        """Test display name, schema type and format helpers."""
        assert get_display_name("login.user-story.md") == "login"
        assert get_display_name("readme.md") == "readme"
        assert get_schema_type("login.user-story.md") == "user-story"
        assert get_schema_type("readme.md") is None
        assert is_valid_filename_format("login.user-story.md")
        assert not is_valid_filename_format("readme.md")
        assert build_filename("login", "user-story") == "login.user-story.md"


class TestFrontmatterCodec:
    """Tests for frontmatter decode/encode."""

    def test_decode_basic(self):
        """Test decoding a header block and body."""
        raw = "---\ntitle: Hello\ndraft: true\n---\n# Body\n"
        frontmatter, content = fm_codec.decode(raw)
        assert frontmatter == {"title": "Hello", "draft": True}
        assert content == "# Body\n"

    def test_decode_supported_shapes(self):
        """Test scalars, null, numbers, arrays and one level of nesting."""
        raw = (
            "---\n"
            "title: Hello\n"
            "count: 3\n"
            "ratio: 0.5\n"
            "missing: null\n"
            "tags: [a, b]\n"
            "author:\n"
            "  name: Alice\n"
            "  active: false\n"
            "---\n"
            "text"
        )
        frontmatter, content = fm_codec.decode(raw)
        assert frontmatter == {
            "title": "Hello",
            "count": 3,
            "ratio": 0.5,
            "missing": None,
            "tags": ["a", "b"],
            "author": {"name": "Alice", "active": False},
        }
        assert content == "text"

    def test_decode_without_header(self):
        """A document without a header comes back unchanged."""
        raw = "# Just markdown\n\n---\nnot a header\n"
        assert fm_codec.decode(raw) == ({}, raw)

    def test_decode_invalid_yaml_degrades(self):
        """Test that a malformed header never raises."""
        frontmatter, content = fm_codec.decode("---\ntitle: [unclosed\n---\nbody")
        assert frontmatter == {}
        assert content == "body"

    def test_decode_non_mapping_header(self):
        frontmatter, content = fm_codec.decode("---\n- a\n- b\n---\nbody")
        assert frontmatter == {}
        assert content == "body"

    def test_header_is_non_greedy(self):
        """Test that a later --- line stays in the body."""
        frontmatter, content = fm_codec.decode("---\na: 1\n---\nx\n---\ny\n")
        assert frontmatter == {"a": 1}
        assert content == "x\n---\ny\n"

    def test_encode_format(self):
        """Test the header block layout."""
        assert fm_codec.encode({"title": "Hi"}, "# Body") == "---\ntitle: Hi\n---\n# Body"

    def test_encode_keeps_key_order(self):
        text = fm_codec.encode({"b": 1, "a": 2}, "")
        assert text.index("b:") < text.index("a:")

    @pytest.mark.parametrize("frontmatter,content", [
        ({}, "# Hi"),
        ({"title": "Hello", "draft": False, "n": 0, "none": None}, "body\n"),
        ({"tags": ["a", "b"], "nested": {"k": "v", "enabled": True}}, ""),
        ({"title": "yes"}, "line one\n---\nline two"),
        ({"title": "Grüße"}, "unicode ✓"),
    ])
    def test_round_trip(self, frontmatter, content):
        """Test that decode(encode(fm, body)) reproduces both parts."""
        assert fm_codec.decode(fm_codec.encode(frontmatter, content)) == (frontmatter, content)

    def test_parse_document(self):
        """Test that parse_document attaches revision and path."""
        document = fm_codec.parse_document("---\na: 1\n---\nbody", revision_id="abc", path="x.md")
        assert document == FileContent(frontmatter={"a": 1}, content="body", revision_id="abc", path="x.md")


class TestValueObjects:
    """Tests for to_dict and derived properties."""

    def test_namespace_context_to_dict(self):
        context = NamespaceContext(
            user_id="alice",
            user_groups=frozenset({"team-y", "team-x"}),
            available_namespaces=("alice", "team-y", "team-x"),
            default_namespace="alice",
        )
        data = context.to_dict()
        assert data["user_groups"] == ["team-x", "team-y"]
        assert data["available_namespaces"] == ["alice", "team-y", "team-x"]
        assert not context.is_anonymous

    def test_revision_entry_to_dict(self):
        entry = RevisionHistoryEntry(
            revision_id="abcdef1234",
            short_id="abcdef1",
            message="Update",
            author=RevisionAuthor("Alice", "a@example.com", "2024-01-01T00:00:00Z"),
        )
        assert entry.to_dict()["author"] == {
            "name": "Alice", "email": "a@example.com", "date": "2024-01-01T00:00:00Z"
        }

    def test_schema_from_json_schema_document(self):
        """Test field extraction from properties/required."""
        schema = SchemaInfo.from_document("story", {
            "title": "Story",
            "version": 2,
            "properties": {
                "title": {"type": "string"},
                "tags": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["title"],
        })
        assert schema.version == "2"
        assert [(f.name, f.type, f.required) for f in schema.fields] == [
            ("title", "string", True),
            ("tags", "string[]", False),
        ]

    def test_schema_from_fields_list(self):
        schema = SchemaInfo.from_document("bug", {
            "fields": [{"name": "steps", "type": "string[]", "required": True}],
        })
        assert schema.title == "bug"
        assert schema.fields[0].required

    def test_template_variables(self):
        """Test that placeholder names are listed once, in order."""
        template = TemplateInfo(
            id="bug/detailed",
            name="detailed",
            description="",
            schema_type="bug",
            content="# {{title}}\n{{#each steps}}{{@index}}. {{this}}{{/each}}\n{{title}} {{actual}}",
        )
        assert template.variables == ["title", "steps", "actual"]
