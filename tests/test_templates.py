"""Tests for template rendering, value validation and template ids."""

import pytest

from gitcms.domain import SchemaField
from gitcms.errors import ValidationError
from gitcms.services.templates import build_template, render, split_template_id, validate_values


class TestRender:
    """Tests for the mustache-like substitution."""

    def test_simple_placeholders(self):
        assert render("# {{title}} by {{author}}", {"title": "Hi", "author": "Al"}) == "# Hi by Al"

    def test_missing_values_left_alone(self):
        assert render("{{title}} {{other}}", {"title": "Hi"}) == "Hi {{other}}"

    def test_value_stringification(self):
        """Test how non-string values are rendered."""
        content = "{{a}}|{{b}}|{{c}}|{{d}}|{{e}}|{{f}}"
        values = {"a": None, "b": False, "c": True, "d": 0, "e": ["x", "y"], "f": 2.5}
        assert render(content, values) == "||true|0|x,y|2.5"

    def test_each_block(self):
        """Test list expansion with {{this}} and 1-based {{@index}}."""
        content = "Steps:\n{{#each steps}}{{@index}}. {{this}}{{/each}}"
        assert render(content, {"steps": ["open", "click"]}) == "Steps:\n1. open\n2. click"

    def test_each_block_empty_list(self):
        assert render("a{{#each items}}- {{this}}{{/each}}b", {"items": []}) == "ab"

    def test_each_ignores_scalars(self):
        content = "{{#each items}}- {{this}}{{/each}}"
        assert render(content, {"items": "x"}) == content

    def test_multiple_blocks(self):
        content = "{{#each a}}[{{this}}]{{/each}} {{#each b}}<{{this}}>{{/each}}"
        assert render(content, {"a": [1, 2], "b": ["z"]}) == "[1]\n[2] <z>"


class TestValidateValues:
    """Tests for schema-driven value checks."""

    FIELDS = (
        SchemaField("title", "string", True),
        SchemaField("steps", "string[]", True),
        SchemaField("notes", "string", False),
        SchemaField("count", "number", False),
    )

    def test_valid(self):
        result = validate_values(self.FIELDS, {"title": "Bug", "steps": ["a"], "count": 3})
        assert result.valid
        assert result.errors == ()

    def test_required_fields(self):
        """Test that missing, empty and false values fail required fields."""
        result = validate_values(self.FIELDS, {"title": "", "steps": []})
        assert not result.valid
        assert "Field 'title' is required" in result.errors
        assert "Field 'steps' is required" in result.errors

    def test_false_counts_as_missing(self):
        result = validate_values((SchemaField("title", "string", True),), {"title": False})
        assert "Field 'title' is required" in result.errors

    @pytest.mark.parametrize("value", [0, 0.0, {}, ()])
    def test_other_falsy_values_count_as_missing(self, value):
        result = validate_values((SchemaField("count", "number", True),), {"count": value})
        assert result.errors == ("Field 'count' is required",)

    def test_non_zero_number_is_present(self):
        assert validate_values((SchemaField("count", "number", True),), {"count": 3}).valid

    def test_type_checks(self):
        result = validate_values(self.FIELDS, {"title": 5, "steps": ["a", 2], "notes": ["x"]})
        assert result.errors == (
            "Field 'title' must be a string",
            "Field 'steps' must be an array of strings",
            "Field 'notes' must be a string",
        )

    def test_other_types_not_checked(self):
        assert validate_values((SchemaField("count", "number", True),), {"count": "many"}).valid

    def test_to_dict(self):
        result = validate_values(self.FIELDS, {})
        assert result.to_dict()["valid"] is False
        assert len(result.to_dict()["errors"]) == 2


class TestTemplateIds:
    def test_split(self):
        assert split_template_id("user-story/basic") == ("user-story", "basic.md")
        assert split_template_id("user-story/basic.md") == ("user-story", "basic.md")

    @pytest.mark.parametrize("template_id", ["basic", "a/b/c", "/basic", "user-story/", "../x", "a/.."])
    def test_invalid(self, template_id):
        with pytest.raises(ValidationError):
            split_template_id(template_id)

    def test_build_template(self):
        template = build_template("bug", "detailed.md", {"title": "Detailed"}, "# {{title}}")
        assert template.id == "bug/detailed"
        assert template.name == "detailed"
        assert template.description == "Detailed"

    def test_build_template_without_frontmatter(self):
        assert build_template("bug", "plain.md", {}, "body") is None

    def test_description_fallback(self):
        template = build_template("bug", "x.md", {"author": "me"}, "")
        assert template.description == "No description available"
