"""
Tests for gitcms/render.py table rendering.

These tests verify that render functions handle empty data and print
the expected values for valid data.
"""

from gitcms import render
from gitcms.domain import FileItem, RevisionAuthor, RevisionHistoryEntry
from gitcms.services.schema_sources import DEFAULT_SCHEMAS, DEFAULT_TEMPLATES


def file_item(name, valid=True):
    return FileItem(
        name=f"{name}.story.md",
        path=f"team-x/{name}.story.md",
        revision_id="0123456789abcdef",
        display_name=name,
        schema_type="story" if valid else None,
        is_valid_format=valid,
        namespace="team-x",
    )


class TestRenderTable:
    def test_empty_rows_shows_message(self, capsys):
        render.render_table(["Col1", "Col2"], [])
        assert "No data to display" in capsys.readouterr().out

    def test_none_rendered_as_blank(self, capsys):
        render.render_table(["Name", "Value"], [["test", None]])
        out = capsys.readouterr().out
        assert "test" in out
        assert "None" not in out


class TestRenderFilesTable:
    """Tests for render_files_table."""

    def test_empty(self, capsys):
        render.render_files_table([])
        assert "No files found" in capsys.readouterr().out

    def test_rows(self, capsys):
        render.render_files_table([file_item("login"), file_item("odd", valid=False)])
        out = capsys.readouterr().out
        assert "login" in out
        assert "odd" in out
        # Revisions are shortened to seven characters
        assert "0123456" in out
        assert "0123456789abcdef" not in out


class TestRenderHistoryTable:
    def test_empty(self, capsys):
        render.render_history_table([])
        assert "No history found" in capsys.readouterr().out

    def test_first_line_of_message(self, capsys):
        entry = RevisionHistoryEntry(
            revision_id="abc1234def",
            short_id="abc1234",
            message="Fix typo\n\nLonger body",
            author=RevisionAuthor("Al", "al@example.com", "2024-01-02"),
        )
        render.render_history_table([entry], title="a.md")
        out = capsys.readouterr().out
        assert "abc1234" in out
        assert "Fix typo" in out
        assert "Longer body" not in out


class TestRenderSchemas:
    def test_schemas_table(self, capsys):
        render.render_schemas_table(list(DEFAULT_SCHEMAS))
        out = capsys.readouterr().out
        assert "user-story" in out
        assert "bug-report" in out

    def test_templates_table(self, capsys):
        render.render_templates_table(list(DEFAULT_TEMPLATES))
        out = capsys.readouterr().out
        assert "basic" in out

    def test_no_templates(self, capsys):
        render.render_templates_table([])
        assert "No data to display" in capsys.readouterr().out
