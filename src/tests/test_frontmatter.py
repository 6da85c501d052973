"""Unit tests for front matter parsing and serialization."""

from datetime import date

import pytest

from folio.core.exceptions import ParseError
from folio.core.frontmatter import (
    dump_frontmatter,
    format_toml_value,
    parse_document_text,
    parse_section_text,
    render_document_text,
    split_frontmatter,
)
from folio.core.models import DocumentMetadata


# ============================================================
# Splitting
# ============================================================


class TestSplitFrontmatter:
    def test_toml_block(self):
        fmt, header, body = split_frontmatter('+++\ntitle = "A"\n+++\n\n# Body')
        assert fmt == "toml"
        assert header == 'title = "A"'
        assert body == "\n# Body"

    def test_yaml_block(self):
        fmt, header, body = split_frontmatter("---\ntitle: A\n---\nBody")
        assert fmt == "yaml"
        assert header == "title: A"
        assert body == "Body"

    def test_empty_block(self):
        fmt, header, body = split_frontmatter("+++\n+++\nBody")
        assert fmt == "toml"
        assert header == ""
        assert body == "Body"

    def test_crlf_line_endings(self):
        fmt, header, body = split_frontmatter('+++\r\ntitle = "A"\r\n+++\r\nBody')
        assert header == 'title = "A"'
        assert body == "Body"

    def test_block_at_end_of_file(self):
        _, header, body = split_frontmatter('+++\ntitle = "A"\n+++')
        assert header == 'title = "A"'
        assert body == ""

    def test_missing_block(self):
        with pytest.raises(ParseError, match="missing front matter"):
            split_frontmatter("# Just a heading", "post.md")

    def test_unterminated_block(self):
        with pytest.raises(ParseError, match="unterminated"):
            split_frontmatter('+++\ntitle = "A"\n\nBody', "post.md")

    def test_delimiter_inside_body_is_kept(self):
        _, _, body = split_frontmatter('+++\ntitle = "A"\n+++\nText\n+++\nMore')
        assert body == "Text\n+++\nMore"


# ============================================================
# Document parsing
# ============================================================


class TestParseDocument:
    def test_all_fields(self):
        text = (
            "+++\n"
            'title = "Apache Arrow"\n'
            "date = 2025-09-07\n"
            "updated = 2025-09-10\n"
            'description = "Columnar memory"\n'
            "draft = true\n"
            "+++\n"
            "\n"
            "Arrow is a columnar format.\n"
        )
        doc = parse_document_text(text, "blog/arrow.md")
        assert doc.path == "blog/arrow.md"
        assert doc.title == "Apache Arrow"
        assert doc.date == date(2025, 9, 7)
        assert doc.updated == date(2025, 9, 10)
        assert doc.description == "Columnar memory"
        assert doc.draft is True
        assert doc.body == "\nArrow is a columnar format.\n"

    def test_defaults(self):
        doc = parse_document_text('+++\ntitle = "A"\ndate = 2025-01-01\n+++\n')
        assert doc.metadata.updated is None
        assert doc.updated == date(2025, 1, 1)
        assert doc.description is None
        assert doc.draft is False

    def test_missing_title(self):
        with pytest.raises(ParseError) as exc_info:
            parse_document_text("+++\ndate = 2025-01-01\n+++\n", "post.md")
        assert exc_info.value.path == "post.md"
        assert "title" in exc_info.value.reason
        assert str(exc_info.value).startswith("post.md: ")

    def test_missing_date(self):
        with pytest.raises(ParseError, match="date"):
            parse_document_text('+++\ntitle = "A"\n+++\n')

    def test_blank_title(self):
        with pytest.raises(ParseError, match="blank"):
            parse_document_text('+++\ntitle = "  "\ndate = 2025-01-01\n+++\n')

    def test_updated_before_date(self):
        text = '+++\ntitle = "A"\ndate = 2025-02-01\nupdated = 2025-01-01\n+++\n'
        with pytest.raises(ParseError, match="earlier than date"):
            parse_document_text(text)

    def test_updated_equal_to_date(self):
        text = '+++\ntitle = "A"\ndate = 2025-02-01\nupdated = 2025-02-01\n+++\n'
        assert parse_document_text(text).updated == date(2025, 2, 1)

    def test_invalid_toml(self):
        with pytest.raises(ParseError, match="invalid TOML"):
            parse_document_text('+++\ntitle = "unclosed\n+++\n')

    def test_empty_header(self):
        with pytest.raises(ParseError, match="title"):
            parse_document_text("+++\n+++\nBody")

    def test_datetime_truncated_to_date(self):
        text = '+++\ntitle = "A"\ndate = 2025-09-07T10:30:00Z\n+++\n'
        assert parse_document_text(text).date == date(2025, 9, 7)

    def test_quoted_date(self):
        text = '+++\ntitle = "A"\ndate = "2025-09-07"\n+++\n'
        assert parse_document_text(text).date == date(2025, 9, 7)

    def test_taxonomies_and_extra(self):
        text = (
            "+++\n"
            'title = "A"\n'
            "date = 2025-01-01\n"
            "\n"
            "[taxonomies]\n"
            'tags = ["arrow", "data"]\n'
            "\n"
            "[extra]\n"
            "toc = true\n"
            "+++\n"
        )
        doc = parse_document_text(text)
        assert doc.metadata.taxonomies == {"tags": ["arrow", "data"]}
        assert doc.metadata.extra == {"toc": True}

    def test_unknown_keys_preserved(self):
        text = '+++\ntitle = "A"\ndate = 2025-01-01\ntemplate = "post.html"\n+++\n'
        doc = parse_document_text(text)
        assert doc.metadata.model_extra == {"template": "post.html"}

    def test_yaml_front_matter(self):
        text = "---\ntitle: Hello\ndate: 2025-01-15\ndraft: true\n---\n\nBody"
        doc = parse_document_text(text)
        assert doc.title == "Hello"
        assert doc.date == date(2025, 1, 15)
        assert doc.draft is True

    def test_malformed_yaml(self):
        with pytest.raises(ParseError, match="invalid YAML"):
            parse_document_text("---\n: : invalid: yaml: [[\n---\n\nBody")

    def test_yaml_not_a_mapping(self):
        with pytest.raises(ParseError, match="table"):
            parse_document_text("---\n- a\n- b\n---\nBody")


# ============================================================
# Section parsing
# ============================================================


class TestParseSection:
    def test_defaults_without_header(self):
        metadata, body = parse_section_text("Just text")
        assert metadata.sort_by == "date"
        assert metadata.title is None
        assert body == "Just text"

    def test_sort_by(self):
        metadata, _ = parse_section_text('+++\nsort_by = "weight"\npaginate_by = 5\n+++\n')
        assert metadata.sort_by == "weight"
        assert metadata.paginate_by == 5

    def test_invalid_sort_by(self):
        with pytest.raises(ParseError, match="sort_by"):
            parse_section_text('+++\nsort_by = "random"\n+++\n', "_index.md")

    def test_unterminated_header(self):
        with pytest.raises(ParseError):
            parse_section_text('+++\nsort_by = "date"\n')


# ============================================================
# Serialization
# ============================================================


class TestFormatTomlValue:
    def test_bool(self):
        assert format_toml_value(True) == "true"
        assert format_toml_value(False) == "false"

    def test_numbers(self):
        assert format_toml_value(3) == "3"
        assert format_toml_value(1.5) == "1.5"

    def test_date(self):
        assert format_toml_value(date(2025, 9, 7)) == "2025-09-07"

    def test_string_escapes(self):
        assert format_toml_value('say "hi"\n') == '"say \\"hi\\"\\n"'
        assert format_toml_value("back\\slash") == '"back\\\\slash"'

    def test_list(self):
        assert format_toml_value(["a", 1]) == '["a", 1]'

    def test_inline_table(self):
        assert format_toml_value({"a": 1}) == "{ a = 1 }"

    def test_unsupported(self):
        with pytest.raises(TypeError):
            format_toml_value(object())


class TestDumpFrontmatter:
    def test_round_trip_canonical(self):
        header = (
            "+++\n"
            'title = "Columnar formats"\n'
            "date = 2025-01-01\n"
            "updated = 2025-02-01\n"
            'description = "A \\"quoted\\" word"\n'
            "draft = true\n"
            "+++\n"
        )
        doc = parse_document_text(header + "\nBody\n")
        assert dump_frontmatter(doc.metadata) == header

    def test_round_trip_field_order_aside(self):
        lines = [
            "draft = false",
            'description = "Short"',
            "date = 2025-09-07",
            'title = "Arrow"',
        ]
        doc = parse_document_text("+++\n" + "\n".join(lines) + "\n+++\n")
        dumped = dump_frontmatter(doc.metadata)
        dumped_lines = dumped.strip().split("\n")[1:-1]
        assert sorted(dumped_lines) == sorted(lines)

    def test_round_trip_with_tables(self):
        header = (
            "+++\n"
            'title = "A"\n'
            "date = 2025-01-01\n"
            'template = "post.html"\n'
            "\n"
            "[taxonomies]\n"
            'tags = ["arrow", "data"]\n'
            "\n"
            "[extra]\n"
            "toc = true\n"
            "+++\n"
        )
        doc = parse_document_text(header)
        assert dump_frontmatter(doc.metadata) == header

    def test_nested_tables(self):
        metadata = DocumentMetadata(
            title="A", date=date(2025, 1, 1), extra={"social": {"mastodon": "@me"}}
        )
        dumped = dump_frontmatter(metadata)
        assert "[extra]\n\n[extra.social]\nmastodon = \"@me\"\n" in dumped

    def test_unset_fields_omitted(self):
        metadata = DocumentMetadata(title="A", date=date(2025, 1, 1))
        assert dump_frontmatter(metadata) == '+++\ntitle = "A"\ndate = 2025-01-01\n+++\n'

    def test_none_fields_omitted(self):
        metadata = DocumentMetadata(
            title="A", date=date(2025, 1, 1), description=None, weight=None
        )
        assert dump_frontmatter(metadata) == '+++\ntitle = "A"\ndate = 2025-01-01\n+++\n'

    def test_yaml_null_field_renders_as_toml(self):
        doc = parse_document_text("---\ntitle: A\ndate: 2025-01-01\ndescription:\n---\nBody")
        assert doc.description is None
        assert render_document_text(doc) == '+++\ntitle = "A"\ndate = 2025-01-01\n+++\nBody'

    def test_yaml_output(self):
        metadata = DocumentMetadata(title="A", date=date(2025, 1, 1), draft=True)
        dumped = dump_frontmatter(metadata, fmt="yaml")
        assert dumped.startswith("---\n")
        assert dumped.endswith("---\n")
        assert "title: A" in dumped
        assert "date: 2025-01-01" in dumped
        assert "draft: true" in dumped

    def test_render_document_text(self):
        text = '+++\ntitle = "A"\ndate = 2025-01-01\n+++\n\n# Heading\n'
        doc = parse_document_text(text)
        assert render_document_text(doc) == text
