"""
Tests for the strict XML parser and its lookup helpers.
"""

import pytest

from xml_binder.exceptions import XMLParsingError
from xml_binder.parsing.xml_parser import XMLParser
from xml_binder.utils import StringUtils, TagUtils


@pytest.fixture
def parser():
    return XMLParser()


class TestParsing:

    def test_parse(self, parser):
        root = parser.parse_xml_stream("<books><book/></books>")
        assert root.tag == "books"
        assert parser.get_performance_stats()["parse_count"] == 1

    def test_error_keeps_truncated_content(self, parser):
        payload = "<books>" + "x" * 1000
        with pytest.raises(XMLParsingError) as exc_info:
            parser.parse_xml_stream(payload, "doc-7")
        assert exc_info.value.source_record_id == "doc-7"
        assert len(exc_info.value.xml_content) == 503

    def test_entities_are_not_resolved(self, parser):
        payload = (
            '<?xml version="1.0"?>'
            '<!DOCTYPE book [<!ENTITY secret SYSTEM "file:///etc/passwd">]>'
            '<book><title>&secret;</title></book>'
        )
        root = parser.parse_xml_stream(payload)
        assert "root:" not in parser.text_content(root)

    def test_text_declaration_is_dropped(self, parser):
        root = parser.parse_xml_stream("<?xml version='1.0' encoding='ISO-8859-1'?>\n<title>Café</title>")
        assert parser.text_content(root) == "Café"

    def test_bytes_use_declared_encoding(self, parser):
        payload = "<?xml version='1.0' encoding='ISO-8859-1'?><title>Café</title>".encode("latin-1")
        assert parser.text_content(parser.parse_xml_stream(payload)) == "Café"

    def test_empty_bytes_rejected(self, parser):
        with pytest.raises(XMLParsingError):
            parser.parse_xml_stream(b"  ")

    def test_validate_xml_structure(self, parser):
        assert parser.validate_xml_structure("<book/>")
        assert not parser.validate_xml_structure("")
        assert not parser.validate_xml_structure("book")
        assert not parser.validate_xml_structure("<book>")
        assert parser.get_performance_stats()["validation_count"] == 3

    def test_reset_stats(self, parser):
        parser.parse_xml_stream("<a/>")
        parser.reset_stats()
        assert parser.get_performance_stats() == {"parse_count": 0, "validation_count": 0}


class TestLookup:

    def test_iter_elements_includes_root(self, parser):
        root = parser.parse_xml_stream("<book><book/><x><book/></x></book>")
        assert len(list(parser.iter_elements(root, "book"))) == 3

    def test_first_descendant_excludes_self(self, parser):
        root = parser.parse_xml_stream("<title><sub><title>inner</title></sub></title>")
        assert parser.text_content(parser.first_descendant(root, "title")) == "inner"

    def test_text_content_concatenates_descendants(self, parser):
        root = parser.parse_xml_stream("<title>Animal <i>Farm</i></title>")
        assert parser.text_content(root) == "Animal Farm"


class TestUtils:

    def test_tags(self):
        class BookReview:
            pass

        assert TagUtils.entity_tag_for(BookReview) == "bookreview"
        assert TagUtils.collection_tag_for("bookreview") == "bookreviews"

    @pytest.mark.parametrize("name,valid", [("books", True), ("_x-1.y", True), ("1books", False),
                                            ("a b", False), ("x:y", False), ("", False), (None, False)])
    def test_is_xml_name(self, name, valid):
        assert StringUtils.is_xml_name(name) is valid

    def test_literals_reject_trailing_newline(self):
        assert not StringUtils.is_integer_literal("12\n")
        assert not StringUtils.is_iso_date("1949-06-08\n")

    def test_strip_xml_declaration(self):
        assert StringUtils.strip_xml_declaration("<?xml version='1.0'?>\n<a/>") == "<a/>"
        assert StringUtils.strip_xml_declaration("<?xml-stylesheet href='s.xsl'?><a/>") == "<?xml-stylesheet href='s.xsl'?><a/>"
