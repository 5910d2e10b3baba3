"""
XML loading and node access for DrugBank documents.

This module provides the Node Access Layer the extraction engine depends on:
LxmlNode adapts an lxml element to NodeInterface, and DrugBankXMLParser loads
a DrugBank document into an in-memory tree and hands out its top-level drug records.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from lxml import etree

from ..exceptions import XMLParsingError
from ..interfaces import NodeInterface


def _local_name(element) -> str:
    return etree.QName(element).localname


class LxmlNode(NodeInterface):
    """
    NodeInterface adapter over an lxml element.

    DrugBank documents declare a default namespace (http://www.drugbank.ca); all tag
    comparisons here use local names so callers can navigate with plain tags such as
    'drugbank-id'. Comments and processing instructions are never returned as children.
    """

    __slots__ = ("_element", "_strip_text")

    def __init__(self, element, strip_text: bool = True):
        self._element = element
        self._strip_text = strip_text

    def _wrap(self, element) -> 'LxmlNode':
        return LxmlNode(element, self._strip_text)

    def _element_children(self):
        return [child for child in self._element if isinstance(child.tag, str)]

    @property
    def tag(self) -> str:
        return _local_name(self._element)

    @property
    def element(self):
        """The wrapped lxml element."""
        return self._element

    def text(self) -> Optional[str]:
        # XPath string-value: all descendant text, no comments or PIs
        value = str(self._element.xpath("string()"))
        if self._strip_text:
            value = value.strip()
        return value or None

    def attribute(self, name: str) -> Optional[str]:
        value = self._element.get(name)
        if value is None:
            return None
        return value.strip() if self._strip_text else value

    def attributes(self) -> List[Tuple[str, str]]:
        return [(etree.QName(name).localname, value) for name, value in self._element.attrib.items()]

    def children(self) -> List[NodeInterface]:
        return [self._wrap(child) for child in self._element_children()]

    def child(self, tag: str) -> Optional[NodeInterface]:
        for child in self._element_children():
            if _local_name(child) == tag:
                return self._wrap(child)
        return None

    def children_by_tag(self, tag: str) -> List[NodeInterface]:
        return [self._wrap(child) for child in self._element_children() if _local_name(child) == tag]

    def has_children(self) -> bool:
        return any(isinstance(child.tag, str) for child in self._element)

    def own_text(self) -> Optional[str]:
        """Text directly inside this element, excluding children; None when blank."""
        parts = [self._element.text or ""]
        parts.extend(child.tail or "" for child in self._element)
        value = "".join(parts).strip()
        return value or None

    @property
    def path(self) -> str:
        names = []
        element = self._element
        while element is not None:
            names.append(_local_name(element))
            element = element.getparent()
        return "/".join(reversed(names))

    def __repr__(self) -> str:
        return f"LxmlNode({self.path})"


class DrugBankXMLParser:
    """
    Loads a DrugBank XML document into an in-memory node tree.

    The whole document is parsed into memory; extractors rely on random access into
    the tree. The lxml parser is configured defensively: external entities are never
    resolved and network access is disabled. huge_tree is enabled because the full
    DrugBank release contains text nodes beyond libxml2's default limits.
    """

    def __init__(self, strip_text: bool = True, drug_tag: str = "drug"):
        """
        Initialize the parser.

        Args:
            strip_text: Whether node text and attribute values are trimmed
            drug_tag: Tag of the top-level record elements
        """
        self.strip_text = strip_text
        self.drug_tag = drug_tag
        self.logger = logging.getLogger(__name__)
        self.parse_count = 0

    def _make_parser(self):
        return etree.XMLParser(
            resolve_entities=False,  # Security: don't resolve external entities
            no_network=True,  # Security: disable network access
            huge_tree=True,
            remove_blank_text=False,
        )

    def parse_string(self, xml_content: Union[str, bytes]) -> LxmlNode:
        """
        Parse an XML document held in memory.

        Args:
            xml_content: Raw XML as text or bytes

        Returns:
            Root node of the parsed document

        Raises:
            XMLParsingError: If the content is empty or malformed
        """
        if not xml_content or not xml_content.strip():
            raise XMLParsingError("XML content is empty or None")

        self.parse_count += 1
        if isinstance(xml_content, str):
            xml_content = self._clean_xml_content(xml_content).encode("utf-8")

        try:
            root = etree.fromstring(xml_content, self._make_parser())
        except etree.XMLSyntaxError as e:
            self.logger.error(f"XML syntax error in in-memory document #{self.parse_count}: {e}")
            raise XMLParsingError(f"XML syntax error: {e}", xml_content.decode("utf-8", "replace"),
                                  source=f"string_{self.parse_count}")
        return LxmlNode(root, self.strip_text)

    def parse_file(self, xml_path: Union[str, Path]) -> LxmlNode:
        """
        Parse an XML document from disk.

        Args:
            xml_path: Path to the DrugBank XML file

        Returns:
            Root node of the parsed document

        Raises:
            XMLParsingError: If the file is missing or malformed
        """
        path = Path(xml_path)
        if not path.is_file():
            raise XMLParsingError(f"XML file not found: {path}", source=str(path))

        self.parse_count += 1
        self.logger.info(f"Parsing DrugBank XML file: {path}")
        try:
            tree = etree.parse(str(path), self._make_parser())
        except (etree.XMLSyntaxError, OSError) as e:
            self.logger.error(f"Failed to parse {path}: {e}")
            raise XMLParsingError(f"Failed to parse XML file: {e}", source=str(path))

        root = LxmlNode(tree.getroot(), self.strip_text)
        version = root.attribute("version")
        if version:
            self.logger.info(f"DrugBank version: {version}")
        return root

    def iter_drugs(self, root: NodeInterface) -> List[NodeInterface]:
        """
        Return the top-level drug records of a parsed document.

        Only direct children of the root are records; <drug> elements nested deeper
        (for example inside pathways) are references, not records.
        """
        drugs = root.children_by_tag(self.drug_tag)
        self.logger.info(f"Found {len(drugs)} <{self.drug_tag}> records under <{root.tag}>")
        return drugs

    def load_drugs(self, xml_path: Union[str, Path]) -> List[NodeInterface]:
        """Parse a file and return its top-level drug records."""
        return self.iter_drugs(self.parse_file(xml_path))

    def _clean_xml_content(self, xml_content: str) -> str:
        """
        Clean and normalize XML text for parsing.

        Args:
            xml_content: Raw XML content

        Returns:
            Cleaned XML content
        """
        if xml_content.startswith('\ufeff'):
            xml_content = xml_content[1:]
            self.logger.debug("Removed UTF-8 BOM from XML content")

        # Handle BOM that might appear as visible characters
        if xml_content.startswith('ï»¿'):
            xml_content = xml_content[3:]
            self.logger.debug("Removed visible UTF-8 BOM characters from XML content")

        xml_content = xml_content.strip()

        # The text is re-encoded as UTF-8, so any declared encoding must agree
        if xml_content.startswith('<?xml'):
            end = xml_content.find('?>')
            if end != -1:
                xml_content = '<?xml version="1.0" encoding="UTF-8"?>' + xml_content[end + 2:]

        return xml_content
