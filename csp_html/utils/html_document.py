# utils/html_document.py
"""
Mutable HTML tree used by the CSP plugin.

Only a handful of operations are exposed (select, attributes, text,
element creation, serialization) so the rest of the package never touches
BeautifulSoup objects directly.

Serialization keeps the source markup as close as possible to what was
parsed: attribute order, the doctype as written and character references
outside <script>/<style> (``&nbsp;``, ``&#169;``) come back unchanged.
"""

import html
import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Doctype, NavigableString, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

# <meta ... /> style void elements in the source document
_SELF_CLOSING_TAG = re.compile(r'<[a-zA-Z][\w:-]*(?:\s[^<>]*)?/>')

# Start tag, raw text body and end tag of elements whose content is not markup
_RAW_TEXT_ELEMENT = re.compile(
    r'(?P<open><(?P<name>script|style)\b[^>]*>)(?P<body>.*?)(?P<close></(?P=name)\s*>)',
    re.IGNORECASE | re.DOTALL,
)
_COMMENT = re.compile(r'<!--.*?-->', re.DOTALL)
_CHARACTER_REFERENCE = re.compile(r'&(#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);')
_LEADING_DOCTYPE = re.compile(r'\s*(<!doctype[^>]*>)', re.IGNORECASE)

# References reproduced as is by the XML entity substitution
_NATIVE_REFERENCES = frozenset(['amp', 'lt', 'gt'])

# Private use characters wrapping a masked reference name while the tree is parsed
_MASK_START, _MASK_END = '\ue000', '\ue001'
_MASKED_REFERENCE = re.compile(f'{_MASK_START}([^{_MASK_END}]*){_MASK_END}')

BOOLEAN_ATTRIBUTES = frozenset([
    'allowfullscreen', 'async', 'autofocus', 'autoplay', 'checked', 'controls',
    'default', 'defer', 'disabled', 'formnovalidate', 'hidden', 'inert',
    'ismap', 'itemscope', 'loop', 'multiple', 'muted', 'nomodule', 'novalidate',
    'open', 'playsinline', 'readonly', 'required', 'reversed', 'selected',
])


class SourceOrderFormatter(HTMLFormatter):
    """
    HTML formatter that keeps attributes in document order.

    In HTML mode empty boolean attributes are written bare (``defer``);
    XHTML output keeps ``defer=""``.
    """

    def __init__(self, xhtml: bool = False):
        super().__init__(
            entity_substitution=EntitySubstitution.substitute_xml,
            void_element_close_prefix='/' if xhtml else None,
        )
        self.xhtml = xhtml

    def attributes(self, tag):
        if tag.attrs is None:
            return []
        if self.xhtml:
            return list(tag.attrs.items())
        return [
            (name, None if value == '' and name in BOOLEAN_ATTRIBUTES else value)
            for name, value in tag.attrs.items()
        ]


_HTML_FORMATTER = SourceOrderFormatter(xhtml=False)
_XHTML_FORMATTER = SourceOrderFormatter(xhtml=True)


def _strip_raw_text(markup: str) -> str:
    markup = _COMMENT.sub('', markup)
    return _RAW_TEXT_ELEMENT.sub(lambda m: m.group('open') + m.group('close'), markup)


def looks_like_xhtml(markup: str) -> bool:
    """True when a tag of the page (not script/style text or comments) is written ``<tag/>``."""
    return bool(_SELF_CLOSING_TAG.search(_strip_raw_text(markup)))


def _mask_references(markup: str) -> str:
    def mask(match):
        name = match.group(1)
        if name in _NATIVE_REFERENCES:
            return match.group(0)
        return f'{_MASK_START}{name}{_MASK_END}'

    def mask_outside_raw_text(segment: str) -> str:
        return _CHARACTER_REFERENCE.sub(mask, segment)

    # Script and style bodies are hashed byte for byte, they are never touched
    masked, position = [], 0
    for match in _RAW_TEXT_ELEMENT.finditer(markup):
        masked.append(mask_outside_raw_text(markup[position:match.start()]))
        masked.append(mask_outside_raw_text(match.group('open')))
        masked.append(match.group('body'))
        masked.append(match.group('close'))
        position = match.end()
    masked.append(mask_outside_raw_text(markup[position:]))
    return ''.join(masked)


def _unmask_references(markup: str) -> str:
    return _MASKED_REFERENCE.sub(r'&\1;', markup)


def _decode_references(value: str) -> str:
    return _MASKED_REFERENCE.sub(lambda m: html.unescape(f'&{m.group(1)};'), value)


class HtmlDocument:
    """Parsed page with the small API the augmenter relies on."""

    def __init__(self, soup: BeautifulSoup, xhtml: bool = False, doctype_markup: Optional[str] = None):
        self.soup = soup
        self.xhtml = xhtml
        self.doctype_markup = doctype_markup

    @classmethod
    def parse(cls, markup: str, xhtml: Optional[bool] = None) -> 'HtmlDocument':
        if xhtml is None:
            xhtml = looks_like_xhtml(markup)
        doctype = _LEADING_DOCTYPE.match(markup)
        soup = BeautifulSoup(_mask_references(markup), 'html.parser')
        return cls(soup, xhtml=xhtml, doctype_markup=doctype.group(1) if doctype else None)

    # -----------------------------
    # Queries
    # -----------------------------
    def select(self, selector: str) -> List[Tag]:
        """Elements matching a CSS selector, in document order."""
        return self.soup.select(selector)

    def select_one(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)

    @staticmethod
    def tag_name(element: Tag) -> str:
        return element.name

    @staticmethod
    def get_attr(element: Tag, name: str) -> Optional[str]:
        value = element.get(name)
        if isinstance(value, list):
            # multi-valued attributes (rel, class)
            value = ' '.join(value)
        if value is None:
            return None
        return _decode_references(value)

    @staticmethod
    def has_attr(element: Tag, name: str) -> bool:
        return element.has_attr(name)

    @staticmethod
    def set_attr(element: Tag, name: str, value: str) -> None:
        element[name] = value

    @staticmethod
    def text(element: Tag) -> str:
        """Exact text content of the element, without any normalization."""
        return ''.join(str(child) for child in element.children if isinstance(child, NavigableString))

    # -----------------------------
    # Mutations
    # -----------------------------
    def create_element(self, name: str, attrs: Dict[str, str]) -> Tag:
        return self.soup.new_tag(name, attrs=dict(attrs))

    def head(self) -> Tag:
        """Return <head>, creating it when the document has none."""
        head = self.soup.head
        if head is not None:
            return head
        head = self.soup.new_tag('head')
        root = self.soup.html
        if root is not None:
            root.insert(0, head)
        else:
            position = 0
            for index, child in enumerate(self.soup.contents):
                if isinstance(child, Doctype):
                    position = index + 1
            self.soup.insert(position, head)
        return head

    def prepend_to_head(self, element: Tag) -> None:
        self.head().insert(0, element)

    # -----------------------------
    # Output
    # -----------------------------
    def _doctype(self) -> Optional[Doctype]:
        for child in self.soup.contents:
            if isinstance(child, Doctype):
                return child
        return None

    def serialize(self) -> str:
        formatter = _XHTML_FORMATTER if self.xhtml else _HTML_FORMATTER
        output = self.soup.decode(formatter=formatter)

        doctype = self._doctype()
        if doctype is not None:
            # bs4 always terminates the doctype with a newline of its own
            rendered = doctype.output_ready(formatter)
            output = output.replace(rendered, self.doctype_markup or f'{Doctype.PREFIX}{doctype}>', 1)
        return _unmask_references(output)

    def __str__(self) -> str:
        return self.serialize()
