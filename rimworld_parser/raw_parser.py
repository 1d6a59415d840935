"""Raw XML parsing into untyped RawNode trees.

Built on the expat parser that backs ``xml.etree.ElementTree`` so that
failures carry the byte offset where parsing stopped, and so self-closing
elements can be told apart from elements with empty content. Documents
nested deeper than the configured element depth are rejected as malformed.
"""

import logging
from xml.parsers import expat

from rimworld_parser.domain.constants import MAX_ELEMENT_DEPTH
from rimworld_parser.domain.errors import MalformedXmlError
from rimworld_parser.domain.models import RawNode

logger = logging.getLogger(__name__)


class _Frame:
    """An element whose end tag has not been seen yet."""

    __slots__ = ('tag', 'attributes', 'self_closing', 'children', 'pending')

    def __init__(self, tag: str, attributes: dict[str, str], self_closing: bool) -> None:
        self.tag = tag
        self.attributes = attributes
        self.self_closing = self_closing
        self.children: list = []
        self.pending: list[str] = []

    def flush_text(self) -> None:
        if self.pending:
            self.children.append(''.join(self.pending))
            self.pending = []


class _TreeBuilder:
    """expat handler set that assembles RawNodes with an explicit stack."""

    def __init__(self, parser, content: bytes, source_path: str, max_depth: int) -> None:
        self._parser = parser
        self._max_depth = max_depth
        self._content = content
        self._source_path = source_path
        self._stack: list[_Frame] = []
        self.root: RawNode | None = None

    def start(self, tag: str, attributes: dict[str, str]) -> None:
        if self._stack:
            self._stack[-1].flush_text()
        start = self._parser.CurrentByteIndex
        if len(self._stack) >= self._max_depth:
            raise MalformedXmlError(
                self._source_path, start, f"elements nested deeper than {self._max_depth}",
            )
        self._stack.append(_Frame(tag, attributes, _is_self_closing(self._content, start)))

    def end(self, tag: str) -> None:
        frame = self._stack.pop()
        frame.flush_text()
        node = RawNode(
            tag=frame.tag,
            attributes=frame.attributes,
            children=_finish_children(frame),
            source_path=self._source_path,
        )
        if self._stack:
            self._stack[-1].children.append(node)
        else:
            self.root = node

    def text(self, data: str) -> None:
        if self._stack:
            self._stack[-1].pending.append(data)

    def skipped_entity(self, name: str, is_parameter_entity: bool) -> None:
        raise MalformedXmlError(
            self._source_path, self._parser.CurrentByteIndex, f"undefined entity &{name};",
        )


def _is_self_closing(content: bytes, start: int) -> bool:
    """Check whether the start tag beginning at ``start`` ends with '/>'."""
    quote = None
    for i in range(start + 1, len(content)):
        ch = content[i]
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in (0x22, 0x27):  # " or '
            quote = ch
        elif ch == 0x3E:  # >
            return content[i - 1] == 0x2F  # /
    return False


def _finish_children(frame: _Frame) -> tuple:
    """Apply the whitespace rules to a closed element's children.

    Whitespace-only text between elements is dropped. Text that is the
    element's only content is kept verbatim, and an explicitly closed empty
    element gets a single empty text child.
    """
    children = frame.children
    if any(isinstance(child, RawNode) for child in children):
        return tuple(c for c in children if isinstance(c, RawNode) or c.strip())
    if children:
        return (''.join(children),)
    return () if frame.self_closing else ('',)


class RawParser:
    """Converts one XML document's bytes into a RawNode tree."""

    def __init__(self, max_depth: int = MAX_ELEMENT_DEPTH) -> None:
        self.max_depth = max_depth

    def parse(self, content: bytes, source_path: str = '') -> RawNode:
        """Parse a document.

        Args:
            content: Raw document bytes.
            source_path: Identity of the document, kept on every node.

        Returns:
            The document's root element.

        Raises:
            MalformedXmlError: If the document is not well-formed or nests
                elements deeper than ``max_depth``.
        """
        parser = expat.ParserCreate()
        parser.buffer_text = True
        builder = _TreeBuilder(parser, content, source_path, self.max_depth)
        parser.StartElementHandler = builder.start
        parser.EndElementHandler = builder.end
        parser.CharacterDataHandler = builder.text
        parser.SkippedEntityHandler = builder.skipped_entity

        try:
            parser.Parse(content, True)
        except expat.ExpatError as e:
            raise MalformedXmlError(source_path, parser.ErrorByteIndex, expat.ErrorString(e.code)) from e

        if builder.root is None:
            raise MalformedXmlError(source_path, len(content), 'no element found')
        logger.debug("Parsed %s (root <%s>)", source_path, builder.root.tag)
        return builder.root
