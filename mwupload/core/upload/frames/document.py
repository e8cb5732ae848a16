"""
Frame documents.

A frame's document is what a browser would render after loading a
response: XML responses become an XML document, HTML is kept as the body,
and plain text or JSON is shown inside a ``<pre>`` element.
"""
import html
import json
from html.parser import HTMLParser
from typing import Any, List, Optional
from xml.etree import ElementTree

BLANK_URL = 'about:blank'


class _PreTextParser(HTMLParser):
    """Collects the text content of every ``<pre>`` element."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self._depth = 0
        self.parts: List[str] = []

    def handle_starttag(self, tag, attrs):
        if tag == 'pre':
            self._depth += 1

    def handle_endtag(self, tag):
        if tag == 'pre' and self._depth:
            self._depth -= 1

    def handle_data(self, data):
        if self._depth:
            self.parts.append(data)


class FrameDocument:
    """
    Rendered content of a frame.

    Attributes:
        url: Address the document was loaded from
        content_type: MIME type of the response
        xml_document: Parsed root element for XML responses, else None
        body: Body markup for HTML and text responses, else None
    """

    def __init__(
        self,
        url: str = BLANK_URL,
        content_type: str = '',
        xml_document: Optional[ElementTree.Element] = None,
        body: Optional[str] = None
    ):
        self.url = url
        self.content_type = content_type
        self.xml_document = xml_document
        self.body = body

    @classmethod
    def blank(cls) -> 'FrameDocument':
        """The empty document of a freshly attached frame."""
        return cls(url=BLANK_URL, content_type='text/html', body='')

    @classmethod
    def from_response(cls, url: str, content_type: str, text: str) -> 'FrameDocument':
        """
        Render a response the way a browser frame would.

        Args:
            url: Response URL
            content_type: Response MIME type (without parameters)
            text: Decoded response body
        """
        content_type = (content_type or '').lower()

        if content_type.endswith('xml'):
            try:
                root = ElementTree.fromstring(text)
            except ElementTree.ParseError:
                # Browsers show the raw source of broken XML
                return cls(url, content_type, body=f'<pre>{html.escape(text)}</pre>')
            return cls(url, content_type, xml_document=root)

        if content_type == 'text/html':
            return cls(url, content_type, body=text)

        if content_type.startswith('text/') or content_type.endswith('json'):
            return cls(url, content_type, body=f'<pre>{html.escape(text)}</pre>')

        return cls(url, content_type)

    def pre_text(self) -> str:
        """Text content of the ``<pre>`` elements in the body."""
        if not self.body:
            return ''
        parser = _PreTextParser()
        parser.feed(self.body)
        parser.close()
        return ''.join(parser.parts)

    def __repr__(self) -> str:
        return f"FrameDocument(url={self.url!r}, content_type={self.content_type!r})"


def parse_frame_result(document: FrameDocument) -> Any:
    """
    Extract the API result from a loaded frame.

    An XML document is returned as-is. Otherwise the ``<pre>`` text of the
    body is decoded as JSON. A document with neither is returned itself.

    Returns:
        The parsed result, or None if the body holds nothing parseable
    """
    if document.xml_document is not None:
        return document.xml_document

    if document.body is not None:
        text = document.pre_text().strip()
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return None

    return document
