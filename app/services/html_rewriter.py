"""
Streaming HTML attribute rewriter

Single forward pass over an HTML byte stream. Registered (tag, attribute)
pairs are handed to a rewrite callable; everything else (text, comments,
other attributes, end tags) is re-emitted exactly as received.
"""
import codecs
import re
from html.parser import HTMLParser
from typing import AsyncIterable, AsyncIterator, Callable, Dict, Iterable, List, Optional, Tuple

from loguru import logger


_TAG_NAME = re.compile(r"<[^\s/>]+")
_ATTRIBUTE = re.compile(
    r"""(?P<name>[^\s/>"'=][^\s/>=]*)"""
    r"""(?:\s*=\s*(?P<value>"[^"]*"|'[^']*'|[^\s>]*))?"""
)
_SEPARATORS = " \t\n\r\f/"
# Elements whose content is text even when it looks like markup
_RCDATA_ELEMENTS = ("title", "textarea")


def rewrite_tag_attribute(
    tag_text: str, attribute: str, rewrite: Callable[[str], str]
) -> str:
    """
    Rewrite one attribute value inside the raw text of a start tag

    The first occurrence of the attribute wins. Quoting style and all
    surrounding bytes are kept; an attribute without a value is left alone.
    """
    match = _TAG_NAME.match(tag_text)
    if not match:
        return tag_text

    pos = match.end()
    length = len(tag_text)
    while pos < length:
        if tag_text[pos] in _SEPARATORS:
            pos += 1
            continue
        m = _ATTRIBUTE.match(tag_text, pos)
        if not m:
            pos += 1
            continue
        if m.group("name").lower() != attribute:
            pos = m.end()
            continue

        raw = m.group("value")
        if not raw:
            return tag_text
        quote = raw[0] if raw[0] in "\"'" else ""
        value = raw[1:-1] if quote else raw
        if not value:
            return tag_text

        new_value = rewrite(value)
        if new_value == value:
            return tag_text
        start, end = m.span("value")
        return f"{tag_text[:start]}{quote}{new_value}{quote}{tag_text[end:]}"

    return tag_text


class ElementAttributeRewriter(HTMLParser):
    """
    Incremental element visitor that rewrites registered attributes

    Every span the tokenizer consumes passes through updatepos(); that span
    is copied verbatim to the output unless a start tag handler substituted
    new text for it. Input not yet consumed (an unfinished tag at a chunk
    boundary) stays buffered until the next feed.

    Markup inside title and textarea is text and is never rewritten.
    """

    def __init__(
        self,
        targets: Iterable[Tuple[str, str]],
        rewrite: Callable[[str], str],
    ):
        super().__init__(convert_charrefs=False)
        self.targets: Dict[str, List[str]] = {}
        for tag, attribute in targets:
            self.targets.setdefault(tag.lower(), []).append(attribute.lower())
        self.rewrite = rewrite
        self.rewritten_count = 0
        self._out: List[str] = []
        self._replacement: Optional[str] = None
        self._rcdata_tag: Optional[str] = None

    def handle_starttag(self, tag, attrs):
        if self._rcdata_tag is not None:
            return
        if tag in _RCDATA_ELEMENTS:
            self._rcdata_tag = tag
            return

        attributes = self.targets.get(tag)
        if not attributes:
            return

        present = {name for name, _ in attrs}
        text = original = self.get_starttag_text()
        for attribute in attributes:
            if attribute in present:
                text = rewrite_tag_attribute(text, attribute, self.rewrite)

        if text != original:
            self.rewritten_count += 1
            self._replacement = text

    def handle_endtag(self, tag):
        if tag == self._rcdata_tag:
            self._rcdata_tag = None

    def updatepos(self, i, j):
        if i < j:
            if self._replacement is not None:
                self._out.append(self._replacement)
                self._replacement = None
            else:
                self._out.append(self.rawdata[i:j])
        return super().updatepos(i, j)

    def feed_text(self, data: str) -> str:
        """Feed decoded text, return the output it released"""
        if data:
            self.feed(data)
        return self._drain()

    def finish(self) -> str:
        """Flush everything still buffered, including an unterminated script/style body"""
        self.close()
        if self.rawdata:
            self._out.append(self.rawdata)
            self.rawdata = ""
        return self._drain()

    def _drain(self) -> str:
        out = "".join(self._out)
        self._out.clear()
        return out


def _codec_name(encoding: Optional[str]) -> str:
    if encoding:
        try:
            return codecs.lookup(encoding).name
        except LookupError:
            logger.warning(f"Unknown charset {encoding!r}, rewriting HTML as utf-8")
    return "utf-8"


async def rewrite_html_stream(
    chunks: AsyncIterable[bytes],
    targets: Iterable[Tuple[str, str]],
    rewrite: Callable[[str], str],
    encoding: Optional[str] = None,
) -> AsyncIterator[bytes]:
    """
    Rewrite registered attributes of an HTML byte stream as it arrives

    Output for each input chunk is yielded before the next chunk is read.
    Undecodable bytes survive the round trip through surrogateescape.

    Args:
        chunks: Async iterable of raw body bytes
        targets: (tag, attribute) pairs to visit
        rewrite: Callable mapping an attribute value to its rewritten form
        encoding: Charset from the response Content-Type (utf-8 when absent)
    """
    codec = _codec_name(encoding)
    decoder = codecs.getincrementaldecoder(codec)(errors="surrogateescape")
    encoder = codecs.getincrementalencoder(codec)(errors="surrogateescape")
    parser = ElementAttributeRewriter(targets, rewrite)

    async for chunk in chunks:
        out = parser.feed_text(decoder.decode(chunk))
        if out:
            yield encoder.encode(out)

    out = parser.feed_text(decoder.decode(b"", final=True)) + parser.finish()
    tail = encoder.encode(out, final=True)
    if tail:
        yield tail

    logger.debug(f"HTML rewrite finished: {parser.rewritten_count} element(s) rewritten")
