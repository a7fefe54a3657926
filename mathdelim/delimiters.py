#!/usr/bin/env python3
"""
Delimiter Families and Masked Regions
Describes every math delimiter convention seen in chat text and locates
the regions (existing dollar math, code) that rewrite passes must not touch
"""

import re
from bisect import bisect_right
from enum import Enum
from typing import List, NamedTuple, Optional


class DelimiterFamily(Enum):
    # (open marker, close marker, canonical marker, may span lines)
    BACKSLASH_BRACKET = ('\\[', '\\]', '$$', True)
    BACKSLASH_PAREN = ('\\(', '\\)', '$', False)
    PLAIN_BRACKET = ('[', ']', '$$', False)
    PLAIN_PAREN = ('(', ')', '$', False)
    DOLLAR_BLOCK = ('$$', '$$', '$$', True)
    DOLLAR_INLINE = ('$', '$', '$', False)
    DOLLAR_UNCLOSED = ('$', None, None, True)
    CODE_FENCE = ('```', '```', None, True)
    CODE_INLINE = ('`', '`', None, False)

    def __init__(self, open_marker: str, close_marker: Optional[str],
                 canonical: Optional[str], multiline: bool):
        self.open_marker = open_marker
        self.close_marker = close_marker
        self.canonical = canonical
        self.multiline = multiline


class Span(NamedTuple):
    """A delimited range of the document, markers included (end exclusive)"""
    start: int
    end: int
    family: DelimiterFamily


FENCE_RE = re.compile(r'[ \t]*(```|~~~)')


def preceding_backslashes(text: str, index: int) -> int:
    """Count the run of backslashes immediately before text[index]"""
    count = 0
    while index - count > 0 and text[index - count - 1] == '\\':
        count += 1
    return count


def find_unescaped(text: str, marker: str, start: int, stop: int) -> int:
    """
    Find marker in text[start:stop] that is not escaped by a backslash
    Returns -1 when there is none
    """
    while True:
        index = text.find(marker, start, stop)
        if index == -1:
            return -1
        if preceding_backslashes(text, index) % 2 == 0:
            return index
        start = index + 1


def line_end(text: str, index: int) -> int:
    end = text.find('\n', index)
    return len(text) if end == -1 else end


def find_masked_regions(text: str) -> List[Span]:
    """
    Scan text left to right for regions no rewrite may reinterpret:
    fenced code, inline code, $$...$$ and $...$
    An unclosed $ masks the rest of its line and an unclosed $$ the rest of
    the text, so a $ produced later can never pair with it. An unclosed
    backtick run is literal text
    """
    spans = []
    pos = 0
    length = len(text)

    while pos < length:
        # Fenced code blocks only open at the start of a line
        if pos == 0 or text[pos - 1] == '\n':
            fence = FENCE_RE.match(text, pos)
            if fence:
                marker = fence.group(1)
                closing = re.compile(r'^[ \t]*' + re.escape(marker), re.MULTILINE)
                close = closing.search(text, line_end(text, pos) + 1)
                end = line_end(text, close.end()) if close else length
                spans.append(Span(pos, end, DelimiterFamily.CODE_FENCE))
                pos = end
                continue

        ch = text[pos]

        if ch == '\\':
            # Escaped character, e.g. \$ or \`
            pos += 2
            continue

        if ch == '`':
            run = pos
            while run < length and text[run] == '`':
                run += 1
            ticks = text[pos:run]
            stop = line_end(text, run)
            close = re.compile(r'(?<!`)' + ticks + r'(?!`)').search(text, run, stop)
            if close:
                spans.append(Span(pos, close.end(), DelimiterFamily.CODE_INLINE))
                pos = close.end()
            else:
                pos = run
            continue

        if ch == '$':
            if text.startswith('$$', pos):
                close = find_unescaped(text, '$$', pos + 2, length)
                if close == -1:
                    spans.append(Span(pos, length, DelimiterFamily.DOLLAR_UNCLOSED))
                    break
                spans.append(Span(pos, close + 2, DelimiterFamily.DOLLAR_BLOCK))
                pos = close + 2
                continue

            stop = line_end(text, pos)
            close = find_unescaped(text, '$', pos + 1, stop)
            if close == -1:
                spans.append(Span(pos, stop, DelimiterFamily.DOLLAR_UNCLOSED))
                pos = stop
                continue
            spans.append(Span(pos, close + 1, DelimiterFamily.DOLLAR_INLINE))
            pos = close + 1
            continue

        pos += 1

    return spans


class MaskSet:
    """
    Sorted, non-overlapping set of opaque ranges keyed by position
    """

    def __init__(self, spans: List[Span]):
        self.spans = sorted(spans, key=lambda span: span.start)
        self._starts = [span.start for span in self.spans]

    @classmethod
    def from_text(cls, text: str) -> 'MaskSet':
        return cls(find_masked_regions(text))

    def __len__(self) -> int:
        return len(self.spans)

    def covering(self, pos: int) -> Optional[Span]:
        """Return the masked span containing pos, if any"""
        index = bisect_right(self._starts, pos) - 1
        if index >= 0 and pos < self.spans[index].end:
            return self.spans[index]
        return None

    def next_start(self, pos: int) -> Optional[int]:
        """Start of the first masked span beginning at or after pos"""
        index = bisect_right(self._starts, pos - 1)
        if index < len(self.spans):
            return self._starts[index]
        return None

    def intersects(self, start: int, end: int) -> bool:
        """True if any masked span overlaps the range [start, end)"""
        if self.covering(start) is not None:
            return True
        following = self.next_start(start)
        return following is not None and following < end
