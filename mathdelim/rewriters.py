#!/usr/bin/env python3
"""
Delimiter Rewriters
One rewrite pass per non-canonical delimiter family. Each pass scans the
text left to right, resolves non-overlapping candidate spans and swaps
the markers of accepted spans for dollar markers, copying the content
verbatim
"""

from typing import Callable, Dict, List, NamedTuple, Tuple

from mathdelim.classifier import DEFAULT_RULES, RecognitionRules, classify
from mathdelim.delimiters import (
    DelimiterFamily,
    MaskSet,
    Span,
    find_unescaped,
    line_end,
    preceding_backslashes,
)
from mathdelim.markdown_guards import markdown_construct

# Outcomes
CONVERTED = 'converted'
UNMATCHED = 'unmatched'
EMPTY = 'empty'
MASKED = 'masked'
NOT_STANDALONE = 'not_standalone'
NO_SPACING = 'no_spacing'
TOO_SHORT = 'too_short'
TOO_LONG = 'too_long'
ADJACENT_DOLLAR = 'adjacent_dollar'

SPACING = ' \t'


class Candidate(NamedTuple):
    """A located span, whether it was converted, and the guard or signal that decided"""
    span: Span
    inner: str
    accepted: bool
    reason: str


PassResult = Tuple[str, List[Candidate]]


def touches_dollar(text: str, start: int, end: int, inner: str) -> bool:
    """
    True if dollar markers put around inner in place of text[start:end]
    would not read back as one region: inner holds a $ or ends in an
    escaping backslash, or a $ sits right outside the span
    """
    return (
        find_unescaped(inner, '$', 0, len(inner)) != -1
        or preceding_backslashes(inner, len(inner)) % 2 == 1
        or (start > 0 and text[start - 1] == '$')
        or (end < len(text) and text[end] == '$')
    )


def rewrite_backslash(text: str, family: DelimiterFamily, masks: MaskSet,
                      rules: RecognitionRules = DEFAULT_RULES) -> PassResult:
    """
    Convert \\[...\\] to $$...$$ or \\(...\\) to $...$ unconditionally
    The close is the nearest later close marker of the same family;
    only the bracket form may span lines
    """
    open_marker, close_marker = family.open_marker, family.close_marker
    canonical = family.canonical
    pieces = []
    candidates = []
    last = pos = 0

    while True:
        start = text.find(open_marker, pos)
        if start == -1:
            break

        masked = masks.covering(start)
        if masked is not None:
            pos = masked.end
            continue

        # \\[ is a LaTeX line break with spacing, not a delimiter
        if preceding_backslashes(text, start) % 2 == 1:
            pos = start + len(open_marker)
            continue

        content_start = start + len(open_marker)
        limit = masks.next_start(content_start)
        if limit is None:
            limit = len(text)
        if not family.multiline:
            limit = min(limit, line_end(text, content_start))

        close = find_unescaped(text, close_marker, content_start, limit)
        if close == -1:
            candidates.append(Candidate(Span(start, content_start, family), '', False, UNMATCHED))
            pos = content_start
            continue

        end = close + len(close_marker)
        inner = text[content_start:close]
        span = Span(start, end, family)
        if not inner:
            candidates.append(Candidate(span, inner, False, EMPTY))
            pos = end
        elif touches_dollar(text, start, end, inner) or (pieces and start == last):
            # The markers stay text, so spans nested inside can still convert
            candidates.append(Candidate(span, inner, False, ADJACENT_DOLLAR))
            pos = content_start
        else:
            pieces.append(text[last:start])
            pieces.append(canonical + inner + canonical)
            last = end
            candidates.append(Candidate(span, inner, True, CONVERTED))
            pos = end

    pieces.append(text[last:])
    return ''.join(pieces), candidates


def closes_at_end(line: str) -> bool:
    """
    True if the [ opening line is matched by the ] that ends it,
    i.e. bracket depth never drops to zero before the last character
    """
    depth = 0
    for index, ch in enumerate(line):
        if index > 0 and line[index - 1] == '\\':
            continue
        if ch == '[':
            depth += 1
        elif ch == ']':
            depth -= 1
            if depth == 0:
                return index == len(line) - 1
    return False


def rewrite_plain_bracket(text: str, family: DelimiterFamily, masks: MaskSet,
                          rules: RecognitionRules = DEFAULT_RULES) -> PassResult:
    """
    Convert standalone [ ... ] lines whose content looks like math to $$...$$
    Whitespace outside the brackets is kept
    """
    lines = text.split('\n')
    candidates = []
    offset = 0

    for number, line in enumerate(lines):
        line_offset = offset
        offset += len(line) + 1

        stripped = line.strip()
        if not stripped.startswith('['):
            continue

        lead = len(line) - len(line.lstrip())
        tail = len(line.rstrip())
        span = Span(line_offset + lead, line_offset + tail, family)

        def reject(reason, inner=stripped):
            candidates.append(Candidate(span, inner, False, reason))

        if masks.intersects(span.start, span.end):
            reject(MASKED)
            continue

        if len(stripped) < 2 or not closes_at_end(stripped):
            reject(NOT_STANDALONE)
            continue

        construct = markdown_construct(stripped)
        if construct:
            reject(construct)
            continue

        if stripped[1] not in SPACING or stripped[-2] not in SPACING:
            reject(NO_SPACING)
            continue

        inner = stripped[1:-1].strip()
        if len(inner) < rules.min_content_length:
            reject(TOO_SHORT, inner)
            continue

        if touches_dollar(text, span.start, span.end, inner):
            reject(ADJACENT_DOLLAR, inner)
            continue

        verdict = classify(inner, rules)
        if not verdict.accepted:
            reject(verdict.signal, inner)
            continue

        lines[number] = line[:lead] + family.canonical + inner + family.canonical + line[tail:]
        candidates.append(Candidate(span, inner, True, verdict.signal))

    return '\n'.join(lines), candidates


def find_paren_close(text: str, content_start: int, limit: int) -> int:
    """
    Nearest ) preceded by whitespace whose enclosed text has balanced parens
    Returns -1 when there is none before limit
    """
    depth = 0
    for index in range(content_start, limit):
        ch = text[index]
        if ch == '(':
            depth += 1
        elif ch == ')':
            if depth == 0:
                if text[index - 1] in SPACING and text[content_start:index].strip():
                    return index
                # An unspaced ) at depth zero closes something outside this span
                return -1
            depth -= 1
    return -1


def rewrite_plain_paren(text: str, family: DelimiterFamily, masks: MaskSet,
                        rules: RecognitionRules = DEFAULT_RULES) -> PassResult:
    """
    Convert ( ... ) spans with inner spacing whose content looks like math
    to $...$, anywhere in a line (prose, table cells, several per line)
    """
    pieces = []
    candidates = []
    last = pos = 0
    length = len(text)

    while True:
        start = text.find('(', pos)
        if start == -1:
            break

        masked = masks.covering(start)
        if masked is not None:
            pos = masked.end
            continue

        content_start = start + 1
        # Ordinary parenthetical prose has no space after the (; \( is escaped
        if (content_start >= length or text[content_start] not in SPACING
                or preceding_backslashes(text, start) % 2 == 1):
            pos = content_start
            continue

        limit = masks.next_start(content_start)
        if limit is None:
            limit = length
        limit = min(limit, line_end(text, content_start))

        close = find_paren_close(text, content_start, limit)
        if close == -1:
            candidates.append(Candidate(Span(start, content_start, family), '', False, UNMATCHED))
            pos = content_start
            continue

        end = close + 1
        span = Span(start, end, family)
        inner = text[content_start:close].strip()
        pos = end

        if len(inner) > rules.max_inline_length:
            candidates.append(Candidate(span, inner, False, TOO_LONG))
            continue

        # $a$$x$ would read as a $$ block marker
        if touches_dollar(text, start, end, inner) or (pieces and start == last):
            candidates.append(Candidate(span, inner, False, ADJACENT_DOLLAR))
            continue

        verdict = classify(inner, rules)
        if not verdict.accepted:
            candidates.append(Candidate(span, inner, False, verdict.signal))
            continue

        pieces.append(text[last:start])
        pieces.append(family.canonical + inner + family.canonical)
        last = end
        candidates.append(Candidate(span, inner, True, verdict.signal))

    pieces.append(text[last:])
    return ''.join(pieces), candidates


REWRITERS: Dict[DelimiterFamily, Callable[..., PassResult]] = {
    DelimiterFamily.BACKSLASH_BRACKET: rewrite_backslash,
    DelimiterFamily.BACKSLASH_PAREN: rewrite_backslash,
    DelimiterFamily.PLAIN_BRACKET: rewrite_plain_bracket,
    DelimiterFamily.PLAIN_PAREN: rewrite_plain_paren,
}


def rewrite(text: str, family: DelimiterFamily, masks: MaskSet,
            rules: RecognitionRules = DEFAULT_RULES) -> PassResult:
    """Run the rewrite pass for one delimiter family"""
    try:
        rewriter = REWRITERS[family]
    except KeyError:
        raise ValueError(f"{family.name} regions are never rewritten") from None
    return rewriter(text, family, masks, rules)
