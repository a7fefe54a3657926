#!/usr/bin/env python3
"""
Markdown Look-alike Guards
Recognizes bracket constructs that markdown owns: [text](url),
[text][ref], [[wiki links]], [^footnotes] and task-list checkboxes
"""

import re
from typing import Optional

# Pattern: [[target]] or [[target|text]]
WIKILINK_RE = re.compile(r'\[\[([^\]|]+)(?:\|([^\]]+))?\]\]')
FOOTNOTE_RE = re.compile(r'\[\^[^\]\s]+\]')
# [text](url) and [text][ref]
LINK_RE = re.compile(r'\][(\[]')
CHECKBOX_RE = re.compile(r'^\s*(?:[-*+]\s+|\d+[.)]\s+)?\[[ xX]\](?:\s|$)')


def is_wikilink(line: str) -> bool:
    return line.lstrip().startswith('[[') or WIKILINK_RE.search(line) is not None


def is_footnote(line: str) -> bool:
    return line.lstrip().startswith('[^') or FOOTNOTE_RE.search(line) is not None


def is_link(line: str) -> bool:
    return LINK_RE.search(line) is not None


def is_checkbox(line: str) -> bool:
    return CHECKBOX_RE.match(line) is not None


def markdown_construct(line: str) -> Optional[str]:
    """
    Name the markdown construct a bracketed line belongs to
    Returns None when the brackets are not markdown syntax
    """
    if is_checkbox(line):
        return 'checkbox'
    if is_wikilink(line):
        return 'wikilink'
    if is_footnote(line):
        return 'footnote'
    if is_link(line):
        return 'link'
    return None
