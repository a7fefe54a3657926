#!/usr/bin/env python3
"""
Math Content Classifier
Decides whether the inner text of an ambiguous bracket or paren span
looks like math. When in doubt it says no: leaving math unconverted is
cosmetic, converting prose corrupts it
"""

import re
from dataclasses import dataclass, field
from typing import FrozenSet

# Signals
TOO_SHORT = 'too_short'
PROSE = 'prose'
NO_SIGNAL = 'no_signal'
LATEX_COMMAND = 'latex_command'
EXPONENT = 'exponent'
SUBSCRIPT = 'subscript'
EQUATION = 'equation'

LATEX_COMMAND_RE = re.compile(r'\\[A-Za-z]+')          # \frac, \neq, \qquad
EXPONENT_RE = re.compile(r'[A-Za-z0-9)}]\^(?:[0-9A-Za-z]|\{)')  # x^2, x^n, )^{2}
SUBSCRIPT_RE = re.compile(r'[A-Za-z0-9}]_(?:[0-9]|\{)')  # a_1, a_{n}
# = and unicode relations, but not !=, ==, <=, >=
RELATION_RE = re.compile(r'(?<![!<>=])(?:=(?!=)|≠|≤|≥)')
# A lone lowercase letter (x, 3x) or a digit
OPERAND_RE = re.compile(r'(?<![A-Za-z\\])[a-z](?![A-Za-z])|[0-9]')
WORD_RE = re.compile(r'[A-Za-z]+')

PROSE_WORDS = frozenset({
    'if', 'the', 'is', 'are', 'was', 'were', 'and', 'but',
    'for', 'not', 'with', 'this', 'that', 'from', 'have', 'has',
})


@dataclass(frozen=True)
class RecognitionRules:
    """Tunable thresholds shared by the classifier and the rewrite guards"""
    min_content_length: int = 3
    max_inline_length: int = 200
    prose_words: FrozenSet[str] = field(default=PROSE_WORDS)


DEFAULT_RULES = RecognitionRules()


@dataclass(frozen=True)
class Verdict:
    accepted: bool
    signal: str

    def __bool__(self) -> bool:
        return self.accepted


def has_equation(content: str) -> bool:
    """
    An = (or unicode relation) with a single-letter variable or a digit
    on each side
    """
    for match in RELATION_RE.finditer(content):
        left = content[:match.start()]
        right = content[match.end():]
        if OPERAND_RE.search(left) and OPERAND_RE.search(right):
            return True
    return False


def is_prose(content: str, rules: RecognitionRules = DEFAULT_RULES) -> bool:
    words = (word.lower() for word in WORD_RE.findall(content))
    return any(word in rules.prose_words for word in words)


def classify(inner: str, rules: RecognitionRules = DEFAULT_RULES) -> Verdict:
    """
    Classify the inner text of a candidate span
    Returns a Verdict naming the signal that decided it
    """
    content = inner.strip()

    if len(content) < rules.min_content_length:
        return Verdict(False, TOO_SHORT)

    has_command = LATEX_COMMAND_RE.search(content) is not None

    # Function words outweigh weak signals; a LaTeX command does not
    if not has_command and is_prose(content, rules):
        return Verdict(False, PROSE)

    if has_command:
        return Verdict(True, LATEX_COMMAND)
    if EXPONENT_RE.search(content):
        return Verdict(True, EXPONENT)
    if SUBSCRIPT_RE.search(content):
        return Verdict(True, SUBSCRIPT)
    if has_equation(content):
        return Verdict(True, EQUATION)

    return Verdict(False, NO_SIGNAL)


def is_math(inner: str, rules: RecognitionRules = DEFAULT_RULES) -> bool:
    return classify(inner, rules).accepted
