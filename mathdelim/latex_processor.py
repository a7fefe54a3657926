#!/usr/bin/env python3
"""
LaTeX Delimiter Processor
Normalizes the math delimiters found in LLM chat text to $...$ and $$...$$
and converts md4c equation tags to the same KaTeX-friendly form
"""

import logging
import re
from typing import List, Tuple

from mathdelim.classifier import DEFAULT_RULES, RecognitionRules
from mathdelim.delimiters import DelimiterFamily, MaskSet
from mathdelim.rewriters import Candidate, rewrite

logger = logging.getLogger(__name__)

# Backslash forms first so their content (\bigl( ... \bigr)) is masked
# before the plain forms look for candidates; blocks before inline
PASS_ORDER = (
    DelimiterFamily.BACKSLASH_BRACKET,
    DelimiterFamily.BACKSLASH_PAREN,
    DelimiterFamily.PLAIN_BRACKET,
    DelimiterFamily.PLAIN_PAREN,
)


class LaTeXProcessor:
    def __init__(self, rules: RecognitionRules = DEFAULT_RULES):
        self.rules = rules

    def normalize(self, text: str) -> str:
        """
        Rewrite \\[...\\], \\(...\\), [ ... ] and ( ... ) math to dollar form
        Everything else, existing dollar math included, is left as is
        """
        return self._run(text)[0]

    def explain(self, text: str) -> List[Candidate]:
        """Every candidate span each pass considered, with its verdict"""
        return self._run(text)[1]

    def _run(self, text: str) -> Tuple[str, List[Candidate]]:
        candidates = []
        if not text:
            return text, candidates

        for family in PASS_ORDER:
            # Re-mask on every pass so freshly produced $ regions are opaque
            masks = MaskSet.from_text(text)
            text, found = rewrite(text, family, masks, self.rules)
            candidates.extend(found)

            converted = sum(1 for candidate in found if candidate.accepted)
            if found:
                logger.debug(
                    f"{family.name}: {converted}/{len(found)} candidates converted "
                    f"({len(masks)} masked regions)"
                )

        return text, candidates

    def process(self, html: str) -> str:
        """
        Process LaTeX formulas in HTML output
        Converts md4c <x-equation> tags to KaTeX format
        """
        # md4c outputs:
        # - Block formulas: <x-equation type="display">...</x-equation>
        # - Inline formulas: <x-equation>...</x-equation>

        # Convert block formulas to $$...$$
        html = re.sub(
            r'<x-equation type="display">([^<]*)</x-equation>',
            r'$$\1$$',
            html
        )

        # Convert inline formulas to $...$
        html = re.sub(
            r'<x-equation>([^<]*)</x-equation>',
            r'$\1$',
            html
        )

        return html


_default_processor = LaTeXProcessor()


def normalize_math_delimiters(text: str) -> str:
    """
    Normalize math delimiters in chat text to $...$ (inline) and $$...$$ (block)

    - \\[ ... \\] becomes $$ ... $$ (may span lines)
    - \\( ... \\) becomes $ ... $
    - a standalone [ ... ] line with math content becomes $$...$$
    - ( ... ) with inner spacing and math content becomes $...$
    """
    return _default_processor.normalize(text)
