#!/usr/bin/env python3
"""
Chat Markdown Renderer
Normalizes math delimiters, then renders markdown to HTML with md4c
(when installed) or Python-Markdown, keeping $...$ and $$...$$ intact
for KaTeX. Results are cached by content hash
"""

import hashlib
import html as html_lib
import logging
from typing import Dict, List, Optional

import markdown

from mathdelim.delimiters import DelimiterFamily, find_masked_regions
from mathdelim.latex_processor import LaTeXProcessor

# md4c is optional: pip install mathdelim[md4c]
try:
    import md4c
    HAS_MD4C = True
except ImportError:
    HAS_MD4C = False

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = [
    'markdown.extensions.tables',
    'markdown.extensions.fenced_code',
    'markdown.extensions.sane_lists',
    'markdown.extensions.nl2br',
]

CACHE_SIZE = 10


class MarkdownProcessor:
    def __init__(self, latex_processor: Optional[LaTeXProcessor] = None):
        self.latex_processor = latex_processor or LaTeXProcessor()

        # hash -> html
        self._content_cache: Dict[str, str] = {}
        self.cache_hits = 0

    def convert(self, text: str, normalize: bool = True, force: bool = False) -> str:
        """
        Convert chat markdown to HTML
        Uses content hash for caching to avoid redundant processing
        """
        content_hash = self._hash_content(text, normalize)

        if not force and content_hash in self._content_cache:
            self.cache_hits += 1
            return self._content_cache[content_hash]

        # Step 1: Normalize math delimiters
        if normalize:
            text = self.latex_processor.normalize(text)

        # Step 2: Convert markdown to HTML
        html = self.markdown_to_html(text)

        self._content_cache[content_hash] = html

        # Keep only the most recent entries
        if len(self._content_cache) > CACHE_SIZE:
            oldest_keys = list(self._content_cache.keys())[:-CACHE_SIZE]
            for key in oldest_keys:
                del self._content_cache[key]

        return html

    def _hash_content(self, text: str, normalize: bool) -> str:
        """Generate hash of content and settings for cache key"""
        content = f"{text}|{normalize}"
        return hashlib.md5(content.encode()).hexdigest()

    def clear_cache(self):
        """Clear the conversion cache"""
        self._content_cache.clear()
        self.cache_hits = 0

    def markdown_to_html(self, text: str) -> str:
        """
        Convert markdown to HTML using available parser
        """
        if HAS_MD4C:
            return self._convert_with_md4c(text)
        return self._convert_with_markdown(text)

    def _convert_with_md4c(self, text: str) -> str:
        """Convert using md4c library (preferred)"""
        flags = (
            md4c.MD_FLAG_TABLES |
            md4c.MD_FLAG_STRIKETHROUGH |
            md4c.MD_FLAG_TASKLISTS |
            md4c.MD_FLAG_PERMISSIVEAUTOLINKS |
            md4c.MD_FLAG_LATEXMATHSPANS
        )

        try:
            html = md4c.HTMLRenderer(flags).parse(text)
        except Exception as e:
            logger.error(f"md4c error: {e}", exc_info=True)
            return self._convert_with_markdown(text)

        # md4c wraps math spans in <x-equation> tags
        return self.latex_processor.process(html)

    def _convert_with_markdown(self, text: str) -> str:
        """Convert using Python markdown library"""
        # Protect math from being touched by markdown
        latex_blocks: List[str] = []
        pieces = []
        last = 0

        for span in find_masked_regions(text):
            if span.family is DelimiterFamily.DOLLAR_BLOCK:
                placeholder = f"\n\nLATEXBLOCK{len(latex_blocks)}ENDBLOCK\n\n"
            elif span.family is DelimiterFamily.DOLLAR_INLINE:
                placeholder = f"LATEXINLINE{len(latex_blocks)}ENDINLINE"
            else:
                # Code is left for markdown to render
                continue
            pieces.append(text[last:span.start])
            pieces.append(placeholder)
            latex_blocks.append(text[span.start:span.end])
            last = span.end
        pieces.append(text[last:])

        md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS)
        html = md.convert(''.join(pieces))

        # Restore LaTeX equations
        for i, latex_block in enumerate(latex_blocks):
            escaped = html_lib.escape(latex_block, quote=False)
            html = html.replace(f"<p>LATEXBLOCK{i}ENDBLOCK</p>", escaped)
            html = html.replace(f"LATEXBLOCK{i}ENDBLOCK", escaped)
            html = html.replace(f"LATEXINLINE{i}ENDINLINE", escaped)

        return html
