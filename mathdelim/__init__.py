"""
mathdelim: normalize LLM math delimiters to $...$ and $$...$$
"""

from mathdelim.classifier import DEFAULT_RULES, RecognitionRules, Verdict, classify, is_math
from mathdelim.delimiters import DelimiterFamily, MaskSet, Span
from mathdelim.latex_processor import LaTeXProcessor, normalize_math_delimiters
from mathdelim.rewriters import Candidate

__version__ = '0.1.0'

__all__ = [
    'Candidate',
    'DEFAULT_RULES',
    'DelimiterFamily',
    'LaTeXProcessor',
    'MaskSet',
    'RecognitionRules',
    'Span',
    'Verdict',
    'classify',
    'is_math',
    'normalize_math_delimiters',
]
