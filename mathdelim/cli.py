#!/usr/bin/env python3
"""
Command line math delimiter normalizer
Reads chat text from files or stdin and writes it back with $...$ / $$...$$ math
"""

import argparse
import logging
import sys
from pathlib import Path

from mathdelim.latex_processor import normalize_math_delimiters
from mathdelim.log import setup_logging

logger = logging.getLogger('mathdelim.cli')


def build_parser():
    parser = argparse.ArgumentParser(
        prog='mathdelim',
        description='Normalize LaTeX math delimiters in chat text to $...$ and $$...$$',
    )
    parser.add_argument('paths', nargs='*', type=Path, help='Files to normalize (default: stdin)')
    parser.add_argument('-i', '--in-place', action='store_true', help='Rewrite files in place')
    parser.add_argument('--check', action='store_true', help='Exit with status 1 if any input would change')
    parser.add_argument('--log-file', type=str, default=None, help='Also log to this file')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, logging.DEBUG if args.debug else logging.WARNING)

    if not args.paths:
        original = sys.stdin.read()
        converted = normalize_math_delimiters(original)
        if args.check:
            return int(converted != original)
        sys.stdout.write(converted)
        return 0

    changed = False
    for path in args.paths:
        try:
            original = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Cannot read {path}: {e}")
            print(f"mathdelim: cannot read {path}: {e}", file=sys.stderr)
            return 1

        converted = normalize_math_delimiters(original)
        changed = changed or converted != original

        if args.check:
            if converted != original:
                print(f"Would convert: {path}")
        elif args.in_place:
            if converted != original:
                path.write_text(converted, encoding='utf-8')
                print(f"Converted: {path}")
            else:
                print(f"Unchanged: {path}")
        else:
            sys.stdout.write(converted)

    if args.check:
        return int(changed)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
