#!/usr/bin/env python3
"""
GRSBPL command-line runner.

Reads a program file, runs it, and exits with the program's exit code.
Lex and run errors are shown with a few lines of source around the fault.
"""

import argparse
import logging
import sys
from pathlib import Path

import grsbpl
from grsbpl import GrsbplError

log = logging.getLogger('grsbpl.cli')


# ── Error rendering ───────────────────────────────────────────────────────────

def render_error(lines: list, err: GrsbplError) -> str:
    """
    Format an error with the failing line underlined, one line of context
    before it and two after. An unknown length underlines the rest of the line.
    """
    def line_at(n):
        return lines[n - 1] if 0 < n <= len(lines) else ''

    line, col = err.line, err.column
    length = err.length
    if length is None:
        length = len(line_at(line)) - col + 1
    gutter = ' ' * len(str(line))

    out = ['', '[GRSBPL Runtime Execution Error]', '']
    if line - 1 > 0:
        out.append(f'  {line - 1} | {line_at(line - 1)}')
    out.append(f'  {line} | {line_at(line)}')
    out.append(f'  {gutter}   {" " * col}{"^" * max(length - 1, 1)}')
    out.append(f'  {gutter}   {" " * col}{err.message}')
    out.append('')
    if len(lines) > line:
        out.append(f'  {line + 1} | {line_at(line + 1)}')
    if len(lines) > line + 1:
        out.append(f'  {line + 2} | {line_at(line + 2)}')
    return '\n'.join(out)


# ── Runner ────────────────────────────────────────────────────────────────────

def run_program(source: str, stdout=None, stdin=None, stderr=None,
                stack_limit: int = grsbpl.STACK_LIMIT) -> int:
    """Run source text; on a lex or run error print it and return 1."""
    try:
        return grsbpl.run_source(source, stdout, stdin, stack_limit)
    except GrsbplError as e:
        err = stderr if stderr is not None else sys.stderr
        print(render_error(source.split('\n'), e), file=err)
        return 1


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog='grsbpl', description='Run a GRSBPL program')
    p.add_argument('program', nargs='?', help='path to a .grsbpl source file')
    p.add_argument('--stack-limit', type=int, default=grsbpl.STACK_LIMIT,
                   help='maximum number of stack frames (default: %(default)s)')
    p.add_argument('-v', '--verbose', action='store_true', help='debug logging on stderr')
    p.add_argument('--test', action='store_true', help='run the built-in self tests')
    return p


def main(argv=None) -> int:
    args = _parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='[%(levelname)s] %(name)s: %(message)s',
        stream=sys.stderr,
    )

    if args.test:
        p, t = grsbpl.run_tests()
        return 0 if p == t else 1
    if not args.program:
        print('usage: grsbpl <filename>', file=sys.stderr)
        return 1
    if args.stack_limit < 1:
        print('--stack-limit must be at least 1', file=sys.stderr)
        return 1

    try:
        source = Path(args.program).read_text(encoding='utf-8')
    except OSError as e:
        print(f'File not found: {args.program} ({e.strerror})', file=sys.stderr)
        return 1

    log.debug('running %s', args.program)
    return run_program(source, stack_limit=args.stack_limit)


if __name__ == '__main__':
    sys.exit(main())
