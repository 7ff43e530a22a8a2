#!/usr/bin/env python3.8

"""cstgen -- Concrete Syntax Tree parser generator.

Reads a tree-sitter grammar.json and writes a Python module that parses the
trees tree-sitter produces for that grammar.
"""

import argparse
import sys
import time

from typing import Final

from cstgen.build import build_parser_and_generator
from cstgen.grammar import GrammarError
from cstgen.grammar_visualizer import ASTGrammarPrinter


def print_memstats() -> bool:
    MiB: Final = 2 ** 20
    try:
        import psutil  # type: ignore
    except ImportError:
        return False
    print("Memory stats:")
    process = psutil.Process()
    meminfo = process.memory_info()
    res = {}
    res['rss'] = meminfo.rss / MiB
    res['vms'] = meminfo.vms / MiB
    if sys.platform == 'win32':
        res['maxrss'] = meminfo.peak_wset / MiB
    else:
        # See https://stackoverflow.com/questions/938733/total-memory-used-by-python-process
        import resource  # Since it doesn't exist on Windows.
        rusage = resource.getrusage(resource.RUSAGE_SELF)
        if sys.platform == 'darwin':
            factor = 1
        else:
            factor = 1024  # Linux
        res['maxrss'] = rusage.ru_maxrss * factor / MiB
    for key, value in res.items():
        print(f"  {key:12.12s}: {value:10.0f} MiB")
    return True


argparser = argparse.ArgumentParser(prog='cstgen', description="Parser generator for tree-sitter syntax trees")
argparser.add_argument('-q', '--quiet', action='store_true', help="Don't print the grammar")
argparser.add_argument('-v', '--verbose', action='count', default=0,
                       help="Print timing stats; repeat for more debug output")
argparser.add_argument('-o', '--output', metavar='OUT', default='parse.py',
                       help="Where to write the generated parser (default parse.py)")
argparser.add_argument('-e', '--entrypoint', metavar='RULE',
                       help="Rule matching the root of the tree (default: the first rule)")
argparser.add_argument('filename', help="Grammar description (grammar.json)")


def main() -> None:
    args = argparser.parse_args()
    t0 = time.time()

    try:
        grammar, gen = build_parser_and_generator(args.filename, args.output, args.entrypoint)
    except (OSError, ValueError, GrammarError) as err:
        print(f"ERROR: {err}", file=sys.stderr)
        sys.exit(1)

    if not args.quiet:
        if args.verbose:
            print("Grammar Tree:")
            ASTGrammarPrinter().print_grammar_ast(grammar)
        print("Grammar:")
        for rule in grammar.rules:
            print(" ", rule)
        print(f"Entrypoint: {grammar.entrypoint}")
        if grammar.extras:
            print(f"Extras: {', '.join(grammar.extras)}")

    t1 = time.time()

    if args.verbose:
        dt = t1 - t0
        print(f"Total time: {dt:.3f} sec; {len(grammar.rules)} rules; "
              f"{gen.counter} local matchers")
        if not print_memstats():
            print("(Can't find psutil; install it for memory stats.)")


if __name__ == '__main__':
    main()
