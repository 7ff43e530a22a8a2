from cstgen.grammar import Grammar
from cstgen.grammar import GrammarError
from cstgen.grammar import Rule
from cstgen.grammar_loader import grammar_from_json
from cstgen.grammar_loader import load_grammar
from cstgen.python_generator import generate_source
from cstgen.python_generator import PythonParserGenerator
from cstgen.runtime import ParseError
from cstgen.runtime import simple_parser_main
from cstgen.runtime import TreeParser

__all__ = [
    "Grammar",
    "GrammarError",
    "Rule",
    "grammar_from_json",
    "load_grammar",
    "generate_source",
    "PythonParserGenerator",
    "ParseError",
    "simple_parser_main",
    "TreeParser",
]
