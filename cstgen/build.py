from typing import Optional, Tuple

from cstgen.grammar import Grammar
from cstgen.grammar_loader import load_grammar
from cstgen.python_generator import PythonParserGenerator


def build_parser(grammar_file: str, entrypoint: Optional[str] = None) -> Grammar:
    grammar = load_grammar(grammar_file)
    if entrypoint:
        grammar.entrypoint = entrypoint
    grammar.check()
    return grammar


def build_generator(grammar: Grammar, grammar_file: str, output_file: str) -> PythonParserGenerator:
    if not output_file.endswith(".py"):
        raise ValueError("Your output file must be a .py file")
    with open(output_file, "w") as file:
        gen = PythonParserGenerator(grammar, file)
        gen.generate(grammar_file)
    return gen


def build_parser_and_generator(
    grammar_file: str, output_file: str, entrypoint: Optional[str] = None
) -> Tuple[Grammar, PythonParserGenerator]:
    """Load a grammar and generate a parser for it

    Args:
        grammar_file (string): Path for the tree-sitter grammar.json file
        output_file (string): Path for the generated Python module
        entrypoint (string, optional): Rule to use as the root of a parse.
          Defaults to the first rule of the grammar.
    """
    grammar = build_parser(grammar_file, entrypoint)
    gen = build_generator(grammar, grammar_file, output_file)
    return grammar, gen
