"""
MiniML Parser
pyparsing grammar for the OCaml-flavoured surface syntax, producing the
abstract syntax built by syntax.py
"""

from pathlib import Path
from typing import Dict, List
import re

from pyparsing import (
    Forward, Keyword, Literal, MatchFirst, OneOrMore, Optional as PyParsingOptional,
    ParseException, ParserElement, QuotedString, Regex, StringEnd, Suppress,
    ZeroOrMore, infix_notation, one_of, original_text_for, OpAssoc
)

from error_handling import parse_error_from_exception, MiniMLParseError
from syntax import (
    int_constant, bool_constant, string_constant,
    make_wildcard_pattern, make_var_pattern, make_literal_pattern,
    make_cons_pattern, make_tuple_pattern, make_list_pattern,
    make_constant_expr, make_identifier, make_operation, make_unary_operation,
    make_list_expr, make_tuple_expr, make_cons, make_if, make_binding, make_let,
    make_curried_lambda, make_application, make_match_branch, make_match,
    make_let_declaration, make_effect_declaration,
)

# Enable packrat parsing for performance
ParserElement.enable_packrat()


KEYWORDS = [
    'let', 'rec', 'in', 'fun', 'if', 'then', 'else', 'match', 'with',
    'true', 'false', 'not', 'effect', 'and',
]

# Alternative spellings accepted for the comparison operators
OPERATOR_ALIASES = {
    '<>': '!=',
    '==': '=',
}

COMMENT_PATTERN = re.compile(r'\(\*[\s\S]*?\*\)')


# ============================================================================
# PARSE ACTIONS
# ============================================================================

def make_left_chain(tokens):
    """a op b op c -> ((a op b) op c)"""
    items = tokens[0]
    result = items[0]
    for i in range(1, len(items), 2):
        op = OPERATOR_ALIASES.get(items[i], items[i])
        result = make_operation(op, result, items[i + 1])
    return result


def make_right_chain(tokens):
    """a op b op c -> (a op (b op c))"""
    items = tokens[0]
    result = items[-1]
    for i in range(len(items) - 2, 0, -2):
        result = make_operation(items[i], items[i - 1], result)
    return result


def make_cons_chain(tokens):
    items = tokens[0]
    result = items[-1]
    for i in range(len(items) - 2, 0, -2):
        result = make_cons(items[i - 1], result)
    return result


def make_prefix(tokens):
    op, operand = tokens[0]
    return make_unary_operation(op, operand)


def make_application_chain(tokens):
    """f a b -> ((f a) b)"""
    result = tokens[0]
    for argument in tokens[1:]:
        result = make_application(result, argument)
    return result


def make_parenthesized(tokens):
    if len(tokens) == 1:
        return tokens[0]
    return make_tuple_expr(list(tokens))


def make_parenthesized_pattern(tokens):
    if len(tokens) == 1:
        return tokens[0]
    return make_tuple_pattern(list(tokens))


def make_function_binding(s, loc, tokens):
    """`f p1 p2 = body` is sugar for `f = fun p1 p2 -> body`"""
    items = list(tokens)
    name_pattern, params, body = items[0], items[1:-1], items[-1]
    if name_pattern['type'] != 'PATTERN_VAR':
        raise ParseException(s, loc, "only a name can take parameters in a binding")
    return make_binding(False, name_pattern, make_curried_lambda(params, body))


def make_simple_binding(tokens):
    return make_binding(False, tokens[0], tokens[1])


def apply_rec_flag(tokens):
    """Combine the optional `rec` keyword with the binding that follows it"""
    rec_flag, binding = tokens[0], tokens[1]
    return make_binding(rec_flag == 'rec', binding['pattern'], binding['expression'])


def make_let_expression(tokens):
    """`let b in body`; a body that is itself a let is merged into one node"""
    binding, body = tokens[0], tokens[1]
    if body['type'] == 'LET':
        return make_let([binding] + body['value']['bindings'], body['value']['body'])
    return make_let([binding], body)


def strip_comments(text: str) -> str:
    """Blank out (* comments *), keeping line numbers intact"""
    return COMMENT_PATTERN.sub(lambda m: re.sub(r'[^\n]', ' ', m.group(0)), text)


# ============================================================================
# GRAMMAR
# ============================================================================

class MiniMLGrammar:
    """MiniML grammar definition using pyparsing"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup the grammar for declarations, expressions and patterns"""

        # Forward declarations for recursive structures
        expression = Forward()
        pattern = Forward()
        type_expr = Forward()

        # Keywords
        let_kw = Keyword("let")
        rec_kw = Keyword("rec")
        in_kw = Keyword("in")
        fun_kw = Keyword("fun")
        if_kw = Keyword("if")
        then_kw = Keyword("then")
        else_kw = Keyword("else")
        match_kw = Keyword("match")
        with_kw = Keyword("with")
        not_kw = Keyword("not")
        effect_kw = Keyword("effect")
        any_keyword = MatchFirst([Keyword(k) for k in KEYWORDS])

        # Literals
        integer = Regex(r'\d+').set_parse_action(lambda t: int_constant(int(t[0])))
        signed_integer = Regex(r'-?\d+').set_parse_action(lambda t: int_constant(int(t[0])))
        boolean = (Keyword("true") | Keyword("false")).set_parse_action(
            lambda t: bool_constant(t[0] == "true"))
        string_literal = QuotedString('"', esc_char='\\').set_parse_action(
            lambda t: string_constant(t[0]))

        # Identifiers (lowercase; a lone underscore is the wildcard)
        identifier = ~any_keyword + Regex(r"(?:[a-z][A-Za-z0-9_']*|_[A-Za-z0-9_']+)")
        constructor_name = Regex(r"[A-Z][A-Za-z0-9_']*")

        # Operators - longer operators first where they share a prefix
        minus_op = Regex(r'-(?!>)')
        arrow = Suppress("->")

        # Patterns
        wildcard_pattern = Regex(r"_(?![A-Za-z0-9_'])").set_parse_action(
            lambda t: make_wildcard_pattern())
        literal_pattern = MatchFirst([signed_integer, boolean, string_literal]).set_parse_action(
            lambda t: make_literal_pattern(t[0]))
        var_pattern = identifier.copy().set_parse_action(lambda t: make_var_pattern(t[0]))
        paren_pattern = (
            Suppress("(") + pattern + ZeroOrMore(Suppress(",") + pattern) + Suppress(")")
        ).set_parse_action(make_parenthesized_pattern)
        list_pattern = (
            Suppress("[") +
            PyParsingOptional(pattern + ZeroOrMore(Suppress(";") + pattern) + PyParsingOptional(Suppress(";"))) +
            Suppress("]")
        ).set_parse_action(lambda t: make_list_pattern(list(t)))

        pattern_atom = wildcard_pattern | literal_pattern | var_pattern | paren_pattern | list_pattern

        cons_pattern = (pattern_atom + Suppress("::") + pattern).set_parse_action(
            lambda t: make_cons_pattern(t[0], t[1]))

        pattern <<= cons_pattern | pattern_atom

        # Atoms
        constant_expr = MatchFirst([integer, boolean, string_literal]).set_parse_action(
            lambda t: make_constant_expr(t[0]))
        variable = identifier.copy().set_parse_action(lambda t: make_identifier(t[0]))
        paren_expr = (
            Suppress("(") + expression + ZeroOrMore(Suppress(",") + expression) + Suppress(")")
        ).set_parse_action(make_parenthesized)
        list_expr = (
            Suppress("[") +
            PyParsingOptional(expression + ZeroOrMore(Suppress(";") + expression) + PyParsingOptional(Suppress(";"))) +
            Suppress("]")
        ).set_parse_action(lambda t: make_list_expr(list(t)))

        atom = constant_expr | variable | paren_expr | list_expr

        # Application by juxtaposition binds tighter than any operator
        application = OneOrMore(atom).set_parse_action(make_application_chain)

        operation = infix_notation(application, [
            (not_kw | minus_op, 1, OpAssoc.RIGHT, make_prefix),
            (one_of("* /"), 2, OpAssoc.LEFT, make_left_chain),
            (Literal("+") | minus_op, 2, OpAssoc.LEFT, make_left_chain),
            (Literal("::"), 2, OpAssoc.RIGHT, make_cons_chain),
            (Regex(r'<=|>=|<>|!=|==|<|>|='), 2, OpAssoc.LEFT, make_left_chain),
            (Literal("&&"), 2, OpAssoc.RIGHT, make_right_chain),
            (Literal("||"), 2, OpAssoc.RIGHT, make_right_chain),
        ])

        # Bindings: `p = e` or `f p1 p2 = e`
        function_binding = (
            pattern_atom + OneOrMore(pattern_atom) + Suppress("=") + expression
        ).set_parse_action(make_function_binding)
        simple_binding = (pattern + Suppress("=") + expression).set_parse_action(make_simple_binding)
        rec_flag = PyParsingOptional(rec_kw, default="")
        binding = (Suppress(let_kw) + rec_flag + (function_binding | simple_binding)).set_parse_action(
            apply_rec_flag)

        # Compound expressions
        let_expr = (binding + Suppress(in_kw) + expression).set_parse_action(make_let_expression)

        fun_expr = (
            Suppress(fun_kw) + OneOrMore(pattern_atom) + arrow + expression
        ).set_parse_action(lambda t: make_curried_lambda(list(t[:-1]), t[-1]))

        if_expr = (
            Suppress(if_kw) + expression + Suppress(then_kw) + expression + Suppress(else_kw) + expression
        ).set_parse_action(lambda t: make_if(t[0], t[1], t[2]))

        match_clause = (pattern + arrow + expression).set_parse_action(
            lambda t: make_match_branch(t[0], t[1]))
        match_expr = (
            Suppress(match_kw) + expression + Suppress(with_kw) +
            PyParsingOptional(Suppress("|")) + match_clause +
            ZeroOrMore(Suppress("|") + match_clause)
        ).set_parse_action(lambda t: make_match(t[0], list(t[1:])))

        expression <<= let_expr | fun_expr | if_expr | match_expr | operation

        # Type expressions appear only in effect declarations
        type_atom = (~any_keyword + Regex(r"'?[a-z][A-Za-z0-9_']*")) | (Suppress("(") + type_expr + Suppress(")"))
        type_application = OneOrMore(type_atom)
        type_expr <<= type_application + ZeroOrMore((Literal("->") | Literal("*")) + type_application)

        # Declarations
        let_declaration = (binding + ~in_kw).set_parse_action(
            lambda t: make_let_declaration(t[0]['is_recursive'], t[0]['pattern'], t[0]['expression']))
        effect_declaration = (
            Suppress(effect_kw) + constructor_name + Suppress(":") + original_text_for(type_expr)
        ).set_parse_action(lambda t: make_effect_declaration(t[0], t[1]))

        declaration = let_declaration | effect_declaration

        program = ZeroOrMore(declaration + PyParsingOptional(Suppress(";;"))) + StringEnd()

        # Expose grammar components
        self.expression = expression
        self.pattern = pattern
        self.declaration = declaration
        self.program = program
        self.full_expression = expression + StringEnd()

        if self.debug:
            for name in ('expression', 'pattern', 'declaration'):
                getattr(self, name).set_name(name)


# ============================================================================
# PARSER
# ============================================================================

class MiniMLParser:
    """Main MiniML parser interface"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = MiniMLGrammar(debug)

    def parse_file(self, filepath: str) -> List[Dict]:
        """Parse a MiniML source file"""
        text = Path(filepath).read_text(encoding='utf-8')
        return self.parse_string(text, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> List[Dict]:
        """Parse a program into a list of declarations"""
        source = strip_comments(text)
        try:
            result = self.grammar.program.parse_string(source, parse_all=True)
        except ParseException as e:
            raise parse_error_from_exception(e, text) from e

        declarations = list(result)
        if self.debug:
            print(f"Parsed {len(declarations)} declarations from {filename}")
        return declarations

    def parse_expression(self, text: str, filename: str = "<input>") -> Dict:
        """Parse a single expression"""
        source = strip_comments(text)
        try:
            result = self.grammar.full_expression.parse_string(source, parse_all=True)
        except ParseException as e:
            raise parse_error_from_exception(e, text) from e
        return result[0]


def create_parser(debug: bool = False) -> MiniMLParser:
    """Factory function for creating a parser"""
    return MiniMLParser(debug)


def create_debug_parser() -> MiniMLParser:
    """Factory function for creating a debug parser"""
    return MiniMLParser(debug=True)


__all__ = [
    'MiniMLGrammar', 'MiniMLParser', 'MiniMLParseError',
    'create_parser', 'create_debug_parser', 'strip_comments',
]
