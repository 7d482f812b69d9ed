"""
Error handling for MiniML
Runtime condition taxonomy plus parse errors with detailed messages
"""

from typing import List, Optional, Dict
from pyparsing import ParseException
import re


# ============================================================================
# RUNTIME CONDITIONS
# ============================================================================

class MiniMLRuntimeError(Exception):
    """Base class for every condition raised while evaluating a program"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnboundVariableError(MiniMLRuntimeError):
    """Variable lookup miss (or a recursive binding read before it is filled)"""
    def __init__(self, name: str, message: Optional[str] = None):
        self.name = name
        super().__init__(message or f"Interpretation error: undef variable '{name}'.")


class OperatorTypeError(MiniMLRuntimeError):
    """Operand types not covered by a binary operator"""
    pass


class TupleArityMismatchError(OperatorTypeError):
    """Ordering comparison between tuples of different arity"""
    def __init__(self, left_arity: int, right_arity: int):
        self.left_arity = left_arity
        self.right_arity = right_arity
        super().__init__("Interpretation error: Cannot compare tuples of different size.")


class UnaryOperandError(MiniMLRuntimeError):
    """Unary operator applied to a value of the wrong type"""
    pass


class BindingFailureError(MiniMLRuntimeError):
    """A let or parameter pattern did not match its value"""
    pass


class MatchExhaustedError(MiniMLRuntimeError):
    """No clause of a match expression matched the scrutinee"""
    pass


class ApplicationError(MiniMLRuntimeError):
    """Callee of an application is not a function"""
    pass


class ConditionTypeError(MiniMLRuntimeError):
    """Test of a conditional is not a boolean"""
    pass


class UnsupportedDeclarationError(MiniMLRuntimeError):
    """Top-level declaration other than a let binding"""
    pass


class PatternNameError(MiniMLRuntimeError):
    """Bound names requested from a pattern that cannot bind them"""
    pass


class StringifyError(MiniMLRuntimeError):
    """Value nested inside a tuple or list is not a basic type"""
    pass


class BindingProtocolError(MiniMLRuntimeError):
    """Reserve/emplace protocol used out of order"""
    pass


def format_runtime_error(error: MiniMLRuntimeError) -> str:
    """Format a runtime condition as a one-line report"""
    return f"{type(error).__name__}: {error.message}"


# ============================================================================
# PARSE ERRORS (Immutable Dictionaries)
# ============================================================================

def make_parse_error(message: str, location: int, line: int, column: int,
                     expected: Optional[List[str]] = None, got: Optional[str] = None,
                     context: Optional[str] = None, suggestions: Optional[List[str]] = None) -> Dict:
    """Parse failure as a plain dictionary; `location` is the 0-based offset"""
    return dict(
        message=message, location=location, line=line, column=column,
        expected=list(expected or ()), got=got, context=context,
        suggestions=list(suggestions or ()),
    )


def format_parse_error(error: Dict) -> str:
    """Render a parse error the way the command line reports it

        line 2, column 1: Expected end of text
          1 | let x = 1
          2 | let y = ) 2
            | ^
          expected end of text, found 'let y = ) 2'
    """
    parts = [f"line {error['line']}, column {error['column']}: {error['message']}"]
    if error['context']:
        parts.append(error['context'])
    if error['expected']:
        found = error['got'] or "end of input"
        parts.append(f"  expected {' or '.join(error['expected'])}, found {found}")
    parts.extend(f"  hint: {hint}" for hint in error['suggestions'])
    return "\n".join(parts)


def get_context_lines(source_text: str, line_num: int, col_num: int, before: int = 1) -> str:
    """Source excerpt ending at the error line, with a caret under the column"""
    lines = source_text.splitlines() or ['']
    line_num = min(max(line_num, 1), len(lines))
    width = len(str(line_num))

    excerpt = [f"  {n:>{width}} | {lines[n - 1]}"
               for n in range(max(1, line_num - before), line_num + 1)]
    excerpt.append(f"  {'':>{width}} | {' ' * max(col_num - 1, 0)}^")
    return "\n".join(excerpt)


def extract_expected(exc: ParseException) -> List[str]:
    """Extract expected tokens from exception"""
    msg = str(exc)
    expected_match = re.search(r"Expected\s+(.+?)(?:,\s+found|\s+\(|$)", msg)
    if expected_match:
        return [expected_match.group(1)]
    return ["valid syntax"]


def extract_got(source_text: str, line_num: int, col_num: int) -> str:
    """Extract what was actually found at the error location"""
    lines = source_text.split('\n')

    if 0 < line_num <= len(lines):
        error_line = lines[line_num - 1]
        if col_num <= len(error_line):
            start = max(0, col_num - 1)
            end = min(len(error_line), col_num + 10)
            got_text = error_line[start:end].strip()
            if got_text:
                return f"'{got_text}'"
        return "end of line"
    return "end of input"


def generate_suggestions(got: str, expected: List[str]) -> List[str]:
    """Generate helpful suggestions based on the error"""
    suggestions = []

    if "{" in got or "}" in got:
        suggestions.append("Use parentheses () for grouping; braces are not part of MiniML")

    if "," in got:
        suggestions.append("List elements are separated by ';', tuples by ','")

    if "'in'" in str(expected):
        suggestions.append("A local 'let' needs 'in' before its body")

    if "'with'" in str(expected):
        suggestions.append("Match expressions need 'with' after the scrutinee")

    if "'->'" in str(expected):
        suggestions.append("Functions and match clauses need '->' before their body")

    return suggestions


def enhance_parse_exception_dict(exc: ParseException, source_text: str) -> Dict:
    """Convert pyparsing exception to enhanced MiniML error dict"""
    line_num = exc.lineno
    col_num = exc.column

    context = get_context_lines(source_text, line_num, col_num)
    expected = extract_expected(exc)
    got = extract_got(source_text, line_num, col_num)
    suggestions = generate_suggestions(got, expected)

    return make_parse_error(
        message=str(exc),
        location=exc.loc,
        line=line_num,
        column=col_num,
        expected=expected,
        got=got,
        context=context,
        suggestions=suggestions
    )


class MiniMLParseError(Exception):
    """Parse failure carrying source location and hints"""
    def __init__(self, message: str, location: int = 0, line: int = 0, column: int = 0,
                 expected: Optional[List[str]] = None, got: Optional[str] = None,
                 context: Optional[str] = None, suggestions: Optional[List[str]] = None):
        self.message = message
        self.location = location
        self.line = line
        self.column = column
        self.expected = expected or []
        self.got = got
        self.context = context
        self.suggestions = suggestions or []
        super().__init__(message)

    def __str__(self) -> str:
        error_dict = make_parse_error(
            self.message, self.location, self.line, self.column,
            self.expected, self.got, self.context, self.suggestions
        )
        return format_parse_error(error_dict)


def parse_error_from_exception(exc: ParseException, source_text: str) -> MiniMLParseError:
    """Convert pyparsing exception to an enhanced MiniMLParseError"""
    error_dict = enhance_parse_exception_dict(exc, source_text)
    return MiniMLParseError(
        message=error_dict['message'],
        location=error_dict['location'],
        line=error_dict['line'],
        column=error_dict['column'],
        expected=error_dict['expected'],
        got=error_dict['got'],
        context=error_dict['context'],
        suggestions=error_dict['suggestions']
    )

