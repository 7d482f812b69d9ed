"""
MiniML Abstract Syntax
Constructors for constants, patterns, expressions and declarations
Pure functional style - every node is an immutable dictionary
"""

from typing import Any, Dict, List, Optional


def make_ast_node(node_type: str, value: Any) -> Dict:
  """Create an immutable AST node dictionary"""
  return {
      'type': node_type,
      'value': value
  }


# ============================================================================
# CONSTANTS
# ============================================================================

def make_constant(kind: str, value: Any) -> Dict:
  """Literal constant; kind is one of Int, Bool, String"""
  return {'type': kind, 'value': value}


def int_constant(n: int) -> Dict:
  return make_constant("Int", n)


def bool_constant(b: bool) -> Dict:
  return make_constant("Bool", b)


def string_constant(s: str) -> Dict:
  return make_constant("String", s)


# ============================================================================
# PATTERNS
# ============================================================================

def make_wildcard_pattern() -> Dict:
  return make_ast_node("PATTERN_WILDCARD", "_")


def make_var_pattern(name: str) -> Dict:
  return make_ast_node("PATTERN_VAR", name)


def make_literal_pattern(constant: Dict) -> Dict:
  return make_ast_node("PATTERN_LITERAL", constant)


def make_cons_pattern(head: Dict, tail: Dict) -> Dict:
  return make_ast_node("PATTERN_CONS", {"head": head, "tail": tail})


def make_tuple_pattern(patterns: List[Dict]) -> Dict:
  return make_ast_node("PATTERN_TUPLE", list(patterns))


def make_list_pattern(patterns: List[Dict]) -> Dict:
  return make_ast_node("PATTERN_LIST", list(patterns))


# ============================================================================
# EXPRESSIONS
# ============================================================================

def make_constant_expr(constant: Dict) -> Dict:
  return make_ast_node("CONSTANT", constant)


def make_identifier(name: str) -> Dict:
  return make_ast_node("IDENTIFIER", name)


def make_operation(op: str, left: Dict, right: Dict) -> Dict:
  return make_ast_node("OPERATION", {"op": op, "left": left, "right": right})


def make_unary_operation(op: str, operand: Dict) -> Dict:
  return make_ast_node("UNARY_OPERATION", {"op": op, "operand": operand})


def make_list_expr(elements: List[Dict]) -> Dict:
  return make_ast_node("LIST", list(elements))


def make_tuple_expr(elements: List[Dict]) -> Dict:
  return make_ast_node("TUPLE", list(elements))


def make_cons(head: Dict, tail: Dict) -> Dict:
  return make_ast_node("CONS", {"head": head, "tail": tail})


def make_if(condition: Dict, then_branch: Dict, else_branch: Dict) -> Dict:
  return make_ast_node("IF", {"condition": condition, "then": then_branch, "else": else_branch})


def make_binding(is_recursive: bool, pattern: Dict, expression: Dict) -> Dict:
  """One `[rec] pattern = expression` binding of a let"""
  return {
      'is_recursive': is_recursive,
      'pattern': pattern,
      'expression': expression
  }


def make_let(bindings: List[Dict], body: Dict) -> Dict:
  return make_ast_node("LET", {"bindings": list(bindings), "body": body})


def make_lambda(param: Dict, body: Dict) -> Dict:
  return make_ast_node("LAMBDA", {"param": param, "body": body})


def make_curried_lambda(params: List[Dict], body: Dict) -> Dict:
  """`fun p1 p2 ... -> body` as a chain of single-parameter functions"""
  result = body
  for param in reversed(params):
    result = make_lambda(param, result)
  return result


def make_application(function: Dict, argument: Dict) -> Dict:
  return make_ast_node("FUNCTION_CALL", {"function": function, "argument": argument})


def make_match_branch(pattern: Dict, body: Dict) -> Dict:
  return {'pattern': pattern, 'body': body}


def make_match(scrutinee: Dict, branches: List[Dict]) -> Dict:
  return make_ast_node("MATCH", {"scrutinee": scrutinee, "branches": list(branches)})


# ============================================================================
# DECLARATIONS
# ============================================================================

def make_let_declaration(is_recursive: bool, pattern: Dict, expression: Dict) -> Dict:
  return make_ast_node("LET_DECLARATION", make_binding(is_recursive, pattern, expression))


def make_effect_declaration(name: str, signature: Optional[str] = None) -> Dict:
  """Effect declaration; parsed but not evaluated"""
  return make_ast_node("EFFECT_DECLARATION", {"name": name, "signature": signature})


# ============================================================================
# PRETTY PRINTING
# ============================================================================

def pretty_print_ast(node: Any, indent: int = 0) -> str:
  """Render an AST (or a list of declarations) as an indented tree"""
  pad = "  " * indent
  if isinstance(node, list):
    return "\n".join(pretty_print_ast(item, indent) for item in node)
  if not isinstance(node, dict):
    return f"{pad}{node!r}"

  if 'is_recursive' in node:
    head = f"{pad}BINDING{' rec' if node['is_recursive'] else ''}"
    return "\n".join([
        head,
        pretty_print_ast(node['pattern'], indent + 1),
        pretty_print_ast(node['expression'], indent + 1),
    ])
  if 'pattern' in node and 'body' in node:
    return "\n".join([
        f"{pad}BRANCH",
        pretty_print_ast(node['pattern'], indent + 1),
        pretty_print_ast(node['body'], indent + 1),
    ])

  node_type = node.get('type')
  value = node.get('value')
  if node_type in ("Int", "Bool", "String"):
    return f"{pad}{node_type}({value!r})"
  if isinstance(value, dict):
    lines = [f"{pad}{node_type}"]
    for key, child in value.items():
      if isinstance(child, (dict, list)):
        lines.append(f"{pad}  {key}:")
        lines.append(pretty_print_ast(child, indent + 2))
      else:
        lines.append(f"{pad}  {key}: {child}")
    return "\n".join(lines)
  if isinstance(value, list):
    lines = [f"{pad}{node_type}"]
    lines.extend(pretty_print_ast(child, indent + 1) for child in value)
    return "\n".join(lines)
  return f"{pad}{node_type}({value})"
