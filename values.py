"""
MiniML Runtime Values
Value constructors and textual rendering
Pure functional style using immutable dictionaries
"""

from typing import Any, Dict, Iterable, Optional
from error_handling import StringifyError


ERROR_TOKEN = "error"

BASIC_TYPES = ("Int", "Bool", "String")


# ============================================================================
# CONSTRUCTORS
# ============================================================================

def make_value(value: Any, type_name: str) -> Dict:
  """Create an immutable runtime value"""
  return {
      'value': value,
      'type': type_name
  }


def make_int(n: int) -> Dict:
  return make_value(int(n), "Int")


def make_bool(b: bool) -> Dict:
  return make_value(bool(b), "Bool")


def make_string(s: str) -> Dict:
  return make_value(s, "String")


def make_tuple(elements: Iterable[Dict]) -> Dict:
  return make_value(tuple(elements), "Tuple")


def make_list(elements: Iterable[Dict]) -> Dict:
  return make_value(tuple(elements), "List")


def make_function(param: Dict, body: Dict, closure_env: Dict) -> Dict:
  """Create a function value closing over the defining environment

  The environment is shared, not copied: cells reserved for a recursive
  binding are filled later and the closure must see the filled value.
  """
  return {
      'type': 'Function',
      'param': param,
      'body': body,
      'closure_env': closure_env
  }


# ============================================================================
# INSPECTION
# ============================================================================

def value_type_name(value: Dict) -> str:
  """Variant tag of a runtime value"""
  return value.get('type', 'Unknown')


def is_function(value: Dict) -> bool:
  return value_type_name(value) == 'Function'


def is_sequence(value: Dict) -> bool:
  return value_type_name(value) in ('Tuple', 'List')


# ============================================================================
# RENDERING
# ============================================================================

def stringify_basic(value: Dict) -> str:
  """Render an Int, Bool or String value"""
  type_name = value_type_name(value)
  if type_name == "Int":
    return str(value['value'])
  elif type_name == "Bool":
    return "true" if value['value'] else "false"
  elif type_name == "String":
    return value['value']
  raise StringifyError("Interpretation error: not basic type.")


def stringify(value: Optional[Dict]) -> str:
  """Render a value the way the environment dump shows it

  Sequences flatten to their elements separated by single spaces, so
  only basic elements are accepted inside them. A function shows the
  name of its parameter.
  """
  if value is None:
    return ERROR_TOKEN

  type_name = value_type_name(value)
  if type_name in BASIC_TYPES:
    return stringify_basic(value)
  elif is_sequence(value):
    return " ".join(stringify_basic(elem) for elem in value['value'])
  elif type_name == 'Function':
    param = value['param']
    if param['type'] == 'PATTERN_VAR':
      return param['value']
    return ERROR_TOKEN
  return ERROR_TOKEN


def show_value(value: Dict) -> str:
  """Render a value with delimiters, for the REPL"""
  type_name = value_type_name(value)
  if type_name == "String":
    return f'"{value["value"]}"'
  elif type_name in ("Int", "Bool"):
    return stringify_basic(value)
  elif type_name == "Tuple":
    return "(" + ", ".join(show_value(elem) for elem in value['value']) + ")"
  elif type_name == "List":
    return "[" + "; ".join(show_value(elem) for elem in value['value']) + "]"
  elif type_name == "Function":
    return "<fun>"
  return f"<{type_name}>"
