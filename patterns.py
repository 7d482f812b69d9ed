"""
MiniML Pattern Matching
Structural destructuring of runtime values
"""

from typing import Dict, List, Optional, Tuple
from error_handling import PatternNameError, BindingFailureError
from values import make_list, value_type_name


Bindings = List[Tuple[str, Dict]]


def match_pattern(pattern: Dict, value: Dict) -> Optional[Bindings]:
  """Match a value against a pattern

  Returns:
      None if the pattern doesn't match
      [] if it matches without binding anything
      list of (name, value) pairs, left to right, otherwise
  """
  pattern_type = pattern['type']

  if pattern_type == 'PATTERN_WILDCARD':
    return []

  elif pattern_type == 'PATTERN_VAR':
    return [(pattern['value'], value)]

  elif pattern_type == 'PATTERN_LITERAL':
    constant = pattern['value']
    if value_type_name(value) != constant['type']:
      return None
    return [] if value['value'] == constant['value'] else None

  elif pattern_type == 'PATTERN_CONS':
    if value_type_name(value) != 'List' or not value['value']:
      return None
    head_bindings = match_pattern(pattern['value']['head'], value['value'][0])
    if head_bindings is None:
      return None
    tail_bindings = match_pattern(pattern['value']['tail'], make_list(value['value'][1:]))
    if tail_bindings is None:
      return None
    return head_bindings + tail_bindings

  elif pattern_type in ('PATTERN_TUPLE', 'PATTERN_LIST'):
    expected_type = 'Tuple' if pattern_type == 'PATTERN_TUPLE' else 'List'
    if value_type_name(value) != expected_type:
      return None
    sub_patterns = pattern['value']
    elements = value['value']
    if len(sub_patterns) != len(elements):
      return None
    bindings = []
    for sub_pattern, element in zip(sub_patterns, elements):
      sub_bindings = match_pattern(sub_pattern, element)
      if sub_bindings is None:
        return None
      bindings.extend(sub_bindings)
    return bindings

  return None


def bind_pattern(pattern: Dict, value: Dict) -> Bindings:
  """Match where failure is fatal (let bindings, function parameters)"""
  bindings = match_pattern(pattern, value)
  if bindings is None:
    raise BindingFailureError(
        f"Interpretation error: {value_type_name(value)} value does not match {describe_pattern(pattern)}.")
  return bindings


def collect_pattern_names(pattern: Dict) -> List[str]:
  """Names bound by a pattern, left to right, for `let rec` reservation"""
  pattern_type = pattern['type']

  if pattern_type == 'PATTERN_VAR':
    return [pattern['value']]
  elif pattern_type == 'PATTERN_WILDCARD':
    return []
  elif pattern_type == 'PATTERN_CONS':
    return collect_pattern_names(pattern['value']['head']) + collect_pattern_names(pattern['value']['tail'])
  elif pattern_type in ('PATTERN_TUPLE', 'PATTERN_LIST'):
    names = []
    for sub_pattern in pattern['value']:
      names.extend(collect_pattern_names(sub_pattern))
    return names

  raise PatternNameError(
      f"Interpretation error: {describe_pattern(pattern)} cannot be bound recursively.")


def describe_pattern(pattern: Dict) -> str:
  """Short human-readable rendering of a pattern for messages"""
  pattern_type = pattern['type']
  if pattern_type == 'PATTERN_WILDCARD':
    return "_"
  elif pattern_type == 'PATTERN_VAR':
    return pattern['value']
  elif pattern_type == 'PATTERN_LITERAL':
    constant = pattern['value']
    if constant['type'] == 'String':
      return f'"{constant["value"]}"'
    if constant['type'] == 'Bool':
      return "true" if constant['value'] else "false"
    return str(constant['value'])
  elif pattern_type == 'PATTERN_CONS':
    return f"{describe_pattern(pattern['value']['head'])} :: {describe_pattern(pattern['value']['tail'])}"
  elif pattern_type == 'PATTERN_TUPLE':
    return "(" + ", ".join(describe_pattern(p) for p in pattern['value']) + ")"
  elif pattern_type == 'PATTERN_LIST':
    return "[" + "; ".join(describe_pattern(p) for p in pattern['value']) + "]"
  return f"<{pattern_type}>"
