"""
MiniML Operator Semantics
Type-indexed binary and unary operators, and the structural order over values
"""

from typing import Callable, Dict, List, Optional
import operator

from error_handling import OperatorTypeError, TupleArityMismatchError, UnaryOperandError
from values import make_int, make_bool, value_type_name


# Rank used to order elements of different variants inside a sequence.
VARIANT_RANK = {
    'Int': 0,
    'Bool': 1,
    'String': 2,
    'Tuple': 3,
    'List': 4,
}

COMPARABLE_TYPES = ['Int', 'Bool', 'String', 'Tuple', 'List']


# ==================== ERROR MESSAGE BUILDERS ====================

def operation_error(op: str, left: Dict, right: Dict) -> OperatorTypeError:
  """Generate the wrong-operator error for a binary operator"""
  return OperatorTypeError(
    f"Interpretation error: Wrong infix operation: cannot apply '{op}' "
    f"to {value_type_name(left)} and {value_type_name(right)}."
  )


def unary_error(op: str, operand: Dict) -> UnaryOperandError:
  return UnaryOperandError(
    f"Interpretation error: Wrong unary operation: cannot apply '{op}' to {value_type_name(operand)}."
  )


# ==================== STRUCTURAL ORDER ====================

def _sign(n: int) -> int:
  return (n > 0) - (n < 0)


def compare_values(x: Dict, y: Dict) -> int:
  """Total structural order over runtime values

  Returns a negative number, zero or a positive number. Tuples and
  lists alike order lexicographically with a proper prefix first;
  functions cannot be ordered at all.
  """
  x_type = value_type_name(x)
  y_type = value_type_name(y)

  if x_type == 'Function' or y_type == 'Function':
    raise OperatorTypeError("Interpretation error: functional values cannot be compared.")

  if x_type != y_type:
    return _sign(VARIANT_RANK[x_type] - VARIANT_RANK[y_type])

  if x_type in ('Int', 'Bool', 'String'):
    return (x['value'] > y['value']) - (x['value'] < y['value'])

  x_elems = x['value']
  y_elems = y['value']
  for x_elem, y_elem in zip(x_elems, y_elems):
    result = compare_values(x_elem, y_elem)
    if result != 0:
      return result
  # A proper prefix orders first
  return _sign(len(x_elems) - len(y_elems))


def values_equal(x: Dict, y: Dict) -> bool:
  """Structural equality; sequences of different length are simply unequal"""
  x_type = value_type_name(x)
  y_type = value_type_name(y)

  if x_type == 'Function' or y_type == 'Function':
    raise OperatorTypeError("Interpretation error: functional values cannot be compared.")

  if x_type != y_type:
    return False

  if x_type in ('Tuple', 'List'):
    x_elems = x['value']
    y_elems = y['value']
    if len(x_elems) != len(y_elems):
      return False
    return all(values_equal(a, b) for a, b in zip(x_elems, y_elems))

  return x['value'] == y['value']


# ==================== BINARY OPERATION FACTORIES ====================

def binary_arithmetic_op(
  op: Callable[[int, int], int],
  op_name: str
) -> Callable[[Dict, Dict], Dict]:
  """
  Factory for Int x Int -> Int operations

  Args:
    op: Python function on the raw integers
    op_name: Operator token for error messages

  Returns:
    Function that performs the arithmetic operation

  Examples:
    add = binary_arithmetic_op(operator.add, "+")
    add(make_int(1), make_int(2)) -> {'value': 3, 'type': 'Int'}
  """
  def arithmetic(x: Dict, y: Dict) -> Dict:
    if value_type_name(x) != 'Int' or value_type_name(y) != 'Int':
      raise operation_error(op_name, x, y)
    return make_int(op(x['value'], y['value']))

  return arithmetic


def binary_comparison_op(
  predicate: Callable[[int, int], bool],
  op_name: str,
  allowed_types: Optional[List[str]] = None
) -> Callable[[Dict, Dict], Dict]:
  """
  Factory for ordering operations built on compare_values

  Args:
    predicate: Applied to (compare_values(x, y), 0), e.g. operator.lt
    op_name: Operator token for error messages
    allowed_types: Types that support this operation

  Returns:
    Function that performs the comparison
  """
  if allowed_types is None:
    allowed_types = COMPARABLE_TYPES

  def comparison(x: Dict, y: Dict) -> Dict:
    if value_type_name(x) != value_type_name(y) or value_type_name(x) not in allowed_types:
      raise operation_error(op_name, x, y)
    if value_type_name(x) == 'Tuple' and len(x['value']) != len(y['value']):
      raise TupleArityMismatchError(len(x['value']), len(y['value']))
    return make_bool(predicate(compare_values(x, y), 0))

  return comparison


def binary_equality_op(negate: bool, op_name: str) -> Callable[[Dict, Dict], Dict]:
  """Factory for = and !=, which need no arity precondition"""
  def equality(x: Dict, y: Dict) -> Dict:
    if value_type_name(x) != value_type_name(y) or value_type_name(x) not in COMPARABLE_TYPES:
      raise operation_error(op_name, x, y)
    return make_bool(values_equal(x, y) != negate)

  return equality


def binary_boolean_op(op: Callable[[bool, bool], bool], op_name: str) -> Callable[[Dict, Dict], Dict]:
  """Factory for Bool x Bool -> Bool operations; operands are already evaluated"""
  def boolean(x: Dict, y: Dict) -> Dict:
    if value_type_name(x) != 'Bool' or value_type_name(y) != 'Bool':
      raise operation_error(op_name, x, y)
    return make_bool(op(x['value'], y['value']))

  return boolean


def truncating_div(x: int, y: int) -> int:
  """Integer division rounding toward zero; y == 0 raises ZeroDivisionError"""
  quotient = abs(x) // abs(y)
  return quotient if (x < 0) == (y < 0) else -quotient


# ==================== OPERATOR TABLES ====================

BINARY_OPERATORS = {
    '+': binary_arithmetic_op(operator.add, '+'),
    '-': binary_arithmetic_op(operator.sub, '-'),
    '*': binary_arithmetic_op(operator.mul, '*'),
    '/': binary_arithmetic_op(truncating_div, '/'),
    '<': binary_comparison_op(operator.lt, '<'),
    '<=': binary_comparison_op(operator.le, '<='),
    '>': binary_comparison_op(operator.gt, '>'),
    '>=': binary_comparison_op(operator.ge, '>='),
    '=': binary_equality_op(False, '='),
    '!=': binary_equality_op(True, '!='),
    '&&': binary_boolean_op(lambda a, b: a and b, '&&'),
    '||': binary_boolean_op(lambda a, b: a or b, '||'),
}


def _negate(operand: Dict) -> Dict:
  if value_type_name(operand) != 'Int':
    raise unary_error('-', operand)
  return make_int(-operand['value'])


def _not(operand: Dict) -> Dict:
  if value_type_name(operand) != 'Bool':
    raise unary_error('not', operand)
  return make_bool(not operand['value'])


UNARY_OPERATORS = {
    '-': _negate,
    'not': _not,
}


def apply_binary_operator(op: str, left: Dict, right: Dict) -> Dict:
  """Apply a binary operator to two evaluated operands"""
  op_func = BINARY_OPERATORS.get(op)
  if op_func is None:
    raise operation_error(op, left, right)
  return op_func(left, right)


def apply_unary_operator(op: str, operand: Dict) -> Dict:
  """Apply a unary operator to an evaluated operand"""
  op_func = UNARY_OPERATORS.get(op)
  if op_func is None:
    raise unary_error(op, operand)
  return op_func(operand)
