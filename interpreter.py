"""
MiniML Interpreter - Pure Functional Style
Recursive evaluation of expressions and top-level declarations
Environments are threaded explicitly; nothing is global
"""

from typing import Dict, List, Optional

from error_handling import (
  MiniMLRuntimeError,
  MatchExhaustedError,
  ApplicationError,
  ConditionTypeError,
  UnsupportedDeclarationError,
)
from values import (
  make_value,
  make_list,
  make_tuple,
  make_function,
  value_type_name,
  stringify,
)
from environment import (
  make_environment,
  env_lookup,
  env_extend_all,
  env_reserve,
  env_emplace,
  env_items,
)
from patterns import match_pattern, bind_pattern, collect_pattern_names
from operators import apply_binary_operator, apply_unary_operator


# ============================================================================
# BINDINGS
# ============================================================================

def eval_binding(binding: Dict, env: Dict, debug: bool = False) -> Dict:
  """Evaluate one `[rec] pattern = expression` and return the extended env

  A non-recursive right-hand side is evaluated in the original
  environment. A recursive one is evaluated after reserving a cell for
  every name the pattern binds; closures created meanwhile capture those
  cells, which are filled in place once the value is known.
  """
  pattern = binding['pattern']
  expression = binding['expression']

  if not binding['is_recursive']:
    value = eval_ast(expression, env, debug)
    return env_extend_all(env, bind_pattern(pattern, value))

  rec_env = env
  for name in collect_pattern_names(pattern):
    rec_env = env_reserve(rec_env, name)

  value = eval_ast(expression, rec_env, debug)
  # A name bound twice keeps its last value, as with a plain let
  for name, bound_value in dict(bind_pattern(pattern, value)).items():
    env_emplace(rec_env, name, bound_value)
  return rec_env


# ============================================================================
# EVALUATION FUNCTIONS
# ============================================================================

def eval_ast(ast_node: Dict, env: Dict, debug: bool = False) -> Dict:
  """
  Evaluate an expression node to a runtime value.
  This is a pure function of the node and the environment, apart from
  filling reserved cells of a `let rec`.
  """
  node_type = ast_node['type']

  if debug:
    print(f"Evaluating: {node_type}")

  if node_type == "CONSTANT":
    return eval_constant(ast_node, env, debug)
  elif node_type == "IDENTIFIER":
    return eval_identifier(ast_node, env, debug)
  elif node_type == "OPERATION":
    return eval_operation(ast_node, env, debug)
  elif node_type == "UNARY_OPERATION":
    return eval_unary_operation(ast_node, env, debug)
  elif node_type == "LIST":
    return eval_list(ast_node, env, debug)
  elif node_type == "TUPLE":
    return eval_tuple(ast_node, env, debug)
  elif node_type == "CONS":
    return eval_cons(ast_node, env, debug)
  elif node_type == "IF":
    return eval_if(ast_node, env, debug)
  elif node_type == "LET":
    return eval_let(ast_node, env, debug)
  elif node_type == "LAMBDA":
    return eval_lambda(ast_node, env, debug)
  elif node_type == "FUNCTION_CALL":
    return eval_function_call(ast_node, env, debug)
  elif node_type == "MATCH":
    return eval_match(ast_node, env, debug)
  else:
    raise MiniMLRuntimeError(f"Interpretation error: unknown expression node {node_type}.")


def eval_constant(ast_node: Dict, env: Dict, debug: bool = False) -> Dict:
  """Evaluate literal constant"""
  constant = ast_node['value']
  return make_value(constant['value'], constant['type'])


def eval_identifier(ast_node: Dict, env: Dict, debug: bool = False) -> Dict:
  """Evaluate identifier by looking up in environment"""
  return env_lookup(env, ast_node['value'])


def eval_operation(ast_node: Dict, env: Dict, debug: bool = False) -> Dict:
  """Evaluate binary operation; both operands always, left first"""
  value_dict = ast_node['value']
  left_val = eval_ast(value_dict['left'], env, debug)
  right_val = eval_ast(value_dict['right'], env, debug)
  return apply_binary_operator(value_dict['op'], left_val, right_val)


def eval_unary_operation(ast_node: Dict, env: Dict, debug: bool = False) -> Dict:
  """Evaluate unary operation"""
  value_dict = ast_node['value']
  operand_val = eval_ast(value_dict['operand'], env, debug)
  return apply_unary_operator(value_dict['op'], operand_val)


def eval_list(ast_node: Dict, env: Dict, debug: bool = False) -> Dict:
  """Evaluate list expression"""
  return make_list([eval_ast(child, env, debug) for child in ast_node['value']])


def eval_tuple(ast_node: Dict, env: Dict, debug: bool = False) -> Dict:
  """Evaluate tuple expression"""
  return make_tuple([eval_ast(child, env, debug) for child in ast_node['value']])


def eval_cons(ast_node: Dict, env: Dict, debug: bool = False) -> Dict:
  """Evaluate `head :: tail`

  A tail that is not a list is kept as a second element rather than
  rejected, so `1 :: 2` evaluates to [1; 2].
  """
  value_dict = ast_node['value']
  head_val = eval_ast(value_dict['head'], env, debug)
  tail_val = eval_ast(value_dict['tail'], env, debug)

  if value_type_name(tail_val) == 'List':
    return make_list((head_val,) + tail_val['value'])
  return make_list([head_val, tail_val])


def eval_if(ast_node: Dict, env: Dict, debug: bool = False) -> Dict:
  """Evaluate conditional; the test must be a boolean"""
  value_dict = ast_node['value']
  condition_val = eval_ast(value_dict['condition'], env, debug)

  if value_type_name(condition_val) != 'Bool':
    raise ConditionTypeError(
        f"Interpretation error: couldn't interpret \"if\" expression: "
        f"condition is {value_type_name(condition_val)}, not Bool.")

  if condition_val['value']:
    return eval_ast(value_dict['then'], env, debug)
  return eval_ast(value_dict['else'], env, debug)


def eval_let(ast_node: Dict, env: Dict, debug: bool = False) -> Dict:
  """Evaluate bindings left to right, then the body in the final environment"""
  value_dict = ast_node['value']
  let_env = env
  for binding in value_dict['bindings']:
    let_env = eval_binding(binding, let_env, debug)
  return eval_ast(value_dict['body'], let_env, debug)


def eval_lambda(ast_node: Dict, env: Dict, debug: bool = False) -> Dict:
  """Evaluate function literal, capturing the current environment"""
  value_dict = ast_node['value']
  return make_function(value_dict['param'], value_dict['body'], env)


def eval_function_call(ast_node: Dict, env: Dict, debug: bool = False) -> Dict:
  """Evaluate function application in the callee's captured environment"""
  value_dict = ast_node['value']
  func_val = eval_ast(value_dict['function'], env, debug)

  if value_type_name(func_val) != 'Function':
    raise ApplicationError(
        f"Interpretation error: wrong application: {value_type_name(func_val)} is not a function.")

  arg_val = eval_ast(value_dict['argument'], env, debug)
  call_env = env_extend_all(func_val['closure_env'], bind_pattern(func_val['param'], arg_val))
  return eval_ast(func_val['body'], call_env, debug)


def eval_match(ast_node: Dict, env: Dict, debug: bool = False) -> Dict:
  """Evaluate match expression; the first matching clause wins"""
  value_dict = ast_node['value']
  scrutinee_val = eval_ast(value_dict['scrutinee'], env, debug)

  for branch in value_dict['branches']:
    bindings = match_pattern(branch['pattern'], scrutinee_val)
    if bindings is not None:
      return eval_ast(branch['body'], env_extend_all(env, bindings), debug)

  raise MatchExhaustedError(
      f"Interpretation error: match fail: no clause matches {value_type_name(scrutinee_val)} value.")


def eval_expression(env: Dict, expression: Dict, debug: bool = False) -> Dict:
  """Evaluate an expression in the given environment"""
  return eval_ast(expression, env, debug)


# ============================================================================
# PROGRAM EVALUATION
# ============================================================================

def eval_declaration(env: Dict, declaration: Dict, debug: bool = False) -> Dict:
  """Evaluate a top-level declaration and return the new environment"""
  decl_type = declaration['type']

  if debug:
    print(f"Declaration: {decl_type}")

  if decl_type == "LET_DECLARATION":
    return eval_binding(declaration['value'], env, debug)

  raise UnsupportedDeclarationError(f"Interpretation error: unimpl declaration {decl_type}.")


def eval_program(declarations: List[Dict], debug: bool = False, env: Optional[Dict] = None) -> Dict:
  """Fold declarations over the empty environment (or `env`)"""
  if env is None:
    env = make_environment()
  for declaration in declarations:
    env = eval_declaration(env, declaration, debug)
  return env


def render_environment(env: Dict) -> str:
  """`name -> value ` for every binding, in insertion order"""
  return "".join(f"{name} -> {stringify(value)} " for name, value in env_items(env))


def run_program(declarations: List[Dict], debug: bool = False) -> str:
  """Evaluate a program and render its final environment"""
  return render_environment(eval_program(declarations, debug))


# ============================================================================
# FACTORY FUNCTIONS (for main.py and tests)
# ============================================================================

def create_interpreter(debug: bool = False):
  """Factory function returning an interpreter

  The returned object keeps a session environment (`global_env`) that
  successive `interpret` calls extend, which is what the REPL needs.
  """
  state = {'env': make_environment()}

  def interpret(declarations: List[Dict]) -> Dict:
    state['env'] = eval_program(declarations, debug, state['env'])
    return state['env']

  def evaluate(expression: Dict, env: Optional[Dict] = None) -> Dict:
    return eval_expression(state['env'] if env is None else env, expression, debug)

  def run_source(text: str) -> str:
    from parsing import create_parser
    declarations = create_parser(debug).parse_string(text)
    return render_environment(interpret(declarations))

  def reset() -> None:
    state['env'] = make_environment()

  return type('Interpreter', (), {
      'debug': debug,
      'interpret': lambda self, declarations: interpret(declarations),
      'evaluate': lambda self, expression, env=None: evaluate(expression, env),
      'run_source': lambda self, text: run_source(text),
      'render': lambda self: render_environment(state['env']),
      'reset': lambda self: reset(),
      'global_env': property(lambda self: state['env']),
  })()


def create_debug_interpreter():
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True)
