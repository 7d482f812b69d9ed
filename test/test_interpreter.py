"""
Evaluator tests on hand-built syntax trees
"""

import pytest
from interpreter import eval_expression, eval_declaration, eval_program, run_program, render_environment
from environment import make_environment, env_extend, env_lookup
from values import make_int, make_list
from syntax import (
  int_constant, bool_constant, string_constant,
  make_var_pattern, make_wildcard_pattern, make_literal_pattern, make_cons_pattern,
  make_tuple_pattern, make_list_pattern,
  make_constant_expr, make_identifier, make_operation, make_unary_operation,
  make_list_expr, make_tuple_expr, make_cons, make_if, make_binding, make_let,
  make_lambda, make_application, make_match_branch, make_match,
  make_let_declaration, make_effect_declaration,
)
from error_handling import (
  UnboundVariableError, TupleArityMismatchError, MatchExhaustedError, ApplicationError,
  ConditionTypeError, UnsupportedDeclarationError, PatternNameError, BindingFailureError,
)


def const(n):
  return make_constant_expr(int_constant(n))


def var(name):
  return make_identifier(name)


def pvar(name):
  return make_var_pattern(name)


def let_decl(name, expression, is_recursive=False):
  return make_let_declaration(is_recursive, pvar(name), expression)


def fact_declaration():
  """let rec fact n = match n with 0 -> 1 | _ -> n * fact (n + -1)"""
  body = make_match(var("n"), [
      make_match_branch(make_literal_pattern(int_constant(0)), const(1)),
      make_match_branch(make_wildcard_pattern(), make_operation(
          "*", var("n"),
          make_application(var("fact"), make_operation("+", var("n"), make_unary_operation("-", const(1)))))),
  ])
  return let_decl("fact", make_lambda(pvar("n"), body), is_recursive=True)


def sort_declaration():
  """Bubble sort that repeats passes until the list stops changing"""
  pass_expr = make_match(var("lst"), [
      make_match_branch(
          make_cons_pattern(pvar("hd1"), make_cons_pattern(pvar("hd2"), pvar("tl"))),
          make_if(
              make_operation(">", var("hd1"), var("hd2")),
              make_cons(var("hd2"), make_application(var("sort"), make_cons(var("hd1"), var("tl")))),
              make_cons(var("hd1"), make_application(var("sort"), make_cons(var("hd2"), var("tl")))))),
      make_match_branch(pvar("tl"), var("tl")),
  ])
  body = make_let(
      [make_binding(False, pvar("sorted"), pass_expr)],
      make_if(make_operation("=", var("lst"), var("sorted")),
              var("lst"),
              make_application(var("sort"), var("sorted"))))
  return let_decl("sort", make_lambda(pvar("lst"), body), is_recursive=True)


def add_declaration():
  """let f x y = x + y"""
  return let_decl("f", make_lambda(pvar("x"), make_lambda(pvar("y"), make_operation("+", var("x"), var("y")))))


class TestProgramScenarios:
  """Whole programs rendered as `name -> value ` entries"""

  def test_simple_binding(self):
    assert run_program([let_decl("x", const(1))]) == "x -> 1 "

  def test_tuple_destructuring(self):
    decl = make_let_declaration(
        False, make_tuple_pattern([pvar("x"), pvar("y")]), make_tuple_expr([const(1), const(2)]))
    assert run_program([decl]) == "x -> 1 y -> 2 "

  def test_comparison_result(self):
    assert run_program([let_decl("x", make_operation("<", const(3), const(2)))]) == "x -> false "

  def test_tuple_arity_mismatch(self):
    decl = let_decl("x", make_operation(
        "<", make_tuple_expr([const(1), const(2)]), make_tuple_expr([const(1), const(2), const(3)])))
    with pytest.raises(TupleArityMismatchError) as exc_info:
      run_program([decl])
    assert exc_info.value.message == "Interpretation error: Cannot compare tuples of different size."

  def test_local_let(self):
    expr = make_let([make_binding(False, pvar("y"), const(5))], var("y"))
    assert run_program([let_decl("x", expr)]) == "x -> 5 "

  def test_sequential_let_bindings(self):
    expr = make_let(
        [make_binding(False, pvar("y"), const(5)), make_binding(False, pvar("z"), const(10))],
        make_operation("+", var("y"), var("z")))
    assert run_program([let_decl("x", expr)]) == "x -> 15 "

  def test_shadowing_in_one_let(self):
    expr = make_let(
        [make_binding(False, pvar("y"), const(5)), make_binding(False, pvar("y"), const(10))],
        var("y"))
    assert run_program([let_decl("x", expr)]) == "x -> 10 "

  def test_inner_let_does_not_leak(self):
    inner = make_let([make_binding(False, pvar("y"), const(10))], const(5))
    expr = make_let([make_binding(False, pvar("y"), inner)], var("y"))
    assert run_program([let_decl("x", expr)]) == "x -> 5 "

  def test_function_renders_parameter(self):
    assert run_program([add_declaration()]) == "f -> x "

  def test_curried_application(self):
    apply_f = make_application(make_application(var("f"), const(1)), const(2))
    assert run_program([add_declaration(), let_decl("a", apply_f)]) == "f -> x a -> 3 "

  def test_partial_application(self):
    program = [
        add_declaration(),
        let_decl("kek", make_application(var("f"), const(1))),
        let_decl("lol", make_application(var("kek"), const(2))),
    ]
    assert run_program(program) == "f -> x kek -> y lol -> 3 "

  def test_recursive_factorial(self):
    program = [fact_declaration(), let_decl("x", make_application(var("fact"), const(3)))]
    assert run_program(program) == "fact -> n x -> 6 "

  def test_recursive_sort(self):
    program = [
        let_decl("l", make_list_expr([const(1), const(3), const(2)])),
        sort_declaration(),
        let_decl("sorted", make_application(var("sort"), var("l"))),
    ]
    assert run_program(program) == "l -> 1 3 2 sort -> lst sorted -> 1 2 3 "

  def test_sort_of_empty_list(self):
    program = [
        sort_declaration(),
        let_decl("l", make_list_expr([])),
        let_decl("sorted", make_application(var("sort"), var("l"))),
    ]
    assert run_program(program) == "sort -> lst l ->  sorted ->  "

  def test_top_level_rebinding_renders_latest(self):
    program = [let_decl("x", const(1)), let_decl("y", const(2)), let_decl("x", const(3))]
    assert run_program(program) == "y -> 2 x -> 3 "


class TestExpressions:

  @pytest.fixture
  def env(self):
    return env_extend(make_environment(), "ten", make_int(10))

  def test_constants(self, env):
    assert eval_expression(env, make_constant_expr(bool_constant(True)))['value'] is True
    assert eval_expression(env, make_constant_expr(string_constant("s")))['value'] == "s"

  def test_unbound_variable(self, env):
    with pytest.raises(UnboundVariableError):
      eval_expression(env, var("nope"))

  def test_cons_onto_list(self, env):
    result = eval_expression(env, make_cons(const(1), make_list_expr([const(2)])))
    assert result == make_list([make_int(1), make_int(2)])

  def test_cons_onto_non_list_wraps(self, env):
    result = eval_expression(env, make_cons(const(1), const(2)))
    assert result == make_list([make_int(1), make_int(2)])

  def test_if_requires_bool(self, env):
    with pytest.raises(ConditionTypeError):
      eval_expression(env, make_if(const(1), const(2), const(3)))

  def test_if_branches(self, env):
    expr = make_if(make_operation("<", var("ten"), const(20)), const(1), const(2))
    assert eval_expression(env, expr)['value'] == 1

  def test_apply_non_function(self, env):
    with pytest.raises(ApplicationError):
      eval_expression(env, make_application(var("ten"), const(1)))

  def test_parameter_mismatch_is_fatal(self, env):
    func = make_lambda(make_tuple_pattern([pvar("a"), pvar("b")]), var("a"))
    with pytest.raises(BindingFailureError):
      eval_expression(env, make_application(func, const(1)))

  def test_match_first_clause_wins(self, env):
    expr = make_match(var("ten"), [
        make_match_branch(pvar("x"), const(1)),
        make_match_branch(make_literal_pattern(int_constant(10)), const(2)),
    ])
    assert eval_expression(env, expr)['value'] == 1

  def test_match_falls_through_failed_clauses(self, env):
    expr = make_match(make_list_expr([const(4), const(5)]), [
        make_match_branch(make_list_pattern([]), const(0)),
        make_match_branch(make_list_pattern([pvar("a")]), var("a")),
        make_match_branch(make_cons_pattern(make_wildcard_pattern(), make_list_pattern([pvar("b")])), var("b")),
    ])
    assert eval_expression(env, expr)['value'] == 5

  def test_match_exhausted(self, env):
    expr = make_match(var("ten"), [make_match_branch(make_literal_pattern(int_constant(0)), const(1))])
    with pytest.raises(MatchExhaustedError):
      eval_expression(env, expr)

  def test_closure_captures_lexical_environment(self, env):
    # let make_adder = fun a -> fun b -> a + b in
    # let a = 100 in (make_adder 1) 2
    make_adder = make_lambda(pvar("a"), make_lambda(pvar("b"), make_operation("+", var("a"), var("b"))))
    expr = make_let([
        make_binding(False, pvar("make_adder"), make_adder),
        make_binding(False, pvar("a"), const(100)),
    ], make_application(make_application(var("make_adder"), const(1)), const(2)))
    assert eval_expression(env, expr)['value'] == 3

  def test_closure_ignores_later_shadowing(self, env):
    expr = make_let([
        make_binding(False, pvar("get"), make_lambda(make_wildcard_pattern(), var("ten"))),
        make_binding(False, pvar("ten"), const(0)),
    ], make_application(var("get"), const(0)))
    assert eval_expression(env, expr)['value'] == 10

  def test_non_recursive_binding_does_not_see_itself(self, env):
    expr = make_let([make_binding(False, pvar("undefined_yet"), var("undefined_yet"))], const(0))
    with pytest.raises(UnboundVariableError):
      eval_expression(env, expr)

  def test_recursive_value_read_before_fill(self, env):
    expr = make_let([make_binding(True, pvar("x"), make_operation("+", var("x"), const(1)))], var("x"))
    with pytest.raises(UnboundVariableError):
      eval_expression(env, expr)

  def test_mutually_visible_recursive_tuple(self, env):
    # let rec (even, odd) = (fun n -> ..., fun n -> ...) in even 4
    even = make_lambda(pvar("n"), make_if(
        make_operation("=", var("n"), const(0)), make_constant_expr(bool_constant(True)),
        make_application(var("odd"), make_operation("-", var("n"), const(1)))))
    odd = make_lambda(pvar("n"), make_if(
        make_operation("=", var("n"), const(0)), make_constant_expr(bool_constant(False)),
        make_application(var("even"), make_operation("-", var("n"), const(1)))))
    expr = make_let(
        [make_binding(True, make_tuple_pattern([pvar("even"), pvar("odd")]), make_tuple_expr([even, odd]))],
        make_application(var("even"), const(4)))
    assert eval_expression(env, expr)['value'] is True

  def test_boolean_operators_evaluate_both_sides(self, env):
    expr = make_operation("||", make_constant_expr(bool_constant(True)), var("missing"))
    with pytest.raises(UnboundVariableError):
      eval_expression(env, expr)


class TestDeclarations:

  def test_unsupported_declaration(self):
    with pytest.raises(UnsupportedDeclarationError):
      eval_declaration(make_environment(), make_effect_declaration("E", "int -> int"))

  def test_recursive_constant_pattern(self):
    decl = make_let_declaration(True, make_literal_pattern(int_constant(1)), const(1))
    with pytest.raises(PatternNameError):
      eval_declaration(make_environment(), decl)

  def test_repeated_name_in_recursive_pattern_keeps_last(self):
    pattern = make_tuple_pattern([pvar("a"), pvar("a")])
    recursive = make_let_declaration(True, pattern, make_tuple_expr([const(1), const(2)]))
    plain = make_let_declaration(False, pattern, make_tuple_expr([const(1), const(2)]))
    assert run_program([recursive]) == "a -> 2 "
    assert run_program([plain]) == "a -> 2 "

  def test_program_folds_from_empty_environment(self):
    env = eval_program([let_decl("a", const(1)), let_decl("b", make_operation("+", var("a"), const(1)))])
    assert env_lookup(env, "b")['value'] == 2
    assert render_environment(env) == "a -> 1 b -> 2 "
