"""
Tests for the persistent environment and the reserve/emplace protocol
"""

import pytest
from environment import (
  make_environment, env_extend, env_extend_all, env_reserve, env_emplace,
  env_lookup, env_names, env_items, env_contains
)
from values import make_int
from error_handling import UnboundVariableError, BindingProtocolError


class TestEnvironment:

  def test_lookup_miss(self):
    with pytest.raises(UnboundVariableError) as exc_info:
      env_lookup(make_environment(), "x")
    assert exc_info.value.name == "x"

  def test_extend_is_persistent(self):
    base = env_extend(make_environment(), "x", make_int(1))
    shadowed = env_extend(base, "x", make_int(2))
    assert env_lookup(base, "x")['value'] == 1
    assert env_lookup(shadowed, "x")['value'] == 2

  def test_insertion_order(self):
    env = env_extend_all(make_environment(), [("b", make_int(1)), ("a", make_int(2))])
    assert env_names(env) == ["b", "a"]

  def test_rebound_name_moves_to_end(self):
    env = env_extend_all(make_environment(), [
        ("x", make_int(1)), ("y", make_int(2)), ("x", make_int(3))])
    assert env_names(env) == ["y", "x"]
    assert [value['value'] for _, value in env_items(env)] == [2, 3]

  def test_reserved_cell_is_not_readable(self):
    env = env_reserve(make_environment(), "f")
    assert env_contains(env, "f")
    with pytest.raises(UnboundVariableError):
      env_lookup(env, "f")

  def test_emplace_is_visible_through_earlier_copies(self):
    reserved = env_reserve(make_environment(), "f")
    captured = env_extend(reserved, "other", make_int(0))
    env_emplace(reserved, "f", make_int(5))
    assert env_lookup(captured, "f")['value'] == 5

  def test_emplace_requires_reservation(self):
    with pytest.raises(BindingProtocolError):
      env_emplace(make_environment(), "f", make_int(1))

  def test_emplace_only_once(self):
    env = env_reserve(make_environment(), "f")
    env_emplace(env, "f", make_int(1))
    with pytest.raises(BindingProtocolError):
      env_emplace(env, "f", make_int(2))
