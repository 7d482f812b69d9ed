"""
MiniML Runtime Environment
Persistent name -> binding cell mapping with reserve/emplace for `let rec`
"""

from typing import Dict, Iterable, List, Optional, Tuple
from error_handling import UnboundVariableError, BindingProtocolError


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_cell(value: Optional[Dict] = None) -> Dict:
  """Create a binding cell; a cell without a value is reserved"""
  return {
      'value': value,
      'filled': value is not None
  }


def make_environment(bindings: Optional[Dict] = None) -> Dict:
  """Create an immutable runtime environment

  `bindings` maps names to cells in insertion order. Environments are
  never mutated; extending one copies the mapping and shares the cells.
  """
  return {
      'bindings': dict(bindings) if bindings else {}
  }


def _bind_cell(env: Dict, name: str, cell: Dict) -> Dict:
  # A rebound name moves to the end so the newest binding renders last.
  bindings = {k: c for k, c in env['bindings'].items() if k != name}
  bindings[name] = cell
  return {**env, 'bindings': bindings}


# ============================================================================
# ENVIRONMENT OPERATIONS
# ============================================================================

def env_extend(env: Dict, name: str, value: Dict) -> Dict:
  """Return new environment with name bound to value"""
  return _bind_cell(env, name, make_cell(value))


def env_extend_all(env: Dict, pairs: Iterable[Tuple[str, Dict]]) -> Dict:
  """Extend with each (name, value) pair in order"""
  for name, value in pairs:
    env = env_extend(env, name, value)
  return env


def env_reserve(env: Dict, name: str) -> Dict:
  """Return new environment with an empty cell for name"""
  return _bind_cell(env, name, make_cell())


def env_emplace(env: Dict, name: str, value: Dict) -> None:
  """Fill the reserved cell for name in place

  Every environment sharing the cell, including those captured by
  closures built while evaluating the right-hand side, sees the value.
  """
  cell = env['bindings'].get(name)
  if cell is None:
    raise BindingProtocolError(f"Cannot fill '{name}': no cell was reserved")
  if cell['filled']:
    raise BindingProtocolError(f"Cannot fill '{name}': cell is already filled")
  cell['value'] = value
  cell['filled'] = True


def env_lookup(env: Dict, name: str) -> Dict:
  """Look up the value bound to name"""
  cell = env['bindings'].get(name)
  if cell is None:
    raise UnboundVariableError(name)
  if not cell['filled']:
    raise UnboundVariableError(
        name, f"Interpretation error: '{name}' is used before its recursive definition is complete.")
  return cell['value']


def env_contains(env: Dict, name: str) -> bool:
  return name in env['bindings']


def env_names(env: Dict) -> List[str]:
  """Bound names in insertion order"""
  return list(env['bindings'])


def env_items(env: Dict) -> List[Tuple[str, Optional[Dict]]]:
  """(name, value) pairs in insertion order; reserved cells yield None"""
  return [(name, cell['value']) for name, cell in env['bindings'].items()]
