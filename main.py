"""
MiniML Programming Language - Main Entry Point
An eager, untyped functional language with pattern matching and closures
"""

import sys
import argparse
from pathlib import Path
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from parsing import create_parser, create_debug_parser
from syntax import pretty_print_ast
from error_handling import MiniMLParseError, MiniMLRuntimeError, format_runtime_error
from interpreter import create_interpreter, create_debug_interpreter, render_environment
from values import show_value


VERSION = 'MiniML v0.1.0'

DEFAULT_RECURSION_LIMIT = 10000


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      description='MiniML - an eager, untyped functional language',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.ml              # Run a script and print the final environment
  %(prog)s -i                     # Interactive mode
  %(prog)s --parse script.ml      # Parse and show the AST
  %(prog)s --debug script.ml      # Run with evaluation trace
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='MiniML script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show the AST (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--recursion-limit',
      type=int,
      default=DEFAULT_RECURSION_LIMIT,
      help=f'Host recursion limit for deep programs (default: {DEFAULT_RECURSION_LIMIT})'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def parse_file(script_path: str, debug: bool = False) -> None:
  """Parse a MiniML script file and show the AST"""
  try:
    parser = create_debug_parser() if debug else create_parser()

    print(f"Parsing {script_path}...")
    declarations = parser.parse_file(script_path)

    print(f"\nParsed {len(declarations)} declarations:")
    print("=" * 50)

    for i, declaration in enumerate(declarations, 1):
      print(f"\nDeclaration {i}:")
      print(pretty_print_ast(declaration))

  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found")
    sys.exit(1)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}")
    print("  Hint: Make sure the file is a text file with UTF-8 encoding")
    sys.exit(1)
  except MiniMLParseError as e:
    print(f"Parse error in '{script_path}': {e}")
    sys.exit(1)


def run_script_file(script_path: str, debug: bool = False) -> None:
  """Run a MiniML script file and print the final environment"""
  try:
    parser = create_debug_parser() if debug else create_parser()
    interpreter = create_debug_interpreter() if debug else create_interpreter()

    declarations = parser.parse_file(script_path)
    final_env = interpreter.interpret(declarations)
    print(render_environment(final_env))

  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found")
    sys.exit(1)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'")
    sys.exit(1)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}")
    sys.exit(1)
  except MiniMLParseError as e:
    print(f"Parse error in '{script_path}': {e}")
    sys.exit(1)
  except MiniMLRuntimeError as e:
    print(f"\n{'='*70}")
    print(f"Runtime Error in '{script_path}'")
    print(f"{'='*70}")
    print(f"\n{format_runtime_error(e)}")
    print(f"\n{'='*70}\n")
    sys.exit(1)
  except ZeroDivisionError:
    print(f"Runtime Error in '{script_path}': division by zero")
    sys.exit(1)
  except RecursionError:
    print(f"Runtime Error in '{script_path}': recursion too deep")
    print("  Hint: raise the limit with --recursion-limit")
    sys.exit(1)


def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.miniml_history")
  try:
    readline.read_history_file(history_file)
  except (FileNotFoundError, PermissionError, OSError):
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  completions = [
      # Keywords
      "let", "rec", "in", "fun", "if", "then", "else", "match", "with",
      "true", "false", "not",
      # REPL commands
      ":parse", ":env", ":help", "exit."
  ]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(lambda: readline.write_history_file(history_file))


def print_help() -> None:
  print("REPL Commands:")
  print("  :parse <expr>     - Show parsed AST")
  print("  :env              - Show current environment")
  print("  :help             - Show this help")
  print("  exit.             - Exit REPL")
  print()
  print("Language features:")
  print("  let x = 5                     - Value binding")
  print("  let (a, b) = (1, 2)           - Destructuring binding")
  print("  let rec f n = ...             - Recursive function")
  print("  match l with [] -> 0 | _ -> 1 - Pattern matching")
  print("  fun x y -> x + y              - Curried function")


def parse_repl_input(parser, code: str):
  """Parse one REPL line as declarations, or else as a bare expression

  Returns ('declarations', list) or ('expression', node).
  """
  try:
    return 'declarations', parser.parse_string(code)
  except MiniMLParseError:
    return 'expression', parser.parse_expression(code)


def run_interactive_mode(debug: bool = False) -> None:
  """Run MiniML in interactive mode"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit.' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_debug_parser() if debug else create_parser()
  interpreter = create_debug_interpreter() if debug else create_interpreter()

  while True:
    try:
      code = input("miniml> ")

      if code.strip() == "exit.":
        break

      if not code.strip():
        continue

      if code.startswith(":parse "):
        try:
          print(pretty_print_ast(parser.parse_expression(code[7:])))
        except MiniMLParseError as e:
          print(f"Parse error: {e}")
        continue

      if code.strip() == ":env":
        rendered = interpreter.render()
        print(rendered if rendered else "  (no bindings)")
        continue

      if code.strip() == ":help":
        print_help()
        continue

      try:
        kind, parsed = parse_repl_input(parser, code)
        if kind == 'declarations':
          before = dict(interpreter.global_env['bindings'])
          env = interpreter.interpret(parsed)
          # Cells that are new since the last input were bound by it
          for name, cell in env['bindings'].items():
            if before.get(name) is not cell:
              print(f"Bound: {name} = {show_value(cell['value'])}")
        else:
          result = interpreter.evaluate(parsed)
          print(f"=> {show_value(result)}")
      except MiniMLParseError as e:
        print(f"Parse error: {e}")
      except MiniMLRuntimeError as e:
        print(f"\nRuntime Error:\n  {format_runtime_error(e)}\n")
      except ZeroDivisionError:
        print("\nRuntime Error:\n  division by zero\n")

    except KeyboardInterrupt:
      print("\nGoodbye!")
      break
    except EOFError:
      print("\nGoodbye!")
      break


def main() -> None:
  """Main entry point for MiniML"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args()

  sys.setrecursionlimit(max(sys.getrecursionlimit(), args.recursion_limit))

  if args.script:
    if not Path(args.script).exists():
      print(f"Error: Script file '{args.script}' does not exist")
      sys.exit(1)

    if args.parse:
      parse_file(args.script, debug=args.debug)
    else:
      run_script_file(args.script, debug=args.debug)

  elif args.interactive or len(sys.argv) == 1:
    run_interactive_mode(debug=args.debug)

  else:
    arg_parser.print_help()


if __name__ == "__main__":
  main()
