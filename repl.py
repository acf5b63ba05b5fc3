#!/usr/bin/env python3
"""
Interactive REPL for the expression calculator.
Type expressions like '1+2*3', '(1+2)^2' or 'sqrt(16)/2'. Type 'quit' to exit.

With arguments, evaluates them once and prints the rounded result:

    python repl.py "10-2-3"
"""
import sys

from eval_errors import EvalError
from expression_engine import ExpressionEngine, format_rounded
from tree_builder import to_infix
from utils.settings import (division_modes, get_division_mode, get_rounding_precision,
                            set_division_mode, set_rounding_precision)
from utils.trace_helpers import last_events


def print_banner():
    print("=" * 80)
    print("Welcome to the expression calculator REPL")
    print("Type expressions (e.g., '1+2*3', '(1+2)^2', 'sqrt(16)/2')")
    print("Type 'trace' to toggle trace display")
    print("Type 'round' to show, or 'round N' to set, the default rounding digits")
    print("Type 'division' to show, or 'division MODE' to set, one of", division_modes())
    print("Type 'tree EXPR' to show how an expression is grouped")
    print("Type 'quit' to exit")


def handle_command(engine, user_input):
    """Run a REPL command; return False when `user_input` is not a command."""
    parts = user_input.split()
    command = parts[0].lower()

    if command == 'round':
        if len(parts) == 1:
            print(f"Default rounding: {get_rounding_precision()} digits")
        elif len(parts) == 2:
            set_rounding_precision(int(parts[1]))
            print(f"Default rounding set to {get_rounding_precision()} digits")
        else:
            print("Usage: round [N]")
        return True

    if command == 'division':
        if len(parts) == 1:
            print(f"Division mode: {get_division_mode()}")
        elif len(parts) == 2:
            set_division_mode(parts[1].lower())
            print(f"Division mode set to {get_division_mode()}")
        else:
            print("Usage: division [real|floor]")
        return True

    if command == 'tree' and len(parts) > 1:
        print(to_infix(engine.tree(user_input[len(parts[0]):].strip())))
        return True

    return False


def main():
    """Run the interactive REPL."""
    print_banner()
    engine = ExpressionEngine()
    show_trace = False

    while True:
        try:
            user_input = input("calc> ").strip()
            if not user_input:
                continue
            if user_input.lower() == 'quit':
                print("Goodbye!")
                break
            if user_input.lower() == 'trace':
                show_trace = not show_trace
                print(f"Trace display: {'ON' if show_trace else 'OFF'}")
                continue
            if handle_command(engine, user_input):
                continue

            result = engine.compute(user_input)
            print(f"Result: {format_rounded(result)}")

            if show_trace:
                print("\nTrace:")
                for line in last_events(engine):
                    print(f"  {line}")

        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break
        except (EvalError, ValueError) as e:
            print(f"Error: {e}")
            if show_trace:
                for line in last_events(engine, 2):
                    print(f"  {line}")


def run_once(args):
    """Evaluate `args` joined as one expression; return a process exit code."""
    try:
        print(ExpressionEngine().compute_rounded(' '.join(args)))
    except (EvalError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def cli():
    if len(sys.argv) > 1:
        sys.exit(run_once(sys.argv[1:]))
    main()


if __name__ == '__main__':
    cli()
