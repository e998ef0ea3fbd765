#!/usr/bin/env python3
"""
formulate Command-Line Interface

Simplifies expressions and prints their markup. Provides one-shot,
pipe/filter, and interactive REPL modes.

Usage:
    formulate                              # Start REPL
    formulate "3 + 1*2*3*4 + 5*x"          # Simplify one expression
    formulate -n typst "x + x"             # Typst markup output
    formulate -q "x + x"                   # Print only the simplified form
    echo "x + x" | formulate               # Filter mode

REPL Commands:
    :help              Show help
    :notation NAME     Set notation (text, typst, sexpr, tree)
    :trace on|off      Toggle tracing
    :tree EXPR         Show the raw and simplified node structure
    :eval EXPR with x=1, y=2
                       Evaluate numerically
    :quit              Exit
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from . import __version__
from .errors import FormulateError
from .evaluator import evaluate
from .expression import NumericType
from .parser import parse_expression
from .pipeline import render
from .serializer import NOTATIONS, format_number, serialize
from .simplifier import simplify

logger = logging.getLogger(__name__)

# Try to import readline for better REPL experience
try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False


def describe_error(source: str, error: FormulateError) -> str:
    """Format an error with a caret under the offending position."""
    message = f"Error: {error.message}"
    if error.position is None:
        return message
    return f"{message}\n  {source}\n  {' ' * error.position}^"


def parse_bindings(text: str) -> Dict[str, NumericType]:
    """
    Parse "x=1, y=2.5" into {"x": 1, "y": 2.5}.

    Raises:
        ValueError: On a malformed binding.
    """
    bindings: Dict[str, NumericType] = {}
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, value = part.partition("=")
        name = name.strip()
        if not sep or not name.isalpha():
            raise ValueError(f"Malformed binding: {part!r}")
        value = value.strip()
        bindings[name] = float(value) if "." in value else int(value)
    return bindings


class FormulateCompleter:
    """Tab completer for the formulate REPL."""

    # Commands that can be completed
    COMMANDS = [
        ":help", ":quit", ":exit", ":q",
        ":notation", ":trace", ":tree", ":eval",
    ]

    TRACE_OPTIONS = ["on", "off"]

    def __init__(self, repl: 'FormulateREPL'):
        self.repl = repl
        self.matches: List[str] = []

    def complete(self, text: str, state: int) -> Optional[str]:
        """Return the next possible completion for 'text'."""
        if state == 0:
            line = readline.get_line_buffer() if HAS_READLINE else ""
            self.matches = self._get_matches(text, line)

        try:
            return self.matches[state]
        except IndexError:
            return None

    def _get_matches(self, text: str, line: str) -> List[str]:
        """Get list of matches for the current input."""
        line = line.lstrip()

        if line.startswith(":notation "):
            return [n for n in NOTATIONS if n.startswith(text)]

        if line.startswith(":trace "):
            return [t for t in self.TRACE_OPTIONS if t.startswith(text)]

        if text.startswith(":") or (line.startswith(":") and " " not in line):
            return [c for c in self.COMMANDS if c.startswith(text)]

        return []


def count_parens(text: str) -> int:
    """Count unbalanced parentheses. Returns >0 if more open than close."""
    depth = 0
    for c in text:
        if c == '(':
            depth += 1
        elif c == ')':
            depth -= 1
    return depth


class FormulateREPL:
    """Interactive REPL for formulate."""

    def __init__(self, use_readline: bool = True):
        self.notation = "text"
        self.trace = False
        self.running = True
        self.multi_line_buffer = ""
        self.use_readline = use_readline and HAS_READLINE

        # Set up readline history and completion
        if self.use_readline:
            self.history_file = Path.home() / ".formulate_history"
            try:
                readline.read_history_file(self.history_file)
            except (FileNotFoundError, OSError):
                pass
            readline.set_history_length(1000)

            self.completer = FormulateCompleter(self)
            readline.set_completer(self.completer.complete)
            readline.parse_and_bind("tab: complete")
            readline.set_completer_delims(" \t\n")

    def save_history(self):
        """Save readline history."""
        if self.use_readline:
            try:
                readline.write_history_file(self.history_file)
            except OSError as e:
                logger.debug("could not save history to %s: %s", self.history_file, e)

    def handle_command(self, line: str) -> Optional[str]:
        """
        Handle a REPL command (starts with :).

        Returns a message to print, or None.
        """
        parts = line[1:].split(None, 1)
        if not parts:
            return "Unknown command. Type :help for help."

        cmd = parts[0].lower()
        arg = parts[1] if len(parts) > 1 else ""

        if cmd == "help":
            return self.help_text()

        elif cmd == "quit" or cmd == "exit" or cmd == "q":
            self.running = False
            return None

        elif cmd == "notation":
            if not arg:
                available = ", ".join(NOTATIONS)
                return f"Usage: :notation NAME\nCurrent: {self.notation}\nAvailable: {available}"
            name = arg.strip().lower()
            if name not in NOTATIONS:
                return f"Unknown notation: {arg}"
            self.notation = name
            return f"Notation set to: {name}"

        elif cmd == "trace":
            if arg.lower() in ("on", "true", "1"):
                self.trace = True
                return "Tracing enabled"
            elif arg.lower() in ("off", "false", "0"):
                self.trace = False
                return "Tracing disabled"
            else:
                self.trace = not self.trace
                return f"Tracing {'enabled' if self.trace else 'disabled'}"

        elif cmd == "tree":
            if not arg:
                return "Usage: :tree EXPR"
            try:
                raw = parse_expression(arg)
                result = simplify(raw)
            except FormulateError as e:
                return describe_error(arg, e)
            return (f"Raw:\n{serialize(raw, 'tree')}\n"
                    f"Simplified:\n{serialize(result, 'tree')}")

        elif cmd == "eval":
            if not arg:
                return "Usage: :eval EXPR [with x=1, y=2]"
            source, _, binding_text = arg.partition(" with ")
            try:
                bindings = parse_bindings(binding_text)
            except ValueError as e:
                return f"Error: {e}"
            try:
                value = evaluate(parse_expression(source), bindings)
            except FormulateError as e:
                return describe_error(source, e)
            return format_number(value)

        else:
            return f"Unknown command: {cmd}. Type :help for help."

    def help_text(self) -> str:
        """Return help text."""
        return """formulate REPL Commands:
  :help              Show this help
  :notation NAME     Set notation (text, typst, sexpr, tree)
  :trace on|off      Toggle tracing
  :tree EXPR         Show raw and simplified node structure
  :eval EXPR with x=1, y=2
                     Evaluate an expression numerically
  :quit              Exit

Syntax:
  3 + 1*2*3*4 + 5*x    Numbers, variables, + - * and parentheses
"""

    def process_line(self, line: str) -> Optional[str]:
        """
        Process a single line of input.

        Returns the result to print, or None.
        """
        line = line.strip()

        # Empty line or comment
        if not line or line.startswith("#"):
            return None

        if line.startswith(":"):
            return self.handle_command(line)

        try:
            if self.trace:
                rendering, trace = render(line, self.notation, trace=True)
                if trace:
                    return f"{rendering.simplified}\n{trace.format('stages')}"
                return rendering.simplified
            return render(line, self.notation).simplified
        except FormulateError as e:
            return describe_error(line, e)

    def run(self):
        """Run the REPL loop."""
        print(f"formulate {__version__} - canonical simplification of + and * expressions")
        print("Type :help for help, :quit to exit")
        print()

        while self.running:
            try:
                prompt = "...... " if self.multi_line_buffer else "formulate> "
                line = input(prompt)

                if self.multi_line_buffer:
                    self.multi_line_buffer += " " + line
                else:
                    self.multi_line_buffer = line

                # Keep reading while parentheses are open
                if count_parens(self.multi_line_buffer) > 0:
                    continue

                complete_input = self.multi_line_buffer
                self.multi_line_buffer = ""

                result = self.process_line(complete_input)
                if result:
                    print(result)

            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                if self.multi_line_buffer:
                    print("\nInput cancelled")
                    self.multi_line_buffer = ""
                else:
                    print()
                continue

        self.save_history()


class Runner:
    """Runs formulate in one-shot and filter modes."""

    def __init__(self, notation: str = "text", trace: bool = False, quiet: bool = False):
        self.notation = notation
        self.trace = trace
        self.quiet = quiet

    def run_expression(self, source: str) -> int:
        """
        Simplify a single expression and print its markup.

        Returns:
            Exit code (0 for success)
        """
        try:
            if self.trace:
                rendering, trace = render(source, self.notation, trace=True)
            else:
                rendering, trace = render(source, self.notation), None
        except FormulateError as e:
            print(describe_error(source, e), file=sys.stderr)
            return 1

        if self.quiet:
            print(rendering.simplified)
        else:
            print(f"Original:   {rendering.original}")
            print(f"Simplified: {rendering.simplified}")
        if trace is not None:
            print(trace.format("verbose"), file=sys.stderr)
        return 0

    def run_stdin(self) -> int:
        """
        Read expressions from stdin, one per line, and print the simplified markup.

        Returns:
            Exit code (0 for success, 1 if any line failed)
        """
        status = 0
        for lineno, line in enumerate(sys.stdin, 1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                print(render(line, self.notation).simplified)
            except FormulateError as e:
                print(f"<stdin>:{lineno}: {describe_error(line, e)}", file=sys.stderr)
                status = 1
        return status


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="formulate",
        description="Simplify + and * expressions into canonical markup",
        epilog="Examples:\n"
               "  formulate                         Start REPL\n"
               "  formulate '3 + 1*2*3*4 + 5*x'     Simplify expression\n"
               "  formulate -n typst 'x + x'        Typst markup\n"
               "  echo 'x + x' | formulate          Filter mode\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "expression",
        nargs="?",
        help="Expression to simplify"
    )

    parser.add_argument(
        "-n", "--notation",
        default="text",
        choices=list(NOTATIONS),
        help="Output notation (default: text)"
    )

    parser.add_argument(
        "-t", "--trace",
        action="store_true",
        help="Print the simplification trace to stderr"
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Print only the simplified markup"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    runner = Runner(notation=args.notation, trace=args.trace, quiet=args.quiet)

    if args.expression is not None:
        sys.exit(runner.run_expression(args.expression))

    elif not sys.stdin.isatty():
        sys.exit(runner.run_stdin())

    else:
        repl = FormulateREPL()
        repl.notation = args.notation
        repl.trace = args.trace
        repl.run()


if __name__ == "__main__":
    main()
