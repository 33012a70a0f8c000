#!/usr/bin/env python3
"""
bfrun - command-line runner for the bfvm tape machine

Usage:
    python bfrun.py <program.bf> [--delay SECONDS] [--max-steps N]
                                 [--no-input] [--trace] [--dump] [--verbose]
    python bfrun.py -e "++++++++[>++++++++<-]>+."

stdin is wired as the byte source (polled, never blocks) and stdout as the
byte sink. Logs go to stderr.

Exit codes:
    0    program ran to termination
    1    input file unreadable, or unbalanced brackets (MalformedJump)
    2    internal error
    3    --max-steps reached before termination
    130  interrupted (Ctrl-C)

Examples:
    python bfrun.py hello.bf
    python bfrun.py cat.bf < input.txt
    python bfrun.py -e ",[.,]" --delay 0.05 --trace
"""

import argparse
import logging
import sys
from pathlib import Path

from bfvm import (
    __version__, Interpreter, MalformedJump, StepLimitExceeded,
    StreamSink, StreamSource,
)
from bfvm.log_setup import setup_logging

log = logging.getLogger("bfvm.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bfrun",
        description="Run a program for the eight-command tape language",
    )
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("input", nargs="?", help="Program source file")
    src.add_argument("-e", "--eval", metavar="PROGRAM",
                     help="Program text given directly on the command line")
    parser.add_argument("--delay", type=float, default=None, metavar="SECONDS",
                        help="Pause between steps (paced mode)")
    parser.add_argument("--max-steps", type=int, default=None, metavar="N",
                        help="Give up after N steps (exit code 3)")
    parser.add_argument("--no-input", action="store_true",
                        help="Do not wire stdin; ',' becomes a no-op")
    parser.add_argument("--trace", action="store_true",
                        help="Print the per-step trace to stderr at exit")
    parser.add_argument("--dump", action="store_true",
                        help="Print the tape around the pointer to stderr at exit")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging on the console")
    parser.add_argument("--log-dir", type=Path, default=None,
                        help="Also write a DEBUG log file into this directory")
    parser.add_argument("--version", action="version",
                        version=f"bfrun {__version__}")
    return parser


def load_program(args) -> str:
    if args.eval is not None:
        return args.eval
    with open(args.input, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def dump_state(vm: Interpreter, radius: int = 4):
    """Tape window around the pointer, one cell per column."""
    cells = vm.tape.window(vm.tape_pointer, radius)
    addrs = " ".join(f"{addr:>5d}" for addr, _ in cells)
    vals = " ".join(f"{val:>5d}" for _, val in cells)
    marks = " ".join("    ^" if addr == vm.tape_pointer else "     "
                     for addr, _ in cells)
    print(f"ip={vm.instruction_pointer}/{len(vm.program)} "
          f"ptr={vm.tape_pointer} steps={vm.steps} touched={len(vm.tape)}",
          file=sys.stderr)
    print(f"addr  {addrs}", file=sys.stderr)
    print(f"cell  {vals}", file=sys.stderr)
    print(f"      {marks}", file=sys.stderr)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(
        console_level=logging.DEBUG if args.verbose else logging.WARNING,
        log_dir=args.log_dir,
    )

    try:
        program = load_program(args)
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        return 1

    source = None if args.no_input else StreamSource(sys.stdin.buffer)
    vm = Interpreter(program, sink=StreamSink(sys.stdout.buffer), source=source)
    if args.trace:
        vm.enable_trace()

    log.debug("Running %s (%d symbols)", args.input or "<eval>", len(program))

    status = 0
    try:
        vm.run(delay=args.delay, max_steps=args.max_steps)
    except MalformedJump as e:
        print(f"Malformed program: {e}", file=sys.stderr)
        status = 1
    except StepLimitExceeded as e:
        print(f"Stopped: {e}", file=sys.stderr)
        status = 3
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        status = 130
    except Exception as e:
        log.exception("Internal error: %s", e)
        status = 2

    if args.trace:
        print(vm.get_trace(), file=sys.stderr)
    if args.dump:
        dump_state(vm)

    log.debug("Finished with status %d after %d steps", status, vm.steps)
    return status


if __name__ == "__main__":
    sys.exit(main())
