#!/usr/bin/env python3
"""
Run the fuusorpy test suite.

    python run_tests.py                # all tests
    python run_tests.py --unit         # tests marked unit
    python run_tests.py --integration  # client workflows over mocked HTTP
    python run_tests.py --coverage     # coverage of the fuusorpy package
    python run_tests.py --parallel     # spread tests over CPUs (pytest-xdist)
"""

import argparse
import subprocess
import sys


def build_command(args):
    """Translate runner options into a pytest command line."""
    cmd = ['pytest']

    if args.unit:
        cmd.extend(['-m', 'unit'])
    elif args.integration:
        cmd.extend(['-m', 'integration'])

    if args.coverage:
        cmd.extend(['--cov=fuusorpy', '--cov-report=term-missing'])

    if args.parallel:
        cmd.extend(['-n', 'auto'])

    if args.keyword:
        cmd.extend(['-k', args.keyword])

    return cmd


def main():
    parser = argparse.ArgumentParser(description="Test runner for fuusorpy")
    selection = parser.add_mutually_exclusive_group()
    selection.add_argument('--unit', action='store_true', help='Run only unit tests')
    selection.add_argument('--integration', action='store_true',
                           help='Run only integration tests')
    parser.add_argument('--coverage', action='store_true', help='Report coverage of fuusorpy')
    parser.add_argument('--parallel', action='store_true', help='Run tests in parallel')
    parser.add_argument('--keyword', '-k', type=str,
                        help='Run tests matching keyword expression')
    args = parser.parse_args()

    cmd = build_command(args)
    print(f"Command: {' '.join(cmd)}")
    return subprocess.run(cmd).returncode


if __name__ == '__main__':
    sys.exit(main())
