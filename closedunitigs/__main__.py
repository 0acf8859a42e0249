"""
Copyright 2024 The closedunitigs authors

This program is free software: you can redistribute it and/or modify it under the terms of the GNU
General Public License as published by the Free Software Foundation, either version 3 of the
License, or (at your option) any later version.

This program is distributed in the hope that it will be useful, but WITHOUT ANY WARRANTY; without
even the implied warranty of MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
General Public License for more details.

You should have received a copy of the GNU General Public License along with this program. If not,
see <https://www.gnu.org/licenses/>.
"""

import argparse
import pathlib
import sys

from .compress import compress
from .errors import ClosedUnitigError
from .help_formatter import MyParser, MyHelpFormatter
from .misc import get_default_thread_count

__version__ = '0.1.0'


def main(args=None):
    args = parse_args(sys.argv[1:] if args is None else args)
    check_args(args)
    try:
        compress(args)
    except (ClosedUnitigError, OSError) as e:
        sys.exit(f'Error: {e}')


def parse_args(args):
    description = 'Closed unitigs: lossless compression of BCALM k-mer counts'
    parser = MyParser(description=description, formatter_class=MyHelpFormatter, add_help=False)

    required_args = parser.add_argument_group('Required')
    required_args.add_argument('input', type=pathlib.Path,
                               help='BCALM unitigs with per-position abundances (FASTA, can be '
                                    'gzipped)')

    setting_args = parser.add_argument_group('Settings')
    setting_args.add_argument('-k', '--kmer', type=int, default=None,
                              help='K-mer size used for BCALM (default: inferred from input)')
    setting_args.add_argument('--counts', type=pathlib.Path, default=None,
                              help='Also save closed unitig supports to this file, one per line')
    setting_args.add_argument('--verify', action='store_true',
                              help='Check that the closed unitigs reproduce every k-mer count '
                                   'before saving them')
    setting_args.add_argument('-t', '--threads', type=int, default=get_default_thread_count(),
                              help='Number of CPU threads (default: DEFAULT)')
    setting_args.add_argument('--verbose', action='store_true',
                              help='Display more output information')

    other_args = parser.add_argument_group('Other')
    other_args.add_argument('-h', '--help', action='help', default=argparse.SUPPRESS,
                            help='Show this help message and exit')
    other_args.add_argument('--version', action='version', version='closedunitigs v' + __version__,
                            help="Show program's version number and exit")

    return parser.parse_args(args)


def check_args(args):
    if args.kmer is not None and args.kmer < 1:
        sys.exit('Error: --kmer must be 1 or greater')
    if args.threads < 1:
        sys.exit('Error: --threads must be 1 or greater')
    if not args.input.is_file():
        sys.exit(f'Error: {args.input} is not a file')


if __name__ == '__main__':
    main()
