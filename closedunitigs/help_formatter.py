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
import os
import shutil
import subprocess
import sys


END_FORMATTING = '\033[0m'
BOLD = '\033[1m'


class MyParser(argparse.ArgumentParser):
    """
    Shows the full help text (instead of a terse usage error) when run with no arguments.
    """
    def parse_args(self, args=None, namespace=None):
        if args is None:
            args = sys.argv[1:]
        if len(args) == 0:  # if no arguments were given.
            self.print_help(file=sys.stderr)
            sys.exit(1)
        return super().parse_args(args, namespace)


class MyHelpFormatter(argparse.HelpFormatter):

    def __init__(self, prog):
        terminal_width = shutil.get_terminal_size().columns
        os.environ['COLUMNS'] = str(terminal_width)
        max_help_position = min(max(24, terminal_width // 3), 40)
        self.colours = get_colours_from_tput()
        super().__init__(prog, max_help_position=max_help_position)

    def _get_help_string(self, action):
        """
        Fills in 'default: DEFAULT' in the help text with the argument's actual default.
        """
        help_text = action.help
        if action.default != argparse.SUPPRESS and action.default is not None:
            if 'default: DEFAULT' in help_text:
                help_text = help_text.replace('default: DEFAULT', f'default: {action.default}')
        return help_text

    def start_section(self, heading):
        if self.colours > 1:
            heading = BOLD + heading + END_FORMATTING
        super().start_section(heading)


def get_colours_from_tput():
    try:
        return int(subprocess.check_output(['tput', 'colors'],
                                           stderr=subprocess.DEVNULL).decode().strip())
    except (ValueError, subprocess.CalledProcessError, FileNotFoundError, AttributeError):
        return 1
