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


class ClosedUnitigError(Exception):
    """
    Base class for errors raised while building closed unitigs. The optional line number and
    record ID are appended to the message so the user can find the offending input.
    """
    def __init__(self, message, line_number=None, record_id=None):
        self.message = message
        self.line_number = line_number
        self.record_id = record_id
        super().__init__(str(self))

    def __str__(self):
        context = []
        if self.record_id is not None:
            context.append(f'record {self.record_id}')
        if self.line_number is not None:
            context.append(f'line {self.line_number}')
        if context:
            return f'{self.message} ({", ".join(context)})'
        return self.message


class FormatError(ClosedUnitigError):
    pass


class GraphIntegrityError(ClosedUnitigError):
    pass


class ReconstructionMismatchError(ClosedUnitigError):
    """
    Raised when the closed unitigs do not reproduce the original k-mer counts. This can only
    happen because of a bug, never because of the input.
    """
    pass
