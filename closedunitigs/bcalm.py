"""
This module reads unitigs from BCALM's FASTA output. BCALM must be run with per-position
abundances turned on, which gives headers like this:
  >12 LN:i:35 KC:i:60 km:f:2.0 L:+:4:- L:-:7:+ ab:Z:2 2 2 3 2 ...

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

import gzip
import re
import zlib

from .errors import FormatError
from .misc import get_open_func


LENGTH_RE = re.compile(r'(?:^|\s)LN:i:(\S+)')
ABUNDANCE_RE = re.compile(r'(?:^|\s)ab:Z:([^\s:]+(?: +[^\s:]+(?=\s|$))*)')
LINK_RE = re.compile(r'(?:^|\s)L:([+-]):([^:\s]+):([+-])(?=\s|$)')
VALID_BASES = frozenset('ACGT')


class Link(object):
    """
    A link from one end of a unitig record to one end of another. The from_strand is 1 if the link
    leaves the end of this record and -1 if it leaves the start (i.e. the end of the reverse
    complement). The to_strand is 1 if it enters the start of the target record and -1 if it enters
    the end (i.e. the start of the reverse complement).
    """
    def __init__(self, from_strand, to_id, to_strand):
        self.from_strand = from_strand
        self.to_id = to_id
        self.to_strand = to_strand

    def __repr__(self):
        return f'L:{"+" if self.from_strand == 1 else "-"}:{self.to_id}:' \
               f'{"+" if self.to_strand == 1 else "-"}'

    def __eq__(self, other):
        return (self.from_strand, self.to_id, self.to_strand) == \
            (other.from_strand, other.to_id, other.to_strand)


class UnitigRecord(object):
    def __init__(self, record_id, seq, counts, links=None, declared_length=None, line_number=None):
        self.record_id = record_id
        self.seq = seq
        self.counts = counts  # one per k-mer
        self.links = links if links is not None else []
        self.declared_length = declared_length
        self.line_number = line_number  # of the header line, 1-based

    def __repr__(self):
        return f'{self.record_id}: {len(self.seq)} bp, {len(self.counts)} k-mers'

    def inferred_k_size(self):
        """
        BCALM doesn't store k in its output, but it follows from the sequence length and the number
        of abundances: len(seq) = len(counts) + k - 1.
        """
        return len(self.seq) - len(self.counts) + 1

    def check(self, k_size):
        if self.declared_length is not None and self.declared_length != len(self.seq):
            raise FormatError(f'declared length {self.declared_length} does not match sequence '
                              f'length {len(self.seq)}', self.line_number, self.record_id)
        if len(self.seq) < k_size:
            raise FormatError(f'sequence is shorter than k ({k_size})',
                              self.line_number, self.record_id)
        if len(self.counts) != len(self.seq) - k_size + 1:
            raise FormatError(f'{len(self.counts)} abundances given but a {len(self.seq)} bp '
                              f'sequence has {len(self.seq) - k_size + 1} {k_size}-mers',
                              self.line_number, self.record_id)
        bad_bases = set(self.seq) - VALID_BASES
        if bad_bases:
            raise FormatError(f'unknown nucleotide {sorted(bad_bases)[0]!r} in sequence',
                              self.line_number, self.record_id)


def parse_header(header, line_number=None):
    """
    Takes a BCALM header line (without the '>') and returns the record ID, declared length,
    abundances and links.
    """
    parts = header.split(maxsplit=1)
    if not parts:
        raise FormatError('header has no record ID', line_number)
    record_id = parts[0]
    info = '' if len(parts) == 1 else parts[1]

    declared_length = None
    length_match = LENGTH_RE.search(info)
    if length_match:
        try:
            declared_length = int(length_match.group(1))
        except ValueError:
            raise FormatError(f'bad length {length_match.group(1)!r}', line_number, record_id)

    abundance_match = ABUNDANCE_RE.search(info)
    if not abundance_match:
        raise FormatError('no per-position abundances (ab:Z:) in header - run BCALM with '
                          'per-position abundances turned on', line_number, record_id)
    counts = []
    for a in abundance_match.group(1).split():
        try:
            count = int(a)
        except ValueError:
            raise FormatError(f'bad abundance {a!r}', line_number, record_id)
        if count < 0:
            raise FormatError(f'negative abundance {count}', line_number, record_id)
        counts.append(count)

    links = [Link(1 if from_sign == '+' else -1, to_id, 1 if to_sign == '+' else -1)
             for from_sign, to_id, to_sign in LINK_RE.findall(info)]
    return record_id, declared_length, counts, links


def iterate_unitig_records(filename, k_size=None):
    """
    Takes a BCALM FASTA file (can be gzipped) and yields UnitigRecord objects. If k_size is not
    given, it is inferred from the first record and then checked against all later records.
    """
    seen_ids = set()
    record_count = 0

    def make_record(header, header_line_number, sequence):
        nonlocal k_size
        record_id, declared_length, counts, links = parse_header(header, header_line_number)
        if record_id in seen_ids:
            raise FormatError('duplicate record ID', header_line_number, record_id)
        seen_ids.add(record_id)
        if not sequence:
            raise FormatError('record has no sequence', header_line_number, record_id)
        record = UnitigRecord(record_id, ''.join(sequence), counts, links, declared_length,
                              header_line_number)
        if k_size is None:
            k_size = record.inferred_k_size()
            if k_size < 1:
                raise FormatError('more abundances than bases in sequence',
                                  header_line_number, record_id)
        record.check(k_size)
        return record

    try:
        with get_open_func(filename)(filename, 'rb') as bcalm_file:
            header, header_line_number = None, None
            sequence = []
            for line_number, line in enumerate(bcalm_file, start=1):
                line = line.decode().strip()
                if not line:
                    continue
                if line[0] == '>':  # Header line = start of new unitig
                    if header is not None:
                        yield make_record(header, header_line_number, sequence)
                        record_count += 1
                        sequence = []
                    header, header_line_number = line[1:], line_number
                else:
                    if header is None:
                        raise FormatError('sequence found before any header line', line_number)
                    sequence.append(line.upper())
            if header is not None:
                yield make_record(header, header_line_number, sequence)
                record_count += 1
    except UnicodeDecodeError:
        raise FormatError('input is not valid text', line_number)
    except (EOFError, zlib.error, gzip.BadGzipFile):
        raise FormatError(f'{filename} is a truncated or corrupt gzip file')
    if record_count == 0:
        raise FormatError(f'no unitig records found in {filename}')


def load_unitig_records(filename, k_size=None):
    records = list(iterate_unitig_records(filename, k_size))
    if k_size is None:
        k_size = records[0].inferred_k_size()
    return records, k_size
