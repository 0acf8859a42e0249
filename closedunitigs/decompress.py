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

import re

from .closed_unitig import ClosedUnitig
from .errors import FormatError, ReconstructionMismatchError
from .misc import canonical_kmer, get_open_func, iterate_kmers, log


SUPPORT_RE = re.compile(r'(?:^|\s)SP:i:(\d+)(?=\s|$)')


def decompress(unitigs, k_size):
    """
    Returns a dictionary of canonical k-mer -> count, recovered from closed unitigs: each k-mer's
    count is the highest support of any closed unitig containing it.
    """
    counts = {}
    for unitig in unitigs:
        for kmer in iterate_kmers(unitig.seq, k_size):
            kmer = canonical_kmer(kmer)
            if counts.get(kmer, -1) < unitig.support:
                counts[kmer] = unitig.support
    return counts


def verify_reconstruction(graph, unitigs):
    """
    Checks that the closed unitigs reproduce every k-mer count in the graph exactly, and that no
    closed unitig contains a k-mer with a count below its support.
    """
    log('\nVerifying closed unitigs:')
    k_size = graph.k_size
    for unitig in unitigs:
        lowest_count = None
        for kmer in iterate_kmers(unitig.seq, k_size):
            node, _ = graph.orient(kmer)
            if node is None:
                raise ReconstructionMismatchError(f'{kmer} is in a closed unitig but not in the '
                                                  f'graph')
            if graph.counts[node] < unitig.support:
                raise ReconstructionMismatchError(f'{kmer} has count {graph.counts[node]} but '
                                                  f'is in a closed unitig with support '
                                                  f'{unitig.support}')
            if lowest_count is None or graph.counts[node] < lowest_count:
                lowest_count = graph.counts[node]
        if lowest_count != unitig.support:
            raise ReconstructionMismatchError(f'{unitig} has support {unitig.support} but its '
                                              f'lowest k-mer count is {lowest_count}')
    recovered = decompress(unitigs, k_size)
    for _, kmer, count in graph.iterate_nodes():
        if kmer not in recovered:
            raise ReconstructionMismatchError(f'{kmer} is not in any closed unitig')
        if recovered[kmer] != count:
            raise ReconstructionMismatchError(f'{kmer} has count {count} but was recovered as '
                                              f'{recovered[kmer]}')
    log(f'  all {graph.kmer_count()} k-mer counts recovered')


def iterate_closed_unitigs(filename, counts_filename=None):
    """
    Reads closed unitigs back from a FASTA file written by this tool. The supports come from the
    SP:i: header tags or, if given, from a separate counts file with one support per line.
    """
    supports = None
    if counts_filename is not None:
        with get_open_func(counts_filename)(counts_filename, 'rt') as counts_file:
            supports = [int(line) for line in counts_file if line.strip()]

    i = 0
    with get_open_func(filename)(filename, 'rt') as fasta_file:
        header, header_line_number = None, None
        sequence = []
        for line_number, line in enumerate(fasta_file, start=1):
            line = line.strip()
            if not line:
                continue
            if line[0] == '>':
                if header is not None:
                    yield make_closed_unitig(header, header_line_number, sequence, supports, i)
                    i += 1
                    sequence = []
                header, header_line_number = line[1:], line_number
            else:
                sequence.append(line.upper())
        if header is not None:
            yield make_closed_unitig(header, header_line_number, sequence, supports, i)
            i += 1
    if supports is not None and i != len(supports):
        raise FormatError(f'{i} closed unitigs but {len(supports)} counts')


def make_closed_unitig(header, line_number, sequence, supports, i):
    if supports is not None:
        if i >= len(supports):
            raise FormatError('more closed unitigs than counts', line_number)
        support = supports[i]
    else:
        support_match = SUPPORT_RE.search(header)
        if not support_match:
            raise FormatError('no support (SP:i:) in header', line_number)
        support = int(support_match.group(1))
    return ClosedUnitig(''.join(sequence), support)
