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

import sys

from .bcalm import load_unitig_records
from .closed_unitig import materialise_components
from .decomposition import decompose
from .decompress import verify_reconstruction
from .kmer_graph import KmerGraph
from .misc import log


def compress(args, out=None):
    if out is None:
        out = sys.stdout
    log(f'\nLoading unitigs from {args.input}...', end='')
    records, k_size = load_unitig_records(args.input, args.kmer)
    log(f' found {len(records)} unitigs')

    graph = build_graph(records, k_size)
    unitigs = find_closed_unitigs(graph, threads=args.threads, verbose=args.verbose)
    if args.verify:
        verify_reconstruction(graph, unitigs)

    save_closed_unitigs(unitigs, out)
    if args.counts is not None:
        with open(args.counts, 'wt') as f:
            save_counts(unitigs, f)
    log(f'\nCompressed {graph.kmer_count()} k-mer counts into {len(unitigs)} closed unitigs\n')


def build_graph(records, k_size):
    graph = KmerGraph(k_size)
    graph.add_records(records)
    return graph


def find_closed_unitigs(graph, threads=1, verbose=False):
    components = decompose(graph, verbose=verbose)
    return materialise_components(graph, components, threads=threads)


def save_closed_unitigs(unitigs, out):
    for i, unitig in enumerate(unitigs):
        out.write(unitig.fasta_record(i + 1))
    out.flush()


def save_counts(unitigs, out):
    for unitig in unitigs:
        out.write(f'{unitig.support}\n')
