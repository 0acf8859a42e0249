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

import collections
import concurrent.futures

from .misc import canonical_kmer, log


class ClosedUnitig(object):
    """
    A closed unitig is a sequence where every k-mer has a count of at least the support (and at
    least one k-mer has a count equal to the support). It is created once and not changed.
    """
    __slots__ = ('seq', 'support')

    def __init__(self, seq, support):
        object.__setattr__(self, 'seq', seq)
        object.__setattr__(self, 'support', support)

    def __setattr__(self, name, value):
        raise AttributeError('ClosedUnitig objects are immutable')

    def __repr__(self):
        if len(self.seq) < 15:
            seq = self.seq
        else:
            seq = self.seq[:6] + '...' + self.seq[-6:]
        return f'closed unitig: {seq}, {len(self.seq)} bp, support {self.support}'

    def __eq__(self, other):
        return (self.seq, self.support) == (other.seq, other.support)

    def __hash__(self):
        return hash((self.seq, self.support))

    def length(self):
        return len(self.seq)

    def sort_key(self):
        return self.support, -len(self.seq), self.seq

    def fasta_record(self, number):
        return f'>{number} LN:i:{len(self.seq)} SP:i:{self.support}\n{self.seq}\n'


class UnitigPath(object):
    """
    A path of oriented k-mers, built up from a starting k-mer with add_kmer_to_end and
    add_kmer_to_start, and then turned into a sequence.
    """
    def __init__(self, start):
        self.kmers = collections.deque([start])

    def add_kmer_to_end(self, kmer):
        self.kmers.append(kmer)

    def add_kmer_to_start(self, kmer):
        self.kmers.appendleft(kmer)

    def lowest_count(self, graph):
        return min(graph.counts[node] for node, _ in self.kmers)

    def combine_kmers_into_sequence(self, graph):
        seq = []
        for node, strand in self.kmers:
            k = graph.get_seq(node, strand)
            if not seq:
                seq.append(k)
            else:
                seq.append(k[-1])
        return ''.join(seq)


def materialise_component(graph, component):
    """
    Splits the subgraph induced by the component's nodes into maximal non-branching paths and
    returns one ClosedUnitig per path, all with the component's support. Paths are started from
    the lowest unused node, so the result is deterministic. Paths with no k-mer at the support
    level are left out.
    """
    members = set(component.nodes)

    def next_in_component(kmer):
        return [k for k in graph.next_nodes(*kmer) if k[0] in members]

    def prev_in_component(kmer):
        return [k for k in graph.prev_nodes(*kmer) if k[0] in members]

    seen = set()
    unitigs = []
    for node in component.nodes:
        if node in seen:
            continue
        start = (node, 1)
        path = UnitigPath(start)
        seen.add(node)

        # Extend path forward
        kmer = start
        while True:
            next_kmers = next_in_component(kmer)
            if len(next_kmers) != 1:
                break
            kmer = next_kmers[0]
            if kmer[0] in seen:
                break
            if len(prev_in_component(kmer)) != 1:
                break
            path.add_kmer_to_end(kmer)
            seen.add(kmer[0])

        # Extend path backward
        kmer = start
        while True:
            prev_kmers = prev_in_component(kmer)
            if len(prev_kmers) != 1:
                break
            kmer = prev_kmers[0]
            if kmer[0] in seen:
                break
            if len(next_in_component(kmer)) != 1:
                break
            path.add_kmer_to_start(kmer)
            seen.add(kmer[0])

        # A path made only of higher-count k-mers is already covered by a higher-support unitig.
        if path.lowest_count(graph) > component.support:
            continue
        seq = canonical_kmer(path.combine_kmers_into_sequence(graph))
        unitigs.append(ClosedUnitig(seq, component.support))
    assert seen == members
    return unitigs


def materialise_components(graph, components, threads=1):
    """
    Materialises all components and returns the closed unitigs in sorted order. Components share
    no mutable state, so they can be done in parallel.
    """
    log('\nBuilding closed unitigs:')
    if threads > 1 and len(components) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=threads) as executor:
            results = list(executor.map(lambda c: materialise_component(graph, c), components))
    else:
        results = [materialise_component(graph, c) for c in components]
    unitigs = sorted((u for r in results for u in r), key=ClosedUnitig.sort_key)
    total_length = sum(u.length() for u in unitigs)
    log(f'  {len(unitigs)} closed unitigs')
    log(f'  {total_length} bp total')
    return unitigs
