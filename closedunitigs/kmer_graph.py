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

from .errors import FormatError, GraphIntegrityError
from .misc import reverse_complement, log


class KmerGraph(object):
    """
    This class stores all k-mers from a set of unitig records (a De Bruijn graph) along with each
    k-mer's count. Each k-mer is stored once, in its canonical form, and identified by its index in
    the kmers/counts lists.

    Oriented k-mers are (node, strand) tuples, where strand is 1 for the canonical sequence and -1
    for its reverse complement. Edges are stored as successor lists for each strand:
    * forward_next[n] holds the oriented k-mers which follow (n, 1).
    * reverse_next[n] holds the oriented k-mers which follow (n, -1).
    Every edge a -> b is stored along with its mirror rc(b) -> rc(a), so predecessors can be found
    from the opposite strand's successors.
    """
    def __init__(self, k_size):
        self.k_size = k_size
        self.kmers = []
        self.counts = []
        self.index = {}
        self.forward_next = []
        self.reverse_next = []

    def __len__(self):
        return len(self.kmers)

    def add_records(self, records):
        """
        Builds the graph from UnitigRecord objects: first all k-mers with their within-record
        edges, then the links between records (which may refer forward to later records).
        """
        records = list(records)
        log(f'\nBuilding k-mer graph (k = {self.k_size}):')
        record_ends = {}
        for record in records:
            record_ends[record.record_id] = self.add_record(record)
        link_count = 0
        for record in records:
            for link in record.links:
                self.add_link(record, link, record_ends)
                link_count += 1
        self.finalise()
        log(f'  {len(records)} unitig records')
        log(f'  {link_count} links')
        log(f'  {self.kmer_count()} k-mers')
        log(f'  {self.edge_count()} edges')

    def add_record(self, record):
        """
        Adds the record's k-mers and the edges between consecutive k-mers. Returns the oriented
        k-mers at the record's start and end.
        """
        if len(record.counts) != len(record.seq) - self.k_size + 1:
            raise FormatError(f'{len(record.counts)} abundances given for a {len(record.seq)} bp '
                              f'sequence with k = {self.k_size}',
                              record.line_number, record.record_id)
        first, prev = None, None
        for i, count in enumerate(record.counts):
            kmer = self.add_kmer(record.seq[i:i+self.k_size], count, record)
            if prev is None:
                first = kmer
            else:
                self.add_edge(prev, kmer)
            prev = kmer
        return first, prev

    def add_link(self, record, link, record_ends):
        if link.to_id not in record_ends:
            raise GraphIntegrityError(f'link to unknown record {link.to_id}',
                                      record.line_number, record.record_id)
        from_first, from_last = record_ends[record.record_id]
        to_first, to_last = record_ends[link.to_id]
        a = from_last if link.from_strand == 1 else flip(from_first)
        b = to_first if link.to_strand == 1 else flip(to_last)
        a_seq, b_seq = self.get_seq(*a), self.get_seq(*b)
        if a_seq[1:] != b_seq[:-1]:
            raise GraphIntegrityError(f'{link} joins {a_seq} to {b_seq}, which do not overlap by '
                                      f'{self.k_size - 1} bp', record.line_number,
                                      record.record_id)
        self.add_edge(a, b)

    def add_kmer(self, seq, count, record=None):
        """
        Adds a k-mer (either strand) and returns it as an oriented k-mer. A k-mer which is already
        in the graph must have the same count.
        """
        node, strand = self.orient(seq)
        if node is None:
            node = len(self.kmers)
            self.index[seq if strand == 1 else reverse_complement(seq)] = node
            self.kmers.append(seq if strand == 1 else reverse_complement(seq))
            self.counts.append(count)
            self.forward_next.append(set())
            self.reverse_next.append(set())
        elif self.counts[node] != count:
            line_number = None if record is None else record.line_number
            record_id = None if record is None else record.record_id
            raise GraphIntegrityError(f'k-mer {self.kmers[node]} occurs with counts '
                                      f'{self.counts[node]} and {count}', line_number, record_id)
        return node, strand

    def orient(self, seq):
        """
        Returns the oriented k-mer for the given sequence. The node is None if the k-mer is not in
        the graph.
        """
        rev_seq = reverse_complement(seq)
        if seq <= rev_seq:
            return self.index.get(seq), 1
        else:
            return self.index.get(rev_seq), -1

    def add_edge(self, a, b):
        a_node, a_strand = a
        b_node, b_strand = b
        self.successors(a_node, a_strand).add(b)
        self.successors(b_node, -b_strand).add((a_node, -a_strand))

    def successors(self, node, strand):
        if strand == 1:
            return self.forward_next[node]
        elif strand == -1:
            return self.reverse_next[node]
        else:
            assert False

    def finalise(self):
        """
        Converts the successor sets to sorted tuples, so the graph is read-only and all iteration
        over it is deterministic.
        """
        self.forward_next = [tuple(sorted(s)) for s in self.forward_next]
        self.reverse_next = [tuple(sorted(s)) for s in self.reverse_next]

    def get_seq(self, node, strand):
        if strand == 1:
            return self.kmers[node]
        elif strand == -1:
            return reverse_complement(self.kmers[node])
        else:
            assert False

    def next_nodes(self, node, strand):
        """
        Returns a list of the oriented k-mers which follow the given one.
        """
        return list(self.successors(node, strand))

    def prev_nodes(self, node, strand):
        """
        Returns a list of the oriented k-mers which precede the given one.
        """
        return [flip(k) for k in self.successors(node, -strand)]

    def neighbours(self, node):
        """
        Returns the set of nodes adjacent to the given node on either strand, excluding itself.
        """
        neighbours = {n for n, _ in self.forward_next[node]}
        neighbours.update(n for n, _ in self.reverse_next[node])
        neighbours.discard(node)
        return neighbours

    def iterate_nodes(self):
        for node in range(len(self.kmers)):
            yield node, self.kmers[node], self.counts[node]

    def kmer_count(self):
        return len(self.kmers)

    def edge_count(self):
        """
        Counts edges once per strand pair, i.e. a -> b and rc(b) -> rc(a) count as one edge.
        """
        total = sum(len(s) for s in self.forward_next) + sum(len(s) for s in self.reverse_next)
        return (total + self.self_mirrored_edge_count()) // 2

    def self_mirrored_edge_count(self):
        """
        An edge a -> rc(a) is its own mirror, so it is only stored once.
        """
        count = 0
        for node in range(len(self.kmers)):
            count += sum(1 for n, s in self.successors(node, 1) if n == node and s == -1)
            count += sum(1 for n, s in self.successors(node, -1) if n == node and s == 1)
        return count


def flip(kmer):
    node, strand = kmer
    return node, -strand
