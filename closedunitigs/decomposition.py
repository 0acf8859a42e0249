"""
This module partitions a KmerGraph into the support sets of closed unitigs, using a sweep over the
distinct k-mer counts (highest first) with a union-find structure.

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

from .errors import ReconstructionMismatchError
from .misc import log


class ClosedComponent(object):
    """
    A finalised set of nodes which all have a count of at least the support, where at least one
    node has a count equal to the support and every node adjacent to the set has a lower count.
    """
    def __init__(self, support, nodes):
        self.support = support
        self.nodes = nodes  # sorted tuple of node indices

    def __repr__(self):
        return f'component: {len(self.nodes)} k-mers, support {self.support}'

    def __len__(self):
        return len(self.nodes)


class UnionFind(object):
    """
    Disjoint sets over node indices, with union by size and path halving. Each root also holds the
    set's member list and its support (the lowest count in the set).
    """
    def __init__(self, size):
        self.parent = list(range(size))
        self.members = [None] * size
        self.support = [None] * size

    def make_set(self, node, support):
        self.parent[node] = node
        self.members[node] = [node]
        self.support[node] = support

    def find(self, node):
        parent = self.parent
        while parent[node] != node:
            parent[node] = parent[parent[node]]
            node = parent[node]
        return node

    def union(self, a, b, support):
        """
        Merges the sets containing a and b and gives the merged set the given support. Returns the
        new root.
        """
        a, b = self.find(a), self.find(b)
        if a == b:
            self.support[a] = min(self.support[a], support)
            return a
        if len(self.members[a]) < len(self.members[b]):
            a, b = b, a
        self.parent[b] = a
        self.members[a].extend(self.members[b])
        self.members[b] = None
        self.support[a] = min(self.support[a], self.support[b], support)
        self.support[b] = None
        return a


class DecompositionContext(object):
    """
    The state of the sweep: the (read-only) graph, the union-find structure, which nodes have been
    activated and the count currently being processed.
    """
    def __init__(self, graph):
        self.graph = graph
        self.sets = UnionFind(len(graph))
        self.activated = bytearray(len(graph))
        self.batch_value = None

    def batches(self):
        """
        Yields (count, nodes) for each distinct count in the graph, from highest to lowest. Nodes
        in each batch are in ascending order.
        """
        nodes_by_count = collections.defaultdict(list)
        for node, _, count in self.graph.iterate_nodes():
            nodes_by_count[count].append(node)
        for count in sorted(nodes_by_count, reverse=True):
            yield count, nodes_by_count[count]

    def activate(self, node):
        self.sets.make_set(node, self.batch_value)
        self.activated[node] = 1

    def union_with_activated_neighbours(self, node):
        for neighbour in self.graph.neighbours(node):
            if self.activated[neighbour]:
                self.sets.union(node, neighbour, self.batch_value)

    def is_closed(self, root):
        """
        A component is closed when none of its members has an unactivated neighbour with a count
        at least as high as the current batch.
        """
        graph = self.graph
        for member in self.sets.members[root]:
            for neighbour in graph.neighbours(member):
                if not self.activated[neighbour] and graph.counts[neighbour] >= self.batch_value:
                    return False
        return True

    def finalise(self, root):
        return ClosedComponent(self.batch_value, tuple(sorted(self.sets.members[root])))


def decompose(graph, verbose=False):
    """
    Runs the threshold sweep over the graph and returns a list of ClosedComponent objects, ordered
    by support (descending) and then by lowest node index.

    For each distinct count c (highest first), the nodes with count c are activated and joined to
    their already-activated neighbours. Once every union for the batch is done, each component
    whose support is now c is closed and gets finalised. Finalised components stay in the
    union-find structure, so a later batch can join them into a larger, lower-support component.
    """
    log('\nFinding closed unitig support sets:')
    context = DecompositionContext(graph)
    components = []
    batch_count = 0
    for count, batch in context.batches():
        batch_count += 1
        context.batch_value = count
        for node in batch:
            context.activate(node)
        for node in batch:
            context.union_with_activated_neighbours(node)

        # All unions for this batch must be complete before any closure test.
        roots = sorted({context.sets.find(node) for node in batch})
        batch_components = []
        for root in roots:
            assert context.sets.support[root] == count
            if not context.is_closed(root):
                raise ReconstructionMismatchError(f'component with support {count} has an '
                                                  f'unprocessed neighbour with a higher count')
            batch_components.append(context.finalise(root))
        batch_components.sort(key=lambda c: c.nodes[0])
        components += batch_components
        if verbose:
            sizes = ', '.join(str(len(c)) for c in batch_components)
            log(f'  count {count}: {len(batch)} k-mers, {len(batch_components)} components '
                f'({sizes} k-mers)')

    log(f'  {batch_count} distinct counts')
    log(f'  {len(components)} closed components')
    return components
