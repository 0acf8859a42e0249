"""
This module contains some tests for closedunitigs. To run them, execute `pytest` from the root
directory.

Copyright 2024 The closedunitigs authors

This program is free software: you can redistribute it and/or modify it under the terms of the GNU
General Public License as published by the Free Software Foundation, either version 3 of the
License, or (at your option) any later version. This program is distributed in the hope that it
will be useful, but WITHOUT ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or
FITNESS FOR A PARTICULAR PURPOSE.  See the GNU General Public License for more details. You should
have received a copy of the GNU General Public License along with this program. If not, see
<https://www.gnu.org/licenses/>.
"""

import pytest

from closedunitigs.bcalm import UnitigRecord
from closedunitigs.closed_unitig import ClosedUnitig
from closedunitigs.decompress import decompress, iterate_closed_unitigs, verify_reconstruction
from closedunitigs.errors import FormatError, ReconstructionMismatchError
from closedunitigs.kmer_graph import KmerGraph


def build_chain_graph():
    # 3-mers: AAC=5, ACC=5, CCT=6, CTG=7
    graph = KmerGraph(3)
    graph.add_records([UnitigRecord('0', 'AACCTG', [5, 5, 6, 7])])
    return graph


def chain_unitigs():
    return [ClosedUnitig('AACCTG', 5), ClosedUnitig('CAGG', 6), ClosedUnitig('CAG', 7)]


def test_decompress():
    assert decompress(chain_unitigs(), 3) == {'AAC': 5, 'ACC': 5, 'AGG': 6, 'CAG': 7}


def test_decompress_empty():
    assert decompress([], 3) == {}


def test_verify_reconstruction_good(capsys):
    verify_reconstruction(build_chain_graph(), chain_unitigs())
    assert 'all 4 k-mer counts recovered' in capsys.readouterr().err


def test_verify_reconstruction_missing_kmer():
    # Without the support-7 unitig, CTG's count is recovered as 6.
    with pytest.raises(ReconstructionMismatchError) as e:
        verify_reconstruction(build_chain_graph(), chain_unitigs()[:2])
    assert 'CAG has count 7 but was recovered as 6' in str(e.value)


def test_verify_reconstruction_omitted_kmer():
    with pytest.raises(ReconstructionMismatchError) as e:
        verify_reconstruction(build_chain_graph(), [ClosedUnitig('CCTG', 6),
                                                    ClosedUnitig('CAG', 7)])
    assert 'AAC is not in any closed unitig' in str(e.value)


def test_verify_reconstruction_fabricated_kmer():
    with pytest.raises(ReconstructionMismatchError) as e:
        verify_reconstruction(build_chain_graph(), chain_unitigs() + [ClosedUnitig('TTTT', 1)])
    assert 'not in the graph' in str(e.value)


def test_verify_reconstruction_support_too_high():
    with pytest.raises(ReconstructionMismatchError) as e:
        verify_reconstruction(build_chain_graph(), [ClosedUnitig('AACCTG', 6)])
    assert 'support 6' in str(e.value)


def test_verify_reconstruction_support_too_low():
    with pytest.raises(ReconstructionMismatchError) as e:
        verify_reconstruction(build_chain_graph(), chain_unitigs() + [ClosedUnitig('CCTG', 2)])
    assert 'lowest k-mer count is 6' in str(e.value)


def test_iterate_closed_unitigs(tmp_path):
    filename = tmp_path / 'closed.fa'
    filename.write_text('>1 LN:i:6 SP:i:5\nAACCTG\n>2 LN:i:4 SP:i:6\nCAGG\n>3 LN:i:3 SP:i:7\nCAG\n')
    assert list(iterate_closed_unitigs(filename)) == chain_unitigs()


def test_iterate_closed_unitigs_with_counts(tmp_path):
    filename = tmp_path / 'closed.fa'
    filename.write_text('>\nAACCTG\n>\nCAGG\n>\nCAG\n')
    counts_filename = tmp_path / 'closed.counts'
    counts_filename.write_text('5\n6\n7\n')
    assert list(iterate_closed_unitigs(filename, counts_filename)) == chain_unitigs()


def test_iterate_closed_unitigs_no_support(tmp_path):
    filename = tmp_path / 'closed.fa'
    filename.write_text('>1 LN:i:6\nAACCTG\n')
    with pytest.raises(FormatError) as e:
        list(iterate_closed_unitigs(filename))
    assert 'line 1' in str(e.value)


def test_iterate_closed_unitigs_count_mismatch(tmp_path):
    filename = tmp_path / 'closed.fa'
    filename.write_text('>\nAACCTG\n>\nCAGG\n')
    counts_filename = tmp_path / 'closed.counts'
    counts_filename.write_text('5\n6\n7\n')
    with pytest.raises(FormatError) as e:
        list(iterate_closed_unitigs(filename, counts_filename))
    assert '2 closed unitigs but 3 counts' in str(e.value)
