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

import gzip
import pytest
import sys

from closedunitigs.__main__ import main, parse_args
from closedunitigs.decompress import iterate_closed_unitigs


BRANCHING_BCALM = '>0 LN:i:6 KC:i:23 km:f:5.8 L:+:1:+ L:+:2:+ ab:Z:5 5 6 7\n' \
                  'AACCTG\n' \
                  '>1 LN:i:3 KC:i:9 km:f:9.0 L:-:0:- ab:Z:9\n' \
                  'TGA\n' \
                  '>2 LN:i:3 KC:i:2 km:f:2.0 L:-:0:- ab:Z:2\n' \
                  'TGC\n'


def write_file(tmp_path, text, name='unitigs.fa'):
    filename = tmp_path / name
    filename.write_text(text)
    return filename


def run(tmp_path, capsys, text, *options):
    filename = write_file(tmp_path, text)
    main([str(filename)] + list(options))
    return capsys.readouterr()


def test_parse_args_defaults():
    args = parse_args(['unitigs.fa'])
    assert str(args.input) == 'unitigs.fa'
    assert args.kmer is None
    assert args.counts is None
    assert not args.verify
    assert not args.verbose
    assert 1 <= args.threads <= 16


def test_uniform_chain(tmp_path, capsys):
    captured = run(tmp_path, capsys, '>0 LN:i:6 ab:Z:5 5 5 5\nAACCTG\n')
    assert captured.out == '>1 LN:i:6 SP:i:5\nAACCTG\n'


def test_chain(tmp_path, capsys):
    # Every count must be recoverable, so the 6 and 7 k-mers at the end of the chain also get
    # their own closed unitigs.
    captured = run(tmp_path, capsys, '>0 LN:i:6 ab:Z:5 5 6 7\nAACCTG\n', '--verify')
    assert captured.out == '>1 LN:i:6 SP:i:5\nAACCTG\n' \
                           '>2 LN:i:4 SP:i:6\nCAGG\n' \
                           '>3 LN:i:3 SP:i:7\nCAG\n'
    assert 'all 4 k-mer counts recovered' in captured.err


def test_higher_neighbour(tmp_path, capsys):
    captured = run(tmp_path, capsys, BRANCHING_BCALM, '--verify')
    assert captured.out == '>1 LN:i:3 SP:i:2\nGCA\n' \
                           '>2 LN:i:7 SP:i:5\nAACCTGA\n' \
                           '>3 LN:i:5 SP:i:6\nCCTGA\n' \
                           '>4 LN:i:4 SP:i:7\nCTGA\n' \
                           '>5 LN:i:3 SP:i:9\nTCA\n'


def test_cycle(tmp_path, capsys):
    captured = run(tmp_path, capsys, '>0 LN:i:6 L:+:0:+ ab:Z:4 4 4 4\nAAGCAA\n', '--verify')
    assert captured.out == '>1 LN:i:6 SP:i:4\nAAGCAA\n'


def test_counts_file(tmp_path, capsys):
    counts = tmp_path / 'closed.counts'
    captured = run(tmp_path, capsys, BRANCHING_BCALM, '--counts', str(counts))
    assert counts.read_text() == '2\n5\n6\n7\n9\n'
    closed = write_file(tmp_path, captured.out, 'closed.fa')
    from_headers = list(iterate_closed_unitigs(closed))
    from_counts = list(iterate_closed_unitigs(closed, counts))
    assert from_headers == from_counts
    assert [u.support for u in from_headers] == [2, 5, 6, 7, 9]


def test_gzipped_input(tmp_path, capsys):
    filename = tmp_path / 'unitigs.fa.gz'
    with gzip.open(filename, 'wt') as f:
        f.write(BRANCHING_BCALM)
    main([str(filename), '--threads', '2'])
    assert capsys.readouterr().out.count('>') == 5


def test_truncated_gzipped_input(tmp_path, capsys):
    filename = tmp_path / 'unitigs.fa.gz'
    compressed = gzip.compress(BRANCHING_BCALM.encode())
    filename.write_bytes(compressed[:len(compressed) // 2])
    with pytest.raises(SystemExit) as e:
        main([str(filename)])
    assert str(e.value.code) == f'Error: {filename} is a truncated or corrupt gzip file'
    assert capsys.readouterr().out == ''


def test_not_text(tmp_path, capsys):
    filename = tmp_path / 'unitigs.fa'
    filename.write_bytes(b'>0 LN:i:4 ab:Z:5 5\nAAC\xff\n')
    with pytest.raises(SystemExit) as e:
        main([str(filename)])
    assert str(e.value.code) == 'Error: input is not valid text (line 2)'
    assert capsys.readouterr().out == ''


def test_given_kmer(tmp_path, capsys):
    captured = run(tmp_path, capsys, BRANCHING_BCALM, '-k', '3')
    assert captured.out.count('>') == 5


def test_verbose(tmp_path, capsys):
    captured = run(tmp_path, capsys, BRANCHING_BCALM, '--verbose')
    assert 'count 9: 1 k-mers' in captured.err


def test_deterministic(tmp_path, capsys):
    out_1 = run(tmp_path, capsys, BRANCHING_BCALM, '--threads', '1').out
    out_2 = run(tmp_path, capsys, BRANCHING_BCALM, '--threads', '4').out
    assert out_1 == out_2


def test_no_args(capsys):
    with pytest.raises(SystemExit) as e:
        main([])
    assert e.value.code == 1
    assert 'usage' in capsys.readouterr().err


def test_bad_option(monkeypatch, capsys):
    # Only the given argument list matters, not the process's own command line.
    monkeypatch.setattr(sys, 'argv', ['closedunitigs'])
    with pytest.raises(SystemExit) as e:
        parse_args(['unitigs.fa', '--bogus'])
    assert e.value.code == 2
    assert 'unrecognized arguments: --bogus' in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as e:
        main([str(tmp_path / 'missing.fa')])
    assert 'is not a file' in str(e.value.code)
    assert capsys.readouterr().out == ''


def test_bad_threads(tmp_path):
    filename = write_file(tmp_path, BRANCHING_BCALM)
    with pytest.raises(SystemExit) as e:
        main([str(filename), '--threads', '0'])
    assert '--threads' in str(e.value.code)


def test_bad_kmer(tmp_path):
    filename = write_file(tmp_path, BRANCHING_BCALM)
    with pytest.raises(SystemExit) as e:
        main([str(filename), '--kmer', '0'])
    assert '--kmer' in str(e.value.code)


def test_dangling_link(tmp_path, capsys):
    filename = write_file(tmp_path, '>0 L:+:5:+ ab:Z:5 5 6 7\nAACCTG\n')
    with pytest.raises(SystemExit) as e:
        main([str(filename)])
    assert str(e.value.code) == 'Error: link to unknown record 5 (record 0, line 1)'
    assert capsys.readouterr().out == ''


def test_inconsistent_link(tmp_path, capsys):
    filename = write_file(tmp_path, '>0 L:+:1:+ ab:Z:5 5 6 7\nAACCTG\n>1 ab:Z:3\nGGA\n')
    with pytest.raises(SystemExit) as e:
        main([str(filename)])
    assert 'do not overlap' in str(e.value.code)
    assert capsys.readouterr().out == ''


def test_length_mismatch(tmp_path, capsys):
    filename = write_file(tmp_path, '>0 LN:i:6 ab:Z:5 5 6 7\nAACCTG\n>1 LN:i:4 ab:Z:9\nTGA\n')
    with pytest.raises(SystemExit) as e:
        main([str(filename)])
    assert str(e.value.code).startswith('Error: declared length 4')
    assert 'line 3' in str(e.value.code)
    assert capsys.readouterr().out == ''


def test_wrong_kmer(tmp_path, capsys):
    filename = write_file(tmp_path, BRANCHING_BCALM)
    with pytest.raises(SystemExit) as e:
        main([str(filename), '-k', '4'])
    assert 'abundances' in str(e.value.code)
    assert capsys.readouterr().out == ''
