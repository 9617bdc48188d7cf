import struct
from io import BytesIO
from typing import List, Tuple

import pytest
from hypothesis import given
from hypothesis import strategies as st

from nbstools import song
from nbstools.errors import MalformedGrid, UnexpectedEof
from nbstools.formats.nbs import decode_bytes, encode_to_bytes
from nbstools.formats.nbs.grid import (
    decode_noteblocks,
    encode_grid,
    iter_cells,
    iter_jumps,
)
from nbstools.testutils.test_patterns import encode_then_decode

SPARSE_CELLS = [(0, 0), (5, 0), (5, 3), (1000, 3)]


def note_bytes(instrument: int, key: int) -> bytes:
    return struct.pack("<Bb", instrument, key)


def jumps(*values: int) -> bytes:
    return struct.pack(f"<{len(values)}H", *values)


def test_iter_jumps() -> None:
    assert list(iter_jumps([0, 5, 1000])) == [(1, 0), (5, 5), (995, 1000)]
    assert list(iter_jumps([])) == []


def test_that_an_empty_grid_is_a_single_terminator() -> None:
    stream = BytesIO()
    encode_grid(song.NoteBlocks(), stream, song.NbsFormat.V4)
    assert stream.getvalue() == jumps(0)


def test_that_an_empty_song_decodes_to_an_empty_grid() -> None:
    s = song.Song(header=song.Header(format=song.NbsFormat.V4))
    s.update()
    recovered = encode_then_decode(s)
    assert len(recovered.noteblocks) == 0
    assert recovered.noteblocks.note_count() == 0


def test_that_layers_without_notes_are_skipped() -> None:
    noteblocks = song.NoteBlocks([song.Layer() for _ in range(4)])
    stream = BytesIO()
    encode_grid(noteblocks, stream, song.NbsFormat.V4)
    assert stream.getvalue() == jumps(0)


@given(st.permutations(SPARSE_CELLS))
def test_that_sparse_grids_are_encoded_in_tick_then_layer_order(
    cells: List[Tuple[int, int]]
) -> None:
    noteblocks = song.NoteBlocks()
    for tick, layer in cells:
        instrument = SPARSE_CELLS.index((tick, layer))
        noteblocks.set_note(tick, layer, song.Note(instrument=instrument, key=33))

    stream = BytesIO()
    encode_grid(noteblocks, stream, song.NbsFormat.V1)
    expected = b"".join(
        [
            jumps(1, 1),
            note_bytes(0, 33),
            jumps(0),
            jumps(5, 1),
            note_bytes(1, 33),
            jumps(3),
            note_bytes(2, 33),
            jumps(0),
            jumps(995, 4),
            note_bytes(3, 33),
            jumps(0, 0),
        ]
    )
    assert stream.getvalue() == expected


@given(st.permutations(SPARSE_CELLS))
def test_that_sparse_grids_roundtrip(cells: List[Tuple[int, int]]) -> None:
    s = song.Song(header=song.Header(format=song.NbsFormat.V4))
    for tick, layer in cells:
        pitch = SPARSE_CELLS.index((tick, layer))
        s.noteblocks.set_note(tick, layer, song.Note(instrument=0, key=33, pitch=pitch))
    s.update()
    recovered = encode_then_decode(s)
    assert [
        (tick, layer, note.pitch)
        for tick, layer, note in recovered.noteblocks.iter_notes()
    ] == [(tick, layer, i) for i, (tick, layer) in enumerate(SPARSE_CELLS)]
    assert len(recovered.noteblocks) == 4
    assert recovered.noteblocks[1] == song.Layer()


def test_iter_cells() -> None:
    stream = BytesIO(
        jumps(3, 2) + note_bytes(1, 2) + jumps(2) + note_bytes(3, 4) + jumps(0, 0)
    )
    cells = [
        (tick, layer, (record.instrument, record.key))
        for tick, layer, record in iter_cells(stream, song.NbsFormat.V3)
    ]
    assert cells == [(2, 1, (1, 2)), (2, 3, (3, 4))]
    assert stream.read() == b""


def test_that_huge_cumulative_jumps_are_rejected() -> None:
    stream = BytesIO(
        jumps(0xFFFF, 1) + note_bytes(0, 0) + jumps(0, 1, 1) + note_bytes(0, 0)
    )
    with pytest.raises(MalformedGrid, match="Tick 65535"):
        list(iter_cells(stream, song.NbsFormat.V1))


def test_that_huge_layer_indices_are_rejected() -> None:
    stream = BytesIO(jumps(1, 0xFFFF) + note_bytes(0, 0) + jumps(1))
    with pytest.raises(MalformedGrid, match="Layer 65535"):
        list(iter_cells(stream, song.NbsFormat.V1))


def test_that_grid_bounds_can_be_tightened() -> None:
    s = song.Song(header=song.Header(format=song.NbsFormat.V4))
    s.noteblocks.set_note(20, 5, song.Note(instrument=0, key=33))
    s.update()
    bytes_ = encode_to_bytes(s)
    with pytest.raises(MalformedGrid):
        decode_bytes(bytes_, max_tick=10)
    with pytest.raises(MalformedGrid):
        decode_bytes(bytes_, max_layer=3)
    assert decode_bytes(bytes_, max_tick=20, max_layer=5) == s


def test_that_notes_on_negative_ticks_cannot_be_encoded() -> None:
    noteblocks = song.NoteBlocks([song.Layer(notes={-1: song.Note(0, 33)})])
    with pytest.raises(MalformedGrid):
        encode_grid(noteblocks, BytesIO(), song.NbsFormat.V4)


def test_that_jumps_too_long_for_16_bits_cannot_be_encoded() -> None:
    s = song.Song(header=song.Header(format=song.NbsFormat.V1))
    s.noteblocks.set_note(70000, 0, song.Note(0, 33))
    s.header.layer_count = 1
    with pytest.raises(MalformedGrid):
        encode_to_bytes(s)


def test_that_a_grid_without_terminator_is_truncated() -> None:
    stream = BytesIO(jumps(1, 1) + note_bytes(0, 33))
    header = song.Header(format=song.NbsFormat.V1, layer_count=1)
    with pytest.raises(MalformedGrid) as excinfo:
        decode_noteblocks(stream, header)
    assert isinstance(excinfo.value, UnexpectedEof)
