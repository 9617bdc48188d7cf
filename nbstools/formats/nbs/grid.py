"""Encoding and decoding of the note grid and of the layer records that
follow it

The grid is stored sparsely : for each occupied tick, in ascending order,
a "tick jump" gives the distance from the previous occupied tick (starting
from tick -1), then for each occupied layer on that tick, in ascending order,
a "layer jump" gives the distance from the previous occupied layer (starting
from layer -1) and is followed by the note itself. A zero layer jump ends the
tick, a zero tick jump ends the grid.

    tick jump │ layer jump, note │ layer jump, note │ 0 │ tick jump │ ... │ 0 │ 0
"""

import warnings
from itertools import chain
from typing import BinaryIO, Iterable, Iterator, Tuple

from more_itertools import pairwise
from sortedcontainers import SortedDict

from nbstools import song
from nbstools.errors import IoFailure, MalformedGrid, TruncatedGrid, translate_errors
from nbstools.utils import value_or

from . import construct

# Both leave room for the derived song length and layer count to fit in the
# header's 16-bit fields
MAX_TICK = 0xFFFF - 1
MAX_LAYER = 0xFFFF - 1


def iter_cells(
    stream: BinaryIO,
    version: song.NbsFormat,
    *,
    max_tick: int = MAX_TICK,
    max_layer: int = MAX_LAYER,
) -> Iterator[Tuple[int, int, construct.NoteRecord]]:
    """Walk the jumps of the grid, yields (tick, layer, note record) in file
    order"""
    tick = -1
    while True:
        tick_jump = construct.jump.parse_stream(stream)
        if tick_jump == 0:
            return

        tick += tick_jump
        if tick > max_tick:
            raise MalformedGrid(f"Tick {tick} is past the maximum of {max_tick}")

        layer = -1
        while True:
            layer_jump = construct.jump.parse_stream(stream)
            if layer_jump == 0:
                break

            layer += layer_jump
            if layer > max_layer:
                raise MalformedGrid(
                    f"Layer {layer} on tick {tick} is past the maximum of {max_layer}"
                )

            yield tick, layer, construct.note.parse_stream(stream, version=version)


def make_note(record: construct.NoteRecord) -> song.Note:
    return song.Note(
        instrument=record.instrument,
        key=record.key,
        velocity=value_or(record.velocity, song.DEFAULT_VELOCITY),
        panning=value_or(record.panning, song.DEFAULT_PANNING),
        pitch=value_or(record.pitch, song.DEFAULT_PITCH),
    )


def make_layer(record: construct.LayerRecord, notes: SortedDict) -> song.Layer:
    return song.Layer(
        name=record.name,
        locked=value_or(record.locked, False),
        volume=record.volume,
        stereo=value_or(record.stereo, song.DEFAULT_LAYER_STEREO),
        notes=notes,
    )


def decode_noteblocks(
    stream: BinaryIO,
    header: song.Header,
    *,
    max_tick: int = MAX_TICK,
    max_layer: int = MAX_LAYER,
) -> song.NoteBlocks:
    """Read the grid and the layer records, the layers are sized after the
    header's layer count, more are added if the grid uses them"""
    version = header.format
    noteblocks = song.NoteBlocks([song.Layer() for _ in range(header.layer_count)])
    with translate_errors(MalformedGrid, TruncatedGrid, "note grid"):
        cells = iter_cells(stream, version, max_tick=max_tick, max_layer=max_layer)
        for tick, layer, record in cells:
            noteblocks.set_note(tick, layer, make_note(record))

    if len(noteblocks) > header.layer_count:
        warnings.warn(
            f"The note grid uses {len(noteblocks)} layers but the header only "
            f"declares {header.layer_count}, the extra layers get default "
            "names and settings"
        )

    with translate_errors(MalformedGrid, TruncatedGrid, "layer records"):
        for index in range(header.layer_count):
            record = construct.layer.parse_stream(stream, version=version)
            noteblocks.layers[index] = make_layer(record, noteblocks[index].notes)

    return noteblocks


def iter_jumps(positions: Iterable[int]) -> Iterator[Tuple[int, int]]:
    """Pair each position with the jump that leads to it from the previous
    one, the first jump starts from -1"""
    for previous, current in pairwise(chain([-1], positions)):
        yield current - previous, current


def make_note_record(note: song.Note) -> construct.NoteRecord:
    return construct.NoteRecord(
        instrument=note.instrument,
        key=note.key,
        velocity=note.velocity,
        panning=note.panning,
        pitch=note.pitch,
    )


def make_layer_record(layer: song.Layer) -> construct.LayerRecord:
    return construct.LayerRecord(
        name=layer.name,
        locked=layer.locked,
        volume=layer.volume,
        stereo=layer.stereo,
    )


def encode_grid(
    noteblocks: song.NoteBlocks, stream: BinaryIO, version: song.NbsFormat
) -> None:
    rows = noteblocks.rows()
    for tick_jump, tick in iter_jumps(rows.keys()):
        # rows are sorted and unique, only negative ticks give jumps under 1
        if tick_jump < 1:
            raise MalformedGrid(f"Notes can't be placed on negative ticks : {tick}")

        construct.jump.build_stream(tick_jump, stream)
        row = rows[tick]
        for layer_jump, layer in iter_jumps(row.keys()):
            construct.jump.build_stream(layer_jump, stream)
            record = make_note_record(row[layer])
            construct.note.build_stream(record, stream, version=version)

        construct.jump.build_stream(0, stream)

    construct.jump.build_stream(0, stream)


def encode_noteblocks(
    noteblocks: song.NoteBlocks, stream: BinaryIO, header: song.Header
) -> None:
    """Write the grid then exactly header.layer_count layer records"""
    version = header.format
    with translate_errors(MalformedGrid, IoFailure, "note grid"):
        encode_grid(noteblocks, stream, version)

    if len(noteblocks) > header.layer_count:
        warnings.warn(
            f"The header declares {header.layer_count} layers but the song has "
            f"{len(noteblocks)}, the names and settings of the extra layers "
            "won't be saved"
        )

    with translate_errors(MalformedGrid, IoFailure, "layer records"):
        for index in range(header.layer_count):
            if index < len(noteblocks):
                layer = noteblocks[index]
            else:
                layer = song.Layer()
            record = make_layer_record(layer)
            construct.layer.build_stream(record, stream, version=version)
