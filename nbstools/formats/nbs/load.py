from io import BytesIO
from pathlib import Path
from typing import BinaryIO

from nbstools import song
from nbstools.errors import (
    MalformedHeader,
    MalformedInstrumentTable,
    TruncatedHeader,
    TruncatedInstrumentTable,
    translate_errors,
)
from nbstools.utils import value_or

from . import construct
from .detect import read_format
from .grid import MAX_LAYER, MAX_TICK, decode_noteblocks


def load_nbs(path: Path, **kwargs: int) -> song.Song:
    with path.open(mode="rb") as f:
        return decode(f, **kwargs)


def decode_bytes(bytes_: bytes, **kwargs: int) -> song.Song:
    return decode(BytesIO(bytes_), **kwargs)


def decode(
    stream: BinaryIO, *, max_tick: int = MAX_TICK, max_layer: int = MAX_LAYER
) -> song.Song:
    """Read a whole .nbs file from the stream. Nothing is returned unless
    every section could be read, max_tick and max_layer bound the note grid
    so hostile files can't make us allocate a huge number of layers"""
    header = decode_header(stream)
    noteblocks = decode_noteblocks(
        stream, header, max_tick=max_tick, max_layer=max_layer
    )
    if not (header.format.is_classic or header.format >= song.NbsFormat.V3):
        # this version does not store it, the grid is the only source of truth
        header.song_length = noteblocks.calculate_length()

    custom_instruments = decode_custom_instruments(stream, header.format)
    return song.Song(
        header=header,
        noteblocks=noteblocks,
        custom_instruments=custom_instruments,
    )


def decode_header(stream: BinaryIO) -> song.Header:
    format_, marker = read_format(stream)
    with translate_errors(MalformedHeader, TruncatedHeader, "header"):
        record = construct.header.parse_stream(stream, version=format_)

    if format_.is_classic:
        song_length = marker
    else:
        song_length = value_or(record.song_length, 0)

    return song.Header(
        format=format_,
        song_length=song_length,
        layer_count=record.layer_count,
        vanilla_instrument_count=value_or(
            record.vanilla_instrument_count, song.DEFAULT_VANILLA_INSTRUMENT_COUNT
        ),
        song_name=record.song_name,
        song_author=record.song_author,
        original_song_author=record.original_song_author,
        song_description=record.song_description,
        tempo=record.tempo,
        auto_saving=record.auto_saving,
        auto_saving_duration=record.auto_saving_duration,
        time_signature=record.time_signature,
        minutes_spent=record.minutes_spent,
        left_clicks=record.left_clicks,
        right_clicks=record.right_clicks,
        blocks_added=record.blocks_added,
        blocks_removed=record.blocks_removed,
        imported_file_name=record.imported_file_name,
        loop=value_or(record.loop, False),
        max_loop_count=value_or(record.max_loop_count, 0),
        loop_start_tick=value_or(record.loop_start_tick, 0),
    )


def make_custom_instrument(
    record: construct.CustomInstrumentRecord,
) -> song.CustomInstrument:
    return song.CustomInstrument(
        name=record.name,
        file_name=record.file_name,
        pitch=record.pitch,
        press_key=record.press_key,
    )


def decode_custom_instruments(
    stream: BinaryIO, format_: song.NbsFormat
) -> song.CustomInstruments:
    """The table is mandatory in the new format, classic files may end
    right before it"""
    with translate_errors(
        MalformedInstrumentTable, TruncatedInstrumentTable, "custom instruments"
    ):
        raw_count = stream.read(1)
        if not raw_count:
            if format_.is_classic:
                return song.CustomInstruments()
            raise TruncatedInstrumentTable(
                "Stream ended before the custom instrument table"
            )

        count = construct.custom_instrument_count.parse(raw_count)
        records = construct.custom_instruments(count).parse_stream(stream)

    return song.CustomInstruments([make_custom_instrument(r) for r in records])
