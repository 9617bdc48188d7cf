from io import BytesIO
from pathlib import Path
from typing import Any, BinaryIO

from nbstools import song
from nbstools.errors import (
    IoFailure,
    MalformedHeader,
    MalformedInstrumentTable,
    translate_errors,
)

from . import construct
from .grid import encode_noteblocks


def dump_nbs(song: song.Song, path: Path, **kwargs: Any) -> None:
    """Encode into memory first so a failure doesn't leave a half written
    file behind"""
    path.write_bytes(encode_to_bytes(song, **kwargs))


def encode_to_bytes(song: song.Song, **kwargs: Any) -> bytes:
    stream = BytesIO()
    encode(song, stream, **kwargs)
    return stream.getvalue()


def encode(song: song.Song, stream: BinaryIO, *, update: bool = False) -> None:
    """Write the song using the format in its header. Summary fields are
    written as they are unless update is True, in which case Song.update is
    called first"""
    if update:
        song.update()

    encode_header(song.header, stream)
    encode_noteblocks(song.noteblocks, stream, song.header)
    encode_custom_instruments(song.custom_instruments, stream, song.format)


def make_header_record(header: song.Header) -> construct.HeaderRecord:
    return construct.HeaderRecord(
        vanilla_instrument_count=header.vanilla_instrument_count,
        song_length=header.song_length,
        layer_count=header.layer_count,
        song_name=header.song_name,
        song_author=header.song_author,
        original_song_author=header.original_song_author,
        song_description=header.song_description,
        tempo=header.tempo,
        auto_saving=header.auto_saving,
        auto_saving_duration=header.auto_saving_duration,
        time_signature=header.time_signature,
        minutes_spent=header.minutes_spent,
        left_clicks=header.left_clicks,
        right_clicks=header.right_clicks,
        blocks_added=header.blocks_added,
        blocks_removed=header.blocks_removed,
        imported_file_name=header.imported_file_name,
        loop=header.loop,
        max_loop_count=header.max_loop_count,
        loop_start_tick=header.loop_start_tick,
    )


def encode_header(header: song.Header, stream: BinaryIO) -> None:
    format_ = header.format
    if format_.is_classic and header.song_length <= 0:
        raise MalformedHeader(
            "Classic files store the song length in place of the format "
            f"marker, it has to be positive but it is {header.song_length}"
        )

    with translate_errors(MalformedHeader, IoFailure, "header"):
        if format_.is_classic:
            construct.format_marker.build_stream(header.song_length, stream)
        else:
            construct.format_marker.build_stream(0, stream)
            construct.format_version.build_stream(format_, stream)

        record = make_header_record(header)
        construct.header.build_stream(record, stream, version=format_)


def make_custom_instrument_record(
    instrument: song.CustomInstrument,
) -> construct.CustomInstrumentRecord:
    return construct.CustomInstrumentRecord(
        name=instrument.name,
        file_name=instrument.file_name,
        pitch=instrument.pitch,
        press_key=instrument.press_key,
    )


def encode_custom_instruments(
    instruments: song.CustomInstruments, stream: BinaryIO, format_: song.NbsFormat
) -> None:
    if format_.is_classic and not instruments:
        return

    records = [make_custom_instrument_record(i) for i in instruments]
    with translate_errors(MalformedInstrumentTable, IoFailure, "custom instruments"):
        construct.custom_instrument_count.build_stream(len(records), stream)
        construct.custom_instruments(len(records)).build_stream(records, stream)
