import struct
from typing import Any

import pytest

from nbstools import song
from nbstools.errors import (
    IoFailure,
    MalformedGrid,
    MalformedHeader,
    MalformedInstrumentTable,
    NbsError,
    TruncatedInstrumentTable,
    UnexpectedEof,
    UnsupportedVersion,
)
from nbstools.formats.nbs import decode, decode_bytes, encode, encode_to_bytes


def make_song() -> song.Song:
    s = song.Song(header=song.Header(format=song.NbsFormat.V4, song_name="test"))
    s.noteblocks.set_note(0, 0, song.Note(instrument=0, key=33, pitch=-20))
    s.noteblocks.set_note(0, 2, song.Note(instrument=16, key=40))
    s.noteblocks.set_note(7, 1, song.Note(instrument=3, key=50, panning=0))
    s.custom_instruments.append(song.CustomInstrument(name="x", file_name="x.ogg"))
    s.update()
    return s


def test_that_any_truncation_fails_with_unexpected_eof() -> None:
    bytes_ = encode_to_bytes(make_song())
    for size in range(len(bytes_)):
        with pytest.raises(UnexpectedEof):
            decode_bytes(bytes_[:size])


def test_that_truncated_custom_instruments_are_reported_as_such() -> None:
    bytes_ = encode_to_bytes(make_song())
    with pytest.raises(MalformedInstrumentTable):
        decode_bytes(bytes_[:-1])
    with pytest.raises(TruncatedInstrumentTable):
        decode_bytes(bytes_[:-1])


@pytest.mark.parametrize("version", [0, 5, 255])
def test_that_unknown_versions_are_rejected(version: int) -> None:
    bytes_ = encode_to_bytes(make_song())
    patched = bytes_[:2] + bytes([version]) + bytes_[3:]
    with pytest.raises(UnsupportedVersion):
        decode_bytes(patched)
    with pytest.raises(MalformedHeader):
        decode_bytes(patched)


def test_that_negative_classic_markers_are_rejected() -> None:
    with pytest.raises(UnsupportedVersion):
        decode_bytes(struct.pack("<h", -5) + b"\x00" * 64)


def test_that_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):
        decode_bytes(b"")
    with pytest.raises(NbsError):
        decode_bytes(b"")


class FailingStream:
    def read(self, size: int = -1) -> bytes:
        raise OSError("disk on fire")

    def write(self, bytes_: bytes) -> int:
        raise OSError("disk on fire")


def test_that_read_errors_are_wrapped() -> None:
    stream: Any = FailingStream()
    with pytest.raises(IoFailure) as excinfo:
        decode(stream)
    assert isinstance(excinfo.value.__cause__, OSError)


def test_that_write_errors_are_wrapped() -> None:
    stream: Any = FailingStream()
    with pytest.raises(IoFailure) as excinfo:
        encode(make_song(), stream)
    assert isinstance(excinfo.value.__cause__, OSError)


def test_that_out_of_range_header_fields_cannot_be_encoded() -> None:
    s = make_song()
    s.header.tempo = 40000
    with pytest.raises(MalformedHeader):
        encode_to_bytes(s)


def test_that_a_zero_length_classic_song_cannot_be_encoded() -> None:
    s = song.Song(header=song.Header(format=song.NbsFormat.CLASSIC))
    s.update()
    with pytest.raises(MalformedHeader):
        encode_to_bytes(s)


def test_that_out_of_range_note_fields_cannot_be_encoded() -> None:
    s = make_song()
    s.noteblocks[0].notes[0].key = 200
    with pytest.raises(MalformedGrid):
        encode_to_bytes(s)


def test_that_out_of_range_layer_fields_cannot_be_encoded() -> None:
    s = make_song()
    s.noteblocks[1].volume = -1
    with pytest.raises(MalformedGrid):
        encode_to_bytes(s)


def test_that_too_many_custom_instruments_cannot_be_encoded() -> None:
    s = make_song()
    for _ in range(256):
        s.custom_instruments.append(song.CustomInstrument())
    with pytest.raises(MalformedInstrumentTable):
        encode_to_bytes(s)
