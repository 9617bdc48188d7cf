"""The .nbs record layouts described using construct.
see https://construct.readthedocs.io/en/latest/index.html

Fields introduced in a later OpenNoteBlockStudio version are wrapped in If,
structs expect the numeric value of the file's NbsFormat as the "version"
keyword argument when parsing or building, 0 being the classic format.
Conditional fields parse to None when absent and are ignored when building
for a version that lacks them."""

from dataclasses import dataclass
from typing import Any, Optional

import construct as c
import construct_typed as ct


def since(version: int) -> Any:
    """Condition for fields that exist from the given version onward"""
    return c.this._params.version >= version


class NbsStringAdapter(c.Adapter):
    """Length-prefixed byte strings, bytes that aren't valid utf-8 are kept
    as surrogates so any string round-trips exactly"""

    def _decode(self, obj: bytes, context: Any, path: Any) -> str:
        return obj.decode("utf-8", errors="surrogateescape")

    def _encode(self, obj: str, context: Any, path: Any) -> bytes:
        return obj.encode("utf-8", errors="surrogateescape")


NbsString = NbsStringAdapter(c.Prefixed(c.Int32ul, c.GreedyBytes))

# Song length in the classic format, always 0 in the new one
format_marker = c.Int16sl
format_version = c.Int8ul
# Tick and layer jumps of the note grid, 0 ends the current run
jump = c.Int16ul


@dataclass
class HeaderRecord(ct.DataclassMixin):
    """Everything in the header that comes after the format marker and the
    version number"""

    vanilla_instrument_count: Optional[int] = ct.csfield(c.If(since(1), c.Int8ul))
    song_length: Optional[int] = ct.csfield(c.If(since(3), c.Int16ul))
    layer_count: int = ct.csfield(c.Int16ul)
    song_name: str = ct.csfield(NbsString)
    song_author: str = ct.csfield(NbsString)
    original_song_author: str = ct.csfield(NbsString)
    song_description: str = ct.csfield(NbsString)
    tempo: int = ct.csfield(c.Int16sl)
    auto_saving: bool = ct.csfield(c.Flag)
    auto_saving_duration: int = ct.csfield(c.Int8ul)
    time_signature: int = ct.csfield(c.Int8ul)
    minutes_spent: int = ct.csfield(c.Int32sl)
    left_clicks: int = ct.csfield(c.Int32sl)
    right_clicks: int = ct.csfield(c.Int32sl)
    blocks_added: int = ct.csfield(c.Int32sl)
    blocks_removed: int = ct.csfield(c.Int32sl)
    imported_file_name: str = ct.csfield(NbsString)
    loop: Optional[bool] = ct.csfield(c.If(since(4), c.Flag))
    max_loop_count: Optional[int] = ct.csfield(c.If(since(4), c.Int8ul))
    loop_start_tick: Optional[int] = ct.csfield(c.If(since(4), c.Int16sl))


@dataclass
class NoteRecord(ct.DataclassMixin):
    instrument: int = ct.csfield(c.Int8ul)
    key: int = ct.csfield(c.Int8sl)
    velocity: Optional[int] = ct.csfield(c.If(since(4), c.Int8ul))
    panning: Optional[int] = ct.csfield(c.If(since(4), c.Int8ul))
    pitch: Optional[int] = ct.csfield(c.If(since(4), c.Int16sl))


@dataclass
class LayerRecord(ct.DataclassMixin):
    name: str = ct.csfield(NbsString)
    locked: Optional[bool] = ct.csfield(c.If(since(4), c.Flag))
    volume: int = ct.csfield(c.Int8ul)
    stereo: Optional[int] = ct.csfield(c.If(since(2), c.Int8ul))


@dataclass
class CustomInstrumentRecord(ct.DataclassMixin):
    name: str = ct.csfield(NbsString)
    file_name: str = ct.csfield(NbsString)
    pitch: int = ct.csfield(c.Int8ul)
    press_key: bool = ct.csfield(c.Flag)


header = ct.DataclassStruct(HeaderRecord)
note = ct.DataclassStruct(NoteRecord)
layer = ct.DataclassStruct(LayerRecord)
custom_instrument = ct.DataclassStruct(CustomInstrumentRecord)
custom_instrument_count = c.Int8ul


def custom_instruments(count: int) -> c.Construct:
    return c.Array(count, custom_instrument)
