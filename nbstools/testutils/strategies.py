"""
Hypothesis strategies to generate notes, layers and songs

Every strategy takes the target format and only fills in the fields that
format can store, the others keep their defaults so generated songs survive
an encode / decode round-trip
"""

from typing import Dict, List, Optional

import hypothesis.strategies as st

from nbstools.song import (
    CustomInstrument,
    CustomInstruments,
    Header,
    Layer,
    NbsFormat,
    Note,
    NoteBlocks,
    Song,
)

u8 = st.integers(min_value=0, max_value=0xFF)
i8 = st.integers(min_value=-0x80, max_value=0x7F)
i16 = st.integers(min_value=-0x8000, max_value=0x7FFF)
i32 = st.integers(min_value=-0x8000_0000, max_value=0x7FFF_FFFF)
nbs_formats = st.sampled_from(list(NbsFormat))


@st.composite
def note(draw: st.DrawFn, format_: NbsFormat = NbsFormat.V4) -> Note:
    note = Note(instrument=draw(u8), key=draw(i8))
    if format_ >= NbsFormat.V4:
        note.velocity = draw(u8)
        note.panning = draw(u8)
        note.pitch = draw(i16)
    return note


@st.composite
def layer(
    draw: st.DrawFn,
    format_: NbsFormat = NbsFormat.V4,
    max_tick: int = 2000,
    max_notes: int = 16,
    text_strat: st.SearchStrategy[str] = st.text(max_size=16),
) -> Layer:
    layer = Layer(name=draw(text_strat), volume=draw(u8))
    if format_ >= NbsFormat.V4:
        layer.locked = draw(st.booleans())
    if format_ >= NbsFormat.V2:
        layer.stereo = draw(u8)
    notes: Dict[int, Note] = draw(
        st.dictionaries(
            st.integers(min_value=0, max_value=max_tick),
            note(format_),
            max_size=max_notes,
        )
    )
    layer.notes.update(notes)
    return layer


@st.composite
def noteblocks(
    draw: st.DrawFn,
    format_: NbsFormat = NbsFormat.V4,
    max_layers: int = 8,
    layer_strat: Optional[st.SearchStrategy[Layer]] = None,
) -> NoteBlocks:
    if layer_strat is None:
        layer_strat = layer(format_)
    layers: List[Layer] = draw(st.lists(layer_strat, max_size=max_layers))
    return NoteBlocks(layers)


@st.composite
def custom_instrument(
    draw: st.DrawFn, text_strat: st.SearchStrategy[str] = st.text(max_size=16)
) -> CustomInstrument:
    return CustomInstrument(
        name=draw(text_strat),
        file_name=draw(text_strat),
        pitch=draw(u8),
        press_key=draw(st.booleans()),
    )


@st.composite
def custom_instruments(draw: st.DrawFn, max_size: int = 8) -> CustomInstruments:
    return CustomInstruments(draw(st.lists(custom_instrument(), max_size=max_size)))


@st.composite
def header(
    draw: st.DrawFn,
    format_: NbsFormat = NbsFormat.V4,
    text_strat: st.SearchStrategy[str] = st.text(),
) -> Header:
    """Summary fields are left at 0, Song.update fills them"""
    header = Header(
        format=format_,
        song_name=draw(text_strat),
        song_author=draw(text_strat),
        original_song_author=draw(text_strat),
        song_description=draw(text_strat),
        tempo=draw(i16),
        auto_saving=draw(st.booleans()),
        auto_saving_duration=draw(u8),
        time_signature=draw(u8),
        minutes_spent=draw(i32),
        left_clicks=draw(i32),
        right_clicks=draw(i32),
        blocks_added=draw(i32),
        blocks_removed=draw(i32),
        imported_file_name=draw(text_strat),
    )
    if format_ >= NbsFormat.V1:
        header.vanilla_instrument_count = draw(u8)
    if format_ >= NbsFormat.V4:
        header.loop = draw(st.booleans())
        header.max_loop_count = draw(u8)
        header.loop_start_tick = draw(i16)
    return header


@st.composite
def song(
    draw: st.DrawFn,
    format_strat: st.SearchStrategy[NbsFormat] = nbs_formats,
) -> Song:
    """Songs with up to date summary fields"""
    format_ = draw(format_strat)
    song = Song(
        header=draw(header(format_)),
        noteblocks=draw(noteblocks(format_)),
        custom_instruments=draw(custom_instruments()),
    )
    song.update()
    if format_.is_classic and song.header.song_length == 0:
        # the classic format can't store a zero length
        song.header.song_length = 1
    return song
