"""Provides the Song class, the in-memory representation of an .nbs file

Every decoded file becomes a Song instance, every encoded file is made from
one. Fields that only exist in some versions of the format are plain values
holding their documented default, the codec decides whether to write them
depending on the target format."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from sortedcontainers import SortedDict

from nbstools.utils import SortedDefaultDict

SecondsTime = Decimal

DEFAULT_VELOCITY = 100
DEFAULT_PANNING = 100  # centered
DEFAULT_PITCH = 0
DEFAULT_LAYER_VOLUME = 100
DEFAULT_LAYER_STEREO = 100
DEFAULT_INSTRUMENT_PITCH = 45  # F#4, the base key of built-in instruments
DEFAULT_VANILLA_INSTRUMENT_COUNT = 16
CLASSIC_VANILLA_INSTRUMENT_COUNT = 10


# int is here to allow comparing against the version a field appeared in
class NbsFormat(int, Enum):
    """The classic NoteBlockStudio format, or a version of the
    OpenNoteBlockStudio one"""

    CLASSIC = 0
    V1 = 1
    V2 = 2
    V3 = 3
    V4 = 4

    @property
    def is_classic(self) -> bool:
        return self is NbsFormat.CLASSIC

    @classmethod
    def latest(cls) -> NbsFormat:
        return cls.V4


class Instrument(int, Enum):
    PIANO = 0
    DOUBLE_BASS = 1
    BASS_DRUM = 2
    SNARE_DRUM = 3
    CLICK = 4
    GUITAR = 5
    FLUTE = 6
    BELL = 7
    CHIME = 8
    XYLOPHONE = 9
    IRON_XYLOPHONE = 10
    COW_BELL = 11
    DIDGERIDOO = 12
    BIT = 13
    BANJO = 14
    PLING = 15


@dataclass
class Note:
    # built-in instrument id, or custom_instrument_offset + custom index
    instrument: int
    # 0 is A0, 87 is C8, 33 to 57 is the vanilla 2-octave range
    key: int
    velocity: int = DEFAULT_VELOCITY
    panning: int = DEFAULT_PANNING
    # fine pitch in cents
    pitch: int = DEFAULT_PITCH


@dataclass
class Layer:
    name: str = ""
    locked: bool = False
    volume: int = DEFAULT_LAYER_VOLUME
    stereo: int = DEFAULT_LAYER_STEREO
    notes: SortedDict = field(default_factory=SortedDict)


@dataclass
class NoteBlocks:
    """The tick × layer grid, stored sparsely : each layer only holds the
    ticks it actually has a note on"""

    layers: List[Layer] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.layers)

    def __getitem__(self, index: int) -> Layer:
        return self.layers[index]

    def __iter__(self) -> Iterator[Layer]:
        return iter(self.layers)

    def append(self, layer: Layer) -> None:
        self.layers.append(layer)

    def insert(self, index: int, layer: Layer) -> None:
        self.layers.insert(index, layer)

    def set_note(self, tick: int, layer: int, note: Note) -> None:
        """Put a note in the given cell, adding empty layers if needed"""
        if layer < 0:
            raise ValueError(f"Layer index cannot be negative : {layer}")
        while len(self.layers) <= layer:
            self.layers.append(Layer())
        self.layers[layer].notes[tick] = note

    def rows(self) -> SortedDict:
        """Return the grid as tick -> (layer -> note), both levels sorted"""
        rows: SortedDefaultDict[int, SortedDict] = SortedDefaultDict(
            lambda tick: SortedDict()
        )
        for index, layer in enumerate(self.layers):
            for tick, note in layer.notes.items():
                rows[tick][index] = note
        return rows

    def iter_notes(self) -> Iterator[Tuple[int, int, Note]]:
        """Iterate over (tick, layer, note) by ascending tick then layer"""
        for tick, row in self.rows().items():
            for layer, note in row.items():
                yield tick, layer, note

    def note_count(self) -> int:
        return sum(len(layer.notes) for layer in self.layers)

    def calculate_length(self) -> int:
        """Song length in ticks : highest occupied tick + 1, 0 when empty"""
        last_ticks = [max(layer.notes) for layer in self.layers if layer.notes]
        return max(last_ticks, default=-1) + 1


@dataclass
class CustomInstrument:
    name: str = ""
    # sound file, relative to NoteBlockStudio's sounds folder
    file_name: str = ""
    pitch: int = DEFAULT_INSTRUMENT_PITCH
    # whether the piano key should be pressed when a note plays
    press_key: bool = False


@dataclass
class CustomInstruments:
    instruments: List[CustomInstrument] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.instruments)

    def __getitem__(self, index: int) -> CustomInstrument:
        return self.instruments[index]

    def __iter__(self) -> Iterator[CustomInstrument]:
        return iter(self.instruments)

    def append(self, instrument: CustomInstrument) -> None:
        self.instruments.append(instrument)


@dataclass
class Header:
    format: NbsFormat = NbsFormat.V4
    # Derived fields, see Song.update
    song_length: int = 0
    layer_count: int = 0
    vanilla_instrument_count: int = DEFAULT_VANILLA_INSTRUMENT_COUNT
    song_name: str = ""
    song_author: str = ""
    original_song_author: str = ""
    song_description: str = ""
    # ticks per second × 100
    tempo: int = 1000
    auto_saving: bool = False
    # minutes between auto-saves
    auto_saving_duration: int = 10
    # 3 means 3/4
    time_signature: int = 4
    minutes_spent: int = 0
    left_clicks: int = 0
    right_clicks: int = 0
    blocks_added: int = 0
    blocks_removed: int = 0
    # name of the .mid or .schematic file the song was imported from
    imported_file_name: str = ""
    loop: bool = False
    # 0 means loop forever
    max_loop_count: int = 0
    loop_start_tick: int = 0

    @property
    def ticks_per_second(self) -> Decimal:
        return Decimal(self.tempo) / 100

    @property
    def custom_instrument_offset(self) -> int:
        """Instrument id of the first custom instrument"""
        if self.format.is_classic:
            return CLASSIC_VANILLA_INSTRUMENT_COUNT
        else:
            return self.vanilla_instrument_count


@dataclass
class Song:
    header: Header = field(default_factory=Header)
    noteblocks: NoteBlocks = field(default_factory=NoteBlocks)
    custom_instruments: CustomInstruments = field(default_factory=CustomInstruments)

    @classmethod
    def from_components(
        cls,
        header: Header,
        noteblocks: NoteBlocks,
        custom_instruments: Optional[CustomInstruments] = None,
    ) -> Song:
        return cls(
            header=header,
            noteblocks=noteblocks,
            custom_instruments=custom_instruments or CustomInstruments(),
        )

    @property
    def format(self) -> NbsFormat:
        return self.header.format

    def update(self) -> None:
        """Make the header summary fields match the current note grid,
        leaves every other field alone"""
        self.header.song_length = self.noteblocks.calculate_length()
        self.header.layer_count = len(self.noteblocks)

    def song_ticks(self) -> int:
        return self.noteblocks.calculate_length()

    def duration(self) -> SecondsTime:
        if self.header.tempo <= 0:
            raise ValueError(f"Invalid tempo : {self.header.tempo}")
        return self.song_ticks() / self.header.ticks_per_second

    def custom_instrument_of(self, note: Note) -> Optional[CustomInstrument]:
        """The custom instrument a note plays, None for built-in instruments
        or dangling references"""
        index = note.instrument - self.header.custom_instrument_offset
        if 0 <= index < len(self.custom_instruments):
            return self.custom_instruments[index]
        else:
            return None
