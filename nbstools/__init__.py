from .errors import (
    IoFailure,
    MalformedGrid,
    MalformedHeader,
    MalformedInstrumentTable,
    NbsError,
    UnexpectedEof,
    UnsupportedVersion,
)
from .formats import (
    decode,
    decode_bytes,
    detect_format,
    dump_nbs,
    encode,
    encode_to_bytes,
    guess_format,
    load_nbs,
)
from .song import (
    CustomInstrument,
    CustomInstruments,
    Header,
    Instrument,
    Layer,
    NbsFormat,
    Note,
    NoteBlocks,
    Song,
)
from .version import __version__
