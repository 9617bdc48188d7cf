"""
NoteBlockStudio .nbs files, classic format and OpenNoteBlockStudio versions
1 to 4

Documentation on the format can be found here :
- https://opennbs.org/nbs
- https://www.stuffbydavid.com/mcnbs/format
"""
from .detect import detect_format
from .dump import dump_nbs, encode, encode_to_bytes
from .grid import MAX_LAYER, MAX_TICK
from .load import decode, decode_bytes, load_nbs
