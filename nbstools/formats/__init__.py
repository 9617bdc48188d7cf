"""
Module containing all the load/dump code for .nbs files
"""
from .guess import guess_format
from .nbs import (
    decode,
    decode_bytes,
    detect_format,
    dump_nbs,
    encode,
    encode_to_bytes,
    load_nbs,
)
