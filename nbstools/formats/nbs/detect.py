from typing import BinaryIO, Tuple

from nbstools.errors import (
    MalformedHeader,
    TruncatedHeader,
    UnsupportedVersion,
    translate_errors,
)
from nbstools.song import NbsFormat

from . import construct


def detect_format(stream: BinaryIO) -> NbsFormat:
    """Consume the format marker (and version number if any) from the stream
    and return the format they announce"""
    format_, _ = read_format(stream)
    return format_


def read_format(stream: BinaryIO) -> Tuple[NbsFormat, int]:
    """Same as detect_format but also returns the raw marker, which is the
    song length in the classic format"""
    with translate_errors(MalformedHeader, TruncatedHeader, "format marker"):
        marker = construct.format_marker.parse_stream(stream)
        if marker < 0:
            raise UnsupportedVersion(f"Unrecognized classic format marker : {marker}")
        elif marker > 0:
            return NbsFormat.CLASSIC, marker

        version = construct.format_version.parse_stream(stream)

    if not NbsFormat.V1 <= version <= NbsFormat.latest():
        raise UnsupportedVersion(
            f"Unsupported OpenNoteBlockStudio version : {version}, "
            f"only versions 1 to {NbsFormat.latest().value} are supported"
        )

    return NbsFormat(version), marker
