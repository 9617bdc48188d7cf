"""Exceptions raised when a stream can't be decoded or a song can't be encoded

Truncated streams raise classes that inherit from both the error of the
section being read and UnexpectedEof, so callers can catch either."""

from contextlib import contextmanager
from typing import Iterator, Type

import construct as c


class NbsError(ValueError):
    pass


class MalformedHeader(NbsError):
    pass


class UnsupportedVersion(MalformedHeader):
    pass


class MalformedGrid(NbsError):
    pass


class MalformedInstrumentTable(NbsError):
    pass


class UnexpectedEof(NbsError):
    """The stream ended in the middle of a field"""


class TruncatedHeader(MalformedHeader, UnexpectedEof):
    pass


class TruncatedGrid(MalformedGrid, UnexpectedEof):
    pass


class TruncatedInstrumentTable(MalformedInstrumentTable, UnexpectedEof):
    pass


class IoFailure(NbsError):
    """The underlying stream failed, the original OSError is the __cause__"""


@contextmanager
def translate_errors(
    error: Type[NbsError], on_eof: Type[NbsError], what: str
) -> Iterator[None]:
    """Turn construct (and stream) exceptions raised while processing a
    section of the file into our own"""
    try:
        yield
    except NbsError:
        raise
    except c.StreamError as e:
        # construct wraps exceptions raised by the stream itself
        if isinstance(e.__context__, OSError):
            raise IoFailure(f"I/O error in the {what} : {e.__context__}") from (
                e.__context__
            )
        raise on_eof(f"Stream ended in the middle of the {what}") from e
    except OSError as e:
        raise IoFailure(f"I/O error in the {what} : {e}") from e
    except (c.ConstructError, UnicodeError) as e:
        raise error(f"Invalid {what} : {e}") from e
