from pathlib import Path

from nbstools.song import NbsFormat

from .nbs.detect import detect_format


def guess_format(path: Path) -> NbsFormat:
    if path.is_dir():
        raise ValueError("Can't guess the format of a folder")

    with path.open(mode="rb") as f:
        return detect_format(f)


def looks_like_nbs(path: Path) -> bool:
    try:
        guess_format(path)
    except ValueError:
        return False
    else:
        return True
