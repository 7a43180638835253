from pathlib import Path

from .errors import OutputWriteError

def safe_mkdirs(p: Path): p.mkdir(parents=True, exist_ok=True)

def atomic_write_text(path: Path, text: str) -> None:
    '''Write through a sibling .tmp file and move it into place.'''
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        safe_mkdirs(path.parent)
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise OutputWriteError("Cannot write file", path=path, cause=e)
