"""
File I/O utilities
"""

from pathlib import Path
from typing import Iterable, List, Union


def collect_python_files(paths: Iterable[Union[str, Path]]) -> List[Path]:
    """
    Expand directories into the .py files below them.

    Files are returned in sorted order per directory; explicit file
    arguments are kept as given.

    Raises:
        FileNotFoundError: If a path does not exist
    """
    files: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.extend(sorted(p for p in path.rglob("*.py") if p.is_file()))
        elif path.exists():
            files.append(path)
        else:
            raise FileNotFoundError(f"No such file or directory: {path}")
    return files


def read_source(path: Union[str, Path]) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def write_source(path: Union[str, Path], source: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(source)
