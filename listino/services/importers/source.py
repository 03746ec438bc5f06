from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Iterator

from .errors import PriceListFileError


@dataclass(frozen=True)
class PriceListFile:
    """
    Sorgente di un listino: percorso su disco oppure contenuto già in memoria
    (es. upload). Il nome file determina il formato tramite l'estensione.
    """

    filename: str
    path: Path | None = None
    content: bytes | None = None

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> "PriceListFile":
        resolved = Path(path)
        return cls(filename=resolved.name, path=resolved)

    @classmethod
    def from_bytes(cls, filename: str, content: bytes) -> "PriceListFile":
        return cls(filename=filename, content=content)

    @property
    def extension(self) -> str | None:
        suffix = Path(self.filename).suffix
        if not suffix:
            return None
        return suffix[1:].lower()

    def validate(self) -> None:
        if self.content is not None:
            return
        if self.path is None:
            raise PriceListFileError(f"Il listino {self.filename} non ha né percorso né contenuto")
        if not self.path.exists():
            raise PriceListFileError(f"File non trovato: {self.path}")
        if not self.path.is_file() or not os.access(self.path, os.R_OK):
            raise PriceListFileError(f"File non leggibile: {self.path}")

    @contextmanager
    def open(self) -> Iterator[BinaryIO]:
        """Apre il listino in lettura binaria; l'handle viene sempre chiuso all'uscita."""
        self.validate()
        if self.content is not None:
            stream: BinaryIO = BytesIO(self.content)
        else:
            try:
                stream = self.path.open("rb")
            except OSError as exc:
                raise PriceListFileError(f"Impossibile aprire il file {self.path}: {exc}") from exc
        try:
            yield stream
        finally:
            stream.close()
