"""Sound files: a header followed by 8-bit and 16-bit sound definitions."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .sound_header import PathLike, SoundsFormatError
from .sounds_definition import SIZEOF_SOUND_DEFINITION, SoundsDefinition

log = logging.getLogger(__name__)

SOUND_FILE_HEADER_SIZE = 260
SOUND_FILE_VERSION = 1
SOUND_FILE_TAG = int.from_bytes(b"snd2", "big")
SOURCE_8BIT = 0
SOURCE_16BIT = 1
NUMBER_OF_SOUND_SOURCES = 2

_HEADER = struct.Struct(">iIhh")


class SoundsFileError(SoundsFormatError):
    """Raised when a sound file cannot be loaded."""


def _empty_sources() -> List[List[SoundsDefinition]]:
    return [[] for _ in range(NUMBER_OF_SOUND_SOURCES)]


@dataclass
class SoundsDocument:
    """A sound file: per-source lists of definitions, 8-bit first, then 16-bit.

    m2_demo marks the demo layout, whose header holds only a sound count.
    """

    version: int = SOUND_FILE_VERSION
    tag: int = SOUND_FILE_TAG
    definitions: List[List[SoundsDefinition]] = field(default_factory=_empty_sources)
    m2_demo: bool = False
    modified: bool = False

    @property
    def source_count(self) -> int:
        return 1 if self.m2_demo else len(self.definitions)

    @property
    def sound_count(self) -> int:
        return len(self.definitions[SOURCE_8BIT])

    @classmethod
    def from_bytes(cls, data: bytes) -> "SoundsDocument":
        if len(data) < _HEADER.size:
            raise SoundsFileError("truncated sound file header")
        version, tag, source_count, sound_count = _HEADER.unpack_from(data, 0)
        if version not in (0, 1) or tag != SOUND_FILE_TAG:
            raise SoundsFileError(f"incorrect version/tag ({version}/{tag:x})")
        if sound_count < 0 or source_count < 0:
            raise SoundsFileError(
                f"incorrect sound/source count ({sound_count}/{source_count})"
            )
        demo = False
        if sound_count == 0:
            sound_count, source_count, demo = source_count, 1, True
        log.debug(
            "version=%d sources=%d sounds=%d", version, source_count, sound_count
        )
        definitions: List[List[SoundsDefinition]] = [
            [] for _ in range(max(NUMBER_OF_SOUND_SOURCES, source_count))
        ]
        position = SOUND_FILE_HEADER_SIZE
        for source in range(source_count):
            for index in range(sound_count):
                try:
                    definition = SoundsDefinition.from_bytes(data, position)
                except SoundsFormatError as exc:
                    raise SoundsFileError(
                        f"error loading source {source}, sound {index}: {exc}"
                    ) from exc
                definitions[source].append(definition)
                position += SIZEOF_SOUND_DEFINITION
        return cls(version=version, tag=tag, definitions=definitions, m2_demo=demo)

    @classmethod
    def load(cls, path: PathLike) -> "SoundsDocument":
        return cls.from_bytes(Path(path).read_bytes())

    def size_in_file(self) -> int:
        return SOUND_FILE_HEADER_SIZE + sum(
            definition.size_in_file()
            for source in self.definitions
            for definition in source
        )

    def to_bytes(self) -> bytes:
        if self.m2_demo:
            counts = (self.sound_count, 0)
        else:
            counts = (len(self.definitions), self.sound_count)
        buffer = bytearray(self.size_in_file())
        _HEADER.pack_into(buffer, 0, self.version, self.tag, *counts)
        records = sum(len(source) for source in self.definitions)
        offset = SOUND_FILE_HEADER_SIZE + records * SIZEOF_SOUND_DEFINITION
        position = SOUND_FILE_HEADER_SIZE
        for source in self.definitions:
            for definition in source:
                offset = definition.write_into(buffer, position, offset)
                position += SIZEOF_SOUND_DEFINITION
        return bytes(buffer)

    def save(self, path: PathLike) -> None:
        Path(path).write_bytes(self.to_bytes())
        self.modified = False

    def get_definition(self, source: int, index: int) -> Optional[SoundsDefinition]:
        """Return the definition, or None when source or index is out of range."""
        if not 0 <= source < len(self.definitions):
            return None
        definitions = self.definitions[source]
        if not 0 <= index < len(definitions):
            return None
        return definitions[index]

    def get_8bit_definition(self, index: int) -> Optional[SoundsDefinition]:
        return self.get_definition(SOURCE_8BIT, index)

    def get_16bit_definition(self, index: int) -> Optional[SoundsDefinition]:
        return self.get_definition(SOURCE_16BIT, index)

    def add_definition(self) -> None:
        """Append an empty sound class, in both its 8-bit and 16-bit versions."""
        self.definitions[SOURCE_8BIT].append(SoundsDefinition())
        self.definitions[SOURCE_16BIT].append(SoundsDefinition())
        self.modified = True

    def delete_definition(self, index: int) -> None:
        """Remove a sound class from every source."""
        if not 0 <= index < self.sound_count:
            raise IndexError(f"no sound class {index}")
        for source in self.definitions:
            if index < len(source):
                del source[index]
        self.modified = True