"""Sound definitions: one sound class with its attributes and permutations."""

from __future__ import annotations

import logging
import math
import struct
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import List, Optional

from .sound_header import AppleSoundHeader, PathLike, SoundsFormatError

log = logging.getLogger(__name__)

MAXIMUM_PERMUTATIONS_PER_SOUND = 5
SIZEOF_SOUND_DEFINITION = 64

_CHANCE_UNIT = 32768
_CHANCE_STEPS = 10
TEN_PERCENT = _CHANCE_UNIT * 9 // 10

# code, behavior, flags, chance, low pitch, high pitch, permutations,
# permutations played, group offset, single length, total length,
# five sound offsets, last played; then 8 bytes of padding.
_LAYOUT = struct.Struct(">hhHHIIhHIII5iI")
_PADDING = bytes(SIZEOF_SOUND_DEFINITION - _LAYOUT.size)


class SoundBehavior(IntEnum):
    """Volume class of a sound."""

    QUIET = 0
    NORMAL = 1
    LOUD = 2


class SoundFlags(IntFlag):
    """Per-sound behaviour flags."""

    CANNOT_BE_RESTARTED = 0x0001
    DOES_NOT_SELF_ABORT = 0x0002
    RESISTS_PITCH_CHANGES = 0x0004
    CANNOT_CHANGE_PITCH = 0x0008
    CANNOT_BE_OBSTRUCTED = 0x0010
    CANNOT_BE_MEDIA_OBSTRUCTED = 0x0020
    IS_AMBIENT = 0x0040


def _to_short(value: int) -> int:
    return ((int(value) + 0x8000) & 0xFFFF) - 0x8000


def _fixed_to_float(value: int) -> float:
    return ((value >> 16) & 0xFFFF) + (value & 0xFFFF) / 65536.0


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _float_to_fixed(value: float) -> int:
    whole = math.trunc(value)
    fraction = value - whole
    return ((whole & 0xFFFF) << 16) | (_round_half_away(fraction * 0xFFFF) & 0xFFFF)


@dataclass(eq=False)
class SoundsDefinition:
    """A sound class: attributes plus up to five sampled permutations.

    raw_chance is the stored threshold; the chance property maps it to the
    step index 0..9 (0 meaning "always").
    """

    sound_code: int = -1
    behavior_index: int = SoundBehavior.QUIET
    flags: int = 0
    raw_chance: int = 0
    low_pitch: float = 0.0
    high_pitch: float = 0.0
    permutations_played: int = 0
    last_played: int = 0
    sounds: List[AppleSoundHeader] = field(default_factory=list)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SoundsDefinition):
            return NotImplemented
        return self.have_same_attributes_as(other) and self.have_same_sounds_as(other)

    @property
    def chance(self) -> Optional[int]:
        """Chance step 0..9, or None when the stored value matches no step."""
        for step in range(_CHANCE_STEPS):
            if self.raw_chance == _CHANCE_UNIT * step // _CHANCE_STEPS:
                return step
        return None

    @chance.setter
    def chance(self, step: int) -> None:
        if not 0 <= step <= _CHANCE_STEPS:
            raise ValueError(f"invalid chance {step}")
        self.raw_chance = _CHANCE_UNIT * step // _CHANCE_STEPS

    @property
    def permutation_count(self) -> int:
        return len(self.sounds)

    def have_same_attributes_as(self, other: "SoundsDefinition") -> bool:
        return (
            self.sound_code == other.sound_code
            and self.behavior_index == other.behavior_index
            and self.flags == other.flags
            and self.raw_chance == other.raw_chance
            and self.low_pitch == other.low_pitch
            and self.high_pitch == other.high_pitch
        )

    def have_same_sounds_as(self, other: "SoundsDefinition") -> bool:
        return self.sounds == other.sounds

    def size_in_file(self) -> int:
        """Bytes taken by the definition record plus all its sound data."""
        return SIZEOF_SOUND_DEFINITION + sum(sound.size() for sound in self.sounds)

    def set_flag(self, flag: SoundFlags, enabled: bool) -> None:
        if enabled:
            self.flags |= int(flag)
        else:
            self.flags &= ~int(flag) & 0xFFFF

    def has_flag(self, flag: SoundFlags) -> bool:
        return bool(self.flags & int(flag))

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> "SoundsDefinition":
        """Parse the record at offset; sound data is found at absolute offsets in data."""
        if offset < 0:
            raise SoundsFormatError("negative definition offset")
        try:
            (code, behavior, flags, chance, low, high, permutations, played,
             group, single, total, *rest) = _LAYOUT.unpack_from(data, offset)
        except struct.error as exc:
            raise SoundsFormatError("truncated sound definition") from exc
        sound_offsets, last_played = rest[:MAXIMUM_PERMUTATIONS_PER_SOUND], rest[-1]

        if behavior > len(SoundBehavior) or chance > TEN_PERCENT:
            raise SoundsFormatError(
                f"incorrect behavior/chance ({behavior}/{chance})"
            )
        if permutations < 0 or permutations > MAXIMUM_PERMUTATIONS_PER_SOUND:
            raise SoundsFormatError(f"incorrect permutation count: {permutations}")
        if group >= 1 << 31:
            # an out-of-range group offset marks an empty sound
            group -= 1 << 32
            permutations = 0
        if permutations and group + total > len(data):
            raise SoundsFormatError(
                f"incorrect group offset / total length ({group}/{total})"
            )
        log.debug(
            "definition code=%d behavior=%d flags=%d chance=%d permutations=%d",
            code, behavior, flags, chance, permutations,
        )
        sounds = [
            AppleSoundHeader.from_bytes(data, group + sound_offsets[i])
            for i in range(permutations)
        ]
        return cls(
            sound_code=code,
            behavior_index=behavior,
            flags=flags,
            raw_chance=chance,
            low_pitch=_fixed_to_float(low),
            high_pitch=_fixed_to_float(high),
            permutations_played=played,
            last_played=last_played,
            sounds=sounds,
        )

    def write_into(self, buffer: bytearray, position: int, offset: int) -> int:
        """Write the record at position and sound data at offset.

        The buffer grows as needed. Returns the offset following the sound data.
        """
        if len(self.sounds) > MAXIMUM_PERMUTATIONS_PER_SOUND:
            raise SoundsFormatError(
                f"{len(self.sounds)} permutations exceed the limit of "
                f"{MAXIMUM_PERMUTATIONS_PER_SOUND}"
            )
        blobs = [sound.to_bytes() for sound in self.sounds]
        single = len(blobs[0]) if blobs else 0
        total = single
        offsets = [0]
        for blob in blobs[1:]:
            offsets.append(total)
            total += len(blob)
        offsets += [0] * (MAXIMUM_PERMUTATIONS_PER_SOUND - len(offsets))

        record = _LAYOUT.pack(
            _to_short(self.sound_code),
            _to_short(self.behavior_index),
            self.flags & 0xFFFF,
            self.raw_chance & 0xFFFF,
            _float_to_fixed(self.low_pitch) & 0xFFFFFFFF,
            _float_to_fixed(self.high_pitch) & 0xFFFFFFFF,
            len(self.sounds),
            self.permutations_played & 0xFFFF,
            offset & 0xFFFFFFFF,
            single,
            total,
            *offsets,
            self.last_played & 0xFFFFFFFF,
        ) + _PADDING

        end = max(position + SIZEOF_SOUND_DEFINITION, offset + total)
        if len(buffer) < end:
            buffer.extend(bytes(end - len(buffer)))
        buffer[position:position + SIZEOF_SOUND_DEFINITION] = record
        cursor = offset
        for blob in blobs:
            buffer[cursor:cursor + len(blob)] = blob
            cursor += len(blob)
        return offset + total

    def get_permutation(self, index: int) -> Optional[AppleSoundHeader]:
        """Return the permutation at index, or None if there is none."""
        if not 0 <= index < len(self.sounds):
            return None
        return self.sounds[index]

    def delete_permutation(self, index: int) -> None:
        del self.sounds[index]

    def new_permutation(self, path: PathLike) -> AppleSoundHeader:
        """Import a WAV or AIFF file as a new permutation and return it."""
        if len(self.sounds) >= MAXIMUM_PERMUTATIONS_PER_SOUND:
            raise ValueError(
                f"already {MAXIMUM_PERMUTATIONS_PER_SOUND} permutations for this sound"
            )
        header = AppleSoundHeader.load_from_file(path)
        self.sounds.append(header)
        return header