"""Editing state and operations for one sound file, independent of any toolkit."""

from __future__ import annotations

import logging
import re
from typing import Iterator, List, Optional

from .sound_header import AppleSoundHeader, PathLike
from .sounds_definition import (
    MAXIMUM_PERMUTATIONS_PER_SOUND,
    SoundBehavior,
    SoundFlags,
    SoundsDefinition,
)
from .sounds_document import SOURCE_16BIT, SOURCE_8BIT, SoundsDocument

log = logging.getLogger(__name__)

_LONG = re.compile(r"\s*[+-]?\d+")


def _parse_long(text: str) -> Optional[int]:
    """Parse a decimal integer the way a text field accepts it, or return None."""
    if _LONG.fullmatch(text):
        return int(text)
    return None


class SoundsEditor:
    """Selection state and edit operations over a SoundsDocument.

    Attribute edits always apply to the 8-bit and 16-bit versions of the
    selected sound class together, so the two stay consistent.
    """

    def __init__(self, document: SoundsDocument) -> None:
        self.document = document
        self.sound_class: Optional[int] = None
        self.sound_source: Optional[int] = None
        self.sound_permutation: Optional[int] = None
        self.eight_bit_sizes: List[int] = []
        self.sixteen_bit_sizes: List[int] = []
        self.refresh()

    @property
    def current_definition(self) -> Optional[SoundsDefinition]:
        """The 8-bit definition of the selected class, whose attributes are shown."""
        if self.sound_class is None:
            return None
        return self.document.get_8bit_definition(self.sound_class)

    @property
    def can_import(self) -> bool:
        return self.sound_class is not None

    @property
    def can_delete(self) -> bool:
        return self.sound_class is not None

    @property
    def can_export(self) -> bool:
        return self.sound_class is not None

    def refresh(self) -> None:
        """Recompute the selection and the permutation lists from the document."""
        doc = self.document
        self.eight_bit_sizes = []
        self.sixteen_bit_sizes = []
        if doc.sound_count == 0:
            self.sound_class = None
            self.sound_source = None
            self.sound_permutation = None
            return
        if self.sound_class is None or self.sound_class >= doc.sound_count:
            log.debug("no sound class selected, selecting the first one")
            self.sound_class = 0

        def8 = doc.get_8bit_definition(self.sound_class)
        def16 = doc.get_16bit_definition(self.sound_class)
        if def8 is not None:
            self.eight_bit_sizes = [sound.size() for sound in def8.sounds]
        if def16 is not None:
            self.sixteen_bit_sizes = [sound.size() for sound in def16.sounds]

        if self.eight_bit_sizes:
            self.sound_source, self.sound_permutation = SOURCE_8BIT, 0
        elif self.sixteen_bit_sizes:
            self.sound_source, self.sound_permutation = SOURCE_16BIT, 0
        else:
            self.sound_source = None
            self.sound_permutation = None

    def differing_classes(self) -> List[int]:
        """Indices of classes whose 8-bit and 16-bit attributes disagree."""
        differing = []
        for index in range(self.document.sound_count):
            def8 = self.document.get_8bit_definition(index)
            def16 = self.document.get_16bit_definition(index)
            if def8 is not None and def16 is not None:
                equal = def8.have_same_attributes_as(def16)
            else:
                equal = def8 is None and def16 is None
            if not equal:
                log.debug("sound source different at %d", index)
                differing.append(index)
        return differing

    def select_class(self, index: int) -> None:
        if not 0 <= index < self.document.sound_count:
            raise IndexError(f"no sound class {index}")
        self.sound_class = index
        self.refresh()

    def _definitions(self) -> Iterator[SoundsDefinition]:
        if self.sound_class is None:
            raise LookupError("no sound class selected")
        for source in (SOURCE_8BIT, SOURCE_16BIT):
            definition = self.document.get_definition(source, self.sound_class)
            if definition is not None:
                yield definition

    def set_sound_code(self, text: str) -> None:
        """Set the class id from text; text that is not a number is ignored."""
        value = _parse_long(text)
        definitions = list(self._definitions())
        if value is not None:
            for definition in definitions:
                definition.sound_code = value
        self.document.modified = True

    def set_behavior(self, index: int) -> None:
        behavior = SoundBehavior(index)
        for definition in self._definitions():
            definition.behavior_index = behavior
        self.document.modified = True

    def set_chance(self, index: int) -> None:
        for definition in self._definitions():
            definition.chance = index
        self.document.modified = True

    def set_flag(self, flag: SoundFlags, checked: bool) -> None:
        for definition in self._definitions():
            definition.set_flag(flag, checked)
        self.document.modified = True

    def _set_pitch(self, text: str, attribute: str) -> None:
        value = _parse_long(text)
        definitions = list(self._definitions())
        if value is None:
            return
        for definition in definitions:
            setattr(definition, attribute, float(value))
        self.document.modified = True

    def set_low_pitch(self, text: str) -> None:
        """Set the low pitch from a whole number; other text is ignored."""
        self._set_pitch(text, "low_pitch")

    def set_high_pitch(self, text: str) -> None:
        """Set the high pitch from a whole number; other text is ignored."""
        self._set_pitch(text, "high_pitch")

    def select_permutation(self, source: int, index: int) -> None:
        if source not in (SOURCE_8BIT, SOURCE_16BIT):
            raise ValueError(f"invalid sound source {source}")
        if self.sound_class is None:
            raise LookupError("no sound class selected")
        definition = self.document.get_definition(source, self.sound_class)
        if definition is None or definition.get_permutation(index) is None:
            raise IndexError(f"no permutation {index} in source {source}")
        self.sound_source = source
        self.sound_permutation = index

    def delete_permutation(self) -> None:
        """Delete the selected permutation; does nothing without a selection."""
        if None in (self.sound_class, self.sound_source, self.sound_permutation):
            return
        definition = self.document.get_definition(self.sound_source, self.sound_class)
        if definition is None:
            return
        definition.delete_permutation(self.sound_permutation)
        self.refresh()
        self.document.modified = True

    def add_sound_class(self) -> None:
        self.document.add_definition()
        self.document.modified = True
        self.refresh()

    def import_sound(self, source: int, path: PathLike) -> AppleSoundHeader:
        """Import a WAV or AIFF file as a new permutation of the selected class."""
        if self.sound_class is None:
            raise LookupError("select a sound class and 8-bit or 16-bit to import a sound")
        if source not in (SOURCE_8BIT, SOURCE_16BIT):
            raise ValueError(f"invalid sound source {source}")
        definition = self.document.get_definition(source, self.sound_class)
        if definition is None:
            raise LookupError(f"sound class {self.sound_class} has no source {source}")
        if definition.permutation_count >= MAXIMUM_PERMUTATIONS_PER_SOUND:
            raise ValueError(
                f"there are already {MAXIMUM_PERMUTATIONS_PER_SOUND} permutations "
                "for this sound"
            )
        header = definition.new_permutation(path)
        self.document.modified = True
        self.refresh()
        return header

    def export_sound(self, path: PathLike, aiff: bool = False) -> None:
        """Write the selected permutation as WAV, or AIFF when aiff is set."""
        if None in (self.sound_class, self.sound_source, self.sound_permutation):
            raise LookupError("select a sound class and a permutation to export a sound")
        definition = self.document.get_definition(self.sound_source, self.sound_class)
        sound = None if definition is None else definition.get_permutation(
            self.sound_permutation
        )
        if sound is None:
            raise LookupError("the selected permutation does not exist")
        if aiff:
            sound.save_to_aiff(path)
        else:
            sound.save_to_wave(path)