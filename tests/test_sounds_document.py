import pytest

from shapefusion.sound_header import AppleSoundHeader
from shapefusion.sounds_definition import SIZEOF_SOUND_DEFINITION, SoundBehavior
from shapefusion.sounds_document import (
    SOUND_FILE_HEADER_SIZE,
    SoundsDocument,
    SoundsFileError,
)


def sound(data=b"\x80\x81\x82"):
    return AppleSoundHeader(sample_rate=22050 << 16, data=data)


def populated_document():
    doc = SoundsDocument()
    doc.add_definition()
    doc.add_definition()
    first8 = doc.get_8bit_definition(0)
    first8.sound_code = 3
    first8.behavior_index = SoundBehavior.NORMAL
    first8.sounds = [sound(), sound(b"\x10\x20")]
    first16 = doc.get_16bit_definition(0)
    first16.sound_code = 3
    first16.sounds = [
        AppleSoundHeader(sixteen_bit=True, sample_rate=44100 << 16, data=bytes(4))
    ]
    doc.get_8bit_definition(1).chance = 5
    return doc


def test_empty_document_header():
    doc = SoundsDocument()
    data = doc.to_bytes()
    assert len(data) == SOUND_FILE_HEADER_SIZE
    assert data[:12] == b"\x00\x00\x00\x01snd2\x00\x02\x00\x00"


def test_round_trip():
    doc = populated_document()
    data = doc.to_bytes()
    assert len(data) == doc.size_in_file()
    loaded = SoundsDocument.from_bytes(data)
    assert not loaded.m2_demo
    assert loaded.sound_count == 2
    assert loaded.source_count == 2
    assert loaded.definitions == doc.definitions
    assert loaded.get_8bit_definition(1).chance == 5


def test_save_and_load(tmp_path):
    doc = populated_document()
    assert doc.modified
    path = tmp_path / "Sounds"
    doc.save(path)
    assert not doc.modified
    loaded = SoundsDocument.load(path)
    assert loaded.definitions == doc.definitions


def test_bad_tag():
    data = bytearray(populated_document().to_bytes())
    data[4:8] = b"snd3"
    with pytest.raises(SoundsFileError):
        SoundsDocument.from_bytes(bytes(data))


def test_bad_version():
    data = bytearray(populated_document().to_bytes())
    data[0:4] = b"\x00\x00\x00\x02"
    with pytest.raises(SoundsFileError):
        SoundsDocument.from_bytes(bytes(data))


def test_negative_count():
    data = bytearray(populated_document().to_bytes())
    data[10:12] = b"\xff\xff"
    with pytest.raises(SoundsFileError):
        SoundsDocument.from_bytes(bytes(data))


def test_truncated_file():
    data = populated_document().to_bytes()
    with pytest.raises(SoundsFileError):
        SoundsDocument.from_bytes(data[:SOUND_FILE_HEADER_SIZE + 10])
    with pytest.raises(SoundsFileError):
        SoundsDocument.from_bytes(data[:6])


def test_demo_layout():
    doc = SoundsDocument()
    doc.add_definition()
    doc.get_8bit_definition(0).sounds = [sound()]
    doc.m2_demo = True
    data = doc.to_bytes()
    assert data[8:12] == b"\x00\x01\x00\x00"
    loaded = SoundsDocument.from_bytes(data)
    assert loaded.m2_demo
    assert loaded.source_count == 1
    assert loaded.sound_count == 1
    assert loaded.get_8bit_definition(0).sounds == [sound()]
    assert loaded.get_16bit_definition(0) is None


def test_get_definition_out_of_range():
    doc = populated_document()
    assert doc.get_definition(0, 2) is None
    assert doc.get_definition(5, 0) is None
    assert doc.get_definition(0, -1) is None


def test_add_definition():
    doc = SoundsDocument()
    doc.add_definition()
    assert doc.sound_count == 1
    assert len(doc.definitions[1]) == 1
    assert doc.modified
    assert doc.size_in_file() == SOUND_FILE_HEADER_SIZE + 2 * SIZEOF_SOUND_DEFINITION


def test_delete_definition():
    doc = populated_document()
    doc.delete_definition(0)
    assert doc.sound_count == 1
    assert len(doc.definitions[1]) == 1
    assert doc.get_8bit_definition(0).chance == 5
    with pytest.raises(IndexError):
        doc.delete_definition(1)