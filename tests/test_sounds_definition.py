import struct
import wave

import pytest

from shapefusion.sound_header import AppleSoundHeader, SoundsFormatError
from shapefusion.sounds_definition import (
    MAXIMUM_PERMUTATIONS_PER_SOUND,
    SIZEOF_SOUND_DEFINITION,
    SoundBehavior,
    SoundFlags,
    SoundsDefinition,
)


def mono_sound():
    return AppleSoundHeader(sample_rate=22050 << 16, data=b"\x80\x81\x82")


def stereo_sound():
    return AppleSoundHeader(
        sixteen_bit=True, stereo=True, sample_rate=22050 << 16, data=bytes(range(8))
    )


def raw_definition(behavior=0, chance=0, permutations=0, group=0, single=0, total=0):
    return struct.pack(
        ">hhHHIIhHIII5iI",
        1, behavior, 0, chance, 0, 0, permutations, 0,
        group, single, total, 0, 0, 0, 0, 0, 0,
    ) + bytes(8)


def sample_definition():
    d = SoundsDefinition(sound_code=5, behavior_index=SoundBehavior.LOUD)
    d.low_pitch = 1.5
    d.high_pitch = 2.25
    d.chance = 3
    d.set_flag(SoundFlags.IS_AMBIENT, True)
    d.sounds = [mono_sound(), stereo_sound()]
    return d


def test_defaults():
    d = SoundsDefinition()
    assert d.sound_code == -1
    assert d.behavior_index == SoundBehavior.QUIET
    assert d.chance == 0
    assert d.permutation_count == 0


@pytest.mark.parametrize("step", range(10))
def test_chance_round_trip(step):
    d = SoundsDefinition()
    d.chance = step
    assert d.chance == step


def test_chance_out_of_range():
    d = SoundsDefinition()
    with pytest.raises(ValueError):
        d.chance = 11
    with pytest.raises(ValueError):
        d.chance = -1
    d.chance = 4
    assert d.chance == 4


def test_chance_ten_is_stored_but_unrecognised():
    d = SoundsDefinition()
    d.chance = 10
    assert d.chance is None


def test_flags_set_and_clear():
    d = SoundsDefinition()
    d.set_flag(SoundFlags.CANNOT_BE_RESTARTED, True)
    d.set_flag(SoundFlags.IS_AMBIENT, True)
    assert d.has_flag(SoundFlags.CANNOT_BE_RESTARTED)
    assert d.has_flag(SoundFlags.IS_AMBIENT)
    d.set_flag(SoundFlags.CANNOT_BE_RESTARTED, False)
    assert not d.has_flag(SoundFlags.CANNOT_BE_RESTARTED)
    assert d.flags == SoundFlags.IS_AMBIENT


def test_size_in_file():
    d = sample_definition()
    assert d.size_in_file() == SIZEOF_SOUND_DEFINITION + mono_sound().size() + stereo_sound().size()


def test_round_trip():
    d = sample_definition()
    d.permutations_played = 7
    d.last_played = 1234
    buf = bytearray()
    end = d.write_into(buf, 0, SIZEOF_SOUND_DEFINITION)
    assert end == d.size_in_file()
    assert len(buf) == end
    parsed = SoundsDefinition.from_bytes(bytes(buf), 0)
    assert parsed == d
    assert parsed.low_pitch == 1.5
    assert parsed.high_pitch == 2.25
    assert parsed.permutations_played == 7
    assert parsed.last_played == 1234
    assert parsed.sounds == [mono_sound(), stereo_sound()]


def test_wire_layout():
    d = sample_definition()
    buf = bytearray()
    d.write_into(buf, 0, SIZEOF_SOUND_DEFINITION)
    assert buf[0:2] == b"\x00\x05"
    assert buf[8:12] == b"\x00\x01\x80\x00"
    group, single, total, *offsets = struct.unpack_from(">III5i", buf, 20)
    size0, size1 = mono_sound().size(), stereo_sound().size()
    assert group == SIZEOF_SOUND_DEFINITION
    assert single == size0
    assert total == size0 + size1
    assert offsets == [0, size0, 0, 0, 0]


def test_equality_ignores_play_state():
    a = sample_definition()
    b = sample_definition()
    b.permutations_played = 3
    assert a == b
    b.sound_code = 9
    assert not a.have_same_attributes_as(b)
    assert a.have_same_sounds_as(b)


def test_loader_rejects_bad_behavior():
    with pytest.raises(SoundsFormatError):
        SoundsDefinition.from_bytes(raw_definition(behavior=4))


def test_loader_rejects_bad_chance():
    d = SoundsDefinition()
    d.chance = 10
    buf = bytearray()
    d.write_into(buf, 0, SIZEOF_SOUND_DEFINITION)
    with pytest.raises(SoundsFormatError):
        SoundsDefinition.from_bytes(bytes(buf))


def test_loader_rejects_too_many_permutations():
    with pytest.raises(SoundsFormatError):
        SoundsDefinition.from_bytes(raw_definition(permutations=6))


def test_loader_rejects_data_past_end():
    with pytest.raises(SoundsFormatError):
        SoundsDefinition.from_bytes(raw_definition(permutations=1, group=64, total=100))


def test_loader_out_of_range_group_means_empty():
    parsed = SoundsDefinition.from_bytes(raw_definition(permutations=1, group=0xFFFFFFFF))
    assert parsed.sounds == []


def test_loader_truncated():
    with pytest.raises(SoundsFormatError):
        SoundsDefinition.from_bytes(raw_definition()[:30])


def test_write_rejects_too_many_sounds():
    d = SoundsDefinition(sounds=[mono_sound()] * (MAXIMUM_PERMUTATIONS_PER_SOUND + 1))
    with pytest.raises(SoundsFormatError):
        d.write_into(bytearray(), 0, SIZEOF_SOUND_DEFINITION)


def test_get_and_delete_permutation():
    d = sample_definition()
    assert d.get_permutation(1) == stereo_sound()
    assert d.get_permutation(2) is None
    d.delete_permutation(0)
    assert d.sounds == [stereo_sound()]


def write_wave(path):
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(1)
        wav.setframerate(22050)
        wav.writeframes(b"\x80\x90\xa0")


def test_new_permutation(tmp_path):
    path = tmp_path / "in.wav"
    write_wave(path)
    d = SoundsDefinition()
    header = d.new_permutation(path)
    assert d.sounds == [header]
    assert header.data == b"\x80\x90\xa0"
    assert header.sample_rate == 22050 << 16
    assert not header.sixteen_bit


def test_new_permutation_limit(tmp_path):
    path = tmp_path / "in.wav"
    write_wave(path)
    d = SoundsDefinition(sounds=[mono_sound()] * MAXIMUM_PERMUTATIONS_PER_SOUND)
    with pytest.raises(ValueError):
        d.new_permutation(path)
    assert d.permutation_count == MAXIMUM_PERMUTATIONS_PER_SOUND