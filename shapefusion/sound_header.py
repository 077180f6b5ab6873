"""Sampled sound headers as stored in sound files, and WAV/AIFF conversion."""

from __future__ import annotations

import math
import struct
import wave
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import List, NamedTuple, Union

PathLike = Union[str, Path]

MAX_IMPORT_RATE = 44100
STANDARD_HEADER_SIZE = 22
EXTENDED_HEADER_SIZE = 64

_STANDARD = struct.Struct(">IiIiiBB")
_EXTENDED = struct.Struct(">IiIiiBBi")


class SoundsFormatError(ValueError):
    """Raised when sound data cannot be read or written."""


class _HeaderType(IntEnum):
    STANDARD = 0x00
    EXTENDED = 0xFF
    COMPRESSED = 0xFE


class _Audio(NamedTuple):
    rate: float
    channels: int
    eight_bit: bool
    samples: List[int]  # interleaved, scaled to 32-bit signed


def _take(data: bytes, start: int, length: int) -> bytes:
    if length < 0 or start + length > len(data):
        raise SoundsFormatError("sound data runs past the end of the buffer")
    return bytes(data[start:start + length])


def _decode(raw: bytes, width: int, signed: bool, byteorder: str) -> List[int]:
    if not 1 <= width <= 4:
        raise SoundsFormatError(f"unsupported sample width of {width} bytes")
    shift = 32 - 8 * width
    bias = 0 if signed else 1 << (8 * width - 1)
    usable = len(raw) - len(raw) % width
    return [
        (int.from_bytes(raw[i:i + width], byteorder, signed=signed) - bias) << shift
        for i in range(0, usable, width)
    ]


def _encode_extended(value: float) -> bytes:
    if value <= 0:
        return bytes(10)
    mantissa, exponent = math.frexp(value)
    return struct.pack(">HQ", exponent - 1 + 16383, int(mantissa * (1 << 64)))


def _decode_extended(raw: bytes) -> float:
    head, mantissa = struct.unpack(">HQ", raw)
    exponent = head & 0x7FFF
    if exponent == 0 and mantissa == 0:
        return 0.0
    value = mantissa * 2.0 ** (exponent - 16383 - 63)
    return -value if head & 0x8000 else value


def _read_wave(path: Path) -> _Audio:
    try:
        with wave.open(str(path), "rb") as wav:
            channels = wav.getnchannels()
            width = wav.getsampwidth()
            rate = wav.getframerate()
            raw = wav.readframes(wav.getnframes())
    except (wave.Error, EOFError) as exc:
        raise SoundsFormatError(f"cannot read WAV file: {exc}") from exc
    samples = _decode(raw, width, width > 1, "little")
    return _Audio(rate, channels, width == 1, samples)


def _read_aiff(data: bytes) -> _Audio:
    is_aifc = data[8:12] == b"AIFC"
    comm = None
    sound = None
    pos = 12
    end = min(len(data), 8 + struct.unpack_from(">I", data, 4)[0])
    while pos + 8 <= end:
        chunk_id = data[pos:pos + 4]
        size = struct.unpack_from(">I", data, pos + 4)[0]
        body = data[pos + 8:pos + 8 + size]
        if chunk_id == b"COMM":
            comm = body
        elif chunk_id == b"SSND":
            sound = body
        pos += 8 + size + (size & 1)
    if comm is None or sound is None or len(comm) < 18 or len(sound) < 8:
        raise SoundsFormatError("AIFF file lacks a COMM or SSND chunk")
    channels, frames, sample_bits = struct.unpack_from(">hIh", comm, 0)
    rate = _decode_extended(comm[8:18])
    byteorder = "big"
    if is_aifc:
        compression = comm[18:22]
        if compression == b"sowt":
            byteorder = "little"
        elif compression not in (b"NONE", b"twos"):
            raise SoundsFormatError(f"unsupported AIFC compression {compression!r}")
    width = (sample_bits + 7) // 8
    data_offset = struct.unpack_from(">I", sound, 0)[0]
    raw = sound[8 + data_offset:8 + data_offset + frames * channels * width]
    samples = _decode(raw, width, True, byteorder)
    return _Audio(rate, channels, width == 1, samples)


@dataclass
class AppleSoundHeader:
    """One sampled sound: format flags, loop points and raw big-endian samples.

    sample_rate is unsigned 16.16 fixed point. 16-bit samples are signed
    big-endian; 8-bit samples are unsigned unless signed is set.
    """

    sixteen_bit: bool = False
    stereo: bool = False
    signed: bool = False
    sample_rate: int = 0
    loop_start: int = 0
    loop_end: int = 0
    base_frequency: int = 60
    data: bytes = b""

    @property
    def bytes_per_frame(self) -> int:
        return (2 if self.sixteen_bit else 1) * (2 if self.stereo else 1)

    @property
    def frame_count(self) -> int:
        return len(self.data) // self.bytes_per_frame

    @property
    def rate_hz(self) -> int:
        return self.sample_rate >> 16

    @property
    def _is_extended(self) -> bool:
        return self.sixteen_bit or self.stereo or self.signed

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> "AppleSoundHeader":
        """Parse a sound header and its samples starting at offset."""
        if offset < 0 or offset + 20 >= len(data):
            raise SoundsFormatError("truncated sound header")
        header_type = data[offset + 20]
        try:
            if header_type == _HeaderType.STANDARD:
                _, frames, rate, loop_start, loop_end, _, base = _STANDARD.unpack_from(
                    data, offset
                )
                samples = _take(data, offset + STANDARD_HEADER_SIZE, frames)
                return cls(False, False, False, rate, loop_start, loop_end, base, samples)
            if header_type in (_HeaderType.EXTENDED, _HeaderType.COMPRESSED):
                (_, channels, rate, loop_start, loop_end, _, base,
                 frames) = _EXTENDED.unpack_from(data, offset)
                stereo = channels == 2
                if header_type == _HeaderType.COMPRESSED:
                    fmt = _take(data, offset + 40, 4)
                    (comp_id,) = struct.unpack_from(">h", data, offset + 56)
                    if fmt != b"twos" or comp_id != -1:
                        raise SoundsFormatError(
                            f"unsupported compression format {fmt!r}"
                        )
                    signed = True
                    (sample_bits,) = struct.unpack_from(">h", data, offset + 62)
                else:
                    signed = False
                    (sample_bits,) = struct.unpack_from(">h", data, offset + 48)
                header = cls(
                    sample_bits == 16, stereo, signed, rate, loop_start, loop_end, base
                )
                header.data = _take(
                    data, offset + EXTENDED_HEADER_SIZE, frames * header.bytes_per_frame
                )
                return header
        except struct.error as exc:
            raise SoundsFormatError("truncated sound header") from exc
        raise SoundsFormatError(f"unknown header type {header_type:02x}")

    def to_bytes(self) -> bytes:
        """Serialise the header followed by its samples."""
        if not self._is_extended:
            head = _STANDARD.pack(
                0,
                len(self.data),
                self.sample_rate,
                self.loop_start,
                self.loop_end,
                _HeaderType.STANDARD,
                self.base_frequency,
            )
            return head + bytes(self.data)
        compressed = self.signed and not self.sixteen_bit
        sample_bits = 16 if self.sixteen_bit else 8
        head = _EXTENDED.pack(
            0,
            2 if self.stereo else 1,
            self.sample_rate,
            self.loop_start,
            self.loop_end,
            _HeaderType.COMPRESSED if compressed else _HeaderType.EXTENDED,
            self.base_frequency,
            len(self.data) // self.bytes_per_frame,
        )
        head += bytes(10) + struct.pack(">I", 0)
        if compressed:
            head += b"twos" + struct.pack(">iIIhhhh", 0, 0, 0, -1, 0, 0, sample_bits)
        else:
            head += struct.pack(">IIh", 0, 0, sample_bits) + bytes(14)
        return head + bytes(self.data)

    def size(self) -> int:
        """Number of bytes to_bytes produces."""
        header = EXTENDED_HEADER_SIZE if self._is_extended else STANDARD_HEADER_SIZE
        return len(self.data) + header

    @classmethod
    def load_from_file(cls, path: PathLike) -> "AppleSoundHeader":
        """Import a WAV or AIFF file as unsigned 8-bit or signed 16-bit samples."""
        path = Path(path)
        with path.open("rb") as fh:
            magic = fh.read(12)
        if magic[:4] == b"RIFF" and magic[8:12] == b"WAVE":
            audio = _read_wave(path)
        elif magic[:4] == b"FORM" and magic[8:12] in (b"AIFF", b"AIFC"):
            try:
                audio = _read_aiff(path.read_bytes())
            except struct.error as exc:
                raise SoundsFormatError("truncated AIFF file") from exc
        else:
            raise SoundsFormatError(f"{path} is not a WAV or AIFF file")
        if audio.channels < 1:
            raise SoundsFormatError("sound file has no channels")

        stereo = audio.channels >= 2
        kept = 2 if stereo else 1
        samples = [
            value
            for start in range(0, len(audio.samples) - audio.channels + 1, audio.channels)
            for value in audio.samples[start:start + kept]
        ]
        sixteen_bit = not audio.eight_bit
        if sixteen_bit:
            data = b"".join(
                (value >> 16).to_bytes(2, "big", signed=True) for value in samples
            )
        else:
            data = bytes((value >> 24) + 128 for value in samples)
        rate = min(int(audio.rate), MAX_IMPORT_RATE)
        return cls(
            sixteen_bit=sixteen_bit,
            stereo=stereo,
            signed=False,
            sample_rate=rate << 16,
            loop_start=0,
            loop_end=0,
            base_frequency=60,
            data=data,
        )

    def _samples(self) -> List[int]:
        raw = bytes(self.data[:self.frame_count * self.bytes_per_frame])
        if self.sixteen_bit:
            return _decode(raw, 2, True, "big")
        return _decode(raw, 1, self.signed, "big")

    def _check_rate(self) -> None:
        if self.rate_hz <= 0:
            raise SoundsFormatError("sound has no sample rate")

    def save_to_wave(self, path: PathLike) -> None:
        """Export the samples as a PCM WAV file."""
        self._check_rate()
        samples = self._samples()
        if self.sixteen_bit:
            frames = b"".join(
                (value >> 16).to_bytes(2, "little", signed=True) for value in samples
            )
        else:
            frames = bytes((value >> 24) + 128 for value in samples)
        with wave.open(str(path), "wb") as wav:
            wav.setnchannels(2 if self.stereo else 1)
            wav.setsampwidth(2 if self.sixteen_bit else 1)
            wav.setframerate(self.rate_hz)
            wav.writeframes(frames)

    def save_to_aiff(self, path: PathLike) -> None:
        """Export the samples as an uncompressed AIFF file."""
        self._check_rate()
        samples = self._samples()
        if self.sixteen_bit:
            frames = b"".join(
                (value >> 16).to_bytes(2, "big", signed=True) for value in samples
            )
        else:
            frames = bytes((value >> 24) & 0xFF for value in samples)
        channels = 2 if self.stereo else 1
        comm_body = struct.pack(
            ">hIh", channels, len(samples) // channels, 16 if self.sixteen_bit else 8
        ) + _encode_extended(float(self.rate_hz))
        ssnd_body = struct.pack(">II", 0, 0) + frames
        chunks = b"COMM" + struct.pack(">I", len(comm_body)) + comm_body
        chunks += b"SSND" + struct.pack(">I", len(ssnd_body)) + ssnd_body
        if len(ssnd_body) & 1:
            chunks += b"\x00"
        form = b"FORM" + struct.pack(">I", 4 + len(chunks)) + b"AIFF" + chunks
        Path(path).write_bytes(form)