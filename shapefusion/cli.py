"""Command-line front end for inspecting and editing sound files."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .sound_header import SoundsFormatError
from .sounds_definition import SoundBehavior, SoundFlags, SoundsDefinition
from .sounds_document import SOURCE_16BIT, SOURCE_8BIT, SoundsDocument
from .sounds_editor import SoundsEditor

_VOLUME_LABELS = {
    SoundBehavior.QUIET: "Soft",
    SoundBehavior.NORMAL: "Medium",
    SoundBehavior.LOUD: "Loud",
}
_VOLUME_CHOICES = {label.lower(): behavior for behavior, label in _VOLUME_LABELS.items()}
_CHANCE_PERCENTS = [100 - 10 * step for step in range(10)]
_SOURCES = {"8": SOURCE_8BIT, "16": SOURCE_16BIT}
_FLAG_NAMES: Dict[str, SoundFlags] = {
    name.lower().replace("_", "-"): flag for name, flag in SoundFlags.__members__.items()
}
_AIFF_SUFFIXES = {".aif", ".aiff"}


def _flag(text: str) -> SoundFlags:
    try:
        return _FLAG_NAMES[text]
    except KeyError:
        raise argparse.ArgumentTypeError(
            f"unknown flag {text!r} (choose from {', '.join(_FLAG_NAMES)})"
        ) from None


def _chance_label(definition: SoundsDefinition) -> str:
    step = definition.chance
    return "?" if step is None else f"{_CHANCE_PERCENTS[step]}%"


def _volume_label(definition: SoundsDefinition) -> str:
    try:
        return _VOLUME_LABELS[SoundBehavior(definition.behavior_index)]
    except ValueError:
        return str(definition.behavior_index)


def _flag_labels(definition: SoundsDefinition) -> str:
    names = [name for name, flag in _FLAG_NAMES.items() if definition.has_flag(flag)]
    return ",".join(names) if names else "none"


def _sizes(definition: Optional[SoundsDefinition]) -> str:
    if definition is None:
        return "[]"
    return "[" + ", ".join(str(sound.size()) for sound in definition.sounds) + "]"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shapefusion", description="Inspect and edit sound files."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    info = sub.add_parser("info", help="show the file header")
    info.add_argument("file")

    listing = sub.add_parser("list", help="list sound classes")
    listing.add_argument("file")

    def editing(name: str, help_text: str) -> argparse.ArgumentParser:
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("file")
        cmd.add_argument("-o", "--output", help="write the result here instead")
        return cmd

    editing("add-class", "append an empty sound class")

    setter = editing("set", "change attributes of a sound class")
    setter.add_argument("sound_class", type=int)
    setter.add_argument("--code")
    setter.add_argument("--volume", choices=sorted(_VOLUME_CHOICES))
    setter.add_argument("--chance", type=int, choices=_CHANCE_PERCENTS)
    setter.add_argument("--flag", type=_flag, action="append", default=[])
    setter.add_argument("--clear-flag", type=_flag, action="append", default=[])
    setter.add_argument("--low-pitch")
    setter.add_argument("--high-pitch")

    importer = editing("import", "add a WAV or AIFF file as a permutation")
    importer.add_argument("sound_class", type=int)
    importer.add_argument("input")
    importer.add_argument("--source", choices=sorted(_SOURCES), default="8")

    deleter = editing("delete-permutation", "remove a permutation")
    deleter.add_argument("sound_class", type=int)
    deleter.add_argument("--source", choices=sorted(_SOURCES), default="8")
    deleter.add_argument("--permutation", type=int, default=0)

    exporter = sub.add_parser("export", help="write a permutation as WAV or AIFF")
    exporter.add_argument("file")
    exporter.add_argument("sound_class", type=int)
    exporter.add_argument("output")
    exporter.add_argument("--source", choices=sorted(_SOURCES), default="8")
    exporter.add_argument("--permutation", type=int, default=0)
    exporter.add_argument("--aiff", action="store_true", help="force AIFF output")
    return parser


def _info(document: SoundsDocument, editor: SoundsEditor) -> List[str]:
    lines = [
        f"version: {document.version}",
        f"sources: {document.source_count}",
        f"sounds: {document.sound_count}",
        f"demo layout: {'yes' if document.m2_demo else 'no'}",
    ]
    differing = editor.differing_classes()
    if differing:
        lines.append(
            "8-bit and 16-bit attributes differ for classes: "
            + ", ".join(str(index) for index in differing)
        )
    return lines


def _list(document: SoundsDocument) -> List[str]:
    lines = []
    for index in range(document.sound_count):
        def8 = document.get_8bit_definition(index)
        def16 = document.get_16bit_definition(index)
        if def8 is None:
            continue
        lines.append(
            f"Sound {index}: code={def8.sound_code} volume={_volume_label(def8)} "
            f"chance={_chance_label(def8)} "
            f"pitch={def8.low_pitch:g}-{def8.high_pitch:g} flags={_flag_labels(def8)} "
            f"8-bit={_sizes(def8)} 16-bit={_sizes(def16)}"
        )
    return lines


def _apply_set(editor: SoundsEditor, args: argparse.Namespace) -> None:
    editor.select_class(args.sound_class)
    if args.code is not None:
        editor.set_sound_code(args.code)
    if args.volume is not None:
        editor.set_behavior(_VOLUME_CHOICES[args.volume])
    if args.chance is not None:
        editor.set_chance(_CHANCE_PERCENTS.index(args.chance))
    for flag in args.flag:
        editor.set_flag(flag, True)
    for flag in args.clear_flag:
        editor.set_flag(flag, False)
    if args.low_pitch is not None:
        editor.set_low_pitch(args.low_pitch)
    if args.high_pitch is not None:
        editor.set_high_pitch(args.high_pitch)


def _run(args: argparse.Namespace) -> List[str]:
    document = SoundsDocument.load(args.file)
    editor = SoundsEditor(document)
    command = args.command

    if command == "info":
        return _info(document, editor)
    if command == "list":
        return _list(document)
    if command == "export":
        editor.select_class(args.sound_class)
        editor.select_permutation(_SOURCES[args.source], args.permutation)
        aiff = args.aiff or Path(args.output).suffix.lower() in _AIFF_SUFFIXES
        editor.export_sound(args.output, aiff)
        return [f"exported to {args.output}"]

    if command == "add-class":
        editor.add_sound_class()
    elif command == "set":
        _apply_set(editor, args)
    elif command == "import":
        editor.select_class(args.sound_class)
        editor.import_sound(_SOURCES[args.source], args.input)
    elif command == "delete-permutation":
        editor.select_class(args.sound_class)
        editor.select_permutation(_SOURCES[args.source], args.permutation)
        editor.delete_permutation()
    target = args.output or args.file
    document.save(target)
    return [f"saved {target}"]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line; returns the process exit status."""
    args = _build_parser().parse_args(argv)
    try:
        lines = _run(args)
    except (OSError, SoundsFormatError, LookupError, ValueError) as exc:
        print(f"shapefusion: error: {exc}", file=sys.stderr)
        return 1
    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())