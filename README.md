# shapefusion

Tools for the data files of the Marathon game engine, using only the Python
standard library (3.10 or later).

- **Sounds files** (`snd2` tag, versions 0 and 1, including the demo layout
  whose header holds only a sound count): load them, inspect and edit sound
  classes and their 8-bit and 16-bit permutations, and write them back.
- **Sampled sound headers**: parse and build standard, extended and
  compressed (`twos`) headers, import WAV or AIFF files as new permutations,
  and export permutations to WAV or AIFF.
- **Shapes bitmap pixels**: turn 8-bit indexed pixels and a color table into
  an RGB image, build thumbnails, and measure colour distance.

## Installing

```
pip install .
```

## Command line

Installing the package provides the `shapefusion` command:

```
shapefusion info Sounds                 # version, source and sound counts
shapefusion list Sounds                 # one line per sound class
shapefusion add-class Sounds            # append an empty sound class
shapefusion set Sounds 3 --volume loud --chance 50 --flag is-ambient --low-pitch 1
shapefusion import Sounds 3 new.wav --source 16
shapefusion delete-permutation Sounds 3 --source 8 --permutation 0
shapefusion export Sounds 3 out.aif --source 8 --permutation 0
```

- `info` also reports classes whose 8-bit and 16-bit attributes differ.
- `set` takes `--code`, `--volume` (`soft`, `medium`, `loud`), `--chance`
  (100, 90, … 10 percent), `--flag` and `--clear-flag` (repeatable; names
  such as `cannot-be-restarted`, `does-not-self-abort`, `is-ambient`),
  `--low-pitch` and `--high-pitch` (whole numbers). Attribute changes are
  applied to the 8-bit and 16-bit versions of the class together.
- The editing commands (`add-class`, `set`, `import`, `delete-permutation`)
  save back to the file, or to the path given with `-o/--output`.
- `export` writes WAV, or AIFF when `--aiff` is given or the output name ends
  in `.aif` or `.aiff`.

Errors are printed to standard error and the command exits with status 1.
Run `shapefusion --help` or `shapefusion <command> --help` for details.

## Library use

```python
from shapefusion.sounds_document import SoundsDocument
from shapefusion.sounds_definition import SoundFlags

doc = SoundsDocument.load("Sounds")

definition = doc.get_8bit_definition(0)
definition.set_flag(SoundFlags.IS_AMBIENT, True)
print(definition.has_flag(SoundFlags.IS_AMBIENT))

first = definition.get_permutation(0)
if first is not None:
    first.save_to_wave("sound-0-0.wav")

doc.add_definition()
doc.save("Sounds (edited)")
```

`SoundsDocument.get_definition`, `get_8bit_definition` and
`get_16bit_definition` return `None` for an index out of range.
`SoundsDefinition.new_permutation(path)` imports a WAV or AIFF file (at most
five permutations per sound); imported sounds are unsigned 8-bit or signed
16-bit, mono or stereo, with the sample rate capped at 44100 Hz.

For editing with one selected class and permutation, and 8-bit and 16-bit
definitions kept in step, use `shapefusion.sounds_editor.SoundsEditor`.

Malformed files raise `shapefusion.sounds_document.SoundsFileError`, a
subclass of `shapefusion.sound_header.SoundsFormatError`, which malformed
sound headers raise.

Rendering Shapes bitmap pixels:

```python
from shapefusion.utilities import shapes_bitmap_to_image, image_thumbnail

# color_table: a sequence of 16-bit (red, green, blue) tuples
image = shapes_bitmap_to_image(pixels, width, height, color_table,
                               transparent=True, white_transparency=True)
thumb = image_thumbnail(image, 64, True)
print(thumb.pixel(0, 0))
```

`bad_thumbnail(size)` builds a red X on white, and `colour_distance` gives
a squared perceptual distance between two RGB colours in [0, 1].

## What it does not do

- There is no graphical editor and no sound playback; editing is done
  through the library or the `shapefusion` command.
- Shapes files themselves (collections, color tables, frames, sequences)
  are not read or written; the bitmap helpers work on pixel data and color
  tables that you supply.

## Running the tests

```
pip install ".[test]"
pytest
```