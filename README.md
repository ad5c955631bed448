# lephonk

`lephonk` is a set of audio effect stages for a drippy phonk sound. Every stage
works on NumPy blocks shaped `(channels, samples)` and returns a new array.
The stages are:

- **Zekete** (`lephonk.zekete.Zekete`): six selectable waveshaping distortions
  (`Dist1` to `Dist6`) with a dry/wet mix.
- **Le Ottz** (`lephonk.ott.OTT`, `lephonk.ott.OTTWithMultiplier`): a
  three-band upward/downward compressor. You can stack it up to five times in
  series.
- **Le Fonz** (`lephonk.fonz.Fonz`): a driven soft clipper. Its output level is
  compensated for the drive.

## Installation

```
pip install .
```

Install the test extra to run the tests:

```
pip install ".[test]"
pytest
```

## Chaining the stages

```python
import numpy as np

from lephonk.filters import ProcessSpec
from lephonk.fonz import Fonz
from lephonk.ott import OTTWithMultiplier
from lephonk.params import decibels_to_gain
from lephonk.zekete import Zekete

spec = ProcessSpec(sample_rate=44100.0, maximum_block_size=512, num_channels=2)

zekete = Zekete(amount=40.0, mix=100.0, select=1)   # drive %, wet %, distortion index
ott = OTTWithMultiplier(mix=50.0, time=100.0)       # depth %, time %
ott.multiplier = 2                                  # 1..5 stages in series
fonz = Fonz(amount=30.0)                            # drive %

for stage in (zekete, ott, fonz):
    stage.prepare(spec)

block = np.random.uniform(-0.5, 0.5, size=(2, 512))
out = fonz.process(ott.process(zekete.process(block)))
out *= decibels_to_gain(-3.0)
```

The `amount`, `mix`, `select`, `time` and `enabled` attributes can be changed
between blocks. Gain changes are smoothed over a few milliseconds. If `OTT`,
`OTTWithMultiplier` or `Fonz` has `enabled` set to false, it returns an
unchanged copy of its input. `Zekete.select` raises `IndexError` outside `0..5`.
`OTTWithMultiplier.multiplier` raises `ValueError` outside `1..5`.

## Drawing a distortion curve

`Zekete.distort(index, sample, param)` gives the static transfer curve of a
distortion. `Zekete.x_axis(index, param)` gives the half-width of the x range to
draw it over. In both, `param` is the slider position from 0 to 1. Each
distortion class has the same curve as `distort(sample, param)` and
`x_axis(param)`.

## Building blocks

- `lephonk.filters` contains:
  - `ProcessSpec`
  - the biquads: `BiquadCoefficients` (low-pass, high-pass, all-pass, peak and
    high-shelf designs), `IIRFilter` and `AllPassFilter`
  - `SmoothedGain`
  - `BallisticsFilter`, an attack/release envelope follower
  - `DryWetMixer`, with its `MixingRule` values
- `lephonk.compressor.UpDownComp` is a single-band upward/downward compressor.
  Its parameters are held in `CompParams`.
- `lephonk.params` contains:
  - the parameter ids and limits
  - the mapping helpers `jmap`, `map_to_log10`, `map_from_log10` and
    `decibels_to_gain`
  - `NormalisableRange`, with `create_range`, `create_frequency_range` and
    `create_ratio_range`
  - the text formatters `frequency_as_text`, `ms_as_text`, `value_as_text` and
    `midi_value_as_note_name`
- `lephonk.ring_buffer.RingBuffer` stores one second of the mid signal of stereo
  blocks. `read_samples()` returns the peak level since the last read, which
  suits a meter.
- `lephonk.skins` holds the colour themes `HellLook`, `JuiceLook` and
  `DrippyLook`. `LookManager.update_lnf(skin)` switches between them and can
  remember the choice in a settings object.
- `lephonk.settings` contains:
  - `UserSettings`, a key/value store saved as an XML file. By default it lives
    at `default_settings_path()`, and it can be used as a context manager.
  - `EditorWindow`, which keeps a window at a fixed aspect ratio and a scale
    between 0.5 and 4, and stores the scale.
- `lephonk.update_checker.UpdateChecker` asks a server for the latest version on
  a background thread. `poll()` hands the result to callbacks. The module also
  has:
  - `version_to_sum`, which turns a dotted version into a number
  - `is_newer_version`, which compares two versions
  - `fetch_latest_version`, which does the HTTP request and raises
    `UpdateCheckError` when it fails

## What this package does not do

- There is no single processor object that owns the whole chain. You chain the
  stages yourself, as shown above.
- There is no parameter layout and no output gain stage.
- There is no global enable switch.
- There is no saving or restoring of parameter state.
- There is no command-line tool and no audio I/O: you supply and consume NumPy
  arrays.
- There is no graphical interface. The skins, window and settings classes hold
  colours, sizes and stored choices only; they draw nothing.