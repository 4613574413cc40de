# pubpulse

`pubpulse` is a small, dependency-free toolkit for the MAX30102 heart-rate and
pulse-oximetry sensor:

* `pubpulse.max30102` – a driver that talks to the sensor through any I2C bus
  object you supply,
* `pubpulse.max30102_registers` – the register map, configuration choices and
  register bit layouts,
* `pubpulse.spo2` – heart-rate and SpO2 estimation from 100 red and infra-red
  samples,
* `pubpulse.heartrate` – a sample-by-sample beat detector.

It needs only the Python standard library (3.10 or later).

## Installation

```
pip install pubpulse
```

To run the test suite:

```
pip install "pubpulse[test]"
pytest
```

## The sensor driver

`MAX30102` never opens a bus itself. Give it an object that implements
`pubpulse.max30102.I2CBus`:

```python
from pubpulse.max30102 import I2CBus

class MyBus(I2CBus):
    def write_register(self, address, register, data):
        ...  # write `data` (bytes) starting at `register`

    def read_register(self, address, register, size):
        ...  # return `size` bytes starting at `register`
```

Then:

```python
from pubpulse.max30102 import MAX30102

sensor = MAX30102(MyBus())          # address defaults to 0x57
sensor.begin()                      # checks the part ID and soft-resets
sensor.sensor_configuration()       # 4-sample average, red + IR, 400 Hz, 411 µs, 4096 nA

red = sensor.get_red()
ir = sensor.get_ir()
celsius = sensor.read_temperature_c()
fahrenheit = sensor.read_temperature_f()
result = sensor.heart_rate_and_oxygen_saturation()
print(result.heart_rate, result.spo2)
```

Behaviour worth knowing:

* `begin()` raises `pubpulse.max30102.SensorError` when the part ID is not
  `0x15`. A bus read that returns the wrong number of bytes also raises
  `SensorError`.
* `get_red()`, `get_ir()` and `heart_rate_and_oxygen_saturation()` wait until
  the sensor's FIFO holds new samples, then drain it into a 30-entry ring
  buffer. Samples are 18 bits wide.
* `heart_rate_and_oxygen_saturation()` gathers 100 samples and returns a
  `pubpulse.spo2.Spo2Result`.
* `soft_reset()` and `read_temperature_c()` poll for at most 100 ms. The
  constructor accepts `clock` (a callable returning milliseconds) and `sleep`
  (a callable taking seconds) so they can be replaced, for example in tests.

Lower-level controls: `soft_reset()`, `shut_down()`, `wake_up()`,
`set_led_mode()`, `set_adc_range()`, `set_sample_rate()`, `set_pulse_width()`,
`set_pulse_amplitude_red()`, `set_pulse_amplitude_ir()`, `enable_slot()`
(slots 1 and 2; other slot numbers are ignored), `disable_all_slots()`,
`set_interrupt(name, enabled)` (for `"almost_full"`, `"data_ready"`,
`"alc_overflow"` or `"die_temp"`; any other name raises `ValueError`),
`set_fifo_average()`, `set_fifo_rollover()`, `set_fifo_almost_full()`,
`reset_fifo()`, `part_id()`, `write_pointer()` and `read_pointer()`.

## Registers and configuration values

`pubpulse.max30102_registers` holds the `Register` addresses and the
configuration enumerations `SampleAverage`, `LedMode`, `AdcRange`,
`SampleRate`, `PulseWidth` and `Slot`.

Registers with bit fields are modelled as frozen dataclasses that encode and
decode their raw values and reject fields that do not fit:

```python
from pubpulse.max30102_registers import FifoConfig, SampleAverage

config = FifoConfig.from_byte(0x50)       # sample_average=2, rollover=True
raw = FifoConfig(almost_full=2, rollover=True,
                 sample_average=SampleAverage.AVG_4).to_byte()
```

`FifoConfig`, `ModeConfig`, `ParticleConfig` and `MultiLedConfig` use
`from_byte()` / `to_byte()`; `InterruptEnable` covers both interrupt-enable
registers with `from_bytes()` / `to_bytes()` and keeps reserved bits as they
were read.

## Algorithms

Both algorithms work on their own, with samples from any source.

```python
from pubpulse.spo2 import heart_rate_and_oxygen_saturation

result = heart_rate_and_oxygen_saturation(ir_samples, red_samples)
if result.heart_rate_valid:
    print("heart rate", result.heart_rate)
if result.spo2_valid:
    print("SpO2", result.spo2)
```

`heart_rate_and_oxygen_saturation` expects exactly 100 infra-red and 100 red
samples (taken at 25 Hz) and raises `ValueError` otherwise. Values that cannot
be computed are reported as `-999` with the matching `*_valid` flag set to
`False`. The peak helpers it uses — `find_peaks`, `peaks_above_min_height`,
`remove_close_peaks` and `sort_indices_descend` — are public too.

```python
from pubpulse.heartrate import BeatDetector

detector = BeatDetector()
for sample in ir_stream:
    if detector.check_for_beat(sample):
        print("beat")
```

`BeatDetector` keeps a running DC estimate and a low-pass filter per instance
and reports a beat at a rising zero crossing of the filtered signal when the
previous cycle's peak-to-peak amplitude lies between 20 and 1000.

## What this package does not do

`pubpulse` only reads and processes sensor data. It does not open I2C devices
itself, and it has no network client: sending readings to a broker or server
is left to your own code.

These algorithms are meant for experiments and hobby projects; they are not a
medical device.