"""Driver for the MAX30102 heart-rate and pulse-oximetry sensor over I2C."""

from __future__ import annotations

import abc
import time
from dataclasses import replace
from typing import Callable, Optional, Type, TypeVar, Union

from . import spo2
from .max30102_registers import (
    EXPECTED_PART_ID,
    FIFO_DEPTH,
    I2C_ADDRESS,
    SENSE_BUFFER_SIZE,
    AdcRange,
    FifoConfig,
    InterruptEnable,
    LedMode,
    ModeConfig,
    MultiLedConfig,
    ParticleConfig,
    PulseWidth,
    Register,
    SampleAverage,
    SampleRate,
    Slot,
)

_SAMPLE_MASK = 0x3FFFF
_WAIT_LIMIT_MS = 100
_POLL_INTERVAL_S = 0.001
_INTERRUPT_FLAGS = frozenset({"almost_full", "data_ready", "alc_overflow", "die_temp"})
_TEMP_FRACTION_STEP = 0.0625
_INVALID_TEMPERATURE = -999.0

_Config = TypeVar("_Config", FifoConfig, ModeConfig, ParticleConfig, MultiLedConfig)


class I2CBus(abc.ABC):
    """An I2C bus able to write and read device registers."""

    @abc.abstractmethod
    def write_register(self, address: int, register: int, data: bytes) -> None:
        """Write bytes to consecutive registers starting at ``register``."""

    @abc.abstractmethod
    def read_register(self, address: int, register: int, size: int) -> bytes:
        """Read ``size`` bytes starting at ``register``."""


class SensorError(Exception):
    """The sensor did not answer as expected."""


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class MAX30102:
    """MAX30102 sensor: configuration, FIFO sampling, temperature and SpO2."""

    def __init__(
        self,
        bus: I2CBus,
        address: int = I2C_ADDRESS,
        clock: Optional[Callable[[], int]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.bus = bus
        self.address = address
        self._clock = clock if clock is not None else _monotonic_ms
        self._sleep = sleep if sleep is not None else time.sleep
        self._active_leds = 2
        self._red = [0] * SENSE_BUFFER_SIZE
        self._ir = [0] * SENSE_BUFFER_SIZE
        self._head = 0
        self._tail = 0

    # Register access

    def _write(self, register: int, data: bytes) -> None:
        self.bus.write_register(self.address, int(register), bytes(data))

    def _read(self, register: int, size: int) -> bytes:
        data = bytes(self.bus.read_register(self.address, int(register), size))
        if len(data) != size:
            raise SensorError(
                f"expected {size} bytes from register {int(register):#04x}, got {len(data)}"
            )
        return data

    def _read_byte(self, register: int) -> int:
        return self._read(register, 1)[0]

    def _write_byte(self, register: int, value: int) -> None:
        if not 0 <= value <= 0xFF:
            raise ValueError(f"register value out of range: {value}")
        self._write(register, bytes([value]))

    def _modify(self, register: Register, config: Type[_Config], **changes: object) -> None:
        current = config.from_byte(self._read_byte(register))
        self._write_byte(register, replace(current, **changes).to_byte())

    def _wait_until(self, done: Callable[[], bool]) -> None:
        start = self._clock()
        while self._clock() - start < _WAIT_LIMIT_MS:
            if done():
                return
            self._sleep(_POLL_INTERVAL_S)

    # Set-up

    def begin(self) -> None:
        """Check the part ID and reset the sensor."""
        part = self.part_id()
        if part != EXPECTED_PART_ID:
            raise SensorError(
                f"unexpected part ID {part:#04x}, expected {EXPECTED_PART_ID:#04x}"
            )
        self.soft_reset()

    def sensor_configuration(
        self,
        led_brightness: int = 0x1F,
        sample_average: int = SampleAverage.AVG_4,
        led_mode: int = LedMode.MULTI_LED,
        sample_rate: int = SampleRate.RATE_400,
        pulse_width: int = PulseWidth.WIDTH_411,
        adc_range: int = AdcRange.RANGE_4096,
    ) -> None:
        """Configure averaging, ranges, LEDs and mode, then clear the FIFO."""
        self.set_fifo_average(sample_average)
        self.set_adc_range(adc_range)
        self.set_sample_rate(sample_rate)
        self.set_pulse_width(pulse_width)
        self.set_pulse_amplitude_red(led_brightness)
        self.set_pulse_amplitude_ir(led_brightness)
        self.enable_slot(1, Slot.RED_LED)
        if led_mode > LedMode.RED_ONLY:
            self.enable_slot(2, Slot.IR_LED)
        self.set_led_mode(led_mode)
        self._active_leds = 1 if led_mode == LedMode.RED_ONLY else 2
        self.set_fifo_rollover(True)
        self.reset_fifo()

    # Readings

    def get_red(self) -> int:
        """Fetch new samples and return the latest red reading."""
        self._get_new_data()
        return self._red[self._head]

    def get_ir(self) -> int:
        """Fetch new samples and return the latest infra-red reading."""
        self._get_new_data()
        return self._ir[self._head]

    def read_temperature_c(self) -> float:
        """Measure the die temperature in degrees Celsius."""
        self._write_byte(Register.DIE_TEMP_CONFIG, 0x01)
        self._wait_until(lambda: not self._read_byte(Register.DIE_TEMP_CONFIG) & 0x01)
        whole = self._read_byte(Register.DIE_TEMP_INT)
        fraction = self._read_byte(Register.DIE_TEMP_FRAC)
        return whole + fraction * _TEMP_FRACTION_STEP

    def read_temperature_f(self) -> float:
        """Measure the die temperature in degrees Fahrenheit."""
        temperature = self.read_temperature_c()
        if temperature != _INVALID_TEMPERATURE:
            temperature = temperature * 1.8 + 32.0
        return temperature

    def heart_rate_and_oxygen_saturation(self) -> spo2.Spo2Result:
        """Collect 100 samples and estimate heart rate and SpO2 from them."""
        ir: list[int] = []
        red: list[int] = []
        while len(ir) < spo2.BUFFER_SIZE:
            self._get_new_data()
            pending = (self._head - self._tail) % SENSE_BUFFER_SIZE
            for _ in range(pending):
                red.append(self._red[self._tail])
                ir.append(self._ir[self._tail])
                self._tail = (self._tail + 1) % SENSE_BUFFER_SIZE
                if len(ir) == spo2.BUFFER_SIZE:
                    break
        return spo2.heart_rate_and_oxygen_saturation(ir, red)

    def _get_new_data(self) -> None:
        """Wait until the FIFO holds samples, then move them all into the buffer."""
        while True:
            read_ptr = self.read_pointer()
            write_ptr = self.write_pointer()
            if read_ptr != write_ptr:
                for _ in range((write_ptr - read_ptr) % FIFO_DEPTH):
                    self._head = (self._head + 1) % SENSE_BUFFER_SIZE
                    if self._active_leds > 1:
                        data = self._read(Register.FIFO_DATA, 6)
                        self._red[self._head] = int.from_bytes(data[0:3], "big") & _SAMPLE_MASK
                        self._ir[self._head] = int.from_bytes(data[3:6], "big") & _SAMPLE_MASK
                    else:
                        data = self._read(Register.FIFO_DATA, 3)
                        self._red[self._head] = int.from_bytes(data, "big") & _SAMPLE_MASK
                return
            self._sleep(_POLL_INTERVAL_S)

    # Mode control

    def soft_reset(self) -> None:
        """Reset all registers and wait (up to 100 ms) for the reset bit to clear."""
        self._modify(Register.MODE_CONFIG, ModeConfig, reset=True)
        self._wait_until(
            lambda: not ModeConfig.from_byte(self._read_byte(Register.MODE_CONFIG)).reset
        )

    def shut_down(self) -> None:
        """Enter power-saving mode; registers keep their values."""
        self._modify(Register.MODE_CONFIG, ModeConfig, shut_down=True)

    def wake_up(self) -> None:
        """Leave power-saving mode."""
        self._modify(Register.MODE_CONFIG, ModeConfig, shut_down=False)

    def set_led_mode(self, mode: int) -> None:
        """Select which LEDs are sampled."""
        self._modify(Register.MODE_CONFIG, ModeConfig, led_mode=int(mode))

    def set_adc_range(self, adc_range: int) -> None:
        """Set the ADC full-scale range."""
        self._modify(Register.PARTICLE_CONFIG, ParticleConfig, adc_range=int(adc_range))

    def set_sample_rate(self, sample_rate: int) -> None:
        """Set the sampling rate."""
        self._modify(Register.PARTICLE_CONFIG, ParticleConfig, sample_rate=int(sample_rate))

    def set_pulse_width(self, pulse_width: int) -> None:
        """Set the LED pulse width."""
        self._modify(Register.PARTICLE_CONFIG, ParticleConfig, pulse_width=int(pulse_width))

    def set_pulse_amplitude_red(self, amplitude: int) -> None:
        """Set the red LED current (0 = off, 0xFF = 50 mA)."""
        self._write_byte(Register.LED1_PULSE_AMP, amplitude)

    def set_pulse_amplitude_ir(self, amplitude: int) -> None:
        """Set the infra-red LED current (0 = off, 0xFF = 50 mA)."""
        self._write_byte(Register.LED2_PULSE_AMP, amplitude)

    def enable_slot(self, slot_number: int, device: int) -> None:
        """Assign a device to slot 1 or 2; other slot numbers are ignored."""
        if slot_number == 1:
            self._modify(Register.MULTI_LED_CONFIG1, MultiLedConfig, slot1=int(device))
        elif slot_number == 2:
            self._modify(Register.MULTI_LED_CONFIG1, MultiLedConfig, slot2=int(device))

    def disable_all_slots(self) -> None:
        """Clear slots 1 and 2."""
        self._write_byte(Register.MULTI_LED_CONFIG1, MultiLedConfig().to_byte())

    def set_interrupt(self, name: str, enabled: Union[bool, int]) -> None:
        """Enable or disable one interrupt: almost_full, data_ready, alc_overflow or die_temp."""
        if name not in _INTERRUPT_FLAGS:
            raise ValueError(f"unknown interrupt: {name!r}")
        current = InterruptEnable.from_bytes(self._read(Register.INT_ENABLE1, 2))
        self._write(Register.INT_ENABLE1, replace(current, **{name: bool(enabled)}).to_bytes())

    # FIFO

    def set_fifo_average(self, samples: int) -> None:
        """Set how many samples are averaged into one FIFO entry."""
        self._modify(Register.FIFO_CONFIG, FifoConfig, sample_average=int(samples))

    def set_fifo_rollover(self, enabled: Union[bool, int]) -> None:
        """Let the FIFO overwrite old samples when full, or drop new ones."""
        self._modify(Register.FIFO_CONFIG, FifoConfig, rollover=bool(enabled))

    def set_fifo_almost_full(self, samples: int) -> None:
        """Set the number of free FIFO entries that raises the almost-full interrupt."""
        self._modify(Register.FIFO_CONFIG, FifoConfig, almost_full=int(samples))

    def part_id(self) -> int:
        """Read the part ID register."""
        return self._read_byte(Register.PART_ID)

    def write_pointer(self) -> int:
        """Read the FIFO write pointer."""
        return self._read_byte(Register.FIFO_WRITE_PTR)

    def read_pointer(self) -> int:
        """Read the FIFO read pointer."""
        return self._read_byte(Register.FIFO_READ_PTR)

    def reset_fifo(self) -> None:
        """Clear the FIFO write pointer, overflow counter and read pointer."""
        for register in (Register.FIFO_WRITE_PTR, Register.FIFO_OVERFLOW, Register.FIFO_READ_PTR):
            self._write_byte(register, 0)