"""Register map, configuration values and bit layouts of the MAX30102 sensor."""

from __future__ import annotations

import enum
from dataclasses import dataclass

I2C_ADDRESS = 0x57
EXPECTED_PART_ID = 0x15
SENSE_BUFFER_SIZE = 30
FIFO_DEPTH = 32


class Register(enum.IntEnum):
    """Register addresses."""

    INT_STATUS1 = 0x00
    INT_STATUS2 = 0x01
    INT_ENABLE1 = 0x02
    INT_ENABLE2 = 0x03
    FIFO_WRITE_PTR = 0x04
    FIFO_OVERFLOW = 0x05
    FIFO_READ_PTR = 0x06
    FIFO_DATA = 0x07
    FIFO_CONFIG = 0x08
    MODE_CONFIG = 0x09
    PARTICLE_CONFIG = 0x0A
    LED1_PULSE_AMP = 0x0C
    LED2_PULSE_AMP = 0x0D
    LED3_PULSE_AMP = 0x0E
    LED_PROX_AMP = 0x10
    MULTI_LED_CONFIG1 = 0x11
    MULTI_LED_CONFIG2 = 0x12
    DIE_TEMP_INT = 0x1F
    DIE_TEMP_FRAC = 0x20
    DIE_TEMP_CONFIG = 0x21
    PROX_INT_THRESH = 0x30
    REVISION_ID = 0xFE
    PART_ID = 0xFF


class SampleAverage(enum.IntEnum):
    """Number of samples averaged into one FIFO entry."""

    AVG_1 = 0
    AVG_2 = 1
    AVG_4 = 2
    AVG_8 = 3
    AVG_16 = 4
    AVG_32 = 5


class LedMode(enum.IntEnum):
    """Operating mode: which LEDs are sampled."""

    RED_ONLY = 2
    RED_IR = 3
    MULTI_LED = 7


class AdcRange(enum.IntEnum):
    """Full-scale ADC range in nA."""

    RANGE_2048 = 0
    RANGE_4096 = 1
    RANGE_8192 = 2
    RANGE_16384 = 3


class SampleRate(enum.IntEnum):
    """Samples per second."""

    RATE_50 = 0
    RATE_100 = 1
    RATE_200 = 2
    RATE_400 = 3
    RATE_800 = 4
    RATE_1000 = 5
    RATE_1600 = 6
    RATE_3200 = 7


class PulseWidth(enum.IntEnum):
    """LED pulse width in microseconds."""

    WIDTH_69 = 0
    WIDTH_118 = 1
    WIDTH_215 = 2
    WIDTH_411 = 3


class Slot(enum.IntEnum):
    """Device assigned to a multi-LED time slot."""

    NONE = 0
    RED_LED = 1
    IR_LED = 2


def _check(name: str, value: int, width: int) -> None:
    if not 0 <= int(value) < (1 << width):
        raise ValueError(f"{name} must fit in {width} bits, got {value}")


def _check_byte(value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"register value out of range: {value}")


def _bits(value: int, shift: int, width: int) -> int:
    return (value >> shift) & ((1 << width) - 1)


@dataclass(frozen=True)
class InterruptEnable:
    """The two interrupt-enable registers, read and written as one pair.

    The first byte holds the die-temperature flag in bit 1; the second byte
    holds the ALC overflow, data-ready and almost-full flags in bits 5 to 7.
    Other bits are kept unchanged in ``reserved_low`` and ``reserved_high``.
    """

    die_temp: bool = False
    alc_overflow: bool = False
    data_ready: bool = False
    almost_full: bool = False
    reserved_low: int = 0
    reserved_high: int = 0

    def __post_init__(self) -> None:
        if self.reserved_low & ~0xFD & 0xFF or not 0 <= self.reserved_low <= 0xFF:
            raise ValueError(f"invalid reserved bits: {self.reserved_low}")
        if not 0 <= self.reserved_high <= 0x1F:
            raise ValueError(f"invalid reserved bits: {self.reserved_high}")

    @classmethod
    def from_bytes(cls, data: bytes) -> "InterruptEnable":
        """Decode the two register bytes."""
        if len(data) != 2:
            raise ValueError(f"expected 2 bytes, got {len(data)}")
        low, high = data[0], data[1]
        return cls(
            die_temp=bool(_bits(low, 1, 1)),
            alc_overflow=bool(_bits(high, 5, 1)),
            data_ready=bool(_bits(high, 6, 1)),
            almost_full=bool(_bits(high, 7, 1)),
            reserved_low=low & 0xFD,
            reserved_high=high & 0x1F,
        )

    def to_bytes(self) -> bytes:
        """Encode the two register bytes."""
        low = self.reserved_low | (int(bool(self.die_temp)) << 1)
        high = (
            self.reserved_high
            | (int(bool(self.alc_overflow)) << 5)
            | (int(bool(self.data_ready)) << 6)
            | (int(bool(self.almost_full)) << 7)
        )
        return bytes([low, high])


@dataclass(frozen=True)
class FifoConfig:
    """FIFO configuration: almost-full level, rollover and sample averaging."""

    almost_full: int = 0
    rollover: bool = False
    sample_average: int = SampleAverage.AVG_1

    def __post_init__(self) -> None:
        _check("almost_full", self.almost_full, 4)
        _check("sample_average", self.sample_average, 3)

    @classmethod
    def from_byte(cls, value: int) -> "FifoConfig":
        _check_byte(value)
        return cls(
            almost_full=_bits(value, 0, 4),
            rollover=bool(_bits(value, 4, 1)),
            sample_average=_bits(value, 5, 3),
        )

    def to_byte(self) -> int:
        return (
            int(self.almost_full)
            | (int(bool(self.rollover)) << 4)
            | (int(self.sample_average) << 5)
        )


@dataclass(frozen=True)
class ModeConfig:
    """Mode configuration: LED mode, reset and shutdown bits."""

    led_mode: int = 0
    reset: bool = False
    shut_down: bool = False

    def __post_init__(self) -> None:
        _check("led_mode", self.led_mode, 6)

    @classmethod
    def from_byte(cls, value: int) -> "ModeConfig":
        _check_byte(value)
        return cls(
            led_mode=_bits(value, 0, 6),
            reset=bool(_bits(value, 6, 1)),
            shut_down=bool(_bits(value, 7, 1)),
        )

    def to_byte(self) -> int:
        return (
            int(self.led_mode)
            | (int(bool(self.reset)) << 6)
            | (int(bool(self.shut_down)) << 7)
        )


@dataclass(frozen=True)
class ParticleConfig:
    """SpO2 configuration: pulse width, sample rate and ADC range."""

    pulse_width: int = PulseWidth.WIDTH_69
    sample_rate: int = SampleRate.RATE_50
    adc_range: int = AdcRange.RANGE_2048

    def __post_init__(self) -> None:
        _check("pulse_width", self.pulse_width, 2)
        _check("sample_rate", self.sample_rate, 3)
        _check("adc_range", self.adc_range, 3)

    @classmethod
    def from_byte(cls, value: int) -> "ParticleConfig":
        _check_byte(value)
        return cls(
            pulse_width=_bits(value, 0, 2),
            sample_rate=_bits(value, 2, 3),
            adc_range=_bits(value, 5, 3),
        )

    def to_byte(self) -> int:
        return (
            int(self.pulse_width)
            | (int(self.sample_rate) << 2)
            | (int(self.adc_range) << 5)
        )


@dataclass(frozen=True)
class MultiLedConfig:
    """Multi-LED slot assignment for slots 1 and 2."""

    slot1: int = Slot.NONE
    slot2: int = Slot.NONE

    def __post_init__(self) -> None:
        _check("slot1", self.slot1, 4)
        _check("slot2", self.slot2, 4)

    @classmethod
    def from_byte(cls, value: int) -> "MultiLedConfig":
        _check_byte(value)
        return cls(slot1=_bits(value, 0, 4), slot2=_bits(value, 4, 4))

    def to_byte(self) -> int:
        return int(self.slot1) | (int(self.slot2) << 4)