from dataclasses import replace

import pytest

from pubpulse.max30102_registers import (
    AdcRange,
    FifoConfig,
    InterruptEnable,
    LedMode,
    ModeConfig,
    MultiLedConfig,
    ParticleConfig,
    PulseWidth,
    SampleAverage,
    SampleRate,
    Slot,
)


def test_fifo_config_byte_round_trip():
    assert [FifoConfig.from_byte(v).to_byte() for v in range(256)] == list(range(256))


def test_mode_config_byte_round_trip():
    assert [ModeConfig.from_byte(v).to_byte() for v in range(256)] == list(range(256))


def test_particle_config_byte_round_trip():
    assert [ParticleConfig.from_byte(v).to_byte() for v in range(256)] == list(range(256))


def test_multi_led_config_byte_round_trip():
    assert [MultiLedConfig.from_byte(v).to_byte() for v in range(256)] == list(range(256))


def test_fifo_config_rejects_out_of_range():
    with pytest.raises(ValueError):
        FifoConfig.from_byte(256)


def test_mode_config_rejects_out_of_range():
    with pytest.raises(ValueError):
        ModeConfig.from_byte(256)


def test_particle_config_rejects_out_of_range():
    with pytest.raises(ValueError):
        ParticleConfig.from_byte(256)


def test_multi_led_config_rejects_out_of_range():
    with pytest.raises(ValueError):
        MultiLedConfig.from_byte(256)


def test_interrupt_enable_round_trip():
    pairs = [bytes([a, b]) for a in (0x00, 0x02, 0xFD, 0xFF) for b in (0x00, 0x1F, 0xE0, 0xFF)]
    for pair in pairs:
        assert InterruptEnable.from_bytes(pair).to_bytes() == pair


def test_interrupt_enable_almost_full_bit():
    config = replace(InterruptEnable.from_bytes(bytes([0, 0])), almost_full=True)
    assert config.to_bytes() == bytes([0, 0x80])


def test_interrupt_enable_keeps_reserved_bits():
    config = replace(InterruptEnable.from_bytes(bytes([0xFF, 0xFF])), almost_full=False)
    decoded = InterruptEnable.from_bytes(config.to_bytes())
    assert config.to_bytes()[0] == 0xFF
    assert not decoded.almost_full
    assert decoded.data_ready and decoded.alc_overflow and decoded.die_temp


def test_interrupt_enable_needs_two_bytes():
    with pytest.raises(ValueError):
        InterruptEnable.from_bytes(b"\x00")


def test_mode_led_mode_occupies_low_bits():
    config = ModeConfig.from_byte(LedMode.MULTI_LED)
    assert config.led_mode == LedMode.MULTI_LED
    assert not config.reset and not config.shut_down


def test_mode_shutdown_sets_top_bit():
    base = ModeConfig(led_mode=LedMode.RED_IR)
    assert replace(base, shut_down=True).to_byte() == base.to_byte() | 0x80


def test_fifo_fields_survive_round_trip():
    config = FifoConfig(almost_full=15, rollover=True, sample_average=SampleAverage.AVG_32)
    decoded = FifoConfig.from_byte(config.to_byte())
    assert decoded == config
    assert decoded.sample_average == SampleAverage.AVG_32


def test_particle_fields_are_independent():
    config = ParticleConfig(
        pulse_width=PulseWidth.WIDTH_411,
        sample_rate=SampleRate.RATE_400,
        adc_range=AdcRange.RANGE_4096,
    )
    changed = replace(config, sample_rate=SampleRate.RATE_50)
    decoded = ParticleConfig.from_byte(changed.to_byte())
    assert decoded.pulse_width == PulseWidth.WIDTH_411
    assert decoded.adc_range == AdcRange.RANGE_4096
    assert decoded.sample_rate == SampleRate.RATE_50


def test_multi_led_slots():
    config = MultiLedConfig(slot1=Slot.RED_LED, slot2=Slot.IR_LED)
    decoded = MultiLedConfig.from_byte(config.to_byte())
    assert (decoded.slot1, decoded.slot2) == (Slot.RED_LED, Slot.IR_LED)
    assert MultiLedConfig().to_byte() == 0


@pytest.mark.parametrize(
    "factory",
    [
        lambda: ModeConfig(led_mode=64),
        lambda: FifoConfig(almost_full=16),
        lambda: FifoConfig(sample_average=8),
        lambda: ParticleConfig(pulse_width=4),
        lambda: MultiLedConfig(slot2=16),
        lambda: InterruptEnable(reserved_high=0x20),
    ],
)
def test_fields_out_of_range_are_rejected(factory):
    with pytest.raises(ValueError):
        factory()