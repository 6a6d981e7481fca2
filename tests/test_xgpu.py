import pytest

from xenonemu.ram import RAM
from xenonemu.xgpu import XGPU, xe_fb_convert

BAR0 = 0xEC800000


@pytest.fixture
def gpu():
    g = XGPU(RAM(0x20000))
    g.fb_base = 0
    return g


def test_config_space_ids(gpu):
    assert gpu.config_read(0, 4) == 0x58311414
    assert gpu.config_read(0x10, 4) == BAR0


def test_config_write_round_trip(gpu):
    gpu.config_write(0xD0010040, 0xDEADBEEF, 4)
    assert gpu.config_read(0x40, 4) == 0xDEADBEEF


def test_bar_window_inclusive(gpu):
    assert gpu.is_address_mapped(BAR0)
    assert gpu.is_address_mapped(BAR0 + 0x10000)
    assert not gpu.is_address_mapped(BAR0 + 0x10001)
    assert not gpu.is_address_mapped(BAR0 - 1)


def test_all_ones_bars_do_not_map(gpu):
    assert not gpu.is_address_mapped(0xFFFFFFFF)


def test_clock_register_preset(gpu):
    assert gpu.read(BAR0 + 0x210, 4) == 0x09000000
    assert gpu.read(BAR0 + 0x284, 4) == 0x19100000


def test_register_write_read_round_trip(gpu):
    assert gpu.write(BAR0 + 0x100, 0x12345678, 4) is True
    assert gpu.read(BAR0 + 0x100, 4) == 0x12345678
    assert gpu.read(BAR0 + 0x100, 2) == 0x5678


def test_fixed_register_reads(gpu):
    gpu.write(BAR0 + 0xA07 * 4, 0x1, 4)
    assert gpu.read(BAR0 + 0xA07 * 4, 4) == 0x2000000
    gpu.write(BAR0 + 0x1E54 * 4, 0xFF, 4)
    assert gpu.read(BAR0 + 0x1E54 * 4, 4) == 0


def test_unmapped_access(gpu):
    assert gpu.read(0x1000, 4) is None
    assert gpu.write(0x1000, 1, 4) is False


def test_fb_convert_origin():
    assert xe_fb_convert(1280, 0) == 0


def test_fb_convert_is_permutation_of_tile():
    width = 32
    offsets = {xe_fb_convert(width, i * 4) for i in range(32 * 32)}
    assert offsets == {i * 4 for i in range(32 * 32)}


def test_render_frame_detiles(gpu):
    width, height = 32, 32
    for i in range(width * height):
        gpu.ram.write(xe_fb_convert(width, i * 4), i, 4)
    frame = gpu.render_frame(width, height)
    assert len(frame) == width * height * 4
    pixels = [int.from_bytes(frame[i * 4:i * 4 + 4], "little") for i in range(width * height)]
    assert pixels == list(range(width * height))


def test_render_frame_rejects_bad_size(gpu):
    with pytest.raises(ValueError):
        gpu.render_frame(0, 10)