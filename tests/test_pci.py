import pytest

from xenonemu.pci import ConfigAddress, ConfigSpace, decode_config_address


def test_decode_gpu_config_address():
    addr = decode_config_address(0xD0010000)
    assert addr.device == 2
    assert addr.bus == 0
    assert addr.reg_offset == 0


def test_decode_host_bridge_config_address():
    addr = decode_config_address(0xD0008000)
    assert addr.device == 1
    assert addr.function == 0


def test_decode_fields_round_trip():
    value = (3 << 20) | (0xA << 15) | (1 << 12) | (0x5 << 8) | 0x44
    assert decode_config_address(value) == ConfigAddress(
        reg_offset=0x44, extended_reg=0x5, function=1, device=0xA, bus=3
    )


def test_fresh_space_is_filled():
    space = ConfigSpace(0xFF)
    assert len(space) == 256
    assert space.read(0, 8) == 0xFFFFFFFFFFFFFFFF
    assert ConfigSpace().read(0x10, 4) == 0


def test_write_read_round_trip():
    space = ConfigSpace()
    space.write(0x20, 0x12345678, 4)
    assert space.read(0x20, 4) == 0x12345678
    assert space.read(0x20, 1) == 0x78


def test_write_truncates_to_size():
    space = ConfigSpace()
    space.write(0x8, 0xAABBCCDD, 2)
    assert space.read(0x8, 4) == 0xCCDD


def test_words_and_bars():
    space = ConfigSpace()
    space.load_words([0x58001414, 0x00100156, 0, 0, 0xEA000000, 0x12340000])
    assert space.word(0) == 0x58001414
    assert space.vendor_id == 0x1414
    assert space.device_id == 0x5800
    assert space.bars(2) == [0xEA000000, 0x12340000]
    assert space.bars()[2:] == [0, 0, 0, 0]


def test_command_and_status():
    space = ConfigSpace()
    space.set_word(1, 0x00100156)
    assert space.command == 0x0010
    assert space.status == 0x0156


@pytest.mark.parametrize("offset,size", [(0xFE, 4), (-1, 1), (0, 0), (0, 9)])
def test_out_of_range_access_raises(offset, size):
    space = ConfigSpace()
    with pytest.raises(ValueError):
        space.read(offset, size)
    with pytest.raises(ValueError):
        space.write(offset, 0, size)


def test_load_too_many_words_raises():
    with pytest.raises(ValueError):
        ConfigSpace().load_words([0] * 65)