import pytest

from xenonemu.ram import RAM


def test_fresh_memory_is_filled_with_cd():
    ram = RAM(0x1000)
    assert len(ram) == 0x1000
    assert ram.read(0x40, 4) == 0xCDCDCDCD


def test_write_read_round_trip():
    ram = RAM(0x1000)
    ram.write(0x100, 0x1122334455667788, 8)
    assert ram.read(0x100, 8) == 0x1122334455667788


def test_little_endian_layout():
    ram = RAM(0x1000)
    ram.write(0x10, 0x11223344, 4)
    assert ram.read(0x10, 1) == 0x44
    assert ram.read(0x13, 1) == 0x11


def test_partial_write_keeps_neighbours():
    ram = RAM(0x1000)
    ram.write(0x20, 0xFFFF_0000_1234, 2)
    assert ram.read(0x20, 2) == 0x1234
    assert ram.read(0x22, 2) == 0xCDCD


def test_address_truncated_to_32_bits():
    ram = RAM(0x1000)
    ram.write(0x1_0000_0010, 0xABCD, 2)
    assert ram.read(0x10, 2) == 0xABCD


def test_view_reflects_writes_both_ways():
    ram = RAM(0x1000)
    view = ram.view(0x200, 4)
    ram.write(0x200, 0x04030201, 4)
    assert bytes(view) == b"\x01\x02\x03\x04"
    view[0] = 0x99
    assert ram.read(0x200, 1) == 0x99


@pytest.mark.parametrize("address,size", [(0xFFE, 4), (0x1000, 1)])
def test_out_of_range_raises(address, size):
    ram = RAM(0x1000)
    with pytest.raises(IndexError):
        ram.read(address, size)
    with pytest.raises(IndexError):
        ram.write(address, 0, size)
    with pytest.raises(IndexError):
        ram.view(address, size)