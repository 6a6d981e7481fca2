import pytest

from xenonemu.nand import (
    MetaType,
    NandError,
    NandImage,
    calculate_ecd,
    check_magic,
    load_nand,
)


def _page(seed, magic=False):
    page = bytearray((i * 7 + seed) % 256 for i in range(0x210))
    if magic:
        page[0:2] = b"\xff\x4f"
    page[524:528] = bytes(4)
    page[524:528] = calculate_ecd(bytes(page))
    return page


def _image_with_spare():
    return bytes(_page(1, magic=True) + _page(2) + _page(3))


@pytest.mark.parametrize("magic", [b"\xff\x4f", b"\x0f\x4f", b"\x0f\x3f", b"\xff\x3f"])
def test_check_magic_accepts(magic):
    assert check_magic(magic + b"\0\0") is True


@pytest.mark.parametrize("data", [b"\x00\x4f", b"\xff\x00", b"\xff", b""])
def test_check_magic_rejects(data):
    assert check_magic(data) is False


def test_ecd_of_erased_page():
    assert calculate_ecd(b"\xff" * 0x210) == bytes([0xC0, 0xFF, 0xFF, 0xFF])


def test_ecd_low_bits_of_first_byte_clear():
    for seed in range(5):
        assert calculate_ecd(bytes(_page(seed)))[0] & 0x3F == 0


def test_ecd_with_offset_matches_slice():
    data = bytes(16) + bytes(_page(9))
    assert calculate_ecd(data, 16) == calculate_ecd(data[16:])


def test_ecd_short_data_raises():
    with pytest.raises(ValueError):
        calculate_ecd(bytes(0x20F))


def test_image_with_valid_spare():
    image = NandImage(_image_with_spare())
    assert image.has_spare is True
    assert image.meta_type == MetaType.NONE


def test_corrupt_page_has_no_spare():
    raw = bytearray(_image_with_spare())
    raw[0x210 + 5] ^= 0x01
    assert NandImage(bytes(raw)).has_spare is False


def test_bad_magic_raises():
    with pytest.raises(NandError):
        NandImage(bytes(0x630))


def test_read_skips_spare_area():
    raw = _image_with_spare()
    image = NandImage(raw)
    assert image.read(0x200, 4) == int.from_bytes(raw[0x210:0x214], "little")
    assert image.read(0x10, 2) == int.from_bytes(raw[0x10:0x12], "little")


def test_high_address_bits_ignored():
    image = NandImage(_image_with_spare())
    assert image.read(0xC8000004, 2) == image.read(4, 2)


def test_write_round_trip():
    image = NandImage(_image_with_spare())
    image.write(0x204, 0xDEADBEEF, 4)
    assert image.read(0x204, 4) == 0xDEADBEEF
    assert bytes(image.raw[0x214:0x218]) == (0xDEADBEEF).to_bytes(4, "little")


def test_read_outside_image_raises():
    image = NandImage(_image_with_spare())
    with pytest.raises(IndexError):
        image.read(0x600, 4)


def test_load_nand_round_trip(tmp_path):
    path = tmp_path / "nand.bin"
    raw = _image_with_spare()
    path.write_bytes(raw)
    image = load_nand(path)
    assert bytes(image.raw) == raw
    assert image.has_spare is True


def test_load_nand_missing_file(tmp_path):
    with pytest.raises(NandError):
        load_nand(tmp_path / "missing.bin")


def test_load_nand_bad_magic(tmp_path):
    path = tmp_path / "bad.bin"
    path.write_bytes(b"\x12\x34" + bytes(0x100))
    with pytest.raises(NandError):
        load_nand(path)