# tests/test_utils.py
import pytest

from rcon_core.utils import join_address, split_address, strip_formatting


@pytest.mark.parametrize(
    "address, expected",
    [
        ("example.com:25575", ("example.com", 25575)),
        ("example.com", ("example.com", 27015)),
        ("127.0.0.1:1", ("127.0.0.1", 1)),
        ("[::1]:27016", ("::1", 27016)),
        ("[::1]", ("::1", 27015)),
        ("::1", ("::1", 27015)),
        ("  host:80  ", ("host", 80)),
    ],
)
def test_split_address(address, expected):
    assert split_address(address) == expected


def test_split_address_custom_default():
    assert split_address("host", 25575) == ("host", 25575)


@pytest.mark.parametrize("address", ["host:abc", "host:0", "host:65536", "[::1"])
def test_split_address_invalid(address):
    with pytest.raises(ValueError):
        split_address(address)


def test_join_address():
    assert join_address("host", 80) == "host:80"
    assert join_address("::1", 80) == "[::1]:80"
    assert split_address(join_address("::1", 80)) == ("::1", 80)


def test_strip_formatting():
    assert strip_formatting("§aThere are §c3§r players") == "There are 3 players"
    assert strip_formatting("\x1b[31mred\x1b[0m text") == "red text"
    assert strip_formatting("plain") == "plain"
