"""
Convert between human-readable strings and numeric representations

This includes conversion to and from network types like
IPv4 and Ethernet formats, and the unsigned integers used
throughout the ovs action syntax.
"""

# Copyright 2019 Richard Sanger, Wand Network Research Group
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#  http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
import re

_DECIMAL = re.compile(r"^[0-9]+\Z")
_DECIMAL_OR_HEX = re.compile(r"^(?:0[xX][0-9a-fA-F]+|[0-9]+)\Z")


def format_decimal(value, mask):
    """ Format an integer as a decimal string """
    if mask is None:
        return str(value)
    return "{:d}/{:d}".format(value, mask)


def format_hex(value, mask):
    """ Format an integer as a hexadecimal string """
    if mask is None:
        return "0x{:x}".format(value)
    return "0x{:x}/0x{:x}".format(value, mask)


def format_hex16(value, mask):
    """ Format an integer as a zero-padded 16-bit hexadecimal string

        As used by ovs for ethertypes, e.g. 0x0800
    """
    if mask is None:
        return "0x{:04x}".format(value)
    return "0x{:04x}/0x{:04x}".format(value, mask)


def format_ethernet(value, mask):
    """ Format an integer as a Ethernet string """
    value_ether = ":".join(re.findall('..', "{:012x}".format(value)))
    if mask is None:
        return value_ether
    value_mask = ":".join(re.findall('..', "{:012x}".format(mask)))
    return "{}/{}".format(value_ether, value_mask)


def format_ipv4(value, mask=None):
    """ Format an integer as a IPv4 string """
    value_ipv4 = ".".join([str(int(x, 16)) for x in re.findall('..', "{:08x}".format(value))])
    if mask is None:
        return value_ipv4
    value_mask = ".".join([str(int(x, 16)) for x in re.findall('..', "{:08x}".format(mask))])
    return "{}/{}".format(value_ipv4, value_mask)


# Match with the formats labeled in match.MATCH_FIELDS
FORMATTERS = {
    "decimal": format_decimal,
    "hex": format_hex,
    "hex16": format_hex16,
    "ethernet": format_ethernet,
    "ipv4": format_ipv4,
}


def normalise_bytes(value):
    """ Converts a IPv4 or MAC address string to an int

        value: A network address as a str
        return: The address as an integer
        raises: ValueError if the string is not an address
    """
    parts = value.split('.')
    if len(parts) == 4:
        if not all(_DECIMAL.match(part) for part in parts):
            raise ValueError("Invalid IPv4 address: " + value)
        octets = [int(part) for part in parts]
        if max(octets) > 0xFF:
            raise ValueError("Invalid IPv4 address: " + value)
        return octets[0] << 24 | octets[1] << 16 | octets[2] << 8 | octets[3]

    # Check for mac addresses
    for sep in (':', '-'):
        parts = value.split(sep)
        if len(parts) == 6:
            if not all(re.match(r"^[0-9a-fA-F]{1,2}\Z", part) for part in parts):
                raise ValueError("Invalid Ethernet address: " + value)
            return int("".join(part.zfill(2) for part in parts), 16)

    raise ValueError("Unknown network address format: " + value)


def normalise_string(value):
    """ Normalises a network string or number to an int

        Numbers are unsigned decimal or 0x prefixed hexadecimal.
    """
    if _DECIMAL_OR_HEX.match(value):
        return int(value, 16) if value[:2].lower() == "0x" else int(value, 10)
    return normalise_bytes(value)


def parse_uint(value, bits, allow_hex=False):
    """ Parses an unsigned integer and checks it fits within bits

        value: The number as a string
        bits: The width of the field, e.g. 16 for a transport port
        allow_hex: Also accept a 0x prefixed hexadecimal number
        return: The value as an int
        raises: ValueError if not a number, or if out of range
    """
    pattern = _DECIMAL_OR_HEX if allow_hex else _DECIMAL
    if not pattern.match(value):
        raise ValueError("Not an unsigned integer: " + repr(value))
    ret = int(value, 16) if value[:2].lower() == "0x" else int(value, 10)
    check_uint(ret, bits)
    return ret


def check_uint(value, bits):
    """ Checks an integer is in the range 0 to 2**bits-1

        raises: ValueError if not
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("Not an integer: " + repr(value))
    if not 0 <= value < (1 << bits):
        raise ValueError("{} is out of range for a {}-bit field".format(value, bits))
    return value
