"""
A minimal representation of ovs match fields, as embedded in learn(...)

This knows the ovs match keys, their widths and how ovs displays
them. It does not implement the full ovs flow match syntax.

e.g. parse_match_clause("dl_type", "0x0800").to_ovs() == "dl_type=0x0800"
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

from .format_utils import FORMATTERS, normalise_string, check_uint, parse_uint


class MatchError(ValueError):
    """ A match clause has an unknown key or a bad value """


class FieldDescription(object):
    """ Describes a single ovs match key

        name: The ovs key name, e.g. dl_type
        bits: The width of the field
        maskable: True if the field can be matched with a mask
        format: How ovs displays the value, a key into FORMATTERS
    """
    __slots__ = ("name", "bits", "maskable", "format")

    def __init__(self, name, bits, maskable, _format):
        self.name = name
        self.bits = bits
        self.maskable = maskable
        self.format = _format


def _fields(names, bits, maskable, _format):
    return [(name, FieldDescription(name, bits, maskable, _format))
            for name in names]


# Keys are kept as written, ovs has many aliases for the same field
# and each is displayed back as it was given.
MATCH_FIELDS = dict(
    _fields(["in_port"], 32, False, "decimal") +
    _fields(["dl_src", "dl_dst", "eth_src", "eth_dst",
             "arp_sha", "arp_tha"], 48, True, "ethernet") +
    _fields(["dl_type", "eth_type"], 16, False, "hex16") +
    _fields(["dl_vlan", "vlan_vid"], 12, False, "decimal") +
    _fields(["dl_vlan_pcp", "vlan_pcp"], 3, False, "decimal") +
    _fields(["vlan_tci"], 16, True, "hex") +
    _fields(["nw_src", "nw_dst", "ip_src", "ip_dst",
             "arp_spa", "arp_tpa"], 32, True, "ipv4") +
    _fields(["nw_proto", "ip_proto", "nw_tos", "nw_ttl",
             "icmp_type", "icmp_code"], 8, False, "decimal") +
    _fields(["nw_ecn", "ip_ecn"], 2, False, "decimal") +
    _fields(["tp_src", "tp_dst", "tcp_src", "tcp_dst", "udp_src",
             "udp_dst", "sctp_src", "sctp_dst"], 16, True, "decimal") +
    _fields(["arp_op"], 16, False, "decimal") +
    _fields(["metadata", "tun_id", "tunnel_id"], 64, True, "hex") +
    _fields(["reg{}".format(i) for i in range(8)], 32, True, "hex")
    )

# Shorthand protocol keys, which take no value
SHORTHANDS = ('icmp', 'icmp6', 'tcp', 'tcp6', 'udp', 'udp6', 'sctp', 'sctp6',
              'ip', 'ipv6', 'arp', 'rarp', 'mpls', 'mplsm')


def is_match_key(key):
    """ Returns True if key is an ovs match key, including shorthands """
    return key in MATCH_FIELDS or key in SHORTHANDS


class Match(object):
    """ A single match, such as nw_proto=6 or tcp

        key: The ovs match key
        value: The value as an int, or None for a shorthand
        mask: The mask as an int, or None
    """
    __slots__ = ("key", "value", "mask")

    def __init__(self, key, value=None, mask=None):
        if key in SHORTHANDS:
            if value is not None or mask is not None:
                raise MatchError("{} does not take a value".format(key))
        elif key in MATCH_FIELDS:
            desc = MATCH_FIELDS[key]
            if value is None:
                raise MatchError("{} requires a value".format(key))
            if mask is not None and not desc.maskable:
                raise MatchError("{} cannot be masked".format(key))
            try:
                check_uint(value, desc.bits)
                if mask is not None:
                    check_uint(mask, desc.bits)
            except ValueError as e:
                raise MatchError("Bad value for {}: {}".format(key, e))
        else:
            raise MatchError("Unknown match key: " + str(key))
        object.__setattr__(self, "key", key)
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "mask", mask)

    def __setattr__(self, name, value):
        raise AttributeError("Match is immutable")

    def to_ovs(self):
        """ Returns the match as key=value[/mask] """
        if self.key in SHORTHANDS:
            return self.key
        formatter = FORMATTERS[MATCH_FIELDS[self.key].format]
        return "{}={}".format(self.key, formatter(self.value, self.mask))

    def __eq__(self, other):
        return (isinstance(other, Match) and
                (self.key, self.value, self.mask) ==
                (other.key, other.value, other.mask))

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash((self.key, self.value, self.mask))

    def __str__(self):
        return self.to_ovs()

    def __repr__(self):
        if self.mask is None:
            return "Match({!r}, {!r})".format(self.key, self.value)
        return "Match({!r}, {!r}, {!r})".format(self.key, self.value, self.mask)


def parse_match_clause(key, value):
    """ Parses a single ovs match

        key: The match key, e.g. nw_dst
        value: The value as a string, optionally with a /mask, or None
               for a shorthand such as tcp
        return: A Match
        raises: MatchError if the key is unknown or the value is bad
    """
    if not is_match_key(key):
        raise MatchError("Unknown match key: " + str(key))
    if value is None or key in SHORTHANDS:
        return Match(key, value)

    mask = None
    if "/" in value:
        value, mask = value.split("/", 1)
    try:
        value = normalise_string(value)
        if mask is not None:
            desc = MATCH_FIELDS[key]
            if desc.format == "ipv4" and "." not in mask:
                # A prefix length, e.g. /24
                prefix = parse_uint(mask, 6)
                if not 0 <= prefix <= 32:
                    raise ValueError("Bad prefix length " + mask)
                mask = ((1 << prefix) - 1) << (32 - prefix)
            else:
                mask = normalise_string(mask)
    except ValueError as e:
        raise MatchError("Bad value for {}: {}".format(key, e))
    return Match(key, value, mask)
