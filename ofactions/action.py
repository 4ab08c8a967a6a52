"""
Our representation of the actions in an Open vSwitch flow's action list.

Each kind of action is a class, holding only the values needed to
reproduce its text. Actions are immutable once created and are
converted back to the ovs text format with to_ovs().

e.g. Output(1).to_ovs() == "output:1"
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

import netaddr
from os_ken.lib import addrconv
from os_ken.ofproto import ofproto_v1_3

from .format_utils import check_uint
from .match import Match

# The largest port number, ports are 32-bit in OpenFlow 1.3
MAX_PORT = ofproto_v1_3.OFPP_ANY
# ovs places learnt flows in table 1 unless told otherwise
DEFAULT_LEARN_TABLE = 1
# The most conjunction clauses ovs supports
MAX_CONJUNCTION_CLAUSES = 64


class ActionError(ValueError):
    """ The base of all errors raised parsing or marshaling actions

        token: The offending text, or None if not known
        reason: A description of what is wrong
    """
    def __init__(self, reason, token=None):
        super(ActionError, self).__init__(reason, token)
        self.reason = reason
        self.token = token

    def __str__(self):
        if self.token is None:
            return self.reason
        return "{}: {!r}".format(self.reason, self.token)


class ActionSyntaxError(ActionError):
    """ The text is not a well formed action, or the action is unknown """


class LearnSyntaxError(ActionSyntaxError):
    """ A clause within learn(...) could not be parsed """


class ActionValidationError(ActionError):
    """ A known action was given a bad argument, such as a port out of range """


class MarshalError(ActionError):
    """ Something other than a valid action was asked to be marshaled """


def _uint(value, bits, name):
    try:
        return check_uint(value, bits)
    except ValueError as e:
        raise ActionValidationError("Bad {}, {}".format(name, e), value)


def _text(value, name):
    if not isinstance(value, str) or not value:
        raise ActionValidationError("The {} must be non-empty text".format(name), value)
    return value


def _mac(value):
    """ Returns a MAC address as 6 bytes, from either bytes or text """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 6:
            raise ActionValidationError("A MAC address must be 6 bytes", value)
        return bytes(value)
    try:
        return addrconv.mac.text_to_bin(value)
    except (netaddr.AddrFormatError, TypeError, ValueError):
        raise ActionValidationError("Invalid MAC address", value)


def _ipv4(value):
    """ Returns an IPv4 address as 4 bytes, from either bytes or text

        Only the dotted-quad format is accepted, IPv6 is rejected.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 4:
            raise ActionValidationError("An IPv4 address must be 4 bytes", value)
        return bytes(value)
    if (not isinstance(value, str) or "/" in value or
            len(value.split(".")) != 4):
        raise ActionValidationError("Invalid IPv4 address", value)
    try:
        ret = addrconv.ipv4.text_to_bin(value)
    except (netaddr.AddrFormatError, TypeError, ValueError):
        raise ActionValidationError("Invalid IPv4 address", value)
    # addrconv falls back to IPNetwork, which returns a network not bytes
    if not isinstance(ret, bytes) or len(ret) != 4:
        raise ActionValidationError("Invalid IPv4 address", value)
    return ret


class Action(object):
    """ The base class of all actions

        Subclasses list their values in fields (and __slots__) and
        implement to_ovs(). Values are set once using _init().
    """
    __slots__ = ()
    fields = ()

    def _init(self, **kwargs):
        for name in self.fields:
            object.__setattr__(self, name, kwargs[name])

    def __setattr__(self, name, value):
        raise AttributeError("{} is immutable".format(type(self).__name__))

    def __delattr__(self, name):
        raise AttributeError("{} is immutable".format(type(self).__name__))

    def values(self):
        """ Returns the values of this action as a tuple, in fields order """
        return tuple(getattr(self, name) for name in self.fields)

    def to_ovs(self):
        """ Returns this action in the ovs text format """
        raise NotImplementedError()

    def __eq__(self, other):
        return type(self) is type(other) and self.values() == other.values()

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash((type(self).__name__,) + self.values())

    def __str__(self):
        return self.to_ovs()

    def __repr__(self):
        return "{}({})".format(type(self).__name__,
                               ", ".join(repr(v) for v in self.values()))


# ~~~~ Keyword actions, e.g. drop ~~~~ #

class _KeywordAction(Action):
    __slots__ = ()
    keyword = None

    def __init__(self):
        self._init()

    def to_ovs(self):
        return self.keyword


class Drop(_KeywordAction):
    __slots__ = ()
    keyword = "drop"


class Flood(_KeywordAction):
    __slots__ = ()
    keyword = "flood"


class InPort(_KeywordAction):
    """ Output the packet on the port it was received on """
    __slots__ = ()
    keyword = "in_port"


class Local(_KeywordAction):
    __slots__ = ()
    keyword = "local"


class Normal(_KeywordAction):
    """ Forward as a normal L2/L3 device would """
    __slots__ = ()
    keyword = "normal"


class StripVLAN(_KeywordAction):
    __slots__ = ()
    keyword = "strip_vlan"


class PopVLAN(_KeywordAction):
    __slots__ = ()
    keyword = "pop_vlan"


class DecTTL(_KeywordAction):
    __slots__ = ()
    keyword = "dec_ttl"


class Controller(_KeywordAction):
    __slots__ = ()
    keyword = "controller"


# ~~~~ keyword:number actions, e.g. output:1 ~~~~ #

class _NumericAction(Action):
    """ An action in the form keyword:number

        bits: The width of the number
        hex_width: If set, format as zero-padded hex with this many digits
    """
    __slots__ = ()
    keyword = None
    bits = None
    hex_width = None

    def __init__(self, value):
        name = self.fields[0]
        self._init(**{name: _uint(value, self.bits, name)})

    def to_ovs(self):
        value = getattr(self, self.fields[0])
        if self.hex_width:
            return "{}:0x{:0{}x}".format(self.keyword, value, self.hex_width)
        return "{}:{}".format(self.keyword, value)


class ModTransportDestinationPort(_NumericAction):
    __slots__ = fields = ("port",)
    keyword = "mod_tp_dst"
    bits = 16


class ModTransportSourcePort(_NumericAction):
    __slots__ = fields = ("port",)
    keyword = "mod_tp_src"
    bits = 16


class ModVLANVID(_NumericAction):
    __slots__ = fields = ("vid",)
    keyword = "mod_vlan_vid"
    bits = 16


class ModNetworkTTL(_NumericAction):
    __slots__ = fields = ("ttl",)
    keyword = "mod_nw_ttl"
    bits = 8


class ModNetworkTOS(_NumericAction):
    __slots__ = fields = ("tos",)
    keyword = "mod_nw_tos"
    bits = 8


class Output(_NumericAction):
    __slots__ = fields = ("port",)
    keyword = "output"
    bits = 32


class ResubmitPort(_NumericAction):
    """ resubmit:port, resubmits to a port in the current table """
    __slots__ = fields = ("port",)
    keyword = "resubmit"
    bits = 32


class GotoTable(_NumericAction):
    __slots__ = fields = ("table",)
    keyword = "goto_table"
    bits = 8


class PushVLAN(_NumericAction):
    __slots__ = fields = ("ethertype",)
    keyword = "push_vlan"
    bits = 16
    hex_width = 4


class SetQueue(_NumericAction):
    __slots__ = fields = ("queue",)
    keyword = "set_queue"
    bits = 32


# ~~~~ Address rewrites ~~~~ #

class ModDataLinkDestination(Action):
    """ mod_dl_dst:mac, the address is stored as 6 bytes """
    __slots__ = fields = ("address",)
    keyword = "mod_dl_dst"

    def __init__(self, address):
        self._init(address=_mac(address))

    def to_ovs(self):
        return "{}:{}".format(self.keyword, addrconv.mac.bin_to_text(self.address))


class ModDataLinkSource(ModDataLinkDestination):
    __slots__ = ()
    keyword = "mod_dl_src"


class ModNetworkDestination(Action):
    """ mod_nw_dst:ip, the IPv4 address is stored as 4 bytes """
    __slots__ = fields = ("address",)
    keyword = "mod_nw_dst"

    def __init__(self, address):
        self._init(address=_ipv4(address))

    def to_ovs(self):
        return "{}:{}".format(self.keyword, addrconv.ipv4.bin_to_text(self.address))


class ModNetworkSource(ModNetworkDestination):
    __slots__ = ()
    keyword = "mod_nw_src"


# ~~~~ Field references, e.g. load:value->dst ~~~~ #
#
# The field references are kept as opaque strings, such as
# NXM_OF_ETH_DST[] or reg0[0..15]

class _FieldAction(Action):
    __slots__ = ()
    keyword = None

    def __init__(self, src, dst):
        self._init(**{self.fields[0]: _text(src, self.fields[0]),
                      self.fields[1]: _text(dst, self.fields[1])})

    def to_ovs(self):
        return "{}:{}->{}".format(self.keyword, *self.values())


class Load(_FieldAction):
    """ load:value->dst, value is a number or a field """
    __slots__ = fields = ("value", "dst")
    keyword = "load"


class Move(_FieldAction):
    __slots__ = fields = ("src", "dst")
    keyword = "move"


class SetField(_FieldAction):
    __slots__ = fields = ("value", "field")
    keyword = "set_field"


class OutputField(Action):
    """ output:field, outputs to the port number held in a field

        This is used within learn(...)
    """
    __slots__ = fields = ("field",)

    def __init__(self, field):
        self._init(field=_text(field, "field"))

    def to_ovs(self):
        return "output:" + self.field


# ~~~~ Function style actions, e.g. ct(commit) ~~~~ #

class ConnectionTracking(Action):
    """ ct(...), the arguments are kept as is """
    __slots__ = fields = ("args",)

    def __init__(self, args):
        self._init(args=_text(args, "ct arguments"))

    def to_ovs(self):
        return "ct({})".format(self.args)


class Resubmit(Action):
    """ resubmit([port],[table])

        A port or table of 0 is left empty, both cannot be 0.
    """
    __slots__ = fields = ("port", "table")

    def __init__(self, port, table):
        port = _uint(port, 32, "port")
        table = _uint(table, 8, "table")
        if port == 0 and table == 0:
            raise ActionValidationError("resubmit requires a port or a table",
                                        (port, table))
        self._init(port=port, table=table)

    def to_ovs(self):
        return "resubmit({},{})".format(self.port or "", self.table or "")


class Conjunction(Action):
    """ conjunction(id,k/n), clause k of n """
    __slots__ = fields = ("id", "clause", "n_clauses")

    def __init__(self, id, clause, n_clauses):
        id = _uint(id, 32, "conjunction id")
        clause = _uint(clause, 8, "clause")
        n_clauses = _uint(n_clauses, 8, "number of clauses")
        if not 1 <= clause <= n_clauses <= MAX_CONJUNCTION_CLAUSES:
            raise ActionValidationError(
                "conjunction requires 1 <= k <= n <= {}".format(MAX_CONJUNCTION_CLAUSES),
                "{}/{}".format(clause, n_clauses))
        self._init(id=id, clause=clause, n_clauses=n_clauses)

    def to_ovs(self):
        return "conjunction({},{}/{})".format(*self.values())


class Learn(Action):
    """ learn(...), adds a flow described by a LearnedFlow """
    __slots__ = fields = ("flow",)

    def __init__(self, flow):
        if not isinstance(flow, LearnedFlow):
            raise ActionValidationError("learn requires a LearnedFlow", flow)
        self._init(flow=flow)

    def to_ovs(self):
        return "learn({})".format(self.flow.to_ovs())


class LearnedFlow(object):
    """ The flow a learn action adds

        The table and priority are always present, all other
        options are None (or False) if not set. Matches and actions
        are stored as tuples in the order given.
    """
    # The optional numeric options and their widths, in output order
    OPTIONS = (("in_port", 32),
               ("idle_timeout", 16),
               ("hard_timeout", 16),
               ("fin_idle_timeout", 16),
               ("fin_hard_timeout", 16),
               ("cookie", 64),
               ("limit", 32))

    __slots__ = ("table", "priority", "matches", "actions",
                 "delete_learned") + tuple(name for name, _ in OPTIONS)

    def __init__(self, table=DEFAULT_LEARN_TABLE,
                 priority=ofproto_v1_3.OFP_DEFAULT_PRIORITY,
                 matches=(), actions=(), delete_learned=False, **options):
        set_ = lambda name, value: object.__setattr__(self, name, value)
        set_("table", _uint(table, 8, "table"))
        set_("priority", _uint(priority, 16, "priority"))
        for name, bits in self.OPTIONS:
            value = options.pop(name, None)
            set_(name, None if value is None else _uint(value, bits, name))
        if options:
            raise TypeError("Unknown learn options: " + ", ".join(sorted(options)))
        set_("delete_learned", bool(delete_learned))

        matches = tuple(matches)
        for match in matches:
            if not isinstance(match, Match):
                raise ActionValidationError("Not a Match", match)
        actions = tuple(actions)
        for action in actions:
            if not isinstance(action, Action):
                raise ActionValidationError("Not an Action", action)
            if isinstance(action, Learn):
                raise ActionValidationError("learn cannot be nested", action.to_ovs())
        set_("matches", matches)
        set_("actions", actions)

    def __setattr__(self, name, value):
        raise AttributeError("LearnedFlow is immutable")

    def _key(self):
        return tuple(getattr(self, name) for name in self.__slots__)

    def __eq__(self, other):
        return isinstance(other, LearnedFlow) and self._key() == other._key()

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash(self._key())

    def to_ovs(self):
        """ Returns the arguments of learn(...) in the ovs text format """
        ret = ["table={:d}".format(self.table),
               "priority={:d}".format(self.priority)]
        for name, _ in self.OPTIONS:
            value = getattr(self, name)
            if value is None:
                continue
            if name == "cookie":
                ret.append("cookie=0x{:x}".format(value))
            else:
                ret.append("{}={:d}".format(name, value))
        if self.delete_learned:
            ret.append("delete_learned")
        ret.extend(match.to_ovs() for match in self.matches)
        ret.extend(action.to_ovs() for action in self.actions)
        return ",".join(ret)

    def __str__(self):
        return self.to_ovs()

    def __repr__(self):
        return "LearnedFlow({})".format(self.to_ovs())
