"""
Parses and marshals ovs action lists, as per ovs-actions(7)

Sample action lists:
 strip_vlan,resubmit(,1)
 ct(commit,exec(set_field:1->ct_label)),mod_dl_dst:00:24:fd:4f:0a:26,output:1
 learn(table=10,priority=10000,dl_type=0x0800,load:NXM_OF_ETH_DST[]->NXM_OF_ETH_SRC[],output:NXM_OF_IN_PORT[])

An action list is split into actions by split_actions, each action is then
parsed by parse_action into an Action. learn(...) is parsed recursively
by parse_learn. marshal_actions converts Actions back into text.
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
import logging

from .action import (Action, ActionError, ActionSyntaxError, LearnSyntaxError,
                     ActionValidationError, MarshalError,
                     Drop, Flood, InPort, Local, Normal, StripVLAN, PopVLAN,
                     DecTTL, Controller, ConnectionTracking,
                     ModDataLinkDestination, ModDataLinkSource,
                     ModNetworkDestination, ModNetworkSource,
                     ModTransportDestinationPort, ModTransportSourcePort,
                     ModVLANVID, ModNetworkTTL, ModNetworkTOS, Output,
                     OutputField, ResubmitPort, Resubmit, GotoTable, PushVLAN,
                     SetQueue, Load, Move, SetField, Conjunction, Learn,
                     LearnedFlow)
from .format_utils import parse_uint
from .match import MatchError, is_match_key, parse_match_clause
from .tokenizer import split_actions

log = logging.getLogger('ofactions.parser')

_FUNCTION_FORM = re.compile(r"^([a-zA-Z_]+)\((.*)\)\Z", re.DOTALL)
_COLON_FORM = re.compile(r"^([a-zA-Z_]+):(.*)\Z", re.DOTALL)
_CONJUNCTION_ARGS = re.compile(r"^([^,]*),([^/]*)/(.*)\Z", re.DOTALL)


def _number(value, bits, allow_hex=False):
    """ Parse a number, raising an ActionValidationError if invalid """
    try:
        return parse_uint(value, bits, allow_hex)
    except ValueError as e:
        raise ActionValidationError(str(e), value)


def _balanced(args):
    """ True if args never closes a parenthesis it did not open

        Rejects ct(a)(b), where the outer parentheses are not a pair
    """
    depth = 0
    for char in args:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def _field_reference(value):
    """ Splits src->dst, both must be present """
    src, sep, dst = value.partition("->")
    if not sep or not src or not dst:
        raise ActionSyntaxError("Malformed field reference, expected src->dst",
                                value)
    return src, dst


# Case-insensitive single keyword actions
KEYWORD_ACTIONS = {
    "drop": Drop,
    "flood": Flood,
    "in_port": InPort,
    "local": Local,
    "normal": Normal,
    "strip_vlan": StripVLAN,
    "pop_vlan": PopVLAN,
    "dec_ttl": DecTTL,
    "controller": Controller,
    }

# keyword:value actions
COLON_ACTIONS = {
    "mod_dl_dst": ModDataLinkDestination,
    "mod_dl_src": ModDataLinkSource,
    "mod_nw_dst": ModNetworkDestination,
    "mod_nw_src": ModNetworkSource,
    "mod_tp_dst": lambda v: ModTransportDestinationPort(_number(v, 16)),
    "mod_tp_src": lambda v: ModTransportSourcePort(_number(v, 16)),
    "mod_vlan_vid": lambda v: ModVLANVID(_number(v, 16)),
    "mod_nw_ttl": lambda v: ModNetworkTTL(_number(v, 8)),
    "mod_nw_tos": lambda v: ModNetworkTOS(_number(v, 8)),
    "output": lambda v: Output(_number(v, 32)),
    "resubmit": lambda v: ResubmitPort(_number(v, 32)),
    "goto_table": lambda v: GotoTable(_number(v, 8)),
    "push_vlan": lambda v: PushVLAN(_number(v, 16, allow_hex=True)),
    "set_queue": lambda v: SetQueue(_number(v, 32)),
    "load": lambda v: Load(*_field_reference(v)),
    "move": lambda v: Move(*_field_reference(v)),
    "set_field": lambda v: SetField(*_field_reference(v)),
    }


def _parse_resubmit(args):
    """ resubmit([port],[table]), an empty port or table is 0 """
    parts = args.split(",")
    if len(parts) != 2:
        raise ActionSyntaxError("resubmit requires the form resubmit([port],[table])",
                                args)
    port, table = parts
    return Resubmit(_number(port, 32) if port else 0,
                    _number(table, 8) if table else 0)


def _parse_conjunction(args):
    """ conjunction(id,k/n) """
    re_match = _CONJUNCTION_ARGS.match(args)
    if not re_match:
        raise ActionValidationError("conjunction requires the form conjunction(id,k/n)",
                                    args)
    _id, clause, n_clauses = re_match.groups()
    return Conjunction(_number(_id, 32), _number(clause, 8),
                       _number(n_clauses, 8))


# function(args) actions
FUNCTION_ACTIONS = {
    "ct": ConnectionTracking,
    "resubmit": _parse_resubmit,
    "conjunction": _parse_conjunction,
    "learn": lambda args: Learn(parse_learn(args)),
    }


def _parse_action(ovs_action, in_learn=False):
    """ Parses a single action, see parse_action

        in_learn: True if within learn(...), this permits output:field
                  and forbids a nested learn
    """
    if ovs_action.lower() in KEYWORD_ACTIONS:
        return KEYWORD_ACTIONS[ovs_action.lower()]()

    re_match = _FUNCTION_FORM.match(ovs_action)
    if re_match and _balanced(re_match.group(2)):
        name, args = re_match.groups()
        if name in FUNCTION_ACTIONS:
            if in_learn and name == "learn":
                raise LearnSyntaxError("learn cannot be nested within learn",
                                       ovs_action)
            return FUNCTION_ACTIONS[name](args)

    re_match = _COLON_FORM.match(ovs_action)
    if re_match:
        name, value = re_match.groups()
        if in_learn and name == "output" and not value.isdigit():
            return OutputField(value)
        if name in COLON_ACTIONS:
            return COLON_ACTIONS[name](value)

    raise ActionSyntaxError("Unknown action", ovs_action)


def parse_action(ovs_action):
    """ Parses a single action

        ovs_action: An action as a string, e.g. output:1 or resubmit(,2)
        return: The Action
        raises: ActionSyntaxError if not a known action, or malformed
                ActionValidationError if an argument is invalid or out of range
                LearnSyntaxError if the body of learn(...) is bad
    """
    try:
        return _parse_action(ovs_action)
    except ActionError as e:
        log.debug("Cannot parse action %r: %s", ovs_action, e)
        raise


# learn(...) numeric options and their width in bits
LEARN_OPTIONS = dict([("table", 8), ("priority", 16)] +
                     list(LearnedFlow.OPTIONS))


def _parse_learn_clause(clause, options, matches, actions):
    """ Adds a single learn clause to either options, matches or actions """
    if clause == "delete_learned":
        options["delete_learned"] = True
        return

    key, sep, value = clause.partition("=")
    if sep and key in LEARN_OPTIONS:
        # Last instance wins
        options[key] = _number(value, LEARN_OPTIONS[key], allow_hex=True)
    elif sep and is_match_key(key):
        matches.append(parse_match_clause(key, value))
    elif not sep and is_match_key(clause) and clause not in KEYWORD_ACTIONS:
        matches.append(parse_match_clause(clause, None))
    else:
        actions.append(_parse_action(clause, in_learn=True))


def parse_learn(args):
    """ Parses the arguments of learn(...)

        args: The text between the parentheses of learn(...), e.g.
              table=10,priority=10000,dl_type=0x0800,output:NXM_OF_IN_PORT[]
        return: A LearnedFlow
        raises: LearnSyntaxError naming the clause which could not be parsed
    """
    try:
        clauses = split_actions(args)
    except ActionSyntaxError as e:
        raise LearnSyntaxError("Bad learn arguments, " + e.reason, args)

    options = {}
    matches = []
    actions = []
    for clause in clauses:
        try:
            _parse_learn_clause(clause, options, matches, actions)
        except LearnSyntaxError:
            raise
        except (ActionError, MatchError) as e:
            raise LearnSyntaxError("Bad learn clause, " + str(e), clause)

    try:
        return LearnedFlow(matches=matches, actions=actions, **options)
    except ActionError as e:
        raise LearnSyntaxError("Bad learn arguments, " + str(e), args)


def parse_action_list(ovs_actions):
    """ Parses an action list

        ovs_actions: The actions as a string or file handle, e.g.
                     strip_vlan,resubmit(,1) the text following actions=
                     in ovs-ofctl dump-flows
        return: A tuple (actions, raw), the list of Actions and the list
                of the raw text of each action.
        raises: An ActionError for the first action which cannot be parsed,
                or if there are no actions.
    """
    raw = split_actions(ovs_actions)
    if not raw:
        raise ActionSyntaxError("An action list requires at least one action", "")
    actions = [parse_action(token) for token in raw]
    return actions, raw


def marshal_actions(actions):
    """ Convert Actions to their ovs text

        actions: An iterable of Actions
        return: A list of the text of each action, join with ','
                to create an action list
        raises: MarshalError if something other than an Action is found
    """
    ret = []
    for action in actions:
        if not isinstance(action, Action):
            raise MarshalError("Cannot marshal a non-action", repr(action))
        try:
            ret.append(action.to_ovs())
        except NotImplementedError:
            raise MarshalError("Cannot marshal an incomplete action", repr(action))
    return ret


def actions_from_ovs(ovs_actions):
    """ Parses an action list, returning just the list of Actions """
    return parse_action_list(ovs_actions)[0]


def actions_to_ovs(actions):
    """ Convert Actions to an ovs action list string """
    return ",".join(marshal_actions(actions))
