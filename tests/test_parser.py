#!/usr/bin/env python
""" Tests for ofactions.parser """

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

import unittest

from ofactions.action import (ActionError, ActionSyntaxError,
                              ActionValidationError, MarshalError, Action,
                              Drop, Flood, InPort, Local, Normal, StripVLAN,
                              PopVLAN, DecTTL, Controller, ConnectionTracking,
                              ModDataLinkDestination, ModDataLinkSource,
                              ModNetworkDestination, ModNetworkSource,
                              ModTransportDestinationPort,
                              ModTransportSourcePort, ModVLANVID,
                              ModNetworkTTL, ModNetworkTOS, Output,
                              ResubmitPort, Resubmit, GotoTable, PushVLAN,
                              SetQueue, Load, Move, SetField, Conjunction,
                              Learn)
from ofactions.parser import (parse_action, parse_action_list,
                              marshal_actions, actions_from_ovs,
                              actions_to_ovs)

MAC = b"\xde\xad\xbe\xef\xde\xad"
IP = b"\xc0\xa8\x01\x01"

# Actions already in their canonical form, and the expected Action
VALID_ACTIONS = [
    ("drop", Drop()),
    ("flood", Flood()),
    ("in_port", InPort()),
    ("local", Local()),
    ("normal", Normal()),
    ("strip_vlan", StripVLAN()),
    ("pop_vlan", PopVLAN()),
    ("dec_ttl", DecTTL()),
    ("controller", Controller()),
    ("ct(commit)", ConnectionTracking("commit")),
    ("ct(commit,exec(set_field:1->ct_label,set_field:1->ct_mark))",
     ConnectionTracking("commit,exec(set_field:1->ct_label,set_field:1->ct_mark)")),
    ("mod_dl_dst:de:ad:be:ef:de:ad", ModDataLinkDestination(MAC)),
    ("mod_dl_src:de:ad:be:ef:de:ad", ModDataLinkSource(MAC)),
    ("mod_nw_dst:192.168.1.1", ModNetworkDestination(IP)),
    ("mod_nw_src:192.168.1.1", ModNetworkSource(IP)),
    ("mod_tp_dst:65535", ModTransportDestinationPort(65535)),
    ("mod_tp_src:65535", ModTransportSourcePort(65535)),
    ("mod_tp_dst:0", ModTransportDestinationPort(0)),
    ("mod_vlan_vid:10", ModVLANVID(10)),
    ("mod_nw_ttl:64", ModNetworkTTL(64)),
    ("mod_nw_tos:16", ModNetworkTOS(16)),
    ("output:1", Output(1)),
    ("resubmit:4", ResubmitPort(4)),
    ("resubmit(1,)", Resubmit(1, 0)),
    ("resubmit(,2)", Resubmit(0, 2)),
    ("resubmit(1,2)", Resubmit(1, 2)),
    ("resubmit(,25)", Resubmit(0, 25)),
    ("goto_table:3", GotoTable(3)),
    ("push_vlan:0x8100", PushVLAN(0x8100)),
    ("set_queue:2", SetQueue(2)),
    ("load:0x2->NXM_OF_ARP_OP[]", Load("0x2", "NXM_OF_ARP_OP[]")),
    ("move:NXM_OF_ARP_SPA[]->NXM_OF_ARP_TPA[]",
     Move("NXM_OF_ARP_SPA[]", "NXM_OF_ARP_TPA[]")),
    ("set_field:192.168.1.1->arp_spa", SetField("192.168.1.1", "arp_spa")),
    ("conjunction(123,1/2)", Conjunction(123, 1, 2)),
    ("conjunction(123,2/2)", Conjunction(123, 2, 2)),
    ]

# Text which is not an action
SYNTAX_ERRORS = [
    "foo",
    "",
    "conjunxxxxx(123,3/2)",
    "load:->NXM_OF_ARP_OP[]",
    "load:0x2->",
    "load:0x2",
    "move:->NXM_OF_ARP_OP[]",
    "move:NXM_OF_ARP_SPA[]->",
    "set_field:->arp_spa",
    "set_field:192.168.1.1->",
    "resubmit(1)",
    "output",
    "ct(a)(b)",
    "resubmit(,1)(2)",
    ]

# Known actions with a bad argument
VALIDATION_ERRORS = [
    "ct()",
    "mod_dl_dst:foo",
    "mod_dl_src:de:ad:be:ef:de",
    "mod_nw_dst:foo",
    "mod_nw_dst:2001:db8::1",
    "mod_nw_src:foo",
    "mod_nw_src:2001:db8::1",
    "mod_tp_dst:foo",
    "mod_tp_dst:-1",
    "mod_tp_dst:65536",
    "mod_tp_src:foo",
    "mod_tp_src:-1",
    "mod_tp_src:65536",
    "mod_vlan_vid:foo",
    "mod_vlan_vid:65536",
    "output:foo",
    "output:NXM_OF_IN_PORT[]",
    "output:4294967296",
    "resubmit:foo",
    "resubmit(foo,)",
    "resubmit(,bar)",
    "resubmit(foo,bar)",
    "resubmit(,)",
    "resubmit(,256)",
    "conjunction(123,3/2)",
    "conjunction(123,0/2)",
    "conjunction(123,1)",
    "conjunction(foo,1/2)",
    "goto_table:256",
    "mod_nw_dst:10.0.0.1/8",
    "mod_nw_src:10.0.0.1/8",
    "output:1\n",
    "mod_tp_dst:80\n",
    ]


class TestParseAction(unittest.TestCase):
    """ Test parsing and marshaling single actions """

    def test_valid(self):
        """ Test parsing, and that the canonical form is reproduced """
        for text, expected in VALID_ACTIONS:
            action = parse_action(text)
            self.assertEqual(action, expected, text)
            self.assertEqual(action.to_ovs(), text)
            self.assertEqual(marshal_actions([action]), [text])

    def test_keywords_case_insensitive(self):
        self.assertEqual(parse_action("LOCAL"), Local())
        self.assertEqual(parse_action("LOCAL").to_ovs(), "local")
        self.assertEqual(parse_action("NORMAL"), Normal())
        self.assertEqual(parse_action("NORMAL").to_ovs(), "normal")
        self.assertEqual(parse_action("Drop").to_ovs(), "drop")

    def test_syntax_errors(self):
        for text in SYNTAX_ERRORS:
            with self.assertRaises(ActionSyntaxError, msg=text):
                parse_action(text)

    def test_validation_errors(self):
        for text in VALIDATION_ERRORS:
            with self.assertRaises(ActionValidationError, msg=text):
                parse_action(text)

    def test_error_describes_token(self):
        with self.assertRaises(ActionSyntaxError) as context:
            parse_action("foo")
        self.assertEqual(context.exception.token, "foo")
        self.assertIn("foo", str(context.exception))
        self.assertIsInstance(context.exception, ValueError)

    def test_weak_round_trip(self):
        """ Non-canonical input gives canonical output, which parses the same """
        for text, canonical in [("mod_dl_dst:DE:AD:BE:EF:DE:AD",
                                 "mod_dl_dst:de:ad:be:ef:de:ad"),
                                ("push_vlan:33024", "push_vlan:0x8100"),
                                ("resubmit(0,2)", "resubmit(,2)")]:
            action = parse_action(text)
            self.assertEqual(action.to_ovs(), canonical)
            self.assertEqual(parse_action(canonical), action)

    def test_learn(self):
        action = parse_action("learn(table=2,output:NXM_OF_IN_PORT[])")
        self.assertIsInstance(action, Learn)
        self.assertEqual(action.flow.table, 2)
        self.assertEqual(action.to_ovs(),
                         "learn(table=2,priority=32768,output:NXM_OF_IN_PORT[])")


class TestParseActionList(unittest.TestCase):
    """ Test parsing and marshaling whole action lists """

    def test_one_action(self):
        actions, raw = parse_action_list("strip_vlan")
        self.assertEqual(actions, [StripVLAN()])
        self.assertEqual(raw, ["strip_vlan"])

    def test_two_actions(self):
        actions, raw = parse_action_list("strip_vlan,resubmit(,1)")
        self.assertEqual(actions, [StripVLAN(), Resubmit(0, 1)])
        self.assertEqual(raw, ["strip_vlan", "resubmit(,1)"])
        self.assertEqual(marshal_actions(actions), raw)

    def test_nested_parentheses(self):
        text = ("strip_vlan,resubmit(,1),ct(commit,exec(set_field:1->ct_label,"
                "set_field:1->ct_mark))")
        actions, raw = parse_action_list(text)
        self.assertEqual(raw, ["strip_vlan", "resubmit(,1)",
                               "ct(commit,exec(set_field:1->ct_label,"
                               "set_field:1->ct_mark))"])
        self.assertEqual(marshal_actions(actions), raw)
        self.assertEqual(actions_to_ovs(actions), text)

    def test_learn_action_list(self):
        raw = [
            "learn(table=10,priority=10000,in_port=1,dl_type=0x0800,nw_proto=6,"
            "tp_src=80,load:NXM_OF_ETH_DST[]->NXM_OF_ETH_SRC[],"
            "load:NXM_OF_ETH_SRC[]->NXM_OF_ETH_DST[],"
            "load:NXM_OF_IP_DST[]->NXM_OF_IP_SRC[],"
            "load:NXM_OF_TCP_DST[]->NXM_OF_TCP_SRC[],output:NXM_OF_IN_PORT[])",
            "mod_dl_dst:00:24:fd:4f:0a:26",
            "mod_nw_dst:172.16.222.254",
            "mod_tp_dst:80",
            "output:1",
            ]
        actions, tokens = parse_action_list(",".join(raw))
        self.assertEqual(tokens, raw)
        self.assertEqual(len(actions), 5)
        self.assertIsInstance(actions[0], Learn)
        self.assertEqual(actions[-1], Output(1))
        self.assertEqual(marshal_actions(actions), raw)

    def test_invalid(self):
        with self.assertRaises(ActionSyntaxError):
            parse_action_list("strip_vlan,resubmit(")
        with self.assertRaises(ActionSyntaxError):
            parse_action_list("strip_vlan,foo")
        with self.assertRaises(ActionValidationError):
            parse_action_list("output:1,mod_tp_dst:65536")

    def test_empty(self):
        with self.assertRaises(ActionSyntaxError):
            parse_action_list("")

    def test_actions_from_ovs(self):
        self.assertEqual(actions_from_ovs("pop_vlan,output:7,goto_table:4"),
                         [PopVLAN(), Output(7), GotoTable(4)])


class TestMarshalActions(unittest.TestCase):
    """ Test marshaling actions """

    def test_empty(self):
        self.assertEqual(marshal_actions([]), [])
        self.assertEqual(actions_to_ovs([]), "")

    def test_order(self):
        self.assertEqual(marshal_actions([Output(2), Drop(), Output(1)]),
                         ["output:2", "drop", "output:1"])

    def test_not_an_action(self):
        with self.assertRaises(MarshalError):
            marshal_actions([Output(1), "output:2"])
        with self.assertRaises(MarshalError):
            marshal_actions([Action()])
        with self.assertRaises(ActionError):
            marshal_actions([None])


if __name__ == '__main__':
    unittest.main()
