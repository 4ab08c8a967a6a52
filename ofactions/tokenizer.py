"""
Splits an ovs action list into its individual actions

Actions are separated by commas, however actions such as ct(...) and
learn(...) also contain commas. So we only split on commas outside
of any parentheses.
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

from .action import ActionSyntaxError


def split_actions(ovs_actions):
    """ Splits actions on the commas which are not within parentheses

        ovs_actions: The actions as a string, or a file handle to read
                     them from. e.g. strip_vlan,resubmit(,1)
                     A trailing line ending read from a file is dropped.
        return: A list of the raw actions, e.g. ["strip_vlan", "resubmit(,1)"]
                An empty input returns an empty list.
        raises: ActionSyntaxError if the parentheses are not balanced
    """
    if hasattr(ovs_actions, 'read'):
        ovs_actions = ovs_actions.read().rstrip("\r\n")

    tokens = []
    current = []
    depth = 0
    for char in ovs_actions:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise ActionSyntaxError("Unmatched closing parenthesis",
                                        "".join(current) + char)
        elif char == "," and depth == 0:
            tokens.append("".join(current))
            current = []
            continue
        current.append(char)

    if depth > 0:
        raise ActionSyntaxError("Unmatched opening parenthesis", "".join(current))
    if current:
        tokens.append("".join(current))
    return tokens
