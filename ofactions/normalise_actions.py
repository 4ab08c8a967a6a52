#!/usr/bin/python
"""
Parses ovs action lists and prints them in their canonical form

The input is either one action list per line, or the output of
ovs-ofctl dump-flows in which case the actions= part of each flow is used.

Run normalise_actions -h to see the full usage
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

import argparse
import logging
import sys

from .action import ActionError
from .parser import parse_action_list, marshal_actions
from .utils import as_file_handle

log = logging.getLogger('ofactions.normalise_actions')


def actions_from_line(line):
    """ Returns the action list from a line

        line: Either an action list, or a flow from ovs-ofctl dump-flows
        return: The action list text, or an empty string
    """
    if "actions=" in line:
        line = line.split("actions=", 1)[1]
    return line.strip()


@as_file_handle('r')
def normalise_file(file, raw=False, strict=False):
    """ Parses each action list in a file

        file: The file path or a file handle
        raw: Return the raw actions, rather than the marshaled actions
        strict: Raise the first error, rather than logging a warning
                and skipping the line
        return: A list of tuples (line number, list of action strings)

        Note: Blank lines and lines which are not flows, such as the
              NXST_FLOW reply header, are skipped
    """
    ret = []
    for line_no, line in enumerate(file, 1):
        if "_FLOW reply" in line or line.startswith("#"):
            continue
        ovs_actions = actions_from_line(line)
        if not ovs_actions:
            continue
        try:
            actions, tokens = parse_action_list(ovs_actions)
        except ActionError as e:
            if strict:
                raise
            log.warning("Skipping line %d: %s", line_no, e)
            continue
        ret.append((line_no, tokens if raw else marshal_actions(actions)))
    return ret


def main():
    parser = argparse.ArgumentParser(
        description='Parses ovs action lists and prints their canonical form',
        )

    parser.add_argument('source',
                        help="a file of action lists or ovs-ofctl dump-flows"
                             " output (use - for stdin)")
    parser.add_argument('-r', '--raw', action='store_true',
                        help="print each raw action, one per line")
    parser.add_argument('-s', '--strict', action='store_true',
                        help="exit on the first invalid action list")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="enable debug logging")

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    source = sys.stdin if args.source == "-" else args.source
    try:
        results = normalise_file(source, raw=args.raw, strict=args.strict)
    except ActionError as e:
        print("Invalid action list:", e, file=sys.stderr)
        sys.exit(1)

    for _, actions in results:
        if args.raw:
            print("\n".join(actions))
        else:
            print(",".join(actions))


if __name__ == "__main__":
    main()
