""" Parse and marshal Open vSwitch action lists """

from .action import (ActionError, ActionSyntaxError, ActionValidationError,
                     LearnSyntaxError, MarshalError, Action, LearnedFlow)
from .match import Match, MatchError, parse_match_clause
from .parser import (parse_action, parse_action_list, parse_learn,
                     marshal_actions, actions_from_ovs, actions_to_ovs)
from .tokenizer import split_actions
