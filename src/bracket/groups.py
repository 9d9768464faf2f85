"""
Group stage (round-robin) generation.
"""
import string
from itertools import combinations
from typing import Dict, List

from .builder import BracketBuilder
from .errors import InvalidInput
from .models import BYE, GROUP, BracketFormat, Match

DEFAULT_GROUP_COUNT = 4
MAX_GROUP_COUNT = len(string.ascii_uppercase)


def get_group_name(index: int) -> str:
    """Group A, Group B, ... for 0-based group indices."""
    return f"Group {string.ascii_uppercase[index]}"


def split_into_groups(teams: List[str], group_count: int) -> List[List[str]]:
    """
    Split teams positionally into contiguous groups whose sizes differ by at
    most one; the earlier groups take the extra teams. Never returns more
    groups than there are teams.
    """
    count = min(group_count, len(teams))
    if count == 0:
        return []
    base, extra = divmod(len(teams), count)
    groups = []
    start = 0
    for index in range(count):
        size = base + (1 if index < extra else 0)
        groups.append(teams[start:start + size])
        start += size
    return groups


def group_membership(teams: List[str], group_count: int) -> List[Dict]:
    """
    Describe each group as {'round', 'label', 'teams'}, group A being round 1.
    Single-team groups are kept even though they play no matches.
    """
    teams = [team for team in teams if team != BYE]
    return [
        {'round': index + 1, 'label': get_group_name(index), 'teams': group}
        for index, group in enumerate(split_into_groups(teams, group_count))
    ]


class GroupStage(BracketBuilder):
    format = BracketFormat.GROUP_STAGE

    def __init__(self, group_count: int = DEFAULT_GROUP_COUNT):
        if isinstance(group_count, bool) or not isinstance(group_count, int) \
                or not 1 <= group_count <= MAX_GROUP_COUNT:
            raise InvalidInput(f'Group count must be between 1 and {MAX_GROUP_COUNT}')
        self.group_count = group_count

    def layout(self, seeds, tournament_id):
        layout = []
        for group in group_membership(seeds, self.group_count):
            round_number, label = group['round'], group['label']
            round_matches = [
                Match(tournament_id, round_number, match_number, team1, team2,
                      round_label=label, bracket=GROUP)
                for match_number, (team1, team2) in enumerate(combinations(group['teams'], 2), start=1)
            ]
            layout.append((round_number, label, GROUP, round_matches))
        return layout
