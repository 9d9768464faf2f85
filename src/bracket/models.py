from enum import Enum
from typing import Dict, Optional, Tuple

from .errors import InvalidInput

BYE = 'BYE'
TBD = 'TBD'
RESERVED_REFS = {BYE, TBD}

# Bracket sides a round can belong to
MAIN = 'main'
WINNERS = 'winners'
LOSERS = 'losers'
GRAND_FINAL = 'grand_final'
BRACKET_RESET = 'bracket_reset'
GROUP = 'group'


class BracketFormat(str, Enum):
    SINGLE_ELIMINATION = 'single_elimination'
    DOUBLE_ELIMINATION = 'double_elimination'
    GROUP_STAGE = 'group_stage'


class MatchStatus(str, Enum):
    SCHEDULED = 'scheduled'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


FORMAT_ALIASES = {
    'elimination': BracketFormat.SINGLE_ELIMINATION,
    'single': BracketFormat.SINGLE_ELIMINATION,
    'double-elimination': BracketFormat.DOUBLE_ELIMINATION,
    'double': BracketFormat.DOUBLE_ELIMINATION,
    'groups': BracketFormat.GROUP_STAGE,
}


def parse_format(value) -> BracketFormat:
    """Parse a bracket format name, accepting the short aliases used by the web UI."""
    if isinstance(value, BracketFormat):
        return value
    key = str(value or '').strip().lower()
    if key in FORMAT_ALIASES:
        return FORMAT_ALIASES[key]
    try:
        return BracketFormat(key)
    except ValueError:
        raise InvalidInput(f'Unknown bracket format: {value!r}') from None


def parse_status(value) -> MatchStatus:
    if isinstance(value, MatchStatus):
        return value
    try:
        return MatchStatus(str(value or '').strip().lower())
    except ValueError:
        allowed = ', '.join(s.value for s in MatchStatus)
        raise InvalidInput(f'Status must be one of: {allowed}') from None


def is_real(ref) -> bool:
    """True for a concrete team reference (not a BYE or TBD placeholder)."""
    return bool(ref) and ref not in RESERVED_REFS


class Team:
    def __init__(self, id, name=None, logo=None):
        self.id = id
        self.name = name if name else id
        self.logo = logo

    def to_dict(self) -> Dict:
        return {'id': self.id, 'name': self.name, 'logo': self.logo}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Team':
        return cls(id=data['id'], name=data.get('name'), logo=data.get('logo'))

    def __eq__(self, other):
        return isinstance(other, Team) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Team(id={self.id}, name={self.name}, logo={self.logo})"


Route = Tuple[int, int, int]  # (round, match_number, side)


class Match:
    """One slot of a bracket, keyed by (tournament_id, round, match_number)."""

    def __init__(self, tournament_id, round, match_number, team1_ref=TBD, team2_ref=TBD,
                 status: Optional[MatchStatus] = MatchStatus.SCHEDULED,
                 score1=None, score2=None, winner_ref=None,
                 scheduled_date=None, completed_date=None,
                 round_label=None, bracket=MAIN,
                 winner_to: Optional[Route] = None, loser_to: Optional[Route] = None,
                 is_conditional=False):
        self.tournament_id = tournament_id
        self.round = round
        self.match_number = match_number
        self.team1_ref = team1_ref
        self.team2_ref = team2_ref
        self.status = MatchStatus(status) if status is not None else None
        self.score1 = score1
        self.score2 = score2
        self.winner_ref = winner_ref
        self.scheduled_date = scheduled_date
        self.completed_date = completed_date
        self.round_label = round_label or f'Round {round}'
        self.bracket = bracket
        self.winner_to = tuple(winner_to) if winner_to else None
        self.loser_to = tuple(loser_to) if loser_to else None
        self.is_conditional = is_conditional

    @property
    def key(self) -> Tuple[int, int]:
        return (self.round, self.match_number)

    @property
    def is_bye(self) -> bool:
        return BYE in (self.team1_ref, self.team2_ref)

    @property
    def is_placeholder(self) -> bool:
        return TBD in (self.team1_ref, self.team2_ref)

    @property
    def loser_ref(self):
        if self.winner_ref is None:
            return None
        return self.team2_ref if self.winner_ref == self.team1_ref else self.team1_ref

    def team_ref(self, side: int):
        return self.team1_ref if side == 1 else self.team2_ref

    def set_team_ref(self, side: int, ref):
        if side == 1:
            self.team1_ref = ref
        else:
            self.team2_ref = ref

    def to_dict(self) -> Dict:
        return {
            'tournament_id': self.tournament_id,
            'round': self.round,
            'match_number': self.match_number,
            'team1_ref': self.team1_ref,
            'team2_ref': self.team2_ref,
            'score1': self.score1,
            'score2': self.score2,
            'winner_ref': self.winner_ref,
            'status': self.status.value if self.status else None,
            'scheduled_date': self.scheduled_date,
            'completed_date': self.completed_date,
            'round_label': self.round_label,
            'bracket': self.bracket,
            'winner_to': list(self.winner_to) if self.winner_to else None,
            'loser_to': list(self.loser_to) if self.loser_to else None,
            'is_conditional': self.is_conditional,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        return cls(
            tournament_id=data.get('tournament_id'),
            round=data['round'],
            match_number=data['match_number'],
            team1_ref=data.get('team1_ref', TBD),
            team2_ref=data.get('team2_ref', TBD),
            status=data.get('status'),
            score1=data.get('score1'),
            score2=data.get('score2'),
            winner_ref=data.get('winner_ref'),
            scheduled_date=data.get('scheduled_date'),
            completed_date=data.get('completed_date'),
            round_label=data.get('round_label'),
            bracket=data.get('bracket', MAIN),
            winner_to=data.get('winner_to'),
            loser_to=data.get('loser_to'),
            is_conditional=data.get('is_conditional', False),
        )

    def __repr__(self):
        return (f"Match(round={self.round}, match_number={self.match_number}, "
                f"teams=({self.team1_ref}, {self.team2_ref}), status={self.status}, "
                f"winner={self.winner_ref})")


class Round:
    def __init__(self, number, label, matches, bracket=MAIN):
        self.number = number
        self.label = label
        self.matches = tuple(sorted(matches, key=lambda m: m.match_number))
        self.bracket = bracket

    def __len__(self):
        return len(self.matches)

    def __repr__(self):
        return f"Round(number={self.number}, label={self.label}, matches={len(self.matches)})"
