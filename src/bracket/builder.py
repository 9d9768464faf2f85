"""
Common machinery for the bracket builders.

A builder lays out every slot of a bracket in an arena keyed by
(round, match_number), with round-one slots holding seeds and later slots
holding TBD. It then walks the arena in round order, settling bye slots and
delivering their results along the static routes, so byes cascade before
anything is persisted.
"""
from typing import Dict, List, Sequence, Tuple

from .errors import InvalidInput
from .match_state import settle_byes
from .models import TBD, Match, Round, is_real
from .progression import deliver

RoundLayout = Tuple[int, str, str, List[Match]]  # (number, label, bracket, matches)


class BracketBuilder:
    """Base class: subclasses implement layout() for one BracketFormat."""

    format = None

    def build(self, seeds: Sequence[str], tournament_id=None) -> List[Round]:
        seeds = list(seeds)
        self.validate(seeds)
        layout = self.layout(seeds, tournament_id)
        resolve_byes([match for _, _, _, matches in layout for match in matches])
        return [Round(number, label, matches, bracket) for number, label, bracket, matches in layout]

    def validate(self, seeds: List[str]):
        if not seeds:
            raise InvalidInput('Cannot build a bracket without teams')
        if TBD in seeds:
            raise InvalidInput(f'{TBD} is not a valid seed')
        real = [seed for seed in seeds if is_real(seed)]
        if not real:
            raise InvalidInput('A bracket needs at least one real team')
        duplicates = sorted({seed for seed in real if real.count(seed) > 1})
        if duplicates:
            raise InvalidInput(f'Teams appear more than once: {", ".join(duplicates)}')

    def layout(self, seeds: List[str], tournament_id) -> List[RoundLayout]:
        raise NotImplementedError


def resolve_byes(matches: List[Match]):
    """Settle bye slots in round order and push their results forward."""
    arena: Dict[Tuple[int, int], Match] = {match.key: match for match in matches}

    def get_slot(round_number, match_number):
        return arena[(round_number, match_number)]

    for key in sorted(arena):
        match = arena[key]
        settle_byes(match)
        deliver(match, get_slot)
