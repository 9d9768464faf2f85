"""
Progression of results through a bracket.

Every slot built by a bracket builder carries its static routes:
`winner_to` and, in double elimination, `loser_to`, each a
(round, match_number, side) triple. Advancing a settled match writes its
winner and loser into those sides. A destination whose other side is a BYE
settles at once and advances in turn.
"""
import logging
from typing import Callable, List, Optional, Tuple

from .errors import Conflict, InvalidTransition, NotFound
from .match_state import cancel, settle_byes
from .models import BYE, GRAND_FINAL, TBD, Match, MatchStatus

logger = logging.getLogger(__name__)

SlotLookup = Callable[[int, int], Match]


def outcome(match: Match) -> Optional[Tuple[str, str]]:
    """Return the (winner, loser) refs a settled match sends on, or None."""
    if match.status == MatchStatus.COMPLETED and match.winner_ref:
        return match.winner_ref, match.loser_ref
    if match.status == MatchStatus.CANCELLED and match.team1_ref == BYE and match.team2_ref == BYE:
        return BYE, BYE
    return None


def next_slot(round_number: int, match_number: int) -> Tuple[int, int, int]:
    """Elimination route for the winner of (round, match_number).

    Matches m and m+1 (m odd) feed the same slot; the odd one takes side 1.
    """
    side = 1 if match_number % 2 == 1 else 2
    return round_number + 1, (match_number + 1) // 2, side


def place(slot: Match, side: int, ref: str) -> bool:
    """Fill one side of a slot. Returns False when there was nothing to do."""
    current = slot.team_ref(side)
    if current == ref:
        return False
    if slot.status in (MatchStatus.COMPLETED, MatchStatus.CANCELLED):
        return False
    if current != TBD:
        raise Conflict(
            f'Slot {slot.round}-{slot.match_number} side {side} already holds {current}, not {ref}')
    slot.set_team_ref(side, ref)
    return True


def deliver(match: Match, get_slot: SlotLookup) -> List[Match]:
    """Push one settled match's outcome along its routes; returns changed slots."""
    result = outcome(match)
    if result is None:
        return []
    winner, loser = result

    if match.bracket == GRAND_FINAL and match.winner_to and winner == match.team1_ref:
        # Winners-bracket champion took the grand final: no reset is played
        reset = get_slot(match.winner_to[0], match.winner_to[1])
        if reset.status == MatchStatus.SCHEDULED:
            cancel(reset)
            return [reset]
        return []

    changed = []
    for route, ref in ((match.winner_to, winner), (match.loser_to, loser)):
        if not route:
            continue
        round_number, match_number, side = route
        slot = get_slot(round_number, match_number)
        if place(slot, side, ref):
            settle_byes(slot)
            changed.append(slot)
    return changed


def propagate(match: Match, get_slot: SlotLookup) -> List[Match]:
    """Deliver a match's outcome and cascade through any slots that settle as a result."""
    changed = []
    pending = [match]
    while pending:
        current = pending.pop(0)
        for slot in deliver(current, get_slot):
            if slot not in changed:
                changed.append(slot)
            if slot.status != MatchStatus.SCHEDULED:
                pending.append(slot)
    return changed


def advance(store, match: Match) -> Optional[Match]:
    """
    Move a completed match's result into the next round.

    Returns the winner's destination slot when it changed, otherwise None.
    Calling it again for the same match changes nothing.
    """
    tournament_id = match.tournament_id
    with store.lock(tournament_id):
        slots = {slot.key: slot for slot in store.find_matches_by_tournament(tournament_id)}
        source = slots.get(match.key)
        if source is None:
            raise NotFound(f'Match {match.round}-{match.match_number} not found in {tournament_id}')
        if outcome(source) is None:
            raise InvalidTransition(
                f'Match {source.round}-{source.match_number} has no result to advance')

        loaded = {key: slot.status for key, slot in slots.items()}

        def get_slot(round_number, match_number):
            try:
                return slots[(round_number, match_number)]
            except KeyError:
                raise NotFound(
                    f'Match {round_number}-{match_number} not found in {tournament_id}') from None

        changed = propagate(source, get_slot)
        if not changed:
            return None

        store.update_matches(changed, expected_statuses={s.key: loaded[s.key] for s in changed})
        for slot in changed:
            logger.debug('%s: advanced into %s-%s (%s vs %s)', tournament_id, slot.round,
                         slot.match_number, slot.team1_ref, slot.team2_ref)

        if source.winner_to:
            destination = tuple(source.winner_to[:2])
            for slot in changed:
                if slot.key == destination:
                    return slot
        return None
