"""
Double elimination bracket generation.

In double elimination:
- Teams must lose twice to be eliminated
- Winners Bracket: Teams that haven't lost yet
- Losers Bracket: Teams that have lost once
- Grand Final: Winners bracket champion vs Losers bracket champion
- Bracket Reset (optional): If the losers bracket champion wins the Grand Final,
  one more match decides the champion

Rounds are numbered across the whole bracket so (round, match_number) stays
unique: winners rounds 1..k, losers rounds k+1..3k-2, Grand Final 3k-1 and
the reset 3k, where k = log2(bracket size).
"""
from .builder import RoundLayout
from .elimination import EliminationBuilder, elimination_layout, total_rounds_for
from .models import (BRACKET_RESET, GRAND_FINAL, LOSERS, TBD, WINNERS,
                     BracketFormat, Match)
from .progression import next_slot


def get_losers_round_name(round_num: int, total_losers_rounds: int) -> str:
    """Get the name for a losers bracket round (0-indexed)."""
    rounds_from_end = total_losers_rounds - round_num - 1
    if rounds_from_end == 0:
        return "Losers Final"
    elif rounds_from_end == 1:
        return "Losers Semifinal"
    else:
        return f"Losers Round {round_num + 1}"


def get_winners_round_name(round_number: int, total_rounds: int) -> str:
    """Get the name for a winners bracket round."""
    if round_number == total_rounds:
        return "Winners Final"
    elif round_number == total_rounds - 1:
        return "Winners Semifinal"
    else:
        return f"Winners Round {round_number}"


def calculate_losers_bracket_rounds(bracket_size: int) -> int:
    """
    Calculate number of rounds in losers bracket.
    For N teams in winners bracket (power of 2):
    - Winners bracket has log2(N) rounds
    - Losers bracket has 2 * (log2(N) - 1) rounds

    Pattern: minor, major, minor, major, ... ending with a major round
    """
    if bracket_size < 2:
        return 0
    return 2 * (total_rounds_for(bracket_size) - 1)


def losers_drop_route(winners_round: int, match_number: int, total_winners_rounds: int):
    """Where the loser of a winners bracket match goes.

    Winners Round 1 losers pair off in Losers Round 1. Losers of winners
    round r > 1 drop into the major losers round 2(r-1) on side 1, facing the
    survivor from the losers round before. With a two-team bracket the loser
    goes straight to the Grand Final.
    """
    k = total_winners_rounds
    if k == 1:
        return (grand_final_round(k), 1, 2)
    if winners_round == 1:
        return (k + 1, (match_number + 1) // 2, 1 if match_number % 2 == 1 else 2)
    return (k + 2 * (winners_round - 1), match_number, 1)


def grand_final_round(total_winners_rounds: int) -> int:
    return 3 * total_winners_rounds - 1


class DoubleElimination(EliminationBuilder):
    format = BracketFormat.DOUBLE_ELIMINATION

    def __init__(self, bracket_reset: bool = False):
        self.bracket_reset = bracket_reset

    def layout(self, seeds, tournament_id):
        bracket_size = len(seeds)
        k = total_rounds_for(bracket_size)
        if k == 0:
            return []
        gf_round = grand_final_round(k)

        winners = elimination_layout(seeds, tournament_id, WINNERS, get_winners_round_name)
        for round_number, _, _, round_matches in winners:
            for match in round_matches:
                if round_number == k:
                    match.winner_to = (gf_round, 1, 1)
                match.loser_to = losers_drop_route(round_number, match.match_number, k)

        layout = list(winners) + self._losers_layout(bracket_size, k, gf_round, tournament_id)

        grand_final = Match(tournament_id, gf_round, 1, TBD, TBD,
                            round_label='Grand Final', bracket=GRAND_FINAL)
        layout.append((gf_round, 'Grand Final', GRAND_FINAL, [grand_final]))

        if self.bracket_reset:
            reset_round = gf_round + 1
            grand_final.winner_to = (reset_round, 1, 1)
            grand_final.loser_to = (reset_round, 1, 2)
            reset = Match(tournament_id, reset_round, 1, TBD, TBD,
                          round_label='Bracket Reset', bracket=BRACKET_RESET, is_conditional=True)
            layout.append((reset_round, 'Bracket Reset', BRACKET_RESET, [reset]))
        return layout

    def _losers_layout(self, bracket_size, k, gf_round, tournament_id) -> list:
        """
        The losers bracket alternates between:
        - Minor rounds (odd: 1, 3, 5...): only losers bracket teams compete
        - Major rounds (even: 2, 4, 6...): losers from the winners bracket drop in

        For an 8-team bracket:
        - L Round 1 (minor): 4 W1 losers pair off -> 2 matches
        - L Round 2 (major): 2 W2 losers vs 2 L1 winners -> 2 matches
        - L Round 3 (minor): 2 L2 winners pair off -> 1 match
        - L Round 4 (major): W3 loser vs L3 winner -> 1 match (losers champion)
        """
        total_losers_rounds = calculate_losers_bracket_rounds(bracket_size)
        layout = []
        num_matches = bracket_size // 2
        for j in range(1, total_losers_rounds + 1):
            round_number = k + j
            label = get_losers_round_name(j - 1, total_losers_rounds)
            is_major = j % 2 == 0
            if not is_major:
                num_matches //= 2

            round_matches = []
            for match_number in range(1, num_matches + 1):
                if j == total_losers_rounds:
                    winner_to = (gf_round, 1, 2)
                elif is_major:
                    winner_to = next_slot(round_number, match_number)
                else:
                    winner_to = (round_number + 1, match_number, 2)
                round_matches.append(Match(
                    tournament_id, round_number, match_number, TBD, TBD,
                    round_label=label, bracket=LOSERS, winner_to=winner_to,
                ))
            layout.append((round_number, label, LOSERS, round_matches))
        return layout
