import argparse
import os
import sys

import yaml

from bracket.errors import BracketError
from bracket.formats import build, builder_options
from bracket.models import BYE, TBD, BracketFormat, MatchStatus, parse_format
from bracket.seeding import normalize


def load_teams(file_path):
    """
    Read team names from a YAML file. Accepts a plain list of names, or the
    pool mapping form ({pool: [names]}) flattened in pool order.
    """
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file)
    if not data:
        return []
    if isinstance(data, dict):
        teams = []
        for team_names in data.values():
            teams.extend(team_names or [])
        return [str(name) for name in teams]
    return [str(name) for name in data]


def format_match(match):
    line = f"{match.team1_ref} vs {match.team2_ref}"
    if match.status == MatchStatus.COMPLETED and match.is_bye:
        line += f"  (bye: {match.winner_ref} advances)"
    elif match.status == MatchStatus.CANCELLED:
        line += "  (cancelled)"
    return line


def generate_rounds(team_names, bracket_format, group_count=None, bracket_reset=False):
    bracket_format = parse_format(bracket_format)
    settings = {'bracket_reset': bracket_reset}
    if group_count is not None:
        settings['group_count'] = group_count
    if bracket_format == BracketFormat.GROUP_STAGE:
        seeds = list(team_names)
    else:
        seeds = normalize(team_names)
    return build(bracket_format, seeds, **builder_options(bracket_format, settings))


def main(argv=None):
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    parser = argparse.ArgumentParser(description='Preview the bracket a team list would produce.')
    parser.add_argument('teams_file', nargs='?', default=os.path.join(base_dir, 'data', 'teams.yaml'))
    parser.add_argument('--format', default=BracketFormat.SINGLE_ELIMINATION.value,
                        help='single_elimination, double_elimination or group_stage')
    parser.add_argument('--groups', type=int, default=None, help='number of groups for group_stage')
    parser.add_argument('--bracket-reset', action='store_true',
                        help='add a conditional bracket reset to double elimination')
    args = parser.parse_args(argv)

    teams = load_teams(args.teams_file)
    if not teams:
        print(f"No teams found in {args.teams_file}")
        return 1

    try:
        rounds = generate_rounds(teams, args.format, args.groups, args.bracket_reset)
    except BracketError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    first_round = True
    for bracket_round in rounds:
        if not first_round:
            print()  # Blank line between rounds
        print(f"# {bracket_round.label}")
        for match in bracket_round.matches:
            if match.team1_ref == TBD and match.team2_ref == TBD:
                print(f"{match.match_number}. TBD")
            elif match.team1_ref == BYE and match.team2_ref == BYE:
                continue
            else:
                print(f"{match.match_number}. {format_match(match)}")
        first_round = False
    return 0


if __name__ == '__main__':
    sys.exit(main())
