"""
Bracket format dispatch: one builder class per BracketFormat.
"""
from typing import Dict, List, Sequence, Type

from .builder import BracketBuilder
from .double_elimination import DoubleElimination
from .elimination import SingleElimination
from .groups import DEFAULT_GROUP_COUNT, GroupStage
from .models import BracketFormat, Round, parse_format

BUILDERS: Dict[BracketFormat, Type[BracketBuilder]] = {
    BracketFormat.SINGLE_ELIMINATION: SingleElimination,
    BracketFormat.DOUBLE_ELIMINATION: DoubleElimination,
    BracketFormat.GROUP_STAGE: GroupStage,
}


def get_builder(bracket_format, **options) -> BracketBuilder:
    """Instantiate the builder for a format; options go to its constructor."""
    return BUILDERS[parse_format(bracket_format)](**options)


def build(bracket_format, seeds: Sequence[str], tournament_id=None, **options) -> List[Round]:
    """Build the ordered list of rounds for `seeds` in the given format."""
    return get_builder(bracket_format, **options).build(seeds, tournament_id)


def builder_options(bracket_format, settings: Dict) -> Dict:
    """Pick the tournament settings that apply to a format's builder."""
    bracket_format = parse_format(bracket_format)
    if bracket_format == BracketFormat.DOUBLE_ELIMINATION:
        return {'bracket_reset': bool(settings.get('bracket_reset', False))}
    if bracket_format == BracketFormat.GROUP_STAGE:
        return {'group_count': settings.get('group_count', DEFAULT_GROUP_COUNT)}
    return {}


def validate_settings(settings: Dict) -> Dict:
    """Check a tournament's format settings by instantiating its builder."""
    bracket_format = parse_format(settings.get('format'))
    get_builder(bracket_format, **builder_options(bracket_format, settings))
    return dict(settings, format=bracket_format.value)
