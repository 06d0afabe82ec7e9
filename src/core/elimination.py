"""
Single elimination bracket generation and result propagation.

A bracket is a list of rounds, first round first:
    [{'name': 'Semi Finals', 'matches': [match, ...]}, ..., {'name': 'Final', ...}]

Each match is a plain dict:
    {'id', 'player_a', 'player_b', 'score_a', 'score_b', 'winner',
     'next_match_id', 'next_match_slot'}

Player slots hold a name, None (not decided yet) or 'BYE'.
"""
import copy
import logging
import math
import random
from collections import deque
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

BYE = 'BYE'
SLOTS = ('player_a', 'player_b')


class BracketError(ValueError):
    """Raised when a bracket operation's preconditions are not met."""


def get_round_name(total_rounds: int, round_index: int) -> str:
    """Get the name of a round from how far it is from the Final."""
    rounds_remaining = total_rounds - round_index
    if rounds_remaining == 1:
        return "Final"
    elif rounds_remaining == 2:
        return "Semi Finals"
    elif rounds_remaining == 3:
        return "Quarter Finals"
    elif rounds_remaining == 4:
        return "Round of 16"
    else:
        return f"Round {round_index + 1}"


def calculate_bracket_size(num_players: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_players <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_players))


def calculate_byes(num_players: int) -> int:
    """Calculate number of byes needed."""
    return calculate_bracket_size(num_players) - num_players


def _new_match(match_id: int, player_a=None, player_b=None) -> Dict:
    return {
        'id': match_id,
        'player_a': player_a,
        'player_b': player_b,
        'score_a': None,
        'score_b': None,
        'winner': None,
        'next_match_id': None,
        'next_match_slot': None,
    }


def _bye_winner(match: Dict) -> Optional[str]:
    """Winner of a pairing decided by a BYE, or None if it has to be played."""
    player_a, player_b = match['player_a'], match['player_b']
    if player_a is None or player_b is None:
        return None
    if player_a == BYE and player_b == BYE:
        return BYE
    if player_a == BYE:
        return player_b
    if player_b == BYE:
        return player_a
    return None


def _index_matches(bracket: List[Dict]) -> Dict[int, Dict]:
    return {match['id']: match for rnd in bracket for match in rnd['matches']}


def _propagate(bracket: List[Dict], match_ids) -> None:
    """
    Push decided winners into their next-round slots, in place.

    Runs until no more pairings can be auto-resolved: a winner landing next to
    a BYE is decided immediately and queued in turn.
    """
    matches = _index_matches(bracket)
    queue = deque(match_ids)

    while queue:
        match = matches[queue.popleft()]
        if match['winner'] is None or match['next_match_id'] is None:
            continue

        parent = matches[match['next_match_id']]
        parent[match['next_match_slot']] = match['winner']

        if parent['winner'] is None:
            winner = _bye_winner(parent)
            if winner is not None:
                logger.debug("Match %s auto-resolved for %s", parent['id'], winner)
                parent['winner'] = winner
                queue.append(parent['id'])


def generate_bracket(participants: List[str], rng=None) -> List[Dict]:
    """
    Build a single elimination bracket with random seeding.

    Args:
        participants: player names (at least 2; duplicates are not checked)
        rng: object with a ``shuffle`` method, e.g. ``random.Random(seed)``.
             A fresh ``random.Random()`` is used when omitted.

    The shuffled field is padded with BYEs at the end up to the next power of
    two. Pairings decided by a BYE are resolved immediately and their winners
    carried forward, as far as the bracket allows.
    """
    if len(participants) < 2:
        raise BracketError("A bracket needs at least 2 participants")

    rng = rng or random.Random()
    field = list(participants)
    rng.shuffle(field)

    bracket_size = calculate_bracket_size(len(field))
    field.extend([BYE] * (bracket_size - len(field)))
    total_rounds = int(math.log2(bracket_size))

    bracket = []
    match_id = 1

    first_round = []
    for i in range(0, bracket_size, 2):
        match = _new_match(match_id, field[i], field[i + 1])
        match['winner'] = _bye_winner(match)
        first_round.append(match)
        match_id += 1
    bracket.append({'name': get_round_name(total_rounds, 0), 'matches': first_round})

    num_matches = bracket_size // 2
    for round_index in range(1, total_rounds):
        num_matches //= 2
        round_matches = []
        for _ in range(num_matches):
            round_matches.append(_new_match(match_id))
            match_id += 1
        bracket.append({'name': get_round_name(total_rounds, round_index), 'matches': round_matches})

    # Siblings 2k and 2k+1 feed match k of the next round
    for current, following in zip(bracket, bracket[1:]):
        for index, match in enumerate(current['matches']):
            match['next_match_id'] = following['matches'][index // 2]['id']
            match['next_match_slot'] = SLOTS[index % 2]

    _propagate(bracket, [m['id'] for m in first_round if m['winner'] is not None])

    logger.debug("Generated %d-round bracket for %d participants (%d byes)",
                 total_rounds, len(participants), calculate_byes(len(participants)))
    return bracket


def find_match(bracket: List[Dict], match_id: int) -> Optional[Dict]:
    for rnd in bracket:
        for match in rnd['matches']:
            if match['id'] == match_id:
                return match
    return None


def is_match_ready(match: Dict) -> bool:
    """True when both players are known, neither is a BYE, and there is no winner yet."""
    players_known = all(match[slot] not in (None, BYE) for slot in SLOTS)
    return players_known and match['winner'] is None


def get_ready_matches(bracket: List[Dict]) -> List[Dict]:
    return [m for rnd in bracket for m in rnd['matches'] if is_match_ready(m)]


def apply_result(bracket: List[Dict], match_id: int, score_a: int, score_b: int) -> List[Dict]:
    """
    Record a knockout result and advance the winner.

    Returns a new bracket; the one passed in is never modified. When the Final
    is decided the returned bracket simply carries its winner; marking the
    tournament as completed is up to the caller.

    Raises:
        BracketError: unknown match, match not ready, or tied score.
    """
    target = find_match(bracket, match_id)
    if target is None:
        raise BracketError(f"Match {match_id} not found in bracket")
    if target['winner'] is not None:
        raise BracketError(f"Match {match_id} already has a winner")
    if not is_match_ready(target):
        raise BracketError(f"Match {match_id} is waiting for players")
    if score_a == score_b:
        raise BracketError("Knockout ties are not permitted")

    updated = copy.deepcopy(bracket)
    match = find_match(updated, match_id)
    match['score_a'] = score_a
    match['score_b'] = score_b
    match['winner'] = match['player_a'] if score_a > score_b else match['player_b']
    logger.debug("Match %s won by %s (%s-%s)", match_id, match['winner'], score_a, score_b)

    _propagate(updated, [match_id])
    return updated


def get_champion(bracket: List[Dict]) -> Optional[str]:
    """Winner of the Final, or None while it is undecided."""
    if not bracket:
        return None
    winner = bracket[-1]['matches'][0]['winner']
    return winner if winner != BYE else None


def get_bracket_display(bracket: List[Dict]) -> Dict:
    """
    Get bracket summary formatted for UI display.
    """
    first_round = bracket[0]['matches'] if bracket else []
    participants = [m[slot] for m in first_round for slot in SLOTS if m[slot] != BYE]
    byes = sum(1 for m in first_round for slot in SLOTS if m[slot] == BYE)

    # Count actual matches (no BYE involved) per round
    matches_per_round = {}
    for rnd in bracket:
        actual_matches = [m for m in rnd['matches'] if BYE not in (m['player_a'], m['player_b'])]
        matches_per_round[rnd['name']] = len(actual_matches)

    return {
        'rounds': bracket,
        'total_rounds': len(bracket),
        'total_participants': len(participants),
        'participants': participants,
        'byes': byes,
        'matches_per_round': matches_per_round,
        'ready_matches': [m['id'] for m in get_ready_matches(bracket)],
        'champion': get_champion(bracket),
    }
