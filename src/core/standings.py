"""
League standings, overall statistics and season records.

All functions take an iterable of matches (Match objects or plain dicts) and
return plain dicts/lists. Nothing here keeps state between calls.
"""
from typing import Dict, Iterable, List, Optional

from core.models import Match, coerce_matches

FORM_LENGTH = 5
POINTS_PER_WIN = 3
POINTS_PER_DRAW = 1


def _empty_aggregate(name: str) -> Dict:
    return {
        'name': name,
        'matches_played': 0,
        'wins': 0,
        'losses': 0,
        'draws': 0,
        'goals_for': 0,
        'goals_against': 0,
        'goal_difference': 0,
        'points': 0,
        'form': [],
        'win_rate': 0,
    }


def standings_sort_key(entry: Dict):
    """Ranking key: points, goal difference, goals scored (all descending)."""
    return (-entry['points'], -entry['goal_difference'], -entry['goals_for'])


def _win_rate(wins: int, played: int) -> int:
    if played == 0:
        return 0
    return int(round(wins * 100 / played))


def compute_standings(matches: Iterable) -> List[Dict]:
    """
    Build the league table from a collection of match results.

    Returns list of player dicts with:
    - name, matches_played, wins, losses, draws
    - goals_for, goals_against, goal_difference, points
    - form: up to 5 of 'W'/'D'/'L', newest first
    - win_rate: integer percent

    Ranking: points -> goal_difference -> goals_for. Players tied on all three
    keep the order in which they first appear in ``matches``.
    """
    stats = {}
    history = {}

    for match in coerce_matches(matches):
        for player in (match.player_a, match.player_b):
            if player not in stats:
                stats[player] = _empty_aggregate(player)
                history[player] = []

            goals_for, goals_against, _ = match.perspective(player)
            entry = stats[player]
            entry['matches_played'] += 1
            entry['goals_for'] += goals_for
            entry['goals_against'] += goals_against

            outcome = match.outcome_for(player)
            if outcome == 'W':
                entry['wins'] += 1
            elif outcome == 'L':
                entry['losses'] += 1
            else:
                entry['draws'] += 1
            history[player].append((match.sort_key(), outcome))

    for player, entry in stats.items():
        entry['goal_difference'] = entry['goals_for'] - entry['goals_against']
        entry['points'] = POINTS_PER_WIN * entry['wins'] + POINTS_PER_DRAW * entry['draws']
        entry['win_rate'] = _win_rate(entry['wins'], entry['matches_played'])
        recent = sorted(history[player], key=lambda item: item[0], reverse=True)
        entry['form'] = [outcome for _, outcome in recent[:FORM_LENGTH]]

    # dicts preserve insertion order and sorted() is stable, so fully tied
    # players stay in first-appearance order
    return sorted(stats.values(), key=standings_sort_key)


def merge_participants(standings: List[Dict], participants: Iterable[str]) -> List[Dict]:
    """
    Add roster names missing from ``standings`` with zeroed stats and re-rank.

    Used for tournament tables, where a declared entrant who has not played yet
    must still be listed. The input table is left untouched.
    """
    merged = [dict(entry, form=list(entry['form'])) for entry in standings]
    present = {entry['name'] for entry in merged}

    for name in participants:
        if name not in present:
            merged.append(_empty_aggregate(name))
            present.add(name)

    return sorted(merged, key=standings_sort_key)


def compute_overall_stats(matches: Iterable) -> Dict:
    """Totals across all matches; average goals rounded to one decimal."""
    matches = coerce_matches(matches)
    total_matches = len(matches)
    total_goals = sum(m.total_goals for m in matches)
    avg_goals = round(total_goals / total_matches, 1) if total_matches > 0 else 0

    return {
        'total_matches': total_matches,
        'total_goals': total_goals,
        'avg_goals_per_match': avg_goals,
    }


def _chronological(matches: List[Match]) -> List[Match]:
    return sorted(matches, key=Match.sort_key)


def compute_records(matches: Iterable) -> Dict:
    """
    Season records.

    Returns dict with:
    - 'biggest_win': match dict with the largest winning margin, or None
    - 'highest_scoring_match': match dict with the most goals, or None
    - 'longest_streak': {'player': name, 'length': n} for the longest run of
      consecutive wins, or None when nobody has won a match

    Ties go to whichever candidate is encountered first.
    """
    matches = coerce_matches(matches)

    biggest_win = None
    for match in matches:
        if match.margin > 0 and (biggest_win is None or match.margin > biggest_win.margin):
            biggest_win = match

    highest_scoring = None
    for match in matches:
        if highest_scoring is None or match.total_goals > highest_scoring.total_goals:
            highest_scoring = match

    # First-appearance order of players from the input decides streak ties
    players = []
    seen = set()
    for match in matches:
        for player in (match.player_a, match.player_b):
            if player not in seen:
                seen.add(player)
                players.append(player)

    ordered = _chronological(matches)
    longest_streak = None
    for player in players:
        best = current = 0
        for match in ordered:
            if not match.involves(player):
                continue
            if match.outcome_for(player) == 'W':
                current += 1
                best = max(best, current)
            else:
                current = 0
        if best > 0 and (longest_streak is None or best > longest_streak['length']):
            longest_streak = {'player': player, 'length': best}

    return {
        'biggest_win': biggest_win.to_dict() if biggest_win else None,
        'highest_scoring_match': highest_scoring.to_dict() if highest_scoring else None,
        'longest_streak': longest_streak,
    }


def compute_head_to_head(matches: Iterable, player_a: str, player_b: str) -> Dict:
    """
    Head-to-head summary between two players, from ``player_a``'s side.

    Meetings are returned newest first.
    """
    meetings = [
        m for m in coerce_matches(matches)
        if m.involves(player_a) and m.involves(player_b) and player_a != player_b
    ]
    summary = {
        'player_a': player_a,
        'player_b': player_b,
        'total': len(meetings),
        'wins_a': 0,
        'wins_b': 0,
        'draws': 0,
        'goals_a': 0,
        'goals_b': 0,
    }

    for match in meetings:
        goals_a, goals_b, _ = match.perspective(player_a)
        summary['goals_a'] += goals_a
        summary['goals_b'] += goals_b
        if goals_a > goals_b:
            summary['wins_a'] += 1
        elif goals_b > goals_a:
            summary['wins_b'] += 1
        else:
            summary['draws'] += 1

    summary['matches'] = [m.to_dict() for m in sorted(meetings, key=Match.sort_key, reverse=True)]
    return summary


def compute_monthly_champions(matches: Iterable) -> List[Dict]:
    """
    Leader of each calendar month's table, newest month first.

    Returns list of {'month': 'YYYY-MM', 'champion': player dict,
    'total_matches': n}.
    """
    by_month = {}
    for match in coerce_matches(matches):
        month_key = match.date.strftime('%Y-%m')
        by_month.setdefault(month_key, []).append(match)

    champions = []
    for month_key in sorted(by_month, reverse=True):
        month_matches = by_month[month_key]
        table = compute_standings(month_matches)
        champions.append({
            'month': month_key,
            'champion': table[0],
            'total_matches': len(month_matches),
        })
    return champions


def get_player_entry(standings: List[Dict], name: str) -> Optional[Dict]:
    """Find a player's row in a standings table."""
    for entry in standings:
        if entry['name'] == name:
            return entry
    return None
