"""
Period analytics report (last week, this month, or all time).
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from core.models import Match, coerce_matches, parse_date
from core.standings import FORM_LENGTH, compute_overall_stats, compute_standings

PERIODS = ('week', 'month', 'all')
DEFAULT_WIN_RATE = 50


def get_period_start(period: str, now: datetime) -> Optional[datetime]:
    """Start of the reporting window, or None for all time."""
    if period == 'week':
        return now - timedelta(days=7)
    if period == 'month':
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if period == 'all':
        return None
    raise ValueError(f"Unknown period '{period}'. Expected one of: {', '.join(PERIODS)}")


def _most_active_player(matches: List[Match]) -> Optional[Dict]:
    counts = {}
    for match in matches:
        for player in (match.player_a, match.player_b):
            counts[player] = counts.get(player, 0) + 1
    if not counts:
        return None
    # max() keeps the first player reaching the top count
    name = max(counts, key=lambda p: counts[p])
    return {'name': name, 'matches': counts[name]}


def _biggest_upset(matches: List[Match], win_rates: Dict[str, int]) -> Optional[Dict]:
    """
    Win by the player with the lower all-time win rate.

    Upsets are scored as (rate gap * goal margin); the highest score wins.
    """
    biggest = None
    best_score = 0
    for match in matches:
        winner = match.winner
        if winner is None:
            continue
        loser = match.player_b if winner == match.player_a else match.player_a
        winner_rate = win_rates.get(winner, DEFAULT_WIN_RATE)
        loser_rate = win_rates.get(loser, DEFAULT_WIN_RATE)
        if winner_rate >= loser_rate:
            continue
        score = (loser_rate - winner_rate) * match.margin
        if score > best_score:
            best_score = score
            biggest = {
                'match': match.to_dict(),
                'winner': winner,
                'loser': loser,
                'winner_rate': winner_rate,
                'loser_rate': loser_rate,
                'score_diff': match.margin,
            }
    return biggest


def _player_forms(matches: List[Match], players: List[str]) -> List[Dict]:
    forms = []
    for player in players:
        recent = sorted((m for m in matches if m.involves(player)),
                        key=Match.sort_key, reverse=True)[:FORM_LENGTH]
        if not recent:
            continue
        form = [m.outcome_for(player) for m in recent]
        wins = form.count('W')
        forms.append({
            'name': player,
            'form': form,
            'wins': wins,
            'match_count': len(recent),
            'win_rate': int(round(wins * 100 / len(recent))),
        })
    forms.sort(key=lambda f: -f['win_rate'])
    return forms


def _goal_trends(matches: List[Match]) -> List[Dict]:
    by_day = {}
    for match in sorted(matches, key=Match.sort_key):
        day = match.date.date().isoformat()
        bucket = by_day.setdefault(day, {'goals': 0, 'matches': 0})
        bucket['goals'] += match.total_goals
        bucket['matches'] += 1

    return [
        {
            'date': day,
            'total_goals': data['goals'],
            'match_count': data['matches'],
            'avg_goals': round(data['goals'] / data['matches'], 1),
        }
        for day, data in by_day.items()
    ]


def compute_period_report(matches: Iterable, players: Optional[Iterable[str]] = None,
                          period: str = 'week', now=None) -> Dict:
    """
    Analytics for matches played inside a reporting window.

    Win rates used for upset detection are all-time, not period-only.

    Returns dict with:
    - period, match_count, total_goals, avg_goals_per_match
    - most_active_player: {'name', 'matches'} or None
    - biggest_upset: dict or None
    - player_forms: per-player form in the window (newest first)
    - goal_trends: per-day goal totals, oldest day first
    """
    all_matches = coerce_matches(matches)
    now = parse_date(now) if now is not None else datetime.now(timezone.utc)
    start = get_period_start(period, now)
    period_matches = [m for m in all_matches if start is None or m.date >= start]

    if players is None:
        players = []
        for match in period_matches:
            for player in (match.player_a, match.player_b):
                if player not in players:
                    players.append(player)
    else:
        players = list(players)

    overall = compute_overall_stats(period_matches)
    win_rates = {entry['name']: entry['win_rate'] for entry in compute_standings(all_matches)}

    return {
        'period': period,
        'match_count': overall['total_matches'],
        'total_goals': overall['total_goals'],
        'avg_goals_per_match': overall['avg_goals_per_match'],
        'most_active_player': _most_active_player(period_matches),
        'biggest_upset': _biggest_upset(period_matches, win_rates),
        'player_forms': _player_forms(period_matches, players),
        'goal_trends': _goal_trends(period_matches),
    }
