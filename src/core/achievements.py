"""
Player achievement badges.

Every badge is a threshold on one career counter. Counters come from a single
pass over the player's matches in chronological order, since the streak
counters depend on that order.
"""
from typing import Dict, Iterable, List

from core.models import Match, coerce_matches

RARITY_ORDER = {'legendary': 0, 'epic': 1, 'rare': 2, 'common': 3}
RARITY_POINTS = {'legendary': 10, 'epic': 7, 'rare': 5, 'common': 3}

# (id, name, description, rarity, counter, target)
ACHIEVEMENTS = [
    ('century_club', 'Century Club', '100 wins', 'legendary', 'wins', 100),
    ('two_hundred_wins', '200 Wins', 'Win 200 matches', 'legendary', 'wins', 200),
    ('unbeatable', 'Unbeatable', '10 wins in a row', 'legendary', 'max_win_streak', 10),
    ('unstoppable', 'Unstoppable', '20 wins in a row', 'legendary', 'max_win_streak', 20),
    ('legend', 'Legend', 'Play 200 matches', 'legendary', 'matches', 200),
    ('goal_scorer_200', 'Goal Scorer 200', 'Score 200 goals', 'legendary', 'goals_for', 200),
    ('diamond_player', 'Diamond Player', '500 wins', 'legendary', 'wins', 500),
    ('all_star', 'All Star', 'Score 500 goals', 'legendary', 'goals_for', 500),
    ('hot_streak', 'Hot Streak', '15 wins in a row', 'legendary', 'max_win_streak', 15),
    ('iron_defense', 'Iron Defense', '50 clean sheets total', 'legendary', 'clean_sheets', 50),
    ('sniper', 'Sniper', 'Win 50 matches by 1 goal', 'legendary', 'close_wins', 50),
    ('flawless', 'Flawless', '30 matches undefeated', 'legendary', 'max_unbeaten_streak', 30),
    ('titan', 'Titan', 'Play 300 matches', 'legendary', 'matches', 300),

    ('on_fire', 'On Fire', '5 wins in a row', 'epic', 'max_win_streak', 5),
    ('the_wall', 'The Wall', '5 clean sheets in a row', 'epic', 'max_clean_sheet_streak', 5),
    ('fifty_wins', 'Veteran', '50 wins', 'epic', 'wins', 50),
    ('goal_machine', 'Goal Machine', 'Scored 100+ goals', 'epic', 'goals_for', 100),
    ('perfectionist', 'Perfectionist', 'Win 10 matches without conceding', 'epic',
     'max_clean_sheet_win_streak', 10),
    ('hat_trick_hero', 'Hat-trick Hero', 'Score 3+ in 5 matches', 'epic', 'hat_tricks', 5),
    ('demolisher', 'Demolisher', 'Win by 7+ goals', 'epic', 'biggest_margin', 7),
    ('fortress', 'Fortress', '20 clean sheets total', 'epic', 'clean_sheets', 20),
    ('regular', 'Regular', 'Play 100 matches', 'epic', 'matches', 100),
    ('lucky_seven', 'Lucky Seven', 'Win a match 7-0', 'epic', 'seven_nil_wins', 1),
    ('rival_crusher', 'Rival Crusher', 'Beat the same opponent 5 times', 'epic',
     'max_wins_vs_opponent', 5),

    ('destroyer', 'Destroyer', 'Won by 5+ goals', 'rare', 'biggest_margin', 5),
    ('clean_sheet_master', 'Clean Sheet Master', '10 clean sheets', 'rare', 'clean_sheets', 10),
    ('balanced', 'Balanced', '50 matches with positive goal diff', 'rare', 'positive_gd_matches', 50),
    ('thriller', 'Thriller', '5 matches where both sides scored 3+', 'rare', 'thrillers', 5),
    ('nil_nil_master', 'Nil-Nil Master', '3 matches ending 0-0', 'rare', 'nil_nil_draws', 3),
    ('concede_nothing', 'Concede Nothing', 'Win 3 matches 1-0', 'rare', 'one_nil_wins', 3),
    ('rising_star', 'Rising Star', 'Win your first 3 matches', 'rare', 'opening_win_streak', 3),

    ('draw_specialist', 'Draw Specialist', '10 draws', 'common', 'draws', 10),
    ('first_win', 'First Victory', 'Won your first match', 'common', 'wins', 1),
    ('ten_wins', 'Double Digits', '10 wins', 'common', 'wins', 10),
    ('close_call', 'Close Call', 'Win 10 matches by 1 goal', 'common', 'close_wins', 10),
]

TIERS = [
    {'name': 'S', 'label': 'Master', 'min_points': 100},
    {'name': 'A', 'label': 'Expert', 'min_points': 70},
    {'name': 'B', 'label': 'Skilled', 'min_points': 40},
    {'name': 'C', 'label': 'Amateur', 'min_points': 15},
    {'name': 'D', 'label': 'Beginner', 'min_points': 0},
]


def _player_history(matches: Iterable, player_name: str) -> List[Match]:
    played = [m for m in coerce_matches(matches) if m.involves(player_name)]
    return sorted(played, key=Match.sort_key)


def compute_career_stats(matches: Iterable, player_name: str) -> Dict[str, int]:
    """Fold a player's matches (oldest first) into the counters badges test against."""
    stats = dict.fromkeys([
        'matches', 'wins', 'draws', 'losses', 'goals_for', 'goals_against',
        'clean_sheets', 'max_win_streak', 'max_unbeaten_streak',
        'max_clean_sheet_streak', 'max_clean_sheet_win_streak', 'close_wins',
        'one_nil_wins', 'seven_nil_wins', 'hat_tricks', 'thrillers',
        'nil_nil_draws', 'positive_gd_matches', 'biggest_margin',
        'opening_win_streak', 'max_wins_vs_opponent',
    ], 0)
    win_streak = unbeaten_streak = clean_sheet_streak = clean_sheet_win_streak = 0
    opening_run = True
    wins_vs_opponent = {}

    for match in _player_history(matches, player_name):
        goals_for, goals_against, opponent = match.perspective(player_name)
        stats['matches'] += 1
        stats['goals_for'] += goals_for
        stats['goals_against'] += goals_against

        if goals_against == 0:
            stats['clean_sheets'] += 1
            clean_sheet_streak += 1
        else:
            clean_sheet_streak = 0
        stats['max_clean_sheet_streak'] = max(stats['max_clean_sheet_streak'], clean_sheet_streak)

        if goals_for == 0 and goals_against == 0:
            stats['nil_nil_draws'] += 1
        if goals_for >= 3 and goals_against >= 3:
            stats['thrillers'] += 1

        if goals_for > goals_against:
            stats['wins'] += 1
            stats['positive_gd_matches'] += 1
            win_streak += 1
            unbeaten_streak += 1
            margin = goals_for - goals_against
            stats['biggest_margin'] = max(stats['biggest_margin'], margin)
            if margin == 1:
                stats['close_wins'] += 1
            if goals_for == 1 and goals_against == 0:
                stats['one_nil_wins'] += 1
            if goals_for == 7 and goals_against == 0:
                stats['seven_nil_wins'] += 1
            if goals_for >= 3:
                stats['hat_tricks'] += 1
            if goals_against == 0:
                clean_sheet_win_streak += 1
            else:
                clean_sheet_win_streak = 0
            if opening_run:
                stats['opening_win_streak'] += 1
            wins_vs_opponent[opponent] = wins_vs_opponent.get(opponent, 0) + 1
        else:
            win_streak = 0
            clean_sheet_win_streak = 0
            opening_run = False
            if goals_for == goals_against:
                stats['draws'] += 1
                unbeaten_streak += 1
            else:
                stats['losses'] += 1
                unbeaten_streak = 0

        stats['max_win_streak'] = max(stats['max_win_streak'], win_streak)
        stats['max_unbeaten_streak'] = max(stats['max_unbeaten_streak'], unbeaten_streak)
        stats['max_clean_sheet_win_streak'] = max(stats['max_clean_sheet_win_streak'],
                                                  clean_sheet_win_streak)

    stats['max_wins_vs_opponent'] = max(wins_vs_opponent.values(), default=0)
    return stats


def _describe(counter: str, value: int) -> str:
    if counter.startswith('max_') and counter.endswith('streak'):
        return f"Best streak: {value}"
    if counter in ('biggest_margin', 'opening_win_streak', 'seven_nil_wins'):
        return 'Unlocked'
    return f"Total: {value}"


def compute_achievements(matches: Iterable, player_name: str) -> List[Dict]:
    """
    Unlocked badges for a player, rarest first.

    Each entry has 'id', 'name', 'description', 'rarity' and 'detail'.
    Within a rarity, badges keep catalog order.
    """
    stats = compute_career_stats(matches, player_name)
    unlocked = []
    for badge_id, name, description, rarity, counter, target in ACHIEVEMENTS:
        if stats[counter] >= target:
            unlocked.append({
                'id': badge_id,
                'name': name,
                'description': description,
                'rarity': rarity,
                'detail': _describe(counter, stats[counter]),
            })
    unlocked.sort(key=lambda a: RARITY_ORDER[a['rarity']])
    return unlocked


def calculate_all_players_achievements(matches: Iterable, players: Iterable[str]) -> Dict[str, List[Dict]]:
    matches = coerce_matches(matches)
    return {player: compute_achievements(matches, player) for player in players}


def calculate_achievement_points(achievements: List[Dict]) -> int:
    return sum(RARITY_POINTS.get(a['rarity'], 0) for a in achievements)


def get_player_tier(matches: Iterable, player_name: str) -> Dict:
    """Tier reached by a player's achievement points, with the points included."""
    points = calculate_achievement_points(compute_achievements(matches, player_name))
    for tier in TIERS:
        if points >= tier['min_points']:
            return dict(tier, points=points)
    return dict(TIERS[-1], points=points)


def get_next_tier_progress(points: int) -> Dict:
    """
    Progress from the current tier to the next one.

    Returns dict with 'current_tier', 'next_tier' (None at the top),
    'progress' (percent) and 'points_needed'.
    """
    for index, tier in enumerate(TIERS):
        if points >= tier['min_points']:
            break
    if index == 0:
        return {'current_tier': TIERS[0], 'next_tier': None, 'progress': 100, 'points_needed': 0}

    next_tier = TIERS[index - 1]
    span = next_tier['min_points'] - tier['min_points']
    return {
        'current_tier': tier,
        'next_tier': next_tier,
        'progress': round((points - tier['min_points']) / span * 100, 1),
        'points_needed': next_tier['min_points'] - points,
    }


def calculate_achievement_progress(matches: Iterable, player_name: str) -> Dict[str, Dict]:
    """Current value, target and percentage towards every badge in the catalog."""
    stats = compute_career_stats(matches, player_name)
    progress = {}
    for badge_id, _, _, _, counter, target in ACHIEVEMENTS:
        current = stats[counter]
        progress[badge_id] = {
            'current': current,
            'target': target,
            'percentage': min(100, round(current / target * 100, 1)),
        }
    return progress
