# Command-line league report from a matches YAML file

import argparse
import os
import yaml
from core.standings import compute_standings, merge_participants, compute_overall_stats, compute_records
from core.achievements import compute_achievements, get_player_tier


def load_matches(file_path):
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or {}
    return data.get('matches', [])


def format_table(table):
    lines = [f"{'#':>2}  {'Player':<20} {'P':>3} {'W':>3} {'D':>3} {'L':>3} {'GF':>4} {'GA':>4} {'GD':>4} {'Pts':>4}  Form"]
    for position, row in enumerate(table, start=1):
        # Form is stored newest first; print it oldest to newest
        form = ''.join(reversed(row['form']))
        lines.append(
            f"{position:>2}  {row['name']:<20} {row['matches_played']:>3} {row['wins']:>3} {row['draws']:>3} "
            f"{row['losses']:>3} {row['goals_for']:>4} {row['goals_against']:>4} {row['goal_difference']:>+4} "
            f"{row['points']:>4}  {form}"
        )
    return lines


def format_records(matches):
    overall = compute_overall_stats(matches)
    records = compute_records(matches)
    lines = [
        f"Matches: {overall['total_matches']}  Goals: {overall['total_goals']}  "
        f"Avg goals/match: {overall['avg_goals_per_match']}"
    ]
    for label, key in (('Biggest win', 'biggest_win'), ('Highest scoring', 'highest_scoring_match')):
        match = records[key]
        if match:
            lines.append(f"{label}: {match['player_a']} {match['score_a']}-{match['score_b']} {match['player_b']}")
    streak = records['longest_streak']
    if streak:
        lines.append(f"Longest win streak: {streak['player']} ({streak['length']})")
    return lines


def main():
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    parser = argparse.ArgumentParser(description='Print the league table and records.')
    parser.add_argument('matches_file', nargs='?', default=os.path.join(base_dir, 'data', 'matches.yaml'))
    parser.add_argument('--tournament', type=int, help='Only count matches of this tournament id')
    parser.add_argument('--participants', nargs='*', default=[], help='Roster to list even without matches')
    parser.add_argument('--player', help='Also list achievements for this player')
    args = parser.parse_args()

    if not os.path.exists(args.matches_file):
        print(f"No matches file found at {args.matches_file}")
        return 1

    matches = load_matches(args.matches_file)
    if args.tournament is not None:
        matches = [m for m in matches if m.get('tournament_id') == args.tournament]

    table = merge_participants(compute_standings(matches), args.participants)
    if not table:
        print("No matches recorded.")
        return 0

    print("\n--- League Table ---")
    for line in format_table(table):
        print(line)

    print("\n--- Records ---")
    for line in format_records(matches):
        print(line)

    if args.player:
        tier = get_player_tier(matches, args.player)
        print(f"\n--- Achievements: {args.player} (Tier {tier['name']}, {tier['points']} pts) ---")
        achievements = compute_achievements(matches, args.player)
        if not achievements:
            print("  None unlocked yet.")
        for achievement in achievements:
            print(f"  [{achievement['rarity']}] {achievement['name']}: {achievement['description']} ({achievement['detail']})")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
