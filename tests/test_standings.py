"""
Unit tests for league standings, overall stats and records.
"""
import random
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.models import Match
from core.standings import (
    compute_standings,
    merge_participants,
    compute_overall_stats,
    compute_records,
    compute_head_to_head,
    compute_monthly_champions,
    get_player_entry,
)
from conftest import make_match


class TestComputeStandings:
    """Tests for the league table."""

    def test_empty_matches(self):
        """Test no matches gives an empty table."""
        assert compute_standings([]) == []

    def test_golden_fixture(self, golden_matches):
        """Test exact aggregates and order for the three-match fixture."""
        table = compute_standings(golden_matches)

        assert [row['name'] for row in table] == ['A', 'C', 'B']

        a, c, b = table
        assert (a['matches_played'], a['wins'], a['draws'], a['losses']) == (3, 1, 2, 0)
        assert (a['goals_for'], a['goals_against'], a['goal_difference']) == (5, 3, 2)
        assert a['points'] == 5
        assert a['form'] == ['D', 'D', 'W']
        assert a['win_rate'] == 33

        assert (c['matches_played'], c['draws'], c['points'], c['goal_difference']) == (1, 1, 1, 0)
        assert c['form'] == ['D']

        assert (b['matches_played'], b['wins'], b['draws'], b['losses']) == (2, 0, 1, 1)
        assert (b['goals_for'], b['goals_against'], b['goal_difference']) == (3, 5, -2)
        assert b['points'] == 1
        assert b['form'] == ['D', 'L']
        assert b['win_rate'] == 0

    def test_season_ranking(self, season_matches):
        """Test points then goal difference decide the order."""
        table = compute_standings(season_matches)
        assert [row['name'] for row in table] == ['Alice', 'Bob', 'Carol', 'Dave']
        assert table[0]['points'] == table[1]['points'] == 7
        assert table[0]['goal_difference'] == 5
        assert table[1]['goal_difference'] == 1

    def test_goals_for_breaks_tie(self):
        """Test goals scored is the third ranking key."""
        matches = [
            make_match('Low', 'X', 1, 0, day=0),
            make_match('High', 'Y', 3, 2, day=1),
        ]
        table = compute_standings(matches)
        assert [row['name'] for row in table][:2] == ['High', 'Low']

    def test_aggregate_consistency(self, season_matches):
        """Test points and match counts are consistent for every player."""
        for row in compute_standings(season_matches):
            assert row['points'] == 3 * row['wins'] + row['draws']
            assert row['wins'] + row['losses'] + row['draws'] == row['matches_played']
            assert row['goals_for'] - row['goals_against'] == row['goal_difference']

    def test_fully_tied_players_keep_first_appearance_order(self):
        """Test the stable tie-break on identical ranking keys."""
        matches = [
            make_match('X', 'Y', 1, 1, day=0),
            make_match('Z', 'W', 1, 1, day=1),
        ]
        assert [row['name'] for row in compute_standings(matches)] == ['X', 'Y', 'Z', 'W']
        assert [row['name'] for row in compute_standings(list(reversed(matches)))] == ['Z', 'W', 'X', 'Y']

    def test_order_independent(self, season_matches):
        """Test shuffling the input does not change the table."""
        expected = compute_standings(season_matches)
        rng = random.Random(7)
        for _ in range(5):
            shuffled = list(season_matches)
            rng.shuffle(shuffled)
            assert compute_standings(shuffled) == expected

    def test_form_is_date_based_and_capped(self):
        """Test form takes the five newest results regardless of input order."""
        results = [(1, 0), (0, 1), (2, 2), (3, 0), (0, 2), (4, 1), (1, 1)]
        matches = [make_match('P', 'Q', a, b, day=i) for i, (a, b) in enumerate(results)]
        table = compute_standings(list(reversed(matches)))
        p = get_player_entry(table, 'P')
        # Newest first: days 6, 5, 4, 3, 2
        assert p['form'] == ['D', 'W', 'L', 'W', 'D']

    def test_accepts_match_objects(self, golden_matches):
        """Test Match objects give the same table as dicts."""
        objects = [Match.from_dict(m) for m in golden_matches]
        assert compute_standings(objects) == compute_standings(golden_matches)


class TestMergeParticipants:
    """Tests for adding roster players who have not played."""

    def test_missing_players_added_with_zero_stats(self, golden_matches):
        """Test unplayed entrants appear with an all-zero row."""
        table = merge_participants(compute_standings(golden_matches), ['A', 'B', 'C', 'D'])
        d = get_player_entry(table, 'D')
        assert d['matches_played'] == 0
        assert d['points'] == 0
        assert d['form'] == []

    def test_zero_row_ranked_by_same_rules(self):
        """Test a zero row ranks above a player with negative goal difference."""
        table = compute_standings([make_match('A', 'B', 2, 0)])
        merged = merge_participants(table, ['New'])
        assert [row['name'] for row in merged] == ['A', 'New', 'B']

    def test_input_table_untouched(self, golden_matches):
        """Test merging does not modify the table passed in."""
        table = compute_standings(golden_matches)
        snapshot = [dict(row) for row in table]
        merge_participants(table, ['Z'])
        assert table == snapshot

    def test_no_duplicates(self, golden_matches):
        """Test roster names already present are not duplicated."""
        merged = merge_participants(compute_standings(golden_matches), ['A', 'A', 'E', 'E'])
        assert [row['name'] for row in merged].count('A') == 1
        assert [row['name'] for row in merged].count('E') == 1


class TestOverallStats:
    """Tests for whole-league totals."""

    def test_empty(self):
        """Test zeroed stats for no matches."""
        assert compute_overall_stats([]) == {
            'total_matches': 0, 'total_goals': 0, 'avg_goals_per_match': 0
        }

    def test_average_rounded(self, golden_matches):
        """Test the average is rounded to one decimal."""
        stats = compute_overall_stats(golden_matches)
        assert stats['total_matches'] == 3
        assert stats['total_goals'] == 8
        assert stats['avg_goals_per_match'] == 2.7


class TestRecords:
    """Tests for season records."""

    def test_empty(self):
        """Test no records without matches."""
        assert compute_records([]) == {
            'biggest_win': None, 'highest_scoring_match': None, 'longest_streak': None
        }

    def test_season_records(self, season_matches):
        """Test biggest win, highest scoring match and longest streak."""
        records = compute_records(season_matches)
        biggest = records['biggest_win']
        assert (biggest['player_a'], biggest['player_b'], biggest['score_a'], biggest['score_b']) == ('Dave', 'Alice', 0, 5)
        highest = records['highest_scoring_match']
        # Bob 3-2 Dave is encountered before Dave 0-5 Alice
        assert (highest['player_a'], highest['score_a'], highest['score_b']) == ('Bob', 3, 2)
        assert records['longest_streak'] == {'player': 'Alice', 'length': 1}

    def test_draws_are_not_wins(self):
        """Test a league of draws has no biggest win or streak."""
        records = compute_records([make_match('A', 'B', 2, 2), make_match('A', 'B', 0, 0, day=1)])
        assert records['biggest_win'] is None
        assert records['longest_streak'] is None
        assert records['highest_scoring_match']['score_a'] == 2

    def test_streak_uses_chronological_order(self):
        """Test streaks follow match dates, not input order."""
        matches = [
            make_match('A', 'B', 1, 0, day=3),
            make_match('A', 'B', 0, 1, day=1),
            make_match('A', 'B', 1, 0, day=2),
            make_match('A', 'B', 1, 0, day=0),
        ]
        # Chronologically A: W L W W -> best run of 2
        assert compute_records(matches)['longest_streak'] == {'player': 'A', 'length': 2}

    def test_streak_reset_by_draw(self):
        """Test a draw ends a winning run."""
        matches = [
            make_match('A', 'B', 1, 0, day=0),
            make_match('A', 'B', 1, 1, day=1),
            make_match('A', 'B', 1, 0, day=2),
        ]
        assert compute_records(matches)['longest_streak']['length'] == 1

    def test_streak_tie_goes_to_first_player(self):
        """Test equal streaks are credited to the first player seen."""
        matches = [
            make_match('C', 'D', 2, 0, day=0),
            make_match('A', 'B', 0, 3, day=1),
        ]
        assert compute_records(matches)['longest_streak'] == {'player': 'C', 'length': 1}


class TestHeadToHead:
    """Tests for the head-to-head summary."""

    def test_golden_head_to_head(self, golden_matches):
        """Test A against B over two meetings."""
        h2h = compute_head_to_head(golden_matches, 'A', 'B')
        assert h2h['total'] == 2
        assert (h2h['wins_a'], h2h['wins_b'], h2h['draws']) == (1, 0, 1)
        assert (h2h['goals_a'], h2h['goals_b']) == (5, 3)
        assert h2h['matches'][0]['score_a'] == 2  # B-A 2-2 is the newest meeting

    def test_reversed_perspective(self, golden_matches):
        """Test swapping players swaps the counts."""
        h2h = compute_head_to_head(golden_matches, 'B', 'A')
        assert (h2h['wins_a'], h2h['wins_b']) == (0, 1)

    def test_no_meetings(self, golden_matches):
        """Test players who never met."""
        h2h = compute_head_to_head(golden_matches, 'B', 'C')
        assert h2h['total'] == 0
        assert h2h['matches'] == []


class TestMonthlyChampions:
    """Tests for monthly champions."""

    def test_newest_month_first(self, golden_matches):
        """Test each month's leader, newest month first."""
        matches = golden_matches + [make_match('C', 'B', 1, 0, day=31)]
        champions = compute_monthly_champions(matches)
        assert [c['month'] for c in champions] == ['2026-04', '2026-03']
        assert champions[0]['champion']['name'] == 'C'
        assert champions[1]['champion']['name'] == 'A'
        assert champions[1]['total_matches'] == 3

    def test_empty(self):
        """Test no champions without matches."""
        assert compute_monthly_champions([]) == []


class TestGetPlayerEntry:
    """Tests for row lookup."""

    def test_missing_player(self, golden_matches):
        """Test lookup of an unknown player."""
        assert get_player_entry(compute_standings(golden_matches), 'Nobody') is None
