"""
Shared pytest fixtures for match tracker tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
from datetime import datetime, timedelta, timezone

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

BASE_DATE = datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc)


def make_match(player_a, player_b, score_a, score_b, day=0, tournament_id=None):
    """Match dict played ``day`` days after BASE_DATE."""
    return {
        'player_a': player_a,
        'player_b': player_b,
        'score_a': score_a,
        'score_b': score_b,
        'date': (BASE_DATE + timedelta(days=day)).isoformat(),
        'tournament_id': tournament_id,
    }


@pytest.fixture
def golden_matches():
    """A beats B 3-1, then B-A 2-2, then A-C 0-0."""
    return [
        make_match('A', 'B', 3, 1, day=0),
        make_match('B', 'A', 2, 2, day=1),
        make_match('A', 'C', 0, 0, day=2),
    ]


@pytest.fixture
def season_matches():
    """A small season with distinct ranking keys for every player."""
    return [
        make_match('Alice', 'Bob', 2, 1, day=0),
        make_match('Carol', 'Dave', 4, 0, day=1),
        make_match('Alice', 'Carol', 1, 1, day=2),
        make_match('Bob', 'Dave', 3, 2, day=3),
        make_match('Dave', 'Alice', 0, 5, day=4),
        make_match('Carol', 'Bob', 2, 2, day=5),
        make_match('Alice', 'Bob', 0, 1, day=6),
    ]


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point the app at an empty temporary data directory."""
    import app as app_module
    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    return tmp_path


@pytest.fixture
def client(data_dir):
    """Create a test client backed by a temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
