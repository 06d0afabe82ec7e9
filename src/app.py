"""
Flask web application for the Match Tracker.

Thin JSON layer over the standings and bracket engine. Matches and tournaments
live in YAML files under DATA_DIR; every read-modify-write goes through a file
lock so concurrent bracket updates cannot overwrite each other.
"""
import os
import logging
import yaml
from datetime import datetime, timezone
from filelock import FileLock, Timeout
from flask import Flask, request, jsonify
from core.models import Match, coerce_matches
from core.standings import (
    compute_standings, merge_participants, compute_overall_stats, compute_records,
    compute_head_to_head, compute_monthly_champions, get_player_entry,
)
from core.achievements import (
    compute_achievements, calculate_achievement_points, calculate_achievement_progress,
    calculate_all_players_achievements,
    get_player_tier, get_next_tier_progress,
)
from core.analytics import PERIODS, compute_period_report
from core.elimination import BracketError, generate_bracket, apply_result, get_champion, get_bracket_display

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('MATCH_TRACKER_DATA_DIR', os.path.join(BASE_DIR, 'data'))
LOCK_TIMEOUT = float(os.environ.get('MATCH_TRACKER_LOCK_TIMEOUT', 10))
MATCHES_FILE = 'matches.yaml'
TOURNAMENTS_FILE = 'tournaments.yaml'


def _file_path(name: str) -> str:
    return os.path.join(DATA_DIR, name)


def _data_lock() -> FileLock:
    """Lock guarding every write to the data directory."""
    os.makedirs(DATA_DIR, exist_ok=True)
    return FileLock(_file_path('.lock'), timeout=LOCK_TIMEOUT)


def _load_yaml_list(name: str, key: str) -> list:
    path = _file_path(name)
    if not os.path.exists(path):
        return []
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {path}: {e}')
        return []
    if data is None:
        return []
    if not isinstance(data, dict) or not isinstance(data.get(key, []), list):
        app.logger.warning(f'Ignoring {path}: expected a mapping with a "{key}" list')
        return []
    return data.get(key, [])


def _save_yaml_list(name: str, key: str, items: list):
    os.makedirs(DATA_DIR, exist_ok=True)
    with open(_file_path(name), 'w', encoding='utf-8') as f:
        yaml.dump({key: items}, f, default_flow_style=False, allow_unicode=True)


def load_matches() -> list:
    """Load all stored matches from YAML."""
    return _load_yaml_list(MATCHES_FILE, 'matches')


def save_matches(matches: list):
    _save_yaml_list(MATCHES_FILE, 'matches', matches)


def load_tournaments() -> list:
    """Load the tournament registry (roster, bracket and status) from YAML."""
    return _load_yaml_list(TOURNAMENTS_FILE, 'tournaments')


def save_tournaments(tournaments: list):
    _save_yaml_list(TOURNAMENTS_FILE, 'tournaments', tournaments)


def _next_id(items: list) -> int:
    return max((item.get('id', 0) for item in items), default=0) + 1


def _find_tournament(tournaments: list, tournament_id: int):
    for tournament in tournaments:
        if tournament.get('id') == tournament_id:
            return tournament
    return None


def _matches_for(tournament_id=None) -> list:
    matches = load_matches()
    if tournament_id is not None:
        matches = [m for m in matches if m.get('tournament_id') == tournament_id]
    return matches


def validate_match_payload(payload: dict) -> tuple:
    """Validate a submitted match. Returns (match_dict, error_message)."""
    player_a = str(payload.get('player_a') or '').strip()
    player_b = str(payload.get('player_b') or '').strip()
    if not player_a or not player_b:
        return None, 'Both players are required.'
    if player_a == player_b:
        return None, 'A player cannot play against themselves.'

    scores = []
    for key in ('score_a', 'score_b'):
        value = payload.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            return None, f'{key} must be a non-negative integer.'
        scores.append(value)

    tournament_id = payload.get('tournament_id')
    if tournament_id is not None and (isinstance(tournament_id, bool) or not isinstance(tournament_id, int)):
        return None, 'tournament_id must be an integer.'

    try:
        match = Match(player_a, player_b, scores[0], scores[1],
                      payload.get('date') or datetime.now(timezone.utc),
                      tournament_id=tournament_id)
    except ValueError as e:
        return None, str(e)
    return match.to_dict(), None


@app.errorhandler(Timeout)
def data_locked(e):
    app.logger.warning(f'Data lock not acquired: {e}')
    return jsonify({'success': False, 'error': 'Data store is busy, please retry.'}), 503


# ---------------------------------------------------------------------------
# Matches
# ---------------------------------------------------------------------------

@app.route('/api/matches', methods=['GET'])
def list_matches():
    tournament_id = request.args.get('tournament', type=int)
    matches = sorted(coerce_matches(_matches_for(tournament_id)), key=Match.sort_key, reverse=True)
    return jsonify([m.to_dict() for m in matches])


@app.route('/api/matches', methods=['POST'])
def create_match():
    payload = request.get_json(silent=True) or {}
    match, error = validate_match_payload(payload)
    if error:
        return jsonify({'success': False, 'error': error}), 400

    with _data_lock():
        tournament_id = match['tournament_id']
        if tournament_id is not None and _find_tournament(load_tournaments(), tournament_id) is None:
            return jsonify({'success': False, 'error': f'Tournament {tournament_id} not found.'}), 400
        matches = load_matches()
        match['id'] = _next_id(matches)
        matches.append(match)
        save_matches(matches)

    app.logger.info(f"Recorded match {match['id']}: {match['player_a']} {match['score_a']}-"
                    f"{match['score_b']} {match['player_b']}")
    return jsonify({'success': True, 'match': match}), 201


@app.route('/api/matches/<int:match_id>', methods=['DELETE'])
def delete_match(match_id):
    with _data_lock():
        matches = load_matches()
        remaining = [m for m in matches if m.get('id') != match_id]
        if len(remaining) == len(matches):
            return jsonify({'success': False, 'error': 'Match not found.'}), 404
        save_matches(remaining)

    app.logger.info(f'Deleted match {match_id}')
    return jsonify({'success': True})


# ---------------------------------------------------------------------------
# Standings and statistics
# ---------------------------------------------------------------------------

@app.route('/api/standings')
def standings():
    tournament_id = request.args.get('tournament', type=int)
    if tournament_id is None:
        return jsonify(compute_standings(load_matches()))

    tournament = _find_tournament(load_tournaments(), tournament_id)
    if tournament is None:
        return jsonify({'success': False, 'error': 'Tournament not found.'}), 404
    table = compute_standings(_matches_for(tournament_id))
    return jsonify(merge_participants(table, tournament.get('participants', [])))


@app.route('/api/stats')
def stats():
    matches = load_matches()
    return jsonify({
        'overall': compute_overall_stats(matches),
        'records': compute_records(matches),
    })


@app.route('/api/head-to-head')
def head_to_head():
    player_a = request.args.get('player_a', '').strip()
    player_b = request.args.get('player_b', '').strip()
    if not player_a or not player_b:
        return jsonify({'success': False, 'error': 'player_a and player_b are required.'}), 400
    return jsonify(compute_head_to_head(load_matches(), player_a, player_b))


@app.route('/api/champions')
def champions():
    return jsonify(compute_monthly_champions(load_matches()))


@app.route('/api/analytics')
def analytics():
    period = request.args.get('period', 'week')
    if period not in PERIODS:
        return jsonify({'success': False, 'error': f'Unknown period: {period}'}), 400
    return jsonify(compute_period_report(load_matches(), period=period))


@app.route('/api/achievements')
def achievements_overview():
    """Every player's unlocked badge count, points and tier, most points first."""
    matches = coerce_matches(load_matches())
    players = []
    for match in matches:
        for player in (match.player_a, match.player_b):
            if player not in players:
                players.append(player)

    overview = []
    for player, unlocked in calculate_all_players_achievements(matches, players).items():
        points = calculate_achievement_points(unlocked)
        overview.append({
            'player': player,
            'unlocked': len(unlocked),
            'points': points,
            'tier': get_next_tier_progress(points)['current_tier']['name'],
        })
    overview.sort(key=lambda entry: -entry['points'])
    return jsonify(overview)


@app.route('/api/players/<name>/achievements')
def player_achievements(name):
    matches = coerce_matches(load_matches())
    achievements = compute_achievements(matches, name)
    points = calculate_achievement_points(achievements)
    return jsonify({
        'player': name,
        'standing': get_player_entry(compute_standings(matches), name),
        'achievements': achievements,
        'points': points,
        'tier': get_player_tier(matches, name),
        'next_tier': get_next_tier_progress(points),
        'progress': calculate_achievement_progress(matches, name),
    })


# ---------------------------------------------------------------------------
# Tournaments and brackets
# ---------------------------------------------------------------------------

@app.route('/api/tournaments', methods=['GET'])
def list_tournaments():
    return jsonify(load_tournaments())


@app.route('/api/tournaments', methods=['POST'])
def create_tournament():
    payload = request.get_json(silent=True) or {}
    name = str(payload.get('name') or '').strip()
    participants = [str(p).strip() for p in payload.get('participants', []) if str(p).strip()]
    if not name:
        return jsonify({'success': False, 'error': 'Tournament name is required.'}), 400
    if len(set(participants)) != len(participants):
        return jsonify({'success': False, 'error': 'Participants must be unique.'}), 400

    with _data_lock():
        tournaments = load_tournaments()
        tournament = {
            'id': _next_id(tournaments),
            'name': name,
            'participants': participants,
            'status': 'active',
            'champion': None,
            'bracket': None,
            'start_date': datetime.now(timezone.utc).isoformat(),
        }
        tournaments.append(tournament)
        save_tournaments(tournaments)

    app.logger.info(f"Created tournament {tournament['id']} '{name}' with {len(participants)} participants")
    return jsonify({'success': True, 'tournament': tournament}), 201


@app.route('/api/tournaments/<int:tournament_id>')
def show_tournament(tournament_id):
    tournament = _find_tournament(load_tournaments(), tournament_id)
    if tournament is None:
        return jsonify({'success': False, 'error': 'Tournament not found.'}), 404
    result = dict(tournament)
    if tournament.get('bracket'):
        result['bracket_display'] = get_bracket_display(tournament['bracket'])
    return jsonify(result)


@app.route('/api/tournaments/<int:tournament_id>/bracket', methods=['POST'])
def create_bracket(tournament_id):
    payload = request.get_json(silent=True) or {}
    regenerate = bool(payload.get('regenerate', False))

    with _data_lock():
        tournaments = load_tournaments()
        tournament = _find_tournament(tournaments, tournament_id)
        if tournament is None:
            return jsonify({'success': False, 'error': 'Tournament not found.'}), 404
        if tournament.get('bracket') and not regenerate:
            return jsonify({'success': False, 'error': 'Bracket already exists. Pass regenerate to replace it.'}), 409
        try:
            bracket = generate_bracket(tournament.get('participants', []))
        except BracketError as e:
            app.logger.warning(f'Bracket generation rejected for tournament {tournament_id}: {e}')
            return jsonify({'success': False, 'error': str(e)}), 400

        tournament['bracket'] = bracket
        tournament['status'] = 'active'
        tournament['champion'] = None
        save_tournaments(tournaments)

    app.logger.info(f'Generated bracket for tournament {tournament_id}')
    return jsonify({'success': True, 'bracket': bracket})


@app.route('/api/tournaments/<int:tournament_id>/bracket/matches/<int:match_id>', methods=['POST'])
def record_bracket_result(tournament_id, match_id):
    payload = request.get_json(silent=True) or {}
    score_a, score_b = payload.get('score_a'), payload.get('score_b')
    for value in (score_a, score_b):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            return jsonify({'success': False, 'error': 'Scores must be non-negative integers.'}), 400

    with _data_lock():
        tournaments = load_tournaments()
        tournament = _find_tournament(tournaments, tournament_id)
        if tournament is None:
            return jsonify({'success': False, 'error': 'Tournament not found.'}), 404
        if not tournament.get('bracket'):
            return jsonify({'success': False, 'error': 'Tournament has no bracket.'}), 400
        try:
            bracket = apply_result(tournament['bracket'], match_id, score_a, score_b)
        except BracketError as e:
            app.logger.warning(f'Result rejected for tournament {tournament_id} match {match_id}: {e}')
            return jsonify({'success': False, 'error': str(e)}), 400

        tournament['bracket'] = bracket
        champion = get_champion(bracket)
        if champion:
            tournament['status'] = 'completed'
            tournament['champion'] = champion
            app.logger.info(f"Tournament {tournament_id} completed, champion: {champion}")
        save_tournaments(tournaments)

    return jsonify({'success': True, 'bracket': bracket, 'champion': champion})


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    app.run(debug=os.environ.get('FLASK_DEBUG') == '1')
