from datetime import date as date_type, datetime, timezone


def parse_date(value):
    """Normalise a datetime, date or ISO-8601 string to an aware UTC-based datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date_type):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Invalid match date: {value!r}")
    else:
        raise ValueError(f"Invalid match date: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Match:
    def __init__(self, player_a, player_b, score_a, score_b, date, tournament_id=None, match_id=None):
        self.player_a = player_a
        self.player_b = player_b
        self.score_a = score_a
        self.score_b = score_b
        self.date = parse_date(date)
        self.tournament_id = tournament_id
        self.match_id = match_id

    @classmethod
    def from_dict(cls, data):
        return cls(
            player_a=data['player_a'],
            player_b=data['player_b'],
            score_a=data['score_a'],
            score_b=data['score_b'],
            date=data['date'],
            tournament_id=data.get('tournament_id'),
            match_id=data.get('id'),
        )

    def to_dict(self):
        data = {
            'player_a': self.player_a,
            'player_b': self.player_b,
            'score_a': self.score_a,
            'score_b': self.score_b,
            'date': self.date.isoformat(),
            'tournament_id': self.tournament_id,
        }
        if self.match_id is not None:
            data['id'] = self.match_id
        return data

    @property
    def winner(self):
        if self.score_a > self.score_b:
            return self.player_a
        if self.score_b > self.score_a:
            return self.player_b
        return None

    @property
    def total_goals(self):
        return self.score_a + self.score_b

    @property
    def margin(self):
        return abs(self.score_a - self.score_b)

    def involves(self, player):
        return player == self.player_a or player == self.player_b

    def perspective(self, player):
        """Return (goals_for, goals_against, opponent) as seen by ``player``."""
        if player == self.player_a:
            return self.score_a, self.score_b, self.player_b
        return self.score_b, self.score_a, self.player_a

    def outcome_for(self, player):
        goals_for, goals_against, _ = self.perspective(player)
        if goals_for > goals_against:
            return 'W'
        if goals_for < goals_against:
            return 'L'
        return 'D'

    def sort_key(self):
        # Date first; the remaining fields only make equal timestamps deterministic
        return (self.date, self.player_a, self.player_b, self.score_a, self.score_b)

    def __repr__(self):
        return (f"Match(player_a={self.player_a}, player_b={self.player_b}, "
                f"score={self.score_a}-{self.score_b}, date={self.date.isoformat()})")


def coerce_matches(matches):
    """Accept an iterable of Match objects or plain dicts and return a list of Match."""
    return [m if isinstance(m, Match) else Match.from_dict(m) for m in matches]
