"""
elarostats sync - Team Records

Win/loss records, home/away splits, last-10 and current streak, computed from
completed games in game_stats.
"""
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

LAST_N = 10


@dataclass(frozen=True)
class GameResult:
    game_id: str
    game_date: Optional[str]
    home_abbr: str
    away_abbr: str
    home_score: int
    away_score: int

    @property
    def is_tie(self) -> bool:
        return self.home_score == self.away_score

    @property
    def winner(self) -> Optional[str]:
        if self.is_tie:
            return None
        return self.home_abbr if self.home_score > self.away_score else self.away_abbr

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'GameResult':
        """Build from a game_stats row."""
        return cls(
            game_id=str(row['game_id']),
            game_date=str(row['game_date']) if row.get('game_date') else None,
            home_abbr=row['home_team_abbr'],
            away_abbr=row['away_team_abbr'],
            home_score=int(row.get('home_score') or 0),
            away_score=int(row.get('away_score') or 0),
        )


@dataclass
class TeamRecord:
    team: str
    wins: int = 0
    losses: int = 0
    home_wins: int = 0
    home_losses: int = 0
    away_wins: int = 0
    away_losses: int = 0
    last10_wins: int = 0
    last10_losses: int = 0
    streak: str = 'W0'
    results: List[bool] = field(default_factory=list, repr=False)

    @property
    def games_played(self) -> int:
        return self.wins + self.losses

    @property
    def win_pct(self) -> Optional[float]:
        if not self.games_played:
            return None
        return round(self.wins / self.games_played, 3)

    def to_record(self, team_id: Optional[int] = None) -> Dict[str, Any]:
        """Upstream-style record consumed by the team_records sync target."""
        return {
            'team': self.team,
            'team_id': team_id,
            'wins': self.wins,
            'losses': self.losses,
            'home_wins': self.home_wins,
            'home_losses': self.home_losses,
            'away_wins': self.away_wins,
            'away_losses': self.away_losses,
            'last10_wins': self.last10_wins,
            'last10_losses': self.last10_losses,
            'streak': self.streak,
        }


def streak_label(results: List[bool]) -> str:
    """
    Current streak from chronological results (True = win).

    'W3' after three straight wins, 'L2' after two straight losses.
    No games yields 'W0'.
    """
    if not results:
        return 'W0'
    last = results[-1]
    count = 0
    for won in reversed(results):
        if won != last:
            break
        count += 1
    return f"{'W' if last else 'L'}{count}"


def summarize_results(team: str, results: List[bool]) -> TeamRecord:
    """Overall, last-10 and streak for one team's chronological results."""
    recent = results[-LAST_N:]
    record = TeamRecord(team=team, results=list(results))
    record.wins = sum(1 for won in results if won)
    record.losses = len(results) - record.wins
    record.last10_wins = sum(1 for won in recent if won)
    record.last10_losses = len(recent) - record.last10_wins
    record.streak = streak_label(results)
    return record


def _chronological(games: Iterable[GameResult]) -> List[GameResult]:
    return sorted(games, key=lambda g: (g.game_date or '', g.game_id))


def compute_team_records(games: Iterable[GameResult]) -> Dict[str, TeamRecord]:
    """
    Records for every team appearing in games, keyed by abbreviation.

    Games are ordered by date (then game ID) before the streak and last-10 are
    taken. Ties are skipped.
    """
    results: Dict[str, List[bool]] = OrderedDict()
    splits: Dict[str, Dict[str, int]] = {}

    for game in _chronological(games):
        if game.is_tie:
            continue
        home_won = game.winner == game.home_abbr
        for team, won, side in ((game.home_abbr, home_won, 'home'),
                                (game.away_abbr, not home_won, 'away')):
            results.setdefault(team, []).append(won)
            split = splits.setdefault(team, {'home_wins': 0, 'home_losses': 0,
                                             'away_wins': 0, 'away_losses': 0})
            split[f"{side}_{'wins' if won else 'losses'}"] += 1

    records = OrderedDict()
    for team in sorted(results):
        record = summarize_results(team, results[team])
        for key, value in splits[team].items():
            setattr(record, key, value)
        records[team] = record
    return records
