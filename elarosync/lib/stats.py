"""
Shooting and efficiency formulas.

All of them return None when the denominator is zero instead of a
misleading 0.0.
"""
from typing import Optional


def efg_pct(fgm, fg3m, fga) -> Optional[float]:
    """Effective FG% = (FGM + 0.5 * 3PM) / FGA, 3 decimals."""
    if not fga:
        return None
    return round((fgm + 0.5 * fg3m) / fga, 3)


def ts_pct(pts, fga, fta) -> Optional[float]:
    """True shooting % = PTS / (2 * (FGA + 0.44 * FTA)), 3 decimals."""
    denominator = 2 * (fga + 0.44 * fta)
    if not denominator:
        return None
    return round(pts / denominator, 3)


def rating(points, possessions) -> Optional[float]:
    """Points per 100 possessions."""
    if not possessions:
        return None
    return 100.0 * points / possessions


def net_rating(pts, opp_pts, off_poss, def_poss) -> Optional[float]:
    """Offensive minus defensive rating, 1 decimal."""
    off_rating = rating(pts, off_poss)
    def_rating = rating(opp_pts, def_poss)
    if off_rating is None or def_rating is None:
        return None
    return round(off_rating - def_rating, 1)


METRICS = {
    'efg_pct': (efg_pct, ('fgm', 'fg3m', 'fga')),
    'ts_pct': (ts_pct, ('pts', 'fga', 'fta')),
    'net_rating': (net_rating, ('pts', 'opp_pts', 'off_poss', 'def_poss')),
}
