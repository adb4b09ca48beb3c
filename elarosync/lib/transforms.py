"""
elarostats sync - Record access and type converters

RawRecord is the one place where "absent field -> default" is decided.
Everything the mappers read goes through it.
"""
from typing import Any, Callable, Dict, Iterable, Optional, Union

FieldRef = Union[str, Iterable[str]]


def is_missing(value: Any) -> bool:
    """None and blank strings count as absent."""
    return value is None or (isinstance(value, str) and value.strip() == '')


# ============================================================================
# TYPE CONVERTERS
# ============================================================================

def safe_int(value: Any) -> Optional[int]:
    """Convert value to integer, handling None and junk"""
    if is_missing(value):
        return None
    try:
        return int(round(float(value)))
    except (ValueError, TypeError):
        return None


def safe_float(value: Any) -> Optional[float]:
    """Convert value to float, handling None and junk"""
    if is_missing(value):
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def safe_str(value: Any) -> Optional[str]:
    """Safely convert to string"""
    if is_missing(value):
        return None
    return str(value)


def parse_id(value: Any) -> Optional[int]:
    """Parse an upstream ID that may arrive as a string; 0 means no ID."""
    parsed = safe_int(value)
    return parsed or None


def team_abbr(value: Any) -> Optional[str]:
    """Abbreviation from a scoreboard team field like 'PHX 41'."""
    if is_missing(value):
        return None
    return str(value).strip().split(' ')[0] or None


def team_score(value: Any) -> int:
    """Score from a scoreboard team field like 'PHX 41' (0 when absent)."""
    if is_missing(value):
        return 0
    parts = str(value).strip().split(' ')
    if len(parts) < 2:
        return 0
    return safe_int(parts[1]) or 0


def season_type(value: Any) -> Optional[str]:
    """Query-string style season types ('Regular+Season') back to plain text."""
    if is_missing(value):
        return None
    return str(value).replace('+', ' ')


def identity(value: Any) -> Any:
    return value


TRANSFORMS: Dict[str, Callable[[Any], Any]] = {
    'safe_int': safe_int,
    'safe_float': safe_float,
    'safe_str': safe_str,
    'parse_id': parse_id,
    'team_abbr': team_abbr,
    'team_score': team_score,
    'season_type': season_type,
    'identity': identity,
}


def execute_transform(value: Any, transform_name: Optional[str]) -> Any:
    """Execute a named transform function on a value."""
    if transform_name is None:
        return value
    if transform_name not in TRANSFORMS:
        raise ValueError(f"Unknown transform: {transform_name}")
    return TRANSFORMS[transform_name](value)


# ============================================================================
# RAW RECORD
# ============================================================================

class RawRecord:
    """
    Read-only view over one upstream JSON record.

    Fields are optional: value() returns the declared default for anything
    absent, number() coalesces to zero and can sum several fields.
    """

    def __init__(self, data: Dict[str, Any]):
        if not isinstance(data, dict):
            raise TypeError(f"Upstream record must be a mapping, got {type(data).__name__}")
        self.data = data

    def has(self, field: str) -> bool:
        return not is_missing(self.data.get(field))

    def value(self, field: str, transform: Optional[str] = None, default: Any = None) -> Any:
        raw = self.data.get(field)
        if is_missing(raw):
            return default
        converted = execute_transform(raw, transform)
        return default if converted is None else converted

    def number(self, fields: FieldRef, default: float = 0) -> float:
        """Numeric value of one field, or the sum of several; absent parts count as default."""
        if isinstance(fields, str):
            fields = [fields]
        total = 0
        for field in fields:
            parsed = safe_float(self.data.get(field))
            part = default if parsed is None else parsed
            total += int(part) if float(part).is_integer() else part
        return total

    def difference(self, minuend: str, subtrahend: str) -> float:
        return self.number(minuend) - self.number(subtrahend)

    def __getitem__(self, field: str) -> Any:
        return self.data[field]

    def __repr__(self):
        return f"RawRecord({len(self.data)} fields)"
