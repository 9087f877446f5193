import re
from typing import Iterable, List, Optional

from ..models.recipe import Step

# "10 minutes", "5 mins", "3min", "10 मिनट"
DURATION_PATTERN = re.compile(
    r"(\d+)\s*(?:minutes?\b|mins?\b|मिनट)",
    re.IGNORECASE,
)


def extract_duration(text: str) -> Optional[int]:
    """Minutes mentioned in a single step line, or None."""
    match = DURATION_PATTERN.search(text or "")
    if not match:
        return None
    minutes = int(match.group(1))
    return minutes if minutes > 0 else None


def build_steps(lines: Iterable[str]) -> List[Step]:
    return [
        Step(index=index, text=line, duration_minutes=extract_duration(line))
        for index, line in enumerate(lines)
    ]
