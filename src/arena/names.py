"""
Team name suggestions from an external collaborator.

The collaborator is any callable returning a list of names. It never
influences the engine; a failing collaborator falls back to a fixed list.
"""
import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

FALLBACK_NAMES = ['Galaticos FC', 'Vila Real', 'Uniao da Bola', 'Resenha FC']

NameSuggester = Callable[[], List[str]]


def suggest_team_names(suggester: Optional[NameSuggester] = None, count: int = 8) -> List[str]:
    """Return up to count cleaned-up name suggestions."""
    count = max(count, 0)
    if suggester is None:
        return FALLBACK_NAMES[:count]
    try:
        raw = suggester() or []
    except Exception as e:
        logger.warning("Name suggestion service failed: %s", e)
        return FALLBACK_NAMES[:count]

    names = []
    for name in raw:
        name = str(name).strip()
        if name and name.casefold() not in {n.casefold() for n in names}:
            names.append(name)
    return names[:count] or FALLBACK_NAMES[:count]
