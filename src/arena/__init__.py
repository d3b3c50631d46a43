"""
Tournament engine: ranking, schedules, knockout brackets, table allocation
and stage progression.
"""
from .errors import AmbiguousAdvancementWarning, IllegalStateError, TournamentError, ValidationError
from .models import KnockoutLogic, Stage, TieBreakRule, Tournament, TournamentFormat
from .progression import TournamentPhase, determine_phase, record_result, start_tournament
from .ranking import rank
