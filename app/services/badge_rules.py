"""
Tabla de reglas de badges.

Cada BadgeType tiene un predicado puro sobre un BadgeContext. La tabla es
fija y se evalúa completa en cada pasada: si el historial ya satisface varios
umbrales (ej: backfill histórico), todos se otorgan en la misma evaluación.

Reglas:
- first_week: check-ins totales >= 7
- 30_day_streak: racha actual >= 30
- 100_day_club: racha actual >= 100
- never_missed_monday: los 4 lunes más recientes (contando hoy si es lunes) con asistencia
- referral_1 / referral_3: >= 1 / >= 3 referidos convertidos
- top_10: dentro del top 10 del leaderboard mensual
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

from app.core.timezone_utils import most_recent_weekday
from app.models.member import BadgeType
from app.services.streak import current_streak

MONDAY = 0
MONDAYS_REQUIRED = 4
LEADERBOARD_TOP = 10


@dataclass(frozen=True)
class BadgeContext:
    """
    Señales sobre las que se evalúan las reglas.

    referral_count y leaderboard_rank vienen de colaboradores externos;
    None significa "no disponible" y la regla correspondiente no se cumple.
    """
    today: date
    dates: FrozenSet[date] = field(default_factory=frozenset)
    referral_count: Optional[int] = None
    leaderboard_rank: Optional[int] = None

    @property
    def total_checkins(self) -> int:
        return len(self.dates)

    @property
    def current_streak(self) -> int:
        return current_streak(self.dates, self.today)

    @classmethod
    def from_dates(cls, dates: Iterable[date], today: date, **signals) -> "BadgeContext":
        return cls(today=today, dates=frozenset(dates), **signals)


def recent_mondays(today: date, count: int = MONDAYS_REQUIRED) -> List[date]:
    """Los `count` lunes más recientes caminando hacia atrás desde hoy (inclusive)."""
    last_monday = most_recent_weekday(today, MONDAY)
    return [last_monday - timedelta(weeks=i) for i in range(count)]


def _first_week(ctx: BadgeContext) -> bool:
    return ctx.total_checkins >= 7


def _streak_30(ctx: BadgeContext) -> bool:
    return ctx.current_streak >= 30


def _club_100(ctx: BadgeContext) -> bool:
    return ctx.current_streak >= 100


def _never_missed_monday(ctx: BadgeContext) -> bool:
    return all(monday in ctx.dates for monday in recent_mondays(ctx.today))


def _referral_1(ctx: BadgeContext) -> bool:
    return (ctx.referral_count or 0) >= 1


def _referral_3(ctx: BadgeContext) -> bool:
    return (ctx.referral_count or 0) >= 3


def _top_10(ctx: BadgeContext) -> bool:
    return ctx.leaderboard_rank is not None and ctx.leaderboard_rank <= LEADERBOARD_TOP


BadgePredicate = Callable[[BadgeContext], bool]

# Orden de evaluación = orden de otorgamiento
BADGE_RULES: Dict[BadgeType, BadgePredicate] = {
    BadgeType.FIRST_WEEK: _first_week,
    BadgeType.STREAK_30: _streak_30,
    BadgeType.CLUB_100: _club_100,
    BadgeType.NEVER_MISSED_MONDAY: _never_missed_monday,
    BadgeType.REFERRAL_1: _referral_1,
    BadgeType.REFERRAL_3: _referral_3,
    BadgeType.TOP_10: _top_10,
}

# Reglas que necesitan señales externas
REFERRAL_RULES = frozenset({BadgeType.REFERRAL_1, BadgeType.REFERRAL_3})
LEADERBOARD_RULES = frozenset({BadgeType.TOP_10})


def pending_rules(earned_types: Iterable[str]) -> List[BadgeType]:
    """Tipos de badge que el miembro todavía no tiene."""
    earned = set(earned_types)
    return [badge_type for badge_type in BADGE_RULES if badge_type.value not in earned]


def evaluate_rules(
    earned_types: Iterable[str],
    context: BadgeContext,
    skip: Iterable[BadgeType] = ()
) -> List[BadgeType]:
    """
    Evalúa la tabla de reglas y devuelve los badges recién ganados.

    Args:
        earned_types: Tipos de badge que el miembro ya tiene (nunca se repiten)
        context: Historial y señales del miembro
        skip: Reglas a omitir en esta pasada (ej: su señal externa falló)

    Returns:
        Lista de BadgeType nuevos, en el orden de BADGE_RULES
    """
    skipped = set(skip)
    return [
        badge_type
        for badge_type in pending_rules(earned_types)
        if badge_type not in skipped and BADGE_RULES[badge_type](context)
    ]
