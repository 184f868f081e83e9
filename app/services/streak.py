"""
Cálculo de rachas de asistencia.

Funciones puras (sin I/O): el repositorio de asistencia entrega las fechas
y estas funciones solo hacen aritmética de calendario.
"""
from datetime import date, timedelta
from typing import Iterable, List, Tuple

ONE_DAY = timedelta(days=1)


def current_streak(dates: Iterable[date], today: date) -> int:
    """
    Racha actual de días consecutivos con asistencia.

    Si el miembro ya hizo check-in hoy, la racha termina hoy; si todavía no,
    termina ayer (la racha sigue intacta hasta que acabe el día). Devuelve 0
    si no hay asistencia ni hoy ni ayer.

    Args:
        dates: Fechas de check-in (ordenadas o no, con o sin duplicados)
        today: Hoy en la zona horaria de check-in

    Returns:
        Número de días consecutivos (>= 0)
    """
    date_set = set(dates)
    anchor = today if today in date_set else today - ONE_DAY

    streak = 0
    while anchor in date_set:
        streak += 1
        anchor -= ONE_DAY
    return streak


def longest_streak(dates: Iterable[date]) -> int:
    """Racha más larga de días consecutivos en todo el historial."""
    ordered = sorted(set(dates))
    if not ordered:
        return 0

    max_streak = 1
    streak = 1
    for previous, current in zip(ordered, ordered[1:]):
        if current - previous == ONE_DAY:
            streak += 1
            max_streak = max(max_streak, streak)
        else:
            streak = 1
    return max_streak


def attendance_grid(dates: Iterable[date], today: date, days: int = 30) -> List[Tuple[date, bool]]:
    """
    Grid de los últimos `days` días terminando hoy (inclusive), del más antiguo al más reciente.
    """
    date_set = set(dates)
    start = today - timedelta(days=days - 1)
    return [
        (start + timedelta(days=offset), (start + timedelta(days=offset)) in date_set)
        for offset in range(days)
    ]
