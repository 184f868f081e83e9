"""
Utilidades para el manejo de zonas horarias y fechas de check-in.

Todo cálculo de "hoy" en el sistema pasa por este módulo y usa una única zona
horaria civil fija (CHECKIN_TIMEZONE, por defecto Asia/Kolkata, UTC+5:30).
Nunca se usa la zona horaria local de la máquina.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple
import pytz

from app.core.config import get_settings


def utc_now() -> datetime:
    """Instante actual como datetime aware en UTC."""
    return datetime.now(timezone.utc)


def get_checkin_timezone(tz_name: Optional[str] = None):
    """Devuelve el tzinfo de pytz para la zona de check-in configurada."""
    return pytz.timezone(tz_name or get_settings().CHECKIN_TIMEZONE)


def convert_utc_to_local(utc_dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """
    Convierte un datetime UTC a hora local de la zona de check-in.

    Args:
        utc_dt: Datetime en UTC (si es naive, se asume UTC)
        tz_name: Zona horaria opcional; por defecto CHECKIN_TIMEZONE

    Returns:
        Datetime aware en la zona horaria indicada
    """
    if utc_dt.tzinfo is None:
        # Si es naive, asumimos que es UTC
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)

    return utc_dt.astimezone(get_checkin_timezone(tz_name))


def get_checkin_date(instant: datetime, tz_name: Optional[str] = None) -> date:
    """
    Fecha de calendario (año-mes-día) de un instante en la zona de check-in.

    Función pura: el mismo instante siempre produce la misma fecha,
    independientemente de la zona horaria del host.

    Args:
        instant: Instante del check-in (naive se interpreta como UTC)
        tz_name: Zona horaria opcional; por defecto CHECKIN_TIMEZONE

    Returns:
        date civil en la zona horaria fija
    """
    return convert_utc_to_local(instant, tz_name).date()


def get_checkin_today(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> date:
    """Fecha de "hoy" en la zona de check-in."""
    return get_checkin_date(now or utc_now(), tz_name)


def get_month_range(day: date) -> Tuple[date, date]:
    """
    Rango [primer día del mes, primer día del mes siguiente) que contiene `day`.
    """
    start = day.replace(day=1)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def most_recent_weekday(day: date, weekday: int) -> date:
    """
    Retrocede desde `day` (inclusive) hasta el día de la semana indicado.

    `weekday` sigue la convención de date.weekday(): lunes=0 ... domingo=6.
    """
    return day - timedelta(days=(day.weekday() - weekday) % 7)
