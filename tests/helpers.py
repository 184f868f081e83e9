from datetime import date, datetime, time, timezone

from app.core.timezone_utils import get_checkin_timezone


def ist_instant(day: date, hour: int = 7, minute: int = 0, second: int = 0) -> datetime:
    """Instante UTC correspondiente a day hh:mm:ss en la zona de check-in (IST)."""
    local = get_checkin_timezone().localize(datetime.combine(day, time(hour, minute, second)))
    return local.astimezone(timezone.utc)


async def seed_attendance(db, member, days):
    """Inserta asistencia histórica directamente en el libro (backfill)."""
    from app.models.attendance import Attendance

    db.add_all([
        Attendance(
            member_id=member.id,
            gym_id=member.gym_id,
            check_in_date=day,
            checked_in_at=ist_instant(day)
        )
        for day in days
    ])
    await db.commit()
