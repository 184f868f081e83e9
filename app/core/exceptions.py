"""
Taxonomía de errores del flujo de check-in.

- DuplicateCheckInError: esperado, "ya hizo check-in hoy". No se loguea como error.
- NotAMemberError: el miembro no pertenece al gimnasio (o está inactivo). Se rechaza antes de escribir.
- StorageFailureError: fallo transitorio de almacenamiento. El cliente puede reintentar.
- BadgeEvaluationError: fallo evaluando badges. Se loguea y nunca llega al cliente del check-in.
"""
from datetime import date
from typing import Optional


class CheckInError(Exception):
    """Base para todos los errores del motor de check-in."""
    pass


class DuplicateCheckInError(CheckInError):
    """Ya existe un registro de asistencia para (miembro, gimnasio, fecha)."""

    def __init__(self, member_id: int, gym_id: int, check_in_date: date):
        self.member_id = member_id
        self.gym_id = gym_id
        self.check_in_date = check_in_date
        super().__init__(
            f"Miembro {member_id} ya hizo check-in en gym {gym_id} el {check_in_date.isoformat()}"
        )


class NotAMemberError(CheckInError):
    """El miembro (o usuario) no tiene una membresía activa en el gimnasio."""

    def __init__(self, gym_id: int, member_id: Optional[int] = None, user_id: Optional[int] = None):
        self.gym_id = gym_id
        self.member_id = member_id
        self.user_id = user_id
        who = f"miembro {member_id}" if member_id is not None else f"usuario {user_id}"
        super().__init__(f"El {who} no pertenece al gimnasio {gym_id}")


class StorageFailureError(CheckInError):
    """Error de almacenamiento transitorio."""
    pass


class BadgeEvaluationError(CheckInError):
    """Error evaluando o persistiendo badges de un miembro."""
    pass
