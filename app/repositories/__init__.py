# Inicializador del paquete repositories
from app.repositories.async_base import AsyncBaseRepository

from app.repositories.async_attendance import async_attendance_repository
from app.repositories.async_member import async_member_repository
from app.repositories.async_lead import async_lead_repository
