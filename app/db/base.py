# Importar todos los modelos para que Alembic los detecte
from app.db.base_class import Base  # noqa
from app.models.gym import Gym  # noqa
from app.models.member import Member, MemberBadge  # noqa
from app.models.attendance import Attendance  # noqa
from app.models.lead import Lead  # noqa
