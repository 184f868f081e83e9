"""
Base repository async para lecturas genéricas.
Soporta multi-tenancy con filtrado automático por gym_id.
"""
from typing import TypeVar, Generic, Optional, Any, Type
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

ModelType = TypeVar("ModelType")


class AsyncBaseRepository(Generic[ModelType]):
    """
    Repositorio base genérico async.

    Características:
    - Multi-tenant aware (gym_id filtering automático)
    - Compatible con SQLAlchemy 2.0

    Uso:
        class MemberRepository(AsyncBaseRepository[Member]):
            # Métodos específicos del modelo
            pass
    """

    def __init__(self, model: Type[ModelType]):
        """
        Inicializar repositorio con el modelo SQLAlchemy.

        Args:
            model: Clase del modelo SQLAlchemy (ej: Member, Attendance)
        """
        self.model = model

    async def get(
        self,
        db: AsyncSession,
        id: Any,
        gym_id: Optional[int] = None
    ) -> Optional[ModelType]:
        """
        Obtener un objeto por ID con filtro opcional de gym_id.

        Example:
            member = await async_member_repository.get(db, id=123, gym_id=1)
        """
        stmt = select(self.model).where(self.model.id == id)

        # Filtrar por gym_id si el modelo lo soporta y se proporciona
        if gym_id is not None and hasattr(self.model, "gym_id"):
            stmt = stmt.where(self.model.gym_id == gym_id)

        result = await db.execute(stmt)
        return result.scalar_one_or_none()
