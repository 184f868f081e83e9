from typing import Any

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, declared_attr

# Convención de nombres para que Alembic genere constraints estables
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    id: Any
    __name__: str

    # Tabla por defecto: nombre de la clase en minúsculas (los modelos la sobreescriben)
    @declared_attr.directive
    def __tablename__(cls) -> str:
        return cls.__name__.lower()
