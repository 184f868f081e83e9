from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.db.base_class import Base


class LeadSource(str, enum.Enum):
    GYM_PAGE = "gym_page"
    REFERRAL = "referral"
    TRIAL = "trial"
    WALKIN = "walkin"
    OTHER = "other"


class LeadStatus(str, enum.Enum):
    NEW = "new"
    CONTACTED = "contacted"
    CONVERTED = "converted"  # Referido exitoso
    LOST = "lost"


class Lead(Base):
    """
    Prospecto de un gimnasio. Si tiene referrer_id, fue referido por un miembro;
    cuenta como referido exitoso cuando su estado es CONVERTED.
    """
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True)
    gym_id = Column(Integer, ForeignKey("gyms.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    source = Column(Enum(LeadSource), nullable=False, default=LeadSource.OTHER)
    referrer_id = Column(Integer, ForeignKey("members.id"), nullable=True, index=True)
    status = Column(Enum(LeadStatus), nullable=False, default=LeadStatus.NEW, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    referrer = relationship("Member")
