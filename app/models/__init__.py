from app.models.gym import Gym
from app.models.member import Member, MemberBadge, BadgeType
from app.models.attendance import Attendance
from app.models.lead import Lead, LeadSource, LeadStatus
