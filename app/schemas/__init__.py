from app.schemas.attendance import (
    CheckInStatus,
    AttendanceRecord,
    AttendanceWithMember,
    CheckInRequest,
    SelfCheckInRequest,
    CheckInResult
)
from app.schemas.member import Badge, AttendanceDay, MemberProgress
from app.schemas.leaderboard import LeaderboardEntry, Leaderboard
