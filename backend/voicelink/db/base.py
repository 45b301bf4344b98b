# backend/voicelink/db/base.py

# Every model must be imported here so that Base.metadata knows about it.
# Alembic's env.py and the test fixtures call create_all / autogenerate
# against this metadata.
from voicelink.db.base_class import Base  # noqa: F401
from voicelink.db.models.daily_usage import DailyUsage  # noqa: F401
from voicelink.db.models.feedback import Feedback  # noqa: F401
from voicelink.db.models.guest_session import GuestSession  # noqa: F401
from voicelink.db.models.translation import Translation  # noqa: F401
from voicelink.db.models.user import User  # noqa: F401
