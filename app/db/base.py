# Import all models here so create_all and Alembic can detect them
from app.db.session import Base

from app.modules.user_management.models.user import User, EmailVerificationToken
from app.modules.business_profiles.models.business_profile import BusinessProfile, BusinessFollower
from app.modules.statuses.models.status import Status, StatusView, StatusLike, StatusReply
from app.modules.notifications.models.notification import Notification
from app.modules.password_reset.models.password_reset import PasswordResetToken
