from deaf_assistant.db.base import Base  # noqa
from deaf_assistant.models.user import User, Role, UserRole  # noqa
from deaf_assistant.models.lesson import Lesson  # noqa
from deaf_assistant.models.media import Media  # noqa
from deaf_assistant.models.feedback import Feedback  # noqa
from deaf_assistant.models.subscription import Subscription  # noqa
from deaf_assistant.models.refresh_token import UserRefreshToken  # noqa
from deaf_assistant.models.account_token import AccountToken  # noqa
