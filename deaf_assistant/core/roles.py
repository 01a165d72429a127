# deaf_assistant/core/roles.py

ADMIN = "Admin"
USER = "User"
INSTRUCTOR = "Instructor"
PREMIUM = "Premium"
MODERATOR = "Moderator"


def all_roles() -> list[str]:
    return [ADMIN, USER, INSTRUCTOR, PREMIUM, MODERATOR]
