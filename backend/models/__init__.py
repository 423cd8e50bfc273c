"""ORM models.  Importing the package registers both mappers."""

from models.user import User                  # noqa: F401
from models.user_session import UserSession   # noqa: F401
