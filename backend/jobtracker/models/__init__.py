from jobtracker.models.user import User, Profile
from jobtracker.models.application import Application, Note
from jobtracker.models.notification import Notification

__all__ = ["User", "Profile", "Application", "Note", "Notification"]
