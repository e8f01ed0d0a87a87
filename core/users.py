"""User registration and lookup."""

import re

from .errors import ConflictError, NotFoundError, ValidationError
from .interfaces import Storage, USERS
from .utils import utc_now

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MAX_USERNAME_LENGTH = 50


class UserService:
    def __init__(self, storage: Storage, clock=utc_now):
        self.storage = storage
        self.clock = clock

    def register(self, email: str, username: str) -> dict:
        email = (email or '').strip().lower()
        username = (username or '').strip()
        if not EMAIL_RE.match(email):
            raise ValidationError("A valid email address is required")
        if not username or len(username) > MAX_USERNAME_LENGTH:
            raise ValidationError(f"Username must be 1-{MAX_USERNAME_LENGTH} characters")
        if self.storage.find_one(USERS, email=email):
            raise ConflictError("Email is already registered")
        return self.storage.create(USERS, {
            'email': email,
            'username': username,
            'email_reminders_enabled': True,
            'created_at': self.clock()
        })

    def get(self, user_id: str) -> dict:
        user = self.storage.find_one(USERS, id=user_id)
        if user is None:
            raise NotFoundError('User', user_id)
        return user

    def exists(self, user_id: str) -> bool:
        return self.storage.find_one(USERS, id=user_id) is not None
