from .base_repository import BaseRepository
from .recipient_account_repository import RecipientAccountRepository
from .user_repository import UserRepository

__all__ = ["BaseRepository", "RecipientAccountRepository", "UserRepository"]
