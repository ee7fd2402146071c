"""
Users module - Accounts and the admin allow-list.
"""

from bursary.modules.users.models import AdminUser, User
from bursary.modules.users.repository import AdminAllowListRepository, UserRepository

__all__ = ["AdminAllowListRepository", "AdminUser", "User", "UserRepository"]
