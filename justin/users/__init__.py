"""Subscribers."""

from .manager import UserManager
from .models import NewUserRecord, Subscriber

__all__ = ["NewUserRecord", "Subscriber", "UserManager"]
