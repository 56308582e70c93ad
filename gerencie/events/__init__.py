"""Change notification package."""

from gerencie.events.notifier import ChangeNotifier

__all__ = ["ChangeNotifier"]
