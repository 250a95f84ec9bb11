from .inactivity import ActivityTimer, SessionInactivityController
from .session_expiry import Notice, SessionExpiryHandler, SessionStore, ensure_fresh_start
from .subscriptions import OneShotListener, Subscription, SubscriptionGroup

__all__ = [
    "ActivityTimer",
    "SessionInactivityController",
    "Notice",
    "SessionExpiryHandler",
    "SessionStore",
    "ensure_fresh_start",
    "OneShotListener",
    "Subscription",
    "SubscriptionGroup",
]
