from __future__ import annotations

from app.config import Settings
from app.errors import UpgradeRequiredError
from app.models.schemas import Subscription
from app.services.supabase import SupabaseStore


def engine_allowed(engine: str, subscription: Subscription | None, excluded_plans: set[str]) -> bool:
    """DuckDuckGo is open to everyone; Google needs an active plan outside ``excluded_plans``."""
    if engine != "google":
        return True
    if subscription is None or subscription.status != "active":
        return False
    return (subscription.plan_name or "").lower() not in excluded_plans


class SubscriptionGate:
    def __init__(self, store: SupabaseStore | None, config: Settings):
        self.store = store
        self.config = config

    async def require_engine_access(self, engine: str, user_id: str | None) -> None:
        if engine != "google":
            return
        subscription = None
        if user_id and self.store is not None:
            subscription = await self.store.get_active_subscription(user_id)
        if not engine_allowed(engine, subscription, self.config.excluded_plan_names):
            raise UpgradeRequiredError("Google search is only available on Pro and Agency plans")
