"""
Caller capability and role-scoped order collections.

Every read of orders for listing or analytics goes through ScopedOrders, so
the aggregator never sees rows the caller is not allowed to see.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from lumberdesk.models import UserRole


@dataclass(frozen=True)
class Caller:
    """Who is asking: user id, role and the seller identity they act as."""
    user_id: Optional[str]
    role: str
    seller_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @classmethod
    def from_user(cls, user) -> 'Caller':
        return cls(
            user_id=user.id,
            role=user.role,
            seller_id=user.seller_id,
            email=user.email,
            name=user.name,
        )

    def can_see(self, order) -> bool:
        """Admins see every order; sales users only their own seller's orders."""
        if self.is_admin:
            return True
        return self.seller_id is not None and order.seller_id == self.seller_id

    def can_modify(self, order) -> bool:
        return self.can_see(order)


@dataclass(frozen=True)
class ScopedOrders:
    """An order collection already restricted to what ``caller`` may see."""
    caller: Caller
    orders: Tuple = ()

    @classmethod
    def from_orders(cls, caller: Caller, orders: Optional[Iterable]) -> 'ScopedOrders':
        """Apply the role restriction in memory (used for pre-fetched rows)."""
        visible = tuple(o for o in (orders or ()) if caller.can_see(o))
        return cls(caller=caller, orders=visible)

    def __iter__(self):
        return iter(self.orders)

    def __len__(self):
        return len(self.orders)
