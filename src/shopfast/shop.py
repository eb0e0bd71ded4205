"""Wiring of the in-memory stores into one application state object."""

import random
from dataclasses import dataclass, field

from .accounts import AccountStore
from .cart import CartStore
from .catalog import CatalogStore
from .checkout import CheckoutService
from .config import Settings
from .orders import OrderEngine
from .scheduler import AsyncioScheduler, Scheduler
from .seed import seed_products, seed_users


@dataclass
class Shop:
    """All process-lifetime state of a running shop."""

    settings: Settings
    catalog: CatalogStore
    accounts: AccountStore
    cart: CartStore
    orders: OrderEngine
    checkout: CheckoutService
    rng: random.Random = field(default_factory=random.Random)

    @classmethod
    def seeded(
        cls,
        settings: Settings | None = None,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
        **checkout_kwargs,
    ) -> "Shop":
        """
        Build a shop loaded with the seed users and catalog.

        Args:
            settings: Defaults to `Settings()`.
            scheduler: Confirmation scheduler; defaults to AsyncioScheduler.
            rng: Random source for simulated latencies.
            **checkout_kwargs: Passed through to CheckoutService (e.g. `sleep`).
        """
        settings = settings or Settings()
        rng = rng or random.Random()
        catalog = CatalogStore(seed_products())
        accounts = AccountStore(seed_users())
        cart = CartStore(catalog)
        orders = OrderEngine(
            catalog,
            cart,
            scheduler or AsyncioScheduler(),
            confirmation_delay=settings.confirmation_delay,
        )
        checkout = CheckoutService(accounts, cart, orders, settings=settings, rng=rng, **checkout_kwargs)
        return cls(
            settings=settings,
            catalog=catalog,
            accounts=accounts,
            cart=cart,
            orders=orders,
            checkout=checkout,
            rng=rng,
        )

    def shutdown(self) -> int:
        return self.orders.shutdown()
