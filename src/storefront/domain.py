"""Storefront domain: catalogue, carts, discounts, checkout and order lifecycle.

The checkout engine turns a customer's cart and an optional discount code
into a priced, stock-validated order in a single unit of work, and governs
the order's status transitions afterwards.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")
