"""Repository for the Order aggregate."""

from storefront.domain import storefront
from storefront.order.order import Order

# Upper bound for reporting queries; the default page size is much smaller
REPORT_LIMIT = 100_000


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_by_user(self, user_id) -> list[Order]:
        """Orders placed by ``user_id``, newest first."""
        results = self._dao.query.filter(user_id=str(user_id)).limit(REPORT_LIMIT).all().items
        return sorted(results, key=lambda order: order.created_at, reverse=True)

    def find_by_status(self, status: str) -> list[Order]:
        return self._dao.query.filter(status=status).limit(REPORT_LIMIT).all().items

    def find_all(self) -> list[Order]:
        return self._dao.query.limit(REPORT_LIMIT).all().items
