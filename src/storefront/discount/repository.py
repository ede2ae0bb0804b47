"""Repository for the Discount aggregate."""

from storefront.discount.discount import Discount, normalize_code
from storefront.domain import storefront

# Upper bound for listing queries; the default page size is much smaller
LIST_LIMIT = 10_000


@storefront.repository(part_of=Discount)
class DiscountRepository:
    def find_by_code(self, code: str) -> Discount | None:
        """Find a Discount by code, ignoring case."""
        if not code or not code.strip():
            return None
        results = self._dao.query.filter(code=normalize_code(code)).all().items
        return results[0] if results else None

    def active(self) -> list[Discount]:
        """Active codes, ordered by code."""
        return self._dao.query.filter(is_active=True).order_by("code").limit(LIST_LIMIT).all().items

    def find_all(self) -> list[Discount]:
        return self._dao.query.order_by("code").limit(LIST_LIMIT).all().items
