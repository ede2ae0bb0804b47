"""Repository for the Cart aggregate."""

from storefront.cart.cart import Cart
from storefront.domain import storefront


@storefront.repository(part_of=Cart)
class CartRepository:
    def find_by_user(self, user_id) -> Cart | None:
        results = self._dao.query.filter(user_id=str(user_id)).all().items
        return results[0] if results else None

    def for_user(self, user_id) -> Cart:
        """The user's cart, or a new empty one that is not yet persisted."""
        return self.find_by_user(user_id) or Cart.create(user_id)
