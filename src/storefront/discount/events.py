"""Domain events for the Discount aggregate."""

from protean.fields import Boolean, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Discount")
class DiscountCreated:
    __version__ = 1

    discount_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    value = String(required=True)


@storefront.event(part_of="Discount")
class DiscountRedeemed:
    """A committed order applied the discount code."""

    __version__ = 1

    discount_id = Identifier(required=True)
    code = String(required=True)
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    discount_amount = String(required=True)
    usage_count = Integer(required=True)


@storefront.event(part_of="Discount")
class DiscountUsageRevoked:
    __version__ = 1

    discount_id = Identifier(required=True)
    code = String(required=True)
    order_id = Identifier(required=True)
    usage_count = Integer(required=True)


@storefront.event(part_of="Discount")
class DiscountAvailabilityChanged:
    __version__ = 1

    discount_id = Identifier(required=True)
    code = String(required=True)
    is_active = Boolean(required=True)
