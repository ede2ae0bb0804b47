"""Discount management: commands and handler for discount codes."""

from protean import handle
from protean.fields import Boolean, DateTime, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.discount.discount import Discount
from storefront.dispatch import process
from storefront.domain import logger, storefront
from storefront.errors import DiscountNotFound, DuplicateDiscountCode


@storefront.command(part_of="Discount")
class CreateDiscount:
    code = String(required=True, max_length=50)
    discount_type = String(required=True, max_length=20)
    value = String(required=True, max_length=20)
    description = Text()
    min_order_amount = String(max_length=20)
    max_discount_amount = String(max_length=20)
    usage_limit = Integer(min_value=0)
    start_date = DateTime()
    end_date = DateTime()
    is_active = Boolean(default=True)


@storefront.command(part_of="Discount")
class ActivateDiscount:
    code = String(required=True, max_length=50)


@storefront.command(part_of="Discount")
class DeactivateDiscount:
    code = String(required=True, max_length=50)


def load_discount(code) -> Discount:
    discount = current_domain.repository_for(Discount).find_by_code(code)
    if discount is None:
        raise DiscountNotFound(code)
    return discount


@storefront.command_handler(part_of=Discount)
class ManageDiscountHandler:
    @handle(CreateDiscount)
    def create_discount(self, command):
        repo = current_domain.repository_for(Discount)
        if repo.find_by_code(command.code) is not None:
            raise DuplicateDiscountCode(command.code.strip().upper())

        discount = Discount.create(
            code=command.code,
            discount_type=command.discount_type,
            value=command.value,
            description=command.description,
            min_order_amount=command.min_order_amount,
            max_discount_amount=command.max_discount_amount,
            usage_limit=command.usage_limit,
            start_date=command.start_date,
            end_date=command.end_date,
            is_active=command.is_active if command.is_active is not None else True,
        )
        repo.add(discount)
        logger.info("Discount created", code=discount.code, discount_type=discount.discount_type)
        return str(discount.id)

    @handle(ActivateDiscount)
    def activate(self, command):
        discount = load_discount(command.code)
        discount.activate()
        current_domain.repository_for(Discount).add(discount)

    @handle(DeactivateDiscount)
    def deactivate(self, command):
        discount = load_discount(command.code)
        discount.deactivate()
        current_domain.repository_for(Discount).add(discount)


def create_discount(**fields) -> str:
    """Create a discount code; codes are unique regardless of case."""
    return process(CreateDiscount(**fields))
