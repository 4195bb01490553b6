"""Discount code administration: creating and retiring codes."""

import json
import re

from protean import handle
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.discount.discount import DiscountCode, DiscountType, normalise_code
from storefront.domain import logger, storefront
from storefront.errors import ConflictError, InputError, Reason

_CODE_PATTERN = re.compile(r"^[A-Z0-9]+$")


@storefront.command(part_of="DiscountCode")
class CreateDiscountCode:
    code = String(required=True, max_length=50)
    description = String(max_length=255)
    discount_type = String(required=True, choices=DiscountType)
    value = Integer(required=True, min_value=1)
    min_order_amount = Integer(min_value=0)
    max_discount_amount = Integer(min_value=0)
    usage_limit = Integer(min_value=1)
    per_user_limit = Integer(min_value=1)
    starts_at = DateTime()
    expires_at = DateTime()
    is_active = Boolean(default=True)
    applicable_categories = Text()  # JSON array
    applicable_products = Text()  # JSON array


@storefront.command(part_of="DiscountCode")
class DeactivateDiscountCode:
    discount_code_id = Identifier(required=True)


@storefront.command_handler(part_of=DiscountCode)
class DiscountCodeHandler:
    @handle(CreateDiscountCode)
    def create_discount_code(self, command):
        code = normalise_code(command.code)
        if not _CODE_PATTERN.match(code):
            raise InputError("Code must contain only letters and numbers", {"code": ["Letters and numbers only"]})

        repo = current_domain.repository_for(DiscountCode)
        if repo._dao.query.filter(code=code).all().items:
            raise ConflictError(Reason.DUPLICATE_CODE, f"Discount code {code} already exists", {"code": code})

        discount = DiscountCode.create(
            code=code,
            discount_type=DiscountType(command.discount_type),
            value=command.value,
            description=command.description,
            min_order_amount=command.min_order_amount,
            max_discount_amount=command.max_discount_amount,
            usage_limit=command.usage_limit,
            per_user_limit=command.per_user_limit,
            starts_at=command.starts_at,
            expires_at=command.expires_at,
            is_active=command.is_active,
            applicable_categories=json.loads(command.applicable_categories) if command.applicable_categories else None,
            applicable_products=json.loads(command.applicable_products) if command.applicable_products else None,
        )
        repo.add(discount)

        logger.info("Discount code created", code=code, discount_type=command.discount_type)
        return str(discount.id)

    @handle(DeactivateDiscountCode)
    def deactivate_discount_code(self, command):
        repo = current_domain.repository_for(DiscountCode)
        discount = repo.get(command.discount_code_id)
        discount.deactivate()
        repo.add(discount)
