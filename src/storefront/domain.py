"""Storefront bounded context: order placement and fulfillment.

Owns the catalog snapshot used at checkout, discount codes, the stock
ledger and the order lifecycle. A single domain keeps every write of one
business operation inside one Protean unit of work.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")
