"""
Kernel - Cross-cutting infrastructure

Errors, structured logging, metrics, id generation and timeouts shared by
the pricing and rules packages. Nothing in here knows about tenders.
"""

from tender_pricing.kernel.errors import (
    ConfigFileNotFound,
    ConfigurationError,
    ItemsFileError,
    TenderPricingError,
    UnknownPriceSource,
)
from tender_pricing.kernel.ids import IdFactory, SequentialIdFactory, generate_id

__all__ = [
    # IDs
    "IdFactory",
    "SequentialIdFactory",
    "generate_id",
    # Errors
    "TenderPricingError",
    "ConfigurationError",
    "ConfigFileNotFound",
    "ItemsFileError",
    "UnknownPriceSource",
]
