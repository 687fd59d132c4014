"""
Simulated writers for the orders collection.

They publish change events the same way the database would; they do not
know the notifiers exist.
"""

from triggers.services.ordering import OrderingService

__all__ = [
    "OrderingService",
]
