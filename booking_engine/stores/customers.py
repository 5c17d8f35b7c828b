"""
In-memory customer directory.

In production this reads the customers table of the CRM database. The
booking engine only needs display names for conflict titles.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class InMemoryCustomerDirectory:
    def __init__(self, names: Optional[dict[str, str]] = None) -> None:
        self._names: dict[str, str] = dict(names or {})

    def add_customer(self, customer_id: str, name: str) -> None:
        self._names[customer_id] = name

    def get_customer_name(self, customer_id: str) -> Optional[str]:
        name = self._names.get(customer_id)
        if name is None:
            logger.debug("Customer %s has no name on file", customer_id)
        return name
