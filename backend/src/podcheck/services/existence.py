"""
Customer/invoice existence check against the backend order table.

The lookup is a single parameterized COUNT query. Table and column names
come from configuration and are rendered as quoted identifiers; captured
field values are only ever sent as bound parameters.
"""

import logging

from sqlalchemy import Select, bindparam, column, func, select, table

from podcheck.domain.errors import ValidationError
from podcheck.domain.models import LookupTable
from podcheck.infrastructure.database import BackendConnection

logger = logging.getLogger(__name__)


def build_count_statement(lookup: LookupTable) -> Select:
    """
    Build the COUNT query for a customer/invoice pair.
    
    Equivalent to:
        SELECT count(*) FROM <table>
         WHERE <invoice_column> = :invoice_number
           AND <customer_column> = :customer_number
    """
    orders = table(
        lookup.name,
        column(lookup.invoice_column),
        column(lookup.customer_column),
        schema=lookup.schema,
    )
    return (
        select(func.count())
        .select_from(orders)
        .where(
            orders.c[lookup.invoice_column] == bindparam("invoice_number"),
            orders.c[lookup.customer_column] == bindparam("customer_number"),
        )
    )


class ExistenceChecker:
    """
    Confirms that a customer/invoice pair exists in the order table.
    
    Matching is exact; case sensitivity follows the backend collation.
    Driver errors (lost connection, timeout) are not handled here and
    propagate to the caller.
    """
    
    def __init__(self, backend: BackendConnection, lookup: LookupTable) -> None:
        self.backend = backend
        self.lookup = lookup
        self._statement = build_count_statement(lookup)
    
    def count_matches(self, customer_number: str, invoice_number: str) -> int:
        """Count order rows for the customer/invoice combination."""
        count = self.backend.scalar(
            self._statement,
            {"invoice_number": invoice_number, "customer_number": customer_number},
        )
        logger.debug(
            f"{self.lookup.qualified_name}: {count} row(s) for "
            f"customer={customer_number!r} invoice={invoice_number!r}"
        )
        return int(count or 0)
    
    def exists(self, customer_number: str, invoice_number: str) -> bool:
        """
        Require at least one order row for the customer/invoice combination.
        
        Returns:
            True when the combination exists.
            
        Raises:
            ValidationError: If no matching row is found.
        """
        if self.count_matches(customer_number, invoice_number) < 1:
            raise ValidationError(
                f"Customer {customer_number} / Invoice {invoice_number} "
                f"not found in {self.lookup.name.upper()} table."
            )
        return True
