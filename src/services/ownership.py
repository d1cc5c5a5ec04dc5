"""Store ownership checks shared by the ledger services."""

from models.customer import Customer
from repositories.ledger_store import LedgerStore
from repositories.schema import CUSTOMERS
from utils.error_handling import ConflictingReferenceError, NotFoundError
from utils.validators import ensure_present


def require_customer(
    store: LedgerStore, store_id: str, customer_id: str, for_write: bool = False
) -> Customer:
    """
    Load a customer and check it belongs to `store_id`.

    Reads of another store's customer look like a missing customer. Writes
    that would attach a note, purchase, tag, stage or reminder to another
    store's customer raise ConflictingReferenceError instead.
    """
    ensure_present(store_id, "store_id")
    ensure_present(customer_id, "customer_id")
    row = store.select_one(CUSTOMERS, {"id": customer_id})
    if row is None:
        raise NotFoundError("Customer not found")
    if row["store_id"] != store_id:
        if for_write:
            raise ConflictingReferenceError(
                "Customer belongs to a different store than the record being written"
            )
        raise NotFoundError("Customer not found")
    return Customer.model_validate(row)
