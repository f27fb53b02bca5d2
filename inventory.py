"""Find-or-create of product records keyed by normalized name."""

import logging
from typing import Optional

from pydantic import ValidationError

from database import PRODUCTS_COLLECTION, DocumentStore, DocumentStoreError
from errors import InvalidInput, OperationFailed
from schemas import ProductRecord, SessionContext

logger = logging.getLogger(__name__)

EMPTY_NAME_MESSAGE = "Please enter a product name"


def normalize_name(raw: str) -> str:
    return raw.strip().lower()


async def find_product(
    store: DocumentStore,
    name: str,
    session: Optional[SessionContext] = None,
    collection: str = PRODUCTS_COLLECTION,
) -> Optional[ProductRecord]:
    """Return the product stored under the normalized name, or None.

    When a session is given it is pointed at the found record, or cleared
    when nothing matches, so the next save targets the right document.
    """
    product_name = normalize_name(name)
    if not product_name:
        raise InvalidInput(EMPTY_NAME_MESSAGE)

    try:
        doc = await store.find_one_by_field(collection, "name", product_name)
    except DocumentStoreError as e:
        logger.exception("Product lookup failed for %r", product_name)
        raise OperationFailed() from e

    if doc is None:
        if session is not None:
            session.clear()
        return None

    try:
        record = ProductRecord.model_validate(doc)
    except ValidationError as e:
        logger.exception("Unreadable product document %s", doc.get("id"))
        raise OperationFailed() from e
    if session is not None:
        session.remember(record)
    return record


async def save_product(
    store: DocumentStore,
    name: str,
    quantity: int,
    price: float,
    session: Optional[SessionContext] = None,
    collection: str = PRODUCTS_COLLECTION,
) -> ProductRecord:
    """Create or update a product and return it as written.

    The target key is the id of the record last found in this session, or
    the normalized name for a first insert. Only name, quantity and price are
    written; anything else on the document is left alone.
    """
    product_name = normalize_name(name)
    if not product_name:
        raise InvalidInput(EMPTY_NAME_MESSAGE)
    if quantity < 0:
        raise InvalidInput("Quantity cannot be negative")
    if price < 0:
        raise InvalidInput("Price cannot be negative")

    target_id = product_name
    if session is not None and session.last_found_id:
        target_id = session.last_found_id

    fields = {"name": product_name, "quantity": int(quantity), "price": float(price)}
    try:
        await store.merge_upsert_by_id(collection, target_id, fields)
    except DocumentStoreError as e:
        logger.exception("Product save failed for %r", product_name)
        raise OperationFailed() from e

    record = ProductRecord(id=target_id, **fields)
    if session is not None:
        session.remember(record)
    logger.info("Saved product %s (id=%s)", product_name, target_id)
    return record
