"""Loading of transaction fixture files.

A fixture file is a JSON list of transactions, each a list of maps:

    [
        [
            {"db/id": "watchmen", "comic/name": "Watchmen"},
            {"issue/name": "Absent Friends", "issue/number": 2, "issue/comic": "watchmen"}
        ]
    ]
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from comic_catalog.store import LoadError, Store
from schemas.tx_report import TxReport

logger = logging.getLogger(__name__)

Transaction = list[dict[str, Any]]

_TRANSACTIONS = TypeAdapter(list[Transaction])


def load_transactions(path: Path) -> list[Transaction]:
    """Read and validate the transactions in a fixture file.

    Args:
        path: Path to the JSON fixture file

    Returns:
        Transactions in file order

    Raises:
        LoadError: If the file is missing, unreadable, not JSON, or not a
            list of lists of maps
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError(f"Cannot read fixture {path}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise LoadError(f"Fixture {path} is not valid JSON: {e}") from e

    try:
        transactions = _TRANSACTIONS.validate_python(data)
    except PydanticValidationError as e:
        raise LoadError(
            f"Fixture {path} failed validation",
            errors=[str(err) for err in e.errors()],
        ) from e

    logger.debug(f"Read {len(transactions)} transactions from {path}")
    return transactions


def transact_file(store: Store, path: Path) -> list[TxReport]:
    """Apply every transaction in a fixture file to a store, in order.

    Args:
        store: Store to load
        path: Path to the JSON fixture file

    Returns:
        One TxReport per transaction

    Raises:
        LoadError: If the file cannot be read or a transaction is rejected.
            Transactions before the failing one stay applied.
    """
    reports = []
    for transaction in load_transactions(path):
        reports.append(store.transact(transaction))

    logger.info(
        f"Loaded {path.name}: {len(reports)} transactions, "
        f"{sum(r.datoms for r in reports)} datoms"
    )
    return reports
