"""Base class for backing stores."""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from schemas.tx_report import TxReport

from .exceptions import StoreInitError


class Store(ABC):
    """Base class for entity stores.

    A store holds entities as attribute maps. It is loaded through
    transactions and read through attribute-pattern queries. Stores are
    context managers so the caller owns their lifetime explicitly.

    Config keys:
        uri (required): Location of the database (e.g., "mem://comics")
    """

    def __init__(self, config: dict):
        if "uri" not in config:
            raise StoreInitError("config must include 'uri'")

        self._config = config

    @property
    def uri(self) -> str:
        return str(self._config["uri"])

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @abstractmethod
    def close(self) -> None:
        """Release the store. Must be implemented by subclasses."""
        pass

    @abstractmethod
    def transact(self, tx_data: Sequence[Mapping[str, Any]]) -> TxReport:
        """Atomically apply a transaction. Must be implemented by subclasses."""
        pass

    @abstractmethod
    def query(
        self,
        find: Sequence[str],
        where: Mapping[str, Any] | None = None,
    ) -> list[tuple]:
        """Return rows of attribute values. Must be implemented by subclasses."""
        pass
