"""Transaction report schema."""

from pydantic import BaseModel


class TxReport(BaseModel):
    """Result of a successful transaction.

    Attributes:
        basis_t: Sequential transaction number (1 for the first transaction)
        tempids: Mapping of temporary ids to the entity ids they resolved to
        datoms: Number of attribute values asserted
        attributes: Idents of attributes installed by the transaction
    """

    basis_t: int
    tempids: dict[str, int] = {}
    datoms: int = 0
    attributes: list[str] = []
