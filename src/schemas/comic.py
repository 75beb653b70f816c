"""Comic domain object."""

from dataclasses import dataclass


@dataclass
class Comic:
    """Represents a named comic series.

    Attributes:
        comic_id: Entity id assigned by the store
        name: Series title
    """

    comic_id: int
    name: str
