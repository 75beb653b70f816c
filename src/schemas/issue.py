"""Issue domain object."""

from dataclasses import dataclass


@dataclass
class Issue:
    """Represents a single numbered installment of a comic.

    Attributes:
        issue_id: Entity id assigned by the store
        name: Issue title
        number: Issue number within the series
        comic_id: Entity id of the owning comic
    """

    issue_id: int
    name: str
    number: int
    comic_id: int
