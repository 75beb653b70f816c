"""Catalog queries against a backing store."""

from comic_catalog.store import Store
from schemas.comic import Comic
from schemas.issue import Issue

COMIC_NAME = "comic/name"
ISSUE_NAME = "issue/name"
ISSUE_NUMBER = "issue/number"
ISSUE_COMIC = "issue/comic"


def find_comics(store: Store) -> list[Comic]:
    """Return every comic in the store, in store order."""
    rows = store.query(("db/id", COMIC_NAME))
    return [Comic(comic_id=eid, name=name) for eid, name in rows]


def find_issues(store: Store, comic: Comic) -> list[Issue]:
    """Return the issues that reference a comic, unsorted."""
    rows = store.query(
        ("db/id", ISSUE_NAME, ISSUE_NUMBER),
        where={ISSUE_COMIC: comic.comic_id},
    )
    return [
        Issue(issue_id=eid, name=name, number=number, comic_id=comic.comic_id)
        for eid, name, number in rows
    ]
