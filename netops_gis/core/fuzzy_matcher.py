"""Tokenized, case-insensitive, AND-semantics substring search.

Every GIS screen has a few free-text boxes (site name, address, franchise).
Each box is tokenized on whitespace; a row matches a box when its haystack
contains every token. Boxes combine with logical AND.

Example:
    contains_all("Main Road Gulshan", tokenize("gulshan main"))  # True
"""

from collections.abc import Iterable
from dataclasses import dataclass

from netops_gis.constants import SearchConfig
from netops_gis.model.site_point import SitePoint


def tokenize(query: str | None) -> list[str]:
    """Lowercase, split on whitespace, drop empties."""
    if not query:
        return []
    return [token for token in query.lower().split() if token]


def contains_all(haystack: str | None, tokens: list[str]) -> bool:
    """True iff the lowercased haystack contains every token as a substring.

    An empty token list matches everything, including a missing haystack.
    """
    if not tokens:
        return True
    hay = (haystack or "").lower()
    return all(token in hay for token in tokens)


@dataclass(frozen=True)
class SearchQuery:
    """Field-level search boxes, combined with AND.

    Attributes:
        site: Matched against the site-name composite (name, id, grid, ...)
        address: Matched against the address only
        franchise: Matched against franchise id + franchise name
    """

    site: str = ""
    address: str = ""
    franchise: str = ""

    @property
    def is_empty(self) -> bool:
        return not (tokenize(self.site) or tokenize(self.address) or tokenize(self.franchise))

    def matches(self, point: SitePoint) -> bool:
        """Check one site against all boxes."""
        return (
            contains_all(point.text(SearchConfig.SITE_FIELDS), tokenize(self.site))
            and contains_all(point.text(SearchConfig.ADDRESS_FIELDS), tokenize(self.address))
            and contains_all(point.text(SearchConfig.FRANCHISE_FIELDS), tokenize(self.franchise))
        )


def filter_points(points: Iterable[SitePoint], query: SearchQuery) -> list[SitePoint]:
    """Return the points matching the query, preserving input order."""
    return [p for p in points if query.matches(p)]
