"""Derived views over the catalog collection.

All matching is done in memory on already-fetched listings. The same filter
backs the home feed (category + text), search (text + location +
subcategory) and the seller's own listings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Protocol

from .catalog import CATEGORY_ALL


class Filterable(Protocol):
    title: str
    category: str
    subcategory: str
    location: str


def matches_category(listing: Filterable, category: str | None) -> bool:
    if not category or category == CATEGORY_ALL:
        return True
    return listing.category == category


def matches_query(listing: Filterable, query: str | None) -> bool:
    needle = str(query or "").strip().lower()
    if not needle:
        return True
    return (
        needle in str(listing.title or "").lower()
        or needle in str(listing.location or "").lower()
        or needle in str(listing.subcategory or "").lower()
    )


def matches_location(listing: Filterable, location: str | None) -> bool:
    return not location or listing.location == location


def matches_subcategory(listing: Filterable, subcategory: str | None) -> bool:
    return not subcategory or listing.subcategory == subcategory


def filter_listings(
    listings: Iterable[Filterable],
    *,
    category: str | None = CATEGORY_ALL,
    query: str | None = "",
    location: str | None = "",
    subcategory: str | None = "",
) -> list:
    return [
        listing
        for listing in listings
        if matches_category(listing, category)
        and matches_query(listing, query)
        and matches_location(listing, location)
        and matches_subcategory(listing, subcategory)
    ]


def toggle(current: str, value: str) -> str:
    """Selecting the active value again clears it."""

    return "" if current == value else value


@dataclass
class ListingFilter:
    category: str = CATEGORY_ALL
    query: str = ""
    location: str = ""
    subcategory: str = ""

    @property
    def has_active_filters(self) -> bool:
        return bool(self.location or self.subcategory)

    def toggle_location(self, location: str) -> None:
        self.location = toggle(self.location, location)

    def toggle_subcategory(self, subcategory: str) -> None:
        self.subcategory = toggle(self.subcategory, subcategory)

    def clear(self) -> None:
        self.location = ""
        self.subcategory = ""

    def apply(self, listings: Iterable[Filterable]) -> list:
        return filter_listings(
            listings,
            category=self.category,
            query=self.query,
            location=self.location,
            subcategory=self.subcategory,
        )


class ListingView:
    """A filtered projection of one catalog collection.

    Subscribes to the catalog and recomputes `results` whenever the catalog
    publishes or the filter changes.
    """

    def __init__(self, catalog, *, source: str = "products", listing_filter: ListingFilter | None = None):
        self.catalog = catalog
        self.source = source
        self.filter = listing_filter or ListingFilter()
        self.results: list = []
        self._unsubscribe: Callable[[], None] = catalog.subscribe(lambda _store: self.refresh())
        self.refresh()

    def refresh(self) -> list:
        self.results = self.filter.apply(getattr(self.catalog, self.source))
        return self.results

    def set_query(self, query: str) -> list:
        self.filter.query = query
        return self.refresh()

    def set_category(self, category: str) -> list:
        self.filter.category = category
        return self.refresh()

    def toggle_location(self, location: str) -> list:
        self.filter.toggle_location(location)
        return self.refresh()

    def toggle_subcategory(self, subcategory: str) -> list:
        self.filter.toggle_subcategory(subcategory)
        return self.refresh()

    def close(self) -> None:
        self._unsubscribe()
