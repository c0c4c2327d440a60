"""Search configurations walked by every sync pass.

Each entry maps to one of the four venue categories once normalized; the
search center and radius live in SyncSettings. Order matters: an id surfaced
by several searches takes the category derived from the first one.
"""

from __future__ import annotations

from discovery_core.schemas.venue import SearchConfig


def _kw(keyword: str) -> SearchConfig:
    return SearchConfig(keyword=keyword)


def _type(place_type: str) -> SearchConfig:
    return SearchConfig(place_type=place_type)


TULUM_SEARCHES: tuple[SearchConfig, ...] = (
    # Beach clubs and nightlife
    _kw("beach club"),
    _kw("beach bar"),
    _type("bar"),
    _type("night_club"),
    # Restaurants
    _type("restaurant"),
    _kw("tacos"),
    _kw("taqueria"),
    _kw("mexican food"),
    _kw("cocina economica"),
    _kw("comida corrida"),
    _kw("antojitos mexicanos"),
    _kw("seafood"),
    _kw("mariscos"),
    _kw("ceviche"),
    _kw("pizza"),
    _kw("italian restaurant"),
    _kw("sushi"),
    _kw("asian restaurant"),
    _kw("thai food"),
    _kw("vegan"),
    _kw("vegetarian restaurant"),
    _kw("health food"),
    _kw("organic restaurant"),
    _kw("breakfast"),
    _kw("brunch"),
    _kw("desayuno"),
    _kw("food truck"),
    _kw("street food"),
    _kw("tortas"),
    # Cafes
    _type("cafe"),
    _type("coffee_shop"),
    _kw("coffee"),
    _kw("bakery"),
    # Cultural and attractions
    _kw("cenote"),
    _type("tourist_attraction"),
    _type("museum"),
    _type("art_gallery"),
    _type("park"),
    _type("natural_feature"),
    _type("spa"),
    _type("lodging"),
)


def select_searches(labels: list[str] | None) -> tuple[SearchConfig, ...]:
    """Restrict TULUM_SEARCHES to the given labels, preserving order.

    Raises:
        ValueError: If a label matches no configured search.
    """
    if not labels:
        return TULUM_SEARCHES
    wanted = {label.strip().lower() for label in labels}
    selected = tuple(s for s in TULUM_SEARCHES if s.label.lower() in wanted)
    known = {s.label.lower() for s in selected}
    unknown = sorted(wanted - known)
    if unknown:
        raise ValueError(f"Unknown search label(s): {', '.join(unknown)}")
    return selected
