"""
Image Resolver - Picks artwork URLs out of Last.fm image variant lists

Last.fm returns artwork as a list of {"size": ..., "#text": url} entries. When a
track has no real artwork the URLs point at a well-known placeholder asset, and
sometimes the URL is simply empty. Everything here is pure and never returns an
empty string.
"""
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

PLACEHOLDER_ID = "2a96cbd8b46e442fc41c2b86b821562f"
PLACEHOLDER_BASE_URL = "https://lastfm.freetls.fastly.net/i/u"

# Path segment Last.fm uses for each size tier
SIZE_TIERS: Dict[str, str] = {
    "small": "34s",
    "medium": "64s",
    "large": "174s",
    "extralarge": "300x300",
}

DEFAULT_IMAGES: Dict[str, str] = {
    size: f"{PLACEHOLDER_BASE_URL}/{tier}/{PLACEHOLDER_ID}.png"
    for size, tier in SIZE_TIERS.items()
}

FALLBACK_ARTWORK_URL = DEFAULT_IMAGES["large"]

ImageVariant = Tuple[str, str]


def default_image(want: str) -> str:
    """Placeholder URL for a size tier (unknown sizes get the large one)"""
    return DEFAULT_IMAGES.get(want, FALLBACK_ARTWORK_URL)


def is_placeholder(url: Optional[str]) -> bool:
    """True if the URL is missing or points at the Last.fm placeholder asset"""
    return not url or PLACEHOLDER_ID in url


def image_variants(raw: Optional[Iterable[Dict[str, Any]]]) -> Tuple[ImageVariant, ...]:
    """
    Convert Last.fm's image list into (size_label, url) pairs, keeping order.

    Args:
        raw: The "image" field of a track or album object

    Returns:
        Tuple of (size, url) pairs; entries that are not objects are skipped
    """
    variants: List[ImageVariant] = []
    for entry in raw or []:
        if not isinstance(entry, dict):
            continue
        variants.append((str(entry.get("size", "")), str(entry.get("#text") or "")))
    return tuple(variants)


def resolve_image(variants: Sequence[ImageVariant], want: str) -> str:
    """
    Return the URL of the first variant labelled `want`.

    Falls back to the placeholder URL for that size when no variant matches or
    the matching variant has an empty URL.
    """
    for label, url in variants:
        if label == want and url:
            return url
    return default_image(want)
