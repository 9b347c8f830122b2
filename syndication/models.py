"""Generic, format-agnostic feed model."""

from dataclasses import dataclass, field
from datetime import datetime

from dateutil import parser as date_parser


@dataclass
class Link:
    """A hyperlink descriptor."""

    href: str
    rel: str = ""
    type: str = ""
    length: str = ""


@dataclass
class Author:
    """Represents a feed or item author."""

    name: str = ""
    email: str = ""


@dataclass
class Image:
    """Represents a feed logo/image."""

    url: str
    title: str = ""
    link: str = ""
    width: int = 0
    height: int = 0


@dataclass
class Enclosure:
    """Attached media reference (url, content type, byte length)."""

    url: str = ""
    type: str = ""
    length: str = ""


@dataclass
class MediaContent:
    url: str


@dataclass
class AtomLink:
    """Self-link of the feed document."""

    href: str
    rel: str = "self"
    type: str = "application/rss+xml"


@dataclass
class MerchantAttributes:
    """Product catalog attributes of an item.

    Every attribute is optional; ``None`` means the attribute is absent.
    ``additional_image_link`` takes either an ordered list of urls or the
    legacy comma-joined string.
    """

    id: str | None = None
    title: str | None = None
    description: str | None = None
    link: str | None = None
    condition: str | None = None
    price: str | None = None
    sale_price: str | None = None
    availability: str | None = None
    image_link: str | None = None
    additional_image_link: str | list[str] | None = None
    gtin: str | None = None
    mpn: str | None = None
    brand: str | None = None
    google_product_category: str | None = None
    shipping: str | None = None
    inventory: str | None = None
    color: str | None = None
    product_type: str | None = None
    custom_label_0: str | None = None
    custom_label_1: str | None = None
    custom_label_2: str | None = None
    custom_label_3: str | None = None
    custom_label_4: str | None = None
    item_group_id: str | None = None
    promotion_id: str | None = None


@dataclass
class Item:
    """Represents a single feed entry."""

    title: str = ""
    description: str = ""
    link: Link | None = None
    source: Link | None = None
    author: Author | None = None
    id: str = ""
    published: str | datetime = ""  # preformatted string kept as-is
    content: str = ""
    enclosure: Enclosure | None = None
    media_content: MediaContent | None = None
    merchant: MerchantAttributes | None = None


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Coerce a timestamp given as text into a datetime.

    Args:
        value: A datetime, a date string in any format dateutil understands,
            or None

    Returns:
        The parsed datetime, or None when no value was given

    Raises:
        ValueError: If the string cannot be parsed as a date
    """
    if value is None or isinstance(value, datetime):
        return value

    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Invalid timestamp {value!r}: {e}") from e


@dataclass
class Feed:
    """Represents a complete feed with its items.

    ``created`` and ``updated`` also accept date strings, parsed on creation.
    """

    title: str
    link: Link
    description: str = ""
    author: Author | None = None
    image: Image | None = None
    created: datetime | None = None
    updated: datetime | None = None
    copyright: str = ""
    atom: AtomLink | None = None
    items: list[Item] = field(default_factory=list)

    def __post_init__(self):
        self.created = parse_timestamp(self.created)
        self.updated = parse_timestamp(self.updated)

    def add(self, item: Item) -> None:
        """Append an item to the feed."""
        self.items.append(item)
