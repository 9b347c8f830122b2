"""RSS 2.0 translation of the generic feed model.

Element layout follows the RSS 2.0 specification:
https://www.rssboard.org/rss-specification
"""

from dataclasses import dataclass, fields
from datetime import datetime, timedelta, timezone, tzinfo
from email.utils import format_datetime
from typing import ClassVar

from .config import Config, TranslatorConfig, WriterConfig
from .logging_config import create_execution_logger, setup_structured_logging
from .models import Feed, Item, MerchantAttributes
from .xml_writer import ATOM_NS, CONTENT_NS, GOOGLE_NS, MEDIA_NS, encode, xml_field

RSS_VERSION = "2.0"
GOOGLE_ADDITIONAL_IMAGE_SEPARATOR = ","


@dataclass
class RssContent:
    XML_NAME: ClassVar[str] = "content:encoded"

    content: str = xml_field(cdata=True)


@dataclass
class RssImage:
    XML_NAME: ClassVar[str] = "image"

    url: str = xml_field("url")
    title: str = xml_field("title")
    link: str = xml_field("link")
    width: int = xml_field("width", 0, omitempty=True)
    height: int = xml_field("height", 0, omitempty=True)


@dataclass
class RssTextInput:
    XML_NAME: ClassVar[str] = "textInput"

    title: str = xml_field("title")
    description: str = xml_field("description")
    name: str = xml_field("name")
    link: str = xml_field("link")


@dataclass
class RssAtomLink:
    XML_NAME: ClassVar[str] = "atom:link"

    href: str = xml_field("href", attr=True)
    rel: str = xml_field("rel", attr=True)
    type: str = xml_field("type", attr=True)


@dataclass
class RssEnclosure:
    """<enclosure url="http://example.com/file.mp3" length="123456789" type="audio/mpeg"/>"""

    XML_NAME: ClassVar[str] = "enclosure"

    url: str = xml_field("url", attr=True)
    length: str = xml_field("length", attr=True)
    type: str = xml_field("type", attr=True)


@dataclass
class RssMediaContent:
    XML_NAME: ClassVar[str] = "media:content"

    url: str = xml_field("url", attr=True)


@dataclass
class RssMerchant:
    """Google Merchant Center attributes, rendered as g: children of <item>."""

    id: str | None = xml_field("g:id", None, omitempty=True)
    title: str | None = xml_field("g:title", None, omitempty=True)
    description: str | None = xml_field("g:description", None, omitempty=True)
    link: str | None = xml_field("g:link", None, omitempty=True)
    condition: str | None = xml_field("g:condition", None, omitempty=True)
    price: str | None = xml_field("g:price", None, omitempty=True)
    sale_price: str | None = xml_field("g:sale_price", None, omitempty=True)
    availability: str | None = xml_field("g:availability", None, omitempty=True)
    image_link: str | None = xml_field("g:image_link", None, omitempty=True)
    additional_image_link: list[str] | None = xml_field(
        "g:additional_image_link", None, omitempty=True
    )
    gtin: str | None = xml_field("g:gtin", None, omitempty=True)
    mpn: str | None = xml_field("g:mpn", None, omitempty=True)
    brand: str | None = xml_field("g:brand", None, omitempty=True)
    google_product_category: str | None = xml_field(
        "g:google_product_category", None, omitempty=True
    )
    shipping: str | None = xml_field("g:shipping", None, omitempty=True)
    inventory: str | None = xml_field("g:inventory", None, omitempty=True)
    color: str | None = xml_field("g:color", None, omitempty=True)
    product_type: str | None = xml_field("g:product_type", None, omitempty=True)
    custom_label_0: str | None = xml_field("g:custom_label_0", None, omitempty=True)
    custom_label_1: str | None = xml_field("g:custom_label_1", None, omitempty=True)
    custom_label_2: str | None = xml_field("g:custom_label_2", None, omitempty=True)
    custom_label_3: str | None = xml_field("g:custom_label_3", None, omitempty=True)
    custom_label_4: str | None = xml_field("g:custom_label_4", None, omitempty=True)
    item_group_id: str | None = xml_field("g:item_group_id", None, omitempty=True)
    promotion_id: str | None = xml_field("g:promotion_id", None, omitempty=True)


@dataclass
class RssItem:
    XML_NAME: ClassVar[str] = "item"

    title: str = xml_field("title", omitempty=True)
    link: str = xml_field("link", omitempty=True)
    description: str = xml_field("description", omitempty=True)
    content: RssContent | None = xml_field(default=None)
    author: str = xml_field("author", omitempty=True)
    category: str = xml_field("category", omitempty=True)
    comments: str = xml_field("comments", omitempty=True)
    enclosure: RssEnclosure | None = xml_field(default=None)
    guid: str = xml_field("guid", omitempty=True)  # Id used
    pub_date: str = xml_field("pubDate", omitempty=True)
    source: str = xml_field("source", omitempty=True)
    media_content: RssMediaContent | None = xml_field(default=None)
    merchant: RssMerchant | None = xml_field(default=None, inline=True)


@dataclass
class RssChannel:
    XML_NAME: ClassVar[str] = "channel"

    title: str = xml_field("title")  # required
    link: str = xml_field("link")  # required
    description: str = xml_field("description")  # required
    language: str = xml_field("language", omitempty=True)
    copyright: str = xml_field("copyright", omitempty=True)
    managing_editor: str = xml_field("managingEditor", omitempty=True)  # Author used
    web_master: str = xml_field("webMaster", omitempty=True)
    pub_date: str = xml_field("pubDate", omitempty=True)  # created or updated
    last_build_date: str = xml_field("lastBuildDate", omitempty=True)  # updated used
    category: str = xml_field("category", omitempty=True)
    generator: str = xml_field("generator", omitempty=True)
    docs: str = xml_field("docs", omitempty=True)
    cloud: str = xml_field("cloud", omitempty=True)
    ttl: int = xml_field("ttl", 0, omitempty=True)
    rating: str = xml_field("rating", omitempty=True)
    skip_hours: str = xml_field("skipHours", omitempty=True)
    skip_days: str = xml_field("skipDays", omitempty=True)
    image: RssImage | None = xml_field(default=None)
    text_input: RssTextInput | None = xml_field(default=None)
    items: list[RssItem] = xml_field("item", default_factory=list)
    atom: RssAtomLink | None = xml_field(default=None)


@dataclass
class RssEnvelope:
    """The <rss> root element wrapping a channel."""

    XML_NAME: ClassVar[str] = "rss"

    version: str = xml_field("version", RSS_VERSION, attr=True)
    content_namespace: str = xml_field("xmlns:content", attr=True, omitempty=True)
    google_namespace: str = xml_field("xmlns:g", attr=True, omitempty=True)
    media_namespace: str = xml_field("xmlns:media", attr=True, omitempty=True)
    atom_namespace: str = xml_field("xmlns:atom", attr=True, omitempty=True)
    channel: RssChannel | None = xml_field(default=None)


def split_image_list(value: str | list[str] | None) -> list[str] | None:
    """Turn the additional image attribute into an ordered list.

    A string is split on "," without trimming or dropping empty entries,
    so "" gives [""]. A list is copied. None stays None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value.split(GOOGLE_ADDITIONAL_IMAGE_SEPARATOR)
    return list(value)


def format_rss_date(value: datetime, default_tz: tzinfo) -> str:
    """Format a datetime as RFC 1123 with a numeric zone.

    Naive datetimes are taken to be in ``default_tz``. Offsets with a
    seconds part (LMT zones) are truncated to whole minutes, keeping the
    wall clock time, so the zone is always ``±hhmm``.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=default_tz)

    offset = int(value.utcoffset().total_seconds())
    if offset % 60:
        minutes = abs(offset) // 60
        if offset < 0:
            minutes = -minutes
        value = value.replace(tzinfo=timezone(timedelta(minutes=minutes)))
    return format_datetime(value)


def any_time_format(default_tz: tzinfo, *times: datetime | None) -> str:
    """Format the first given timestamp, or return "" if none is set."""
    for value in times:
        if value is not None:
            return format_rss_date(value, default_tz)
    return ""


def _translate_merchant(merchant: MerchantAttributes | None) -> RssMerchant | None:
    if merchant is None:
        return None

    values = {f.name: getattr(merchant, f.name) for f in fields(merchant)}
    values["additional_image_link"] = split_image_list(merchant.additional_image_link)
    return RssMerchant(**values)


def envelope_for(channel: RssChannel) -> RssEnvelope:
    """Wrap a channel in the <rss> root element.

    Namespaces are declared from the first item only: it is taken as
    representative of the whole channel.
    """
    envelope = RssEnvelope(version=RSS_VERSION, channel=channel)

    if channel.items:
        first = channel.items[0]
        if first.merchant is not None and first.merchant.id:
            envelope.google_namespace = GOOGLE_NS
        if first.media_content is not None:
            envelope.media_namespace = MEDIA_NS
        if first.content is not None:
            envelope.content_namespace = CONTENT_NS

    if channel.atom is not None:
        envelope.atom_namespace = ATOM_NS

    return envelope


class RssTranslator:
    """Translates generic feeds into RSS 2.0 document shapes."""

    def __init__(
        self,
        config: TranslatorConfig | None = None,
        execution_id: str | None = None,
    ):
        """Initialize RssTranslator with configuration.

        Args:
            config: Translation settings, defaults to ``TranslatorConfig()``
            execution_id: Execution ID for logging context

        Raises:
            ValueError: If the configured timezone is unknown
        """
        self.config = config or TranslatorConfig()
        self.timezone = self.config.get_timezone()
        self.logger = create_execution_logger("rss_translator", execution_id)

    def translate_item(self, item: Item) -> RssItem:
        """Create an RssItem from a generic Item.

        Never fails: absent optional data is left out of the result.

        Args:
            item: The generic item

        Returns:
            A new RssItem
        """
        pub_date = item.published
        if isinstance(pub_date, datetime):
            pub_date = format_rss_date(pub_date, self.timezone)

        rss_item = RssItem(
            title=item.title,
            description=item.description,
            guid=item.id,
            pub_date=pub_date,
            merchant=_translate_merchant(item.merchant),
        )

        if item.link is not None:
            rss_item.link = item.link.href
        if item.content:
            rss_item.content = RssContent(content=item.content)
        if item.source is not None:
            rss_item.source = item.source.href

        # Partial enclosures are dropped rather than emitted malformed
        enclosure = item.enclosure
        if enclosure is not None and enclosure.type and enclosure.length:
            rss_item.enclosure = RssEnclosure(
                url=enclosure.url, length=enclosure.length, type=enclosure.type
            )

        if item.author is not None:
            rss_item.author = item.author.name
        if item.media_content is not None:
            rss_item.media_content = RssMediaContent(url=item.media_content.url)

        self.logger.log_item_translation(
            item.id,
            has_enclosure=rss_item.enclosure is not None,
            has_merchant=rss_item.merchant is not None,
        )
        return rss_item

    def translate_channel(self, feed: Feed) -> RssChannel:
        """Create an RssChannel with a generic Feed's data.

        Args:
            feed: The generic feed

        Returns:
            A new RssChannel holding one RssItem per feed item, in order
        """
        author = ""
        if feed.author is not None:
            author = feed.author.email
            if feed.author.name:
                author = f"{feed.author.email} ({feed.author.name})"

        image = None
        if feed.image is not None:
            image = RssImage(
                url=feed.image.url,
                title=feed.image.title,
                link=feed.image.link,
                width=feed.image.width,
                height=feed.image.height,
            )

        atom = None
        if feed.atom is not None:
            atom = RssAtomLink(
                href=feed.atom.href, rel=feed.atom.rel, type=feed.atom.type
            )

        channel = RssChannel(
            title=feed.title,
            link=feed.link.href,
            description=feed.description,
            managing_editor=author,
            pub_date=any_time_format(self.timezone, feed.created, feed.updated),
            last_build_date=any_time_format(self.timezone, feed.updated),
            copyright=feed.copyright,
            image=image,
            atom=atom,
            items=[self.translate_item(item) for item in feed.items],
        )

        self.logger.log_feed_translation(feed.link.href, len(channel.items))
        return channel

    def feed_xml(self, feed: Feed) -> RssEnvelope:
        """Create the XML-ready <rss> document for a generic Feed."""
        envelope = envelope_for(self.translate_channel(feed))
        self._warn_undeclared_namespaces(envelope)
        return envelope

    def _warn_undeclared_namespaces(self, envelope: RssEnvelope) -> None:
        later_items = envelope.channel.items[1:]

        if not envelope.google_namespace and any(
            item.merchant is not None and item.merchant.id for item in later_items
        ):
            self.logger.warning(
                "Merchant attributes after the first item; g namespace not declared on <rss>"
            )

        if not envelope.media_namespace and any(
            item.media_content is not None for item in later_items
        ):
            self.logger.warning(
                "Media content after the first item; media namespace not declared on <rss>"
            )


def new_rss_item(item: Item) -> RssItem:
    """Create an RssItem from a generic Item with default settings."""
    return RssTranslator().translate_item(item)


def to_rss(
    feed: Feed,
    translator_config: TranslatorConfig | None = None,
    writer_config: WriterConfig | None = None,
    execution_id: str | None = None,
) -> str:
    """Generate the RSS 2.0 XML document for a generic Feed.

    Args:
        feed: The generic feed
        translator_config: Translation settings
        writer_config: XML output settings
        execution_id: Execution ID for logging context

    Returns:
        The RSS document as a string

    Raises:
        FeedEncodingError: If feed data cannot be represented in XML
    """
    logger = create_execution_logger("rss", execution_id)
    logger.log_execution_start(feed_link=feed.link.href)

    translator = RssTranslator(translator_config, execution_id=logger.execution_id)
    envelope = translator.feed_xml(feed)
    document = encode(envelope, writer_config, execution_id=logger.execution_id)

    logger.log_metrics(
        {
            "items_translated": len(envelope.channel.items),
            "document_size": len(document),
        }
    )
    logger.log_execution_end(success=True)
    return document


def to_rss_from_env(feed: Feed, execution_id: str | None = None) -> str:
    """Generate the RSS document with settings read from the environment.

    Installs structured logging at ``LOG_LEVEL`` before translating.

    Raises:
        ValueError: If an environment setting is invalid
        FeedEncodingError: If feed data cannot be represented in XML
    """
    config = Config()
    setup_structured_logging(config.log_level)

    return to_rss(
        feed,
        translator_config=config.get_translator_config(),
        writer_config=config.get_writer_config(),
        execution_id=execution_id,
    )
