"""XML writer for dataclass-based document shapes.

Fields are mapped to XML through their ``xml_field`` metadata: the tag or
attribute name, whether the field is an attribute, whether empty values are
dropped and whether the text is wrapped in a CDATA section. Nested dataclasses
become child elements named after the field (or their ``XML_NAME``), lists
repeat the tag once per entry and inline shapes render into their parent.
"""

from dataclasses import field, fields, is_dataclass
from typing import Any

from lxml import etree

from .config import WriterConfig
from .logging_config import create_execution_logger

CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
GOOGLE_NS = "http://base.google.com/ns/1.0"
MEDIA_NS = "http://search.yahoo.com/mrss/"
ATOM_NS = "http://www.w3.org/2005/Atom"

NAMESPACES = {
    "content": CONTENT_NS,
    "g": GOOGLE_NS,
    "media": MEDIA_NS,
    "atom": ATOM_NS,
}

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'
_XMLNS = "xmlns:"


class FeedEncodingError(Exception):
    """Raised when a document cannot be represented as XML."""


def xml_field(
    name: str = "",
    default: Any = "",
    *,
    attr: bool = False,
    omitempty: bool = False,
    cdata: bool = False,
    inline: bool = False,
    default_factory: Any = None,
) -> Any:
    """Declare a dataclass field with its XML mapping.

    Args:
        name: Tag or attribute name, optionally prefixed (``g:price``).
            Empty for nested shapes, which then use their ``XML_NAME``.
        default: Default value of the field
        attr: Render as an attribute of the parent element
        omitempty: Drop the field when it is None, "", 0 or an empty list
        cdata: Render the value as the CDATA text of the parent element
        inline: Render the fields of a nested shape directly into the parent
        default_factory: Factory for mutable defaults

    Returns:
        A dataclasses.field carrying the mapping as metadata
    """
    metadata = {
        "xml": name,
        "attr": attr,
        "omitempty": omitempty,
        "cdata": cdata,
        "inline": inline,
    }
    if default_factory is not None:
        return field(default_factory=default_factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def _is_empty(value: Any) -> bool:
    if value is None or isinstance(value, list):
        return not value
    if isinstance(value, (str, int)):
        return not value
    return False


def _qualify(name: str) -> tuple[str | None, str]:
    """Turn ``prefix:local`` into a (prefix, Clark notation tag) pair."""
    prefix, sep, local = name.partition(":")
    if not sep:
        return None, name

    uri = NAMESPACES.get(prefix)
    if uri is None:
        raise FeedEncodingError(f"Unknown namespace prefix: {prefix}")
    return prefix, f"{{{uri}}}{local}"


def _declared_namespaces(obj: Any) -> dict[str, str]:
    nsmap = {}
    for f in fields(obj):
        name = f.metadata.get("xml", "")
        if f.metadata.get("attr") and name.startswith(_XMLNS):
            value = getattr(obj, f.name)
            if value:
                nsmap[name[len(_XMLNS):]] = value
    return nsmap


def _new_element(parent: Any, name: str, nsmap: dict[str, str]) -> Any:
    prefix, tag = _qualify(name)
    in_scope = parent.nsmap if parent is not None else {}
    if prefix and prefix not in in_scope and prefix not in nsmap:
        # Not declared on the root: declare it locally
        nsmap = {**nsmap, prefix: NAMESPACES[prefix]}

    if parent is None:
        return etree.Element(tag, nsmap=nsmap or None)
    return etree.SubElement(parent, tag, nsmap=nsmap or None)


def _build(parent: Any, obj: Any, name: str) -> Any:
    element = _new_element(parent, name or obj.XML_NAME, _declared_namespaces(obj))
    _fill(element, obj)
    return element


def _fill(element: Any, obj: Any) -> None:
    for f in fields(obj):
        meta = f.metadata
        if "xml" not in meta:
            continue

        tag = meta["xml"]
        omitempty = meta["omitempty"]
        value = getattr(obj, f.name)

        if meta["inline"]:
            if value is not None:
                _fill(element, value)
        elif meta["attr"]:
            if tag.startswith(_XMLNS) or (omitempty and _is_empty(value)):
                continue
            element.set(tag, str(value))
        elif meta["cdata"]:
            if "]]>" in value:
                # CDATA cannot hold its own terminator; escaped text is equivalent
                element.text = value
            else:
                element.text = etree.CDATA(value)
        elif isinstance(value, list):
            for entry in value:
                _append(element, tag, entry, omitempty)
        else:
            _append(element, tag, value, omitempty)


def _append(parent: Any, tag: str, value: Any, omitempty: bool) -> None:
    if value is None:
        return
    if is_dataclass(value):
        _build(parent, value, tag)
        return
    if omitempty and _is_empty(value):
        return

    child = _new_element(parent, tag, {})
    child.text = str(value)


def encode(
    document: Any,
    config: WriterConfig | None = None,
    execution_id: str | None = None,
) -> str:
    """Encode a document shape as an XML string.

    Args:
        document: Root dataclass instance declaring ``XML_NAME``
        config: Output options, defaults to ``WriterConfig()``
        execution_id: Execution ID for logging context

    Returns:
        The XML document text

    Raises:
        FeedEncodingError: If a value cannot be represented in XML
    """
    config = config or WriterConfig()
    logger = create_execution_logger("xml_writer", execution_id)

    try:
        root = _build(None, document, document.XML_NAME)
    except FeedEncodingError as e:
        logger.error(f"Failed to encode {document.XML_NAME} document: {e}", error=str(e))
        raise
    except ValueError as e:
        logger.error(f"Failed to encode {document.XML_NAME} document: {e}", error=str(e))
        raise FeedEncodingError(f"Cannot encode document: {e}") from e

    if config.pretty_print:
        etree.indent(root, space=config.indent)

    text = etree.tostring(root, encoding="unicode")
    if config.xml_declaration:
        text = XML_DECLARATION + text

    logger.info(
        f"Encoded {document.XML_NAME} document",
        document_size=len(text),
        pretty_print=config.pretty_print,
    )
    return text
