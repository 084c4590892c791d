"""DASH (MPD) manifest rewriting.

The manifest is parsed into an element tree, URL-bearing nodes are updated in
place and the whole document is serialized again. Comments are kept; the
result is equivalent to the input up to insignificant whitespace and namespace
prefixes.
"""

import xml.etree.ElementTree as ET

from mediagate.core.modules.manifest.models import ManifestRewriteContext
from mediagate.core.modules.manifest.urls import with_token
from mediagate.errors import ManifestCorruptError

MPD_NAMESPACE = "urn:mpeg:dash:schema:mpd:2011"
DASHIF_NAMESPACE = "https://dashif.org/CPS"
CLEARKEY_NAMESPACE = "http://dashif.org/guidelines/clearKey"
CLEARKEY_SCHEME = "urn:uuid:e2719d58-a985-b3c9-781a-b030af78d30e"

# Namespaces commonly found in packager output, registered so serialization keeps their prefixes
KNOWN_PREFIXES = {
    "cenc": "urn:mpeg:cenc:2013",
    "mspr": "urn:microsoft:playready",
    "xlink": "http://www.w3.org/1999/xlink",
    "xsi": "http://www.w3.org/2001/XMLSchema-instance",
    "dashif": DASHIF_NAMESPACE,
    "clearkey": CLEARKEY_NAMESPACE,
}
for _prefix, _uri in KNOWN_PREFIXES.items():
    ET.register_namespace(_prefix, _uri)

# (element local name, attribute) pairs holding segment URLs
URL_ATTRIBUTES = {
    "SegmentTemplate": ("media", "initialization"),
    "SegmentURL": ("media",),
    "Initialization": ("sourceURL",),
    "RepresentationIndex": ("sourceURL",),
}
LAURL_NAMES = ("Laurl", "laurl")


def local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""  # comments and processing instructions
    return tag.rpartition("}")[2]


def namespace_of(tag: str) -> str | None:
    if tag.startswith("{"):
        return tag[1:].partition("}")[0]
    return None


def parse_mpd(content: str) -> ET.Element:
    """Parse an MPD document, keeping comments.

    Raises:
        ManifestCorruptError: If the document is not well-formed or not an MPD
    """
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    try:
        parser.feed(content)
        root = parser.close()
    except ET.ParseError as e:
        raise ManifestCorruptError from e
    if local_name(root.tag) != "MPD":
        raise ManifestCorruptError
    return root


def serialize_mpd(root: ET.Element) -> str:
    default_namespace = namespace_of(root.tag)
    try:
        body = ET.tostring(root, encoding="unicode", default_namespace=default_namespace)
    except ValueError:
        # Unqualified elements cannot be written under a default namespace
        body = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}'


def is_clearkey_protection(element: ET.Element) -> bool:
    scheme = element.get("schemeIdUri", "")
    return local_name(element.tag) == "ContentProtection" and scheme.lower() == CLEARKEY_SCHEME


def point_license_url(protection: ET.Element, context: ManifestRewriteContext) -> None:
    """Point the ClearKey license URL at the gated key-delivery endpoint.

    Only a URL is written; key material never appears in the manifest.
    """
    license_url = with_token(context.base_key_path, context.token)
    laurls = [child for child in protection if local_name(child.tag) in LAURL_NAMES]
    if not laurls:
        laurl = ET.SubElement(protection, f"{{{DASHIF_NAMESPACE}}}Laurl")
        laurl.set("Lic_type", "EME-1.0")
        laurls = [laurl]
    for laurl in laurls:
        laurl.text = license_url


def rewrite_dash(content: str, context: ManifestRewriteContext) -> str:
    root = parse_mpd(content)
    for element in list(root.iter()):
        name = local_name(element.tag)
        if name == "BaseURL" and element.text and element.text.strip():
            element.text = with_token(element.text.strip(), context.token)
        for attribute in URL_ATTRIBUTES.get(name, ()):
            value = element.get(attribute)
            if value:
                element.set(attribute, with_token(value, context.token))
        if is_clearkey_protection(element):
            point_license_url(element, context)
    return serialize_mpd(root)
