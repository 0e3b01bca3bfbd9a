"""Reference markers embedded in rich text markup.

Rich text references other content through attributes on three kinds of tags:

    <object type="application/kenticocloud" data-type="item" data-codename="article"></object>
    <a data-item-codename="article">link</a>
    <figure data-asset-codename="logo"><img src="#"></figure>

Exported rich text names references by codename; the source and target
environments name them by id. Objects flagged with data-type="component"
are inline components, not references.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Pattern, Tuple

from ..models.record import EntityKind

OBJECT_TAG_RE = re.compile(r"<object\b(.+?)</object>", re.DOTALL)
FIGURE_TAG_RE = re.compile(r"<figure\b(.+?)</figure>", re.DOTALL)
LINK_TAG_RE = re.compile(r"<a\b(.+?)</a>", re.DOTALL)

COMPONENT_MARKER = 'data-type="component"'

# Replacement returns (attribute name, attribute value) or None to keep the attribute
ReplaceFunc = Callable[[str], Optional[Tuple[str, str]]]


@dataclass(frozen=True)
class Marker:
    """An attribute carrying a reference inside one kind of tag."""
    tag_re: Pattern
    attribute: str
    kind: EntityKind
    skip_components: bool = False

    @property
    def attribute_re(self) -> Pattern:
        return _attribute_re(self.attribute)


def _attribute_re(name: str) -> Pattern:
    return re.compile(r'(?<![\w-])' + re.escape(name) + r'="([^"]*)"')


ITEM_CODENAME = Marker(OBJECT_TAG_RE, "data-codename", EntityKind.ITEM, skip_components=True)
LINK_ITEM_CODENAME = Marker(LINK_TAG_RE, "data-item-codename", EntityKind.ITEM)
ASSET_CODENAME = Marker(FIGURE_TAG_RE, "data-asset-codename", EntityKind.ASSET)
LINK_ASSET_CODENAME = Marker(LINK_TAG_RE, "data-asset-codename", EntityKind.ASSET)

CODENAME_MARKERS = (ITEM_CODENAME, LINK_ITEM_CODENAME, ASSET_CODENAME, LINK_ASSET_CODENAME)

ITEM_ID = Marker(OBJECT_TAG_RE, "data-id", EntityKind.ITEM, skip_components=True)
LINK_ITEM_ID = Marker(LINK_TAG_RE, "data-item-id", EntityKind.ITEM)
ASSET_ID = Marker(FIGURE_TAG_RE, "data-asset-id", EntityKind.ASSET)
IMAGE_ID = Marker(FIGURE_TAG_RE, "data-image-id", EntityKind.ASSET)
LINK_ASSET_ID = Marker(LINK_TAG_RE, "data-asset-id", EntityKind.ASSET)

ID_MARKERS = (ITEM_ID, LINK_ITEM_ID, ASSET_ID, IMAGE_ID, LINK_ASSET_ID)

# codename attribute -> id attribute carrying the same reference
ID_ATTRIBUTE_FOR_CODENAME = {
    "data-codename": "data-id",
    "data-item-codename": "data-item-id",
    "data-asset-codename": "data-asset-id",
}

# codename attribute -> external id attribute carrying the same reference
EXTERNAL_ID_ATTRIBUTE_FOR_CODENAME = {
    "data-codename": "data-external-id",
    "data-item-codename": "data-item-external-id",
    "data-asset-codename": "data-asset-external-id",
}

# id attribute -> codename attribute carrying the same reference
CODENAME_ATTRIBUTE_FOR_ID = {
    "data-id": "data-codename",
    "data-item-id": "data-item-codename",
    "data-asset-id": "data-asset-codename",
    "data-image-id": "data-asset-codename",
}


def find_values(html: Optional[str], marker: Marker) -> List[str]:
    """Find all non-empty values of the marker's attribute in its tags."""
    if not html:
        return []

    values = []
    for tag_match in marker.tag_re.finditer(html):
        tag = tag_match.group(0)
        if marker.skip_components and COMPONENT_MARKER in tag:
            continue
        values.extend(v for v in marker.attribute_re.findall(tag) if v)
    return values


def replace_values(html: Optional[str], marker: Marker, replace: ReplaceFunc) -> Optional[str]:
    """
    Replace the marker's attributes in its tags.

    Args:
        html: Rich text markup
        marker: Marker to replace
        replace: Called with each attribute value; returns the new attribute
            name and value, or None to leave the attribute untouched

    Returns:
        The rewritten markup
    """
    if not html:
        return html

    attribute_re = marker.attribute_re

    def process_attribute(attribute_match):
        replacement = replace(attribute_match.group(1))
        if replacement is None:
            return attribute_match.group(0)
        name, value = replacement
        return f'{name}="{value}"'

    def process_tag(tag_match):
        tag = tag_match.group(0)
        if marker.skip_components and COMPONENT_MARKER in tag:
            return tag
        return attribute_re.sub(process_attribute, tag)

    return marker.tag_re.sub(process_tag, html)
