"""Plain-text rendering of catalogue results."""

from copctl.extract import NOT_AVAILABLE, JSONValue, extract, stringify
from copctl.model import PRODUCT_HREF_PATH, QUICKLOOK_HREF_PATH, Feature, FeatureCollection

FEATURE_TEMPLATE = """\
id: {id}
platform: {platform} ({serial})
product type: {product_type}
cloud cover: {cloud_cover}
capture time: {datetime}
bbox: {bbox}
quicklook: {quicklook}
product: {product}"""


def _display(value: JSONValue) -> str:
    return stringify(value) or NOT_AVAILABLE


def render_feature(feature: Feature) -> str:
    properties = feature.properties or {}
    members = feature.members
    return FEATURE_TEMPLATE.format(
        id=feature.display_id or NOT_AVAILABLE,
        platform=_display(extract(["platformShortName"], properties)),
        serial=_display(extract(["platformSerialIdentifier"], properties)),
        product_type=_display(extract(["productType"], properties)),
        cloud_cover=_display(extract(["cloudCover"], properties)),
        datetime=_display(extract(["datetime"], properties)),
        bbox=_display(feature.bbox),
        quicklook=_display(extract(QUICKLOOK_HREF_PATH, members)),
        product=_display(extract(PRODUCT_HREF_PATH, members)),
    )


def render(collection: FeatureCollection) -> str:
    """Render every feature of `collection`, separated by blank lines."""
    return "\n\n".join(render_feature(feature) for feature in collection.features)
