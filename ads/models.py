from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class ImageKind(Enum):
    TRACKING_PIXEL = "tracking_pixel"
    CONTENT = "content"
    AD_CREATIVE = "ad_creative"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class NetworkSignal:
    url: str
    resource_type: str = "other"


@dataclass(frozen=True)
class ImageSignal:
    """
    One <img> as laid out by the browser.
    `opacity` keeps the computed-style string ("0", "0.5", "1").
    """
    src: str
    alt: str = ""
    width: int = 0
    height: int = 0
    natural_width: int = 0
    natural_height: int = 0
    display: str = "inline"
    visibility: str = "visible"
    opacity: str = "1"
    position: str = "static"
    parent_context: str = ""
    in_content_container: bool = False
    in_ad_container: bool = False

    @property
    def dimensions(self) -> str:
        return f"{self.width}x{self.height}"

    @property
    def natural_dimensions(self) -> str:
        return f"{self.natural_width}x{self.natural_height}"


@dataclass(frozen=True)
class AdElement:
    selector: str
    element_id: str = ""
    css_class: str = ""
    src: str = ""
    width: int = 0
    height: int = 0
    display: str = ""
    visibility: str = ""
    position: str = ""


@dataclass(frozen=True)
class AdSignals:
    """Everything the collector observed for one page load."""
    requests: Tuple[NetworkSignal, ...] = ()
    images: Tuple[ImageSignal, ...] = ()
    elements: Tuple[AdElement, ...] = ()


@dataclass(frozen=True)
class NetworkMatch:
    name: str
    matched_url: str


@dataclass(frozen=True)
class ClassifiedImage:
    image: ImageSignal
    kind: ImageKind
    reasons: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AdClassification:
    networks: Tuple[NetworkMatch, ...] = ()
    tracking_pixels: Tuple[ClassifiedImage, ...] = ()
    creatives: Tuple[ClassifiedImage, ...] = ()
    content_images: Tuple[ClassifiedImage, ...] = ()
    elements: Tuple[AdElement, ...] = field(default_factory=tuple)
    total_requests: int = 0
