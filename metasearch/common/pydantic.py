"""Pydantic base model and search data model."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class FrozenBaseModel(BaseModel):
    """Pydantic frozen base model."""

    model_config = ConfigDict(frozen=True, strict=True)


class Request(FrozenBaseModel):
    """Search request, passed unchanged to every provider."""

    query: str
    language: str | None = None
    region: str | None = None
    safe_search: bool | None = None


class Image(FrozenBaseModel):
    """Image reference with optional dimensions."""

    url: str
    width: int = 0
    height: int = 0


class Language(FrozenBaseModel):
    """Language supported by a provider."""

    code: str
    name: str


class Region(FrozenBaseModel):
    """Region supported by a provider."""

    code: str
    name: str


class LinkResult(FrozenBaseModel):
    """Plain web link."""

    kind: Literal["link"] = "link"
    url: str
    title: str
    description: str = ""

    @property
    def preview(self) -> Image | None:
        """Links carry no thumbnail."""
        return None


class ImageResult(FrozenBaseModel):
    """Image hit. ``url`` points at the full image."""

    kind: Literal["image"] = "image"
    url: str
    title: str
    description: str = ""
    width: int = 0
    height: int = 0
    page_url: str | None = None
    thumbnail: Image | None = None

    @property
    def preview(self) -> Image:
        """Thumbnail, or the full image when no thumbnail was provided."""
        if self.thumbnail is not None:
            return self.thumbnail
        return Image(url=self.url, width=self.width, height=self.height)


class VideoResult(FrozenBaseModel):
    """Video hit."""

    kind: Literal["video"] = "video"
    url: str
    title: str
    description: str = ""
    thumbnail: Image | None = None

    @property
    def preview(self) -> Image | None:
        """Video thumbnail."""
        return self.thumbnail


class EntityResult(FrozenBaseModel):
    """Knowledge entity such as an encyclopedia article."""

    kind: Literal["entity"] = "entity"
    url: str
    title: str
    description: str = ""
    entity_type: str | None = None
    category: str | None = None
    thumbnail: Image | None = None

    @property
    def preview(self) -> Image | None:
        """Entity image."""
        return self.thumbnail


Result = Annotated[LinkResult | ImageResult | VideoResult | EntityResult, Field(discriminator="kind")]
