from __future__ import annotations

from enum import Enum
from typing import Dict, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EntityCategory(str, Enum):
    HASHTAGS = "hashtags"
    MEDIA = "media"
    URLS = "urls"
    USER_MENTIONS = "user_mentions"


class _EntityBase(BaseModel):
    """
    Position-anchored annotation inside a tweet text. `indices` is the
    half-open character interval [start, end) into the original text.
    """

    # Twitter ships many more attributes than we render; ignore them.
    model_config = ConfigDict(frozen=True, extra="ignore")

    indices: Tuple[int, int]

    @field_validator("indices", mode="before")
    @classmethod
    def _two_offsets(cls, value):
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise ValueError("indices must be a [start, end] pair")
        return tuple(value)

    @property
    def start(self) -> int:
        return self.indices[0]

    @property
    def end(self) -> int:
        return self.indices[1]


class HashtagEntity(_EntityBase):
    category: Literal[EntityCategory.HASHTAGS] = EntityCategory.HASHTAGS
    text: str


class MediaSize(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    h: int
    w: int


class MediaEntity(_EntityBase):
    category: Literal[EntityCategory.MEDIA] = EntityCategory.MEDIA
    display_url: str
    media_url_https: str = ""
    url: str = ""
    expanded_url: str = ""
    sizes: Dict[str, MediaSize] = Field(default_factory=dict)


class UrlEntity(_EntityBase):
    category: Literal[EntityCategory.URLS] = EntityCategory.URLS
    display_url: str
    url: str = ""
    expanded_url: str = ""


class UserMentionEntity(_EntityBase):
    category: Literal[EntityCategory.USER_MENTIONS] = EntityCategory.USER_MENTIONS
    screen_name: str
    name: str = ""


Entity = Union[HashtagEntity, MediaEntity, UrlEntity, UserMentionEntity]

ENTITY_MODELS: Dict[EntityCategory, type] = {
    EntityCategory.HASHTAGS: HashtagEntity,
    EntityCategory.MEDIA: MediaEntity,
    EntityCategory.URLS: UrlEntity,
    EntityCategory.USER_MENTIONS: UserMentionEntity,
}
