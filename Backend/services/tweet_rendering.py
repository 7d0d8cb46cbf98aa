"""
Tweet text rendering.

Turns a tweet's text plus its positionally-anchored entities into the two
descriptions stored on a twitter event:

    plain: "Tweeted | <text with [display_url] for links and media>"
    html:  "<p><text with anchors/images for every entity></p>"

Entity offsets point into the *original* text, so substitution walks the
entities right-to-left (descending start) and every splice leaves the offsets
of the remaining entities intact.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import reduce
from html.entities import codepoint2name
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from app.models.tweet_entities import (
    Entity,
    EntityCategory,
    HashtagEntity,
    MediaEntity,
    UrlEntity,
    UserMentionEntity,
)
from services.entity_extraction import extract_entities
from services.sync_errors import RenderFailure, UnsupportedEntityCategory

PLAIN_PREFIX = "Tweeted | "

PLAIN_CATEGORIES: Sequence[EntityCategory] = (
    EntityCategory.MEDIA,
    EntityCategory.URLS,
)
HTML_CATEGORIES: Sequence[EntityCategory] = (
    EntityCategory.HASHTAGS,
    EntityCategory.MEDIA,
    EntityCategory.URLS,
    EntityCategory.USER_MENTIONS,
)

_WHITESPACE_RE = re.compile(r"\s+")
_NEWLINE_RE = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class RenderResult:
    plain: str
    html: str


# -------- Escaping -----------------------------------------------------------

def encode_html_entities(text: str) -> str:
    """
    Replace every non-ASCII character with its named HTML entity, or a
    numeric reference when HTML has no name for it. ASCII passes through
    untouched, markup produced by the substitution step included.
    """
    out: List[str] = []
    for ch in text:
        code = ord(ch)
        if code < 128:
            out.append(ch)
        elif code in codepoint2name:
            out.append(f"&{codepoint2name[code]};")
        else:
            out.append(f"&#{code};")
    return "".join(out)


# -------- Substitution -------------------------------------------------------

def _check_offsets(text: str, entities: Sequence[Entity]) -> None:
    boundary = len(text)
    for entity in entities:
        if entity.start < 0 or entity.end < entity.start:
            raise RenderFailure(f"invalid entity interval {list(entity.indices)}")
        if entity.end > boundary:
            raise RenderFailure(
                f"entity interval {list(entity.indices)} overlaps or exceeds offset {boundary}"
            )
        boundary = entity.start


def substitute_entities(
    text: str,
    entities: Sequence[Entity],
    replacement: Callable[[Entity], str],
) -> str:
    """
    Fold the descending-ordered entities into `text`, one splice per entity.
    """
    _check_offsets(text, entities)
    return reduce(
        lambda acc, entity: acc[: entity.start] + replacement(entity) + acc[entity.end :],
        entities,
        text,
    )


def plain_replacement(entity: Entity) -> str:
    if isinstance(entity, (MediaEntity, UrlEntity)):
        return f"[{entity.display_url}]"
    raise UnsupportedEntityCategory(
        f"Cannot determine an acceptable replacement for {entity.category.value}"
    )


def html_replacement(entity: Entity) -> str:
    if isinstance(entity, HashtagEntity):
        return (
            f'<a href="https://twitter.com/hashtag/{entity.text}?src=hash" rel="nofollow"'
            f' target="_blank">#{entity.text}</a>'
        )
    if isinstance(entity, MediaEntity):
        large = entity.sizes.get("large")
        if large is None:
            raise RenderFailure(f"media entity {entity.display_url} has no large size")
        return (
            f'<img src="{entity.media_url_https}:large" alt="Twitter Media | {entity.display_url}"'
            f' height="{large.h}" width="{large.w}" />'
        )
    if isinstance(entity, UrlEntity):
        return (
            f'<a href="{entity.url}" rel="nofollow" target="_blank"'
            f' title="{entity.expanded_url}">{entity.display_url}</a>'
        )
    if isinstance(entity, UserMentionEntity):
        return (
            f'<a href="https://twitter.com/{entity.screen_name}" rel="nofollow" target="_blank"'
            f' title="Twitter | {entity.name}">@{entity.screen_name}</a>'
        )
    category = getattr(getattr(entity, "category", None), "value", type(entity).__name__)
    raise UnsupportedEntityCategory(f"Cannot determine an acceptable replacement for {category}")


# -------- Public API ---------------------------------------------------------

def render_plain(text: str, container: Optional[Mapping[str, Any]]) -> str:
    entities = extract_entities(container, PLAIN_CATEGORIES)
    message = substitute_entities(text, entities, plain_replacement)
    message = encode_html_entities(message)
    message = _WHITESPACE_RE.sub(" ", message).strip()
    return f"{PLAIN_PREFIX}{message}"


def render_html(text: str, container: Optional[Mapping[str, Any]]) -> str:
    entities = extract_entities(container, HTML_CATEGORIES)
    message = substitute_entities(text, entities, html_replacement)
    message = encode_html_entities(message)
    message = _NEWLINE_RE.sub("<br />", message)
    return f"<p>{message}</p>"


def tweet_text(payload: Mapping[str, Any]) -> str:
    # extended mode ships full_text; compat mode ships a truncated text
    text = payload.get("full_text")
    if not isinstance(text, str):
        text = payload["text"]
    if not isinstance(text, str):
        raise TypeError(f"tweet text must be a string, got {type(text).__name__}")
    return text


def render_tweet(payload: Dict[str, Any]) -> RenderResult:
    text = tweet_text(payload)
    container = payload.get("entities") or {}
    return RenderResult(
        plain=render_plain(text, container),
        html=render_html(text, container),
    )
