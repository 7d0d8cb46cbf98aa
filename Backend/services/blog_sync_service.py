from __future__ import annotations

from html import escape
from typing import Any, Dict, Tuple

from app.models.lifestream_events import EventSource, RawRecord
from services.sync_service import SourceSynchronizer
from services.tweet_rendering import encode_html_entities


class BlogSynchronizer(SourceSynchronizer):
    source = EventSource.BLOG

    def build_metadata(self, record: RawRecord) -> Dict[str, Any]:
        return {}

    def describe(self, record: RawRecord) -> Tuple[str, str]:
        title = record.payload["title"]
        link = record.payload["link"]
        if not isinstance(title, str) or not isinstance(link, str):
            raise TypeError("blog entry title and link must be strings")
        # stored descriptions are ASCII with HTML entities, same as tweets
        title_html = encode_html_entities(escape(title, quote=False))
        link_attr = encode_html_entities(escape(link, quote=True))
        description = f"Blogged | {encode_html_entities(title)}"
        description_html = (
            f'<p>Blogged | <a href="{link_attr}" rel="nofollow" target="_blank">{title_html}</a></p>'
        )
        return description, description_html
