from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Union

from app.models.tweet_entities import ENTITY_MODELS, Entity, EntityCategory
from services.sync_errors import UnsupportedEntityCategory


def _resolve_category(name: Union[str, EntityCategory]) -> EntityCategory:
    try:
        return EntityCategory(name)
    except ValueError:
        raise UnsupportedEntityCategory(f"Unsupported entity category: {name}") from None


def extract_entities(
    container: Optional[Mapping[str, Any]],
    categories: Sequence[Union[str, EntityCategory]],
) -> List[Entity]:
    """
    Flatten the tweet `entities` container into one tagged list.

    Categories are visited in the order given; a category that is absent (or
    null) in the container contributes nothing. The result is ordered by
    descending start offset so callers can splice right-to-left. The sort is
    stable: entities sharing a start offset keep category order.
    """
    container = container or {}
    if not isinstance(container, Mapping):
        raise TypeError(f"entity container must be a mapping, got {type(container).__name__}")
    entities: List[Entity] = []
    for name in categories:
        category = _resolve_category(name)
        model = ENTITY_MODELS[category]
        raw_entities = container.get(category.value) or []
        if not isinstance(raw_entities, list):
            raise TypeError(f"{category.value} entities must be a list, got {type(raw_entities).__name__}")
        for raw in raw_entities:
            entities.append(model.model_validate(raw))

    return sorted(entities, key=lambda entity: entity.start, reverse=True)
