from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from foodshop.core.money import to_money

LocalizedText = dict[str, str]


def resolve_description(
    description: str | LocalizedText | None,
    description_i18n: Mapping[str, str] | None = None,
    locale: str | None = None,
    default_locale: str | None = None,
) -> str:
    """Pick the text to show for a catalog description.

    Rows arrive in three shapes: a plain string, a ``{locale: text}`` mapping
    stored in ``description`` itself, or a plain string plus a separate
    ``description_i18n`` mapping. Resolution order, first non-empty wins:

    1. translation for ``locale`` (e.g. ``de-DE``)
    2. translation for its language prefix (``de``)
    3. translation for ``default_locale``
    4. the plain description string
    5. any translation, in mapping order
    6. empty string
    """
    translations: dict[str, str] = {}
    plain: str | None = None
    if isinstance(description, Mapping):
        translations.update({str(k): str(v) for k, v in description.items() if v})
    elif description:
        plain = str(description)
    if isinstance(description_i18n, Mapping):
        translations.update({str(k): str(v) for k, v in description_i18n.items() if v})

    candidates: list[str] = []
    if locale:
        candidates.append(locale)
        language = locale.replace("_", "-").split("-", 1)[0]
        candidates.append(language)
    if default_locale:
        candidates.append(default_locale)

    for key in candidates:
        text = translations.get(key)
        if text:
            return text
    if plain:
        return plain
    for text in translations.values():
        if text:
            return text
    return ""


class CatalogItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    description: str | LocalizedText | None = None
    description_i18n: LocalizedText | None = None
    price: Decimal = Field(ge=0)
    emoji: str | None = None
    tags: tuple[str, ...] = ()
    is_active: bool = True

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> Decimal:
        return to_money(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _unique_tags(cls, value: Any) -> tuple[str, ...]:
        if not value:
            return ()
        seen: dict[str, None] = {}
        for tag in value:
            seen.setdefault(str(tag), None)
        return tuple(seen)

    def display_description(self, locale: str | None = None, default_locale: str | None = None) -> str:
        return resolve_description(self.description, self.description_i18n, locale, default_locale)


def parse_catalog_rows(rows: list[Any]) -> list[CatalogItem]:
    items: list[CatalogItem] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        items.append(CatalogItem.model_validate(row))
    return items


def index_catalog(items: list[CatalogItem]) -> dict[str, CatalogItem]:
    return {item.id: item for item in items}


def normalize_catalog_item(values: Mapping[str, Any]) -> CatalogItem:
    """Trim an admin form into a CatalogItem keyed by id.

    Blank description/emoji become None. Raises ValueError (pydantic's
    ValidationError included) for a blank id or name, or a negative or
    non-numeric price.
    """
    item_id = str(values.get("id") or "").strip()
    if not item_id:
        raise ValueError("id is required")
    name = str(values.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    description = values.get("description")
    if isinstance(description, str):
        description = description.strip() or None
    emoji = values.get("emoji")
    if isinstance(emoji, str):
        emoji = emoji.strip() or None
    price = values.get("price")
    tags = values.get("tags")
    return CatalogItem.model_validate(
        {
            "id": item_id,
            "name": name,
            "description": description,
            "description_i18n": values.get("description_i18n") or None,
            "price": 0 if price in (None, "") else price,
            "emoji": emoji,
            "tags": tags if isinstance(tags, (list, tuple)) else (),
            "is_active": values.get("is_active", True),
        }
    )
