from __future__ import annotations

from locations import Location


def location_secondary(loc: Location) -> str:
    """Вторая строка подсказки: «город, страна» для района, иначе просто страна."""
    if loc.is_municipality:
        return f"{loc.parent_city}, {loc.country}"
    return loc.country


def location_button_label(loc: Location) -> str:
    # у inline-кнопки одна строка, вторую строку подсказки пишем через разделитель
    return f"📍 {loc.name} · {location_secondary(loc)}"


def country_button_label(country: str) -> str:
    return f"🌍 {country}"


def render_autocomplete_panel(
    *,
    title: str,
    value: str,
    placeholder: str,
    is_open: bool,
    has_suggestions: bool,
    error: str | None = None,
) -> str:
    lines: list[str] = [title]
    if value:
        lines.append(f"✏️ {value}")
    else:
        lines.append(f"✏️ {placeholder}")
    if error:
        lines.append(f"⚠️ {error}")
    if is_open and value and not has_suggestions:
        lines.append("Совпадений нет")
    return "\n".join(lines)


def render_idea_card(
    *,
    title: str,
    location: str,
    country: str,
    selected: Location | None = None,
    status: str | None = None,
) -> str:
    lines: list[str] = ["💡 Идея", f"📝 {title or '—'}"]
    if status:
        lines.append(status)
    if selected is not None:
        lines.append(f"📍 {selected.name} ({location_secondary(selected)})")
    else:
        lines.append(f"📍 {location or '—'}")
    lines.append(f"🌍 {country or '—'}")
    return "\n".join(lines)
