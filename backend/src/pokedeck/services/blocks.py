from __future__ import annotations

from typing import Any

ACTION_ADD = "add_pokemon"
ACTION_SUGGEST_YES = "suggested_pokemon_yes"
ACTION_SUGGEST_NO = "suggested_pokemon_no"


def display_name(name: str) -> str:
    return name[:1].upper() + name[1:]


def _button(text: str, action_id: str, value: str) -> dict[str, Any]:
    return {
        "type": "button",
        "text": {"type": "plain_text", "text": text},
        "action_id": action_id,
        "value": value,
    }


def suggestion_blocks(queried: str, suggestion: str) -> list[dict[str, Any]]:
    return [
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f'Pokémon "{queried}" not found. Did you mean *{suggestion}*?',
            },
        },
        {
            "type": "actions",
            "elements": [
                _button("Yes", ACTION_SUGGEST_YES, suggestion),
                _button("No", ACTION_SUGGEST_NO, queried),
            ],
        },
    ]


def found_message(name: str, image: str | None) -> dict[str, Any]:
    title = display_name(name)
    blocks: list[dict[str, Any]] = [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"Pokémon found: *{title}*"},
        }
    ]
    if image:
        blocks.append({"type": "image", "image_url": image, "alt_text": name})
    blocks.append(
        {
            "type": "actions",
            "elements": [_button("Add to Deck", ACTION_ADD, name)],
        }
    )
    return {"text": f"Pokémon found: {title}", "blocks": blocks}


def deck_message(entries: list[dict[str, str | None]]) -> dict[str, Any]:
    blocks: list[dict[str, Any]] = []
    for entry in entries:
        name = str(entry.get("name") or "")
        block: dict[str, Any] = {
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"*{display_name(name)}*"},
        }
        image = entry.get("image")
        if image:
            block["accessory"] = {"type": "image", "image_url": image, "alt_text": name}
        blocks.append(block)

    names = ", ".join(display_name(str(entry.get("name") or "")) for entry in entries)
    return {"text": f"Your current deck: {names}", "blocks": blocks}
