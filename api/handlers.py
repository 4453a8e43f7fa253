"""Message handling for the cron editor WebSocket."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import WebSocket

from core.config import get_config
from cron.editor import CronEditor, EditorModeError
from cron.locales import LOCALES

logger = logging.getLogger(__name__)

# Only display settings may change over the socket; safety, scheduler and
# server settings come from config.yaml alone.
SESSION_SETTINGS = {"description": {"locale"}}


@dataclass
class EditorSession:
    """State owned by one WebSocket connection."""

    editor: CronEditor
    locale: str

    @classmethod
    def open(cls, expression: str = "") -> "EditorSession":
        return cls(editor=CronEditor(expression), locale=get_config().description.locale)


async def send_ws(
    ws: WebSocket,
    msg_type: str,
    content: str,
    metadata: dict | None = None,
) -> None:
    """Send a message to the frontend."""
    await ws.send_json(
        {
            "type": msg_type,
            "content": content,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "metadata": metadata or {},
        }
    )


async def send_state(ws: WebSocket, session: EditorSession) -> None:
    """Send the editor's mode, fields, canonical value and description."""
    await send_ws(ws, "state", "", metadata=session.editor.snapshot(session.locale))


def _session_locale(updates: dict) -> str | None:
    """Pull a validated locale out of a settings update.

    Raises:
        ValueError: If the update touches anything other than the
            description locale, or the locale is not a known code.
    """
    for section, values in updates.items():
        allowed = SESSION_SETTINGS.get(section)
        if allowed is None or not isinstance(values, dict):
            raise ValueError(f"Setting '{section}' cannot be changed from the editor.")
        for key in values:
            if key not in allowed:
                raise ValueError(f"Setting '{section}.{key}' cannot be changed from the editor.")

    locale = updates.get("description", {}).get("locale")
    if locale is None:
        return None
    if not isinstance(locale, str) or locale.lower() not in LOCALES:
        raise ValueError(f"Unknown locale: {locale!r}")
    return locale.lower()


async def handle_config(ws: WebSocket, session: EditorSession, data: dict) -> None:
    """Apply settings from the frontend panel to this session only."""
    updates = data.get("config", {})
    if not updates:
        return
    if not isinstance(updates, dict):
        await send_ws(ws, "error", "Failed to update settings: expected an object.")
        return

    try:
        locale = _session_locale(updates)
    except ValueError as e:
        logger.warning("Rejected settings update: %s", e)
        await send_ws(ws, "error", f"Failed to update settings: {e}")
        return

    if locale is not None:
        session.locale = locale
        logger.info("Session locale set to %s", locale)
    await send_ws(ws, "status", "Settings updated.")


async def handle_editor_message(ws: WebSocket, session: EditorSession, data: dict) -> None:
    """Apply one editing event to the session's editor and reply with its state."""
    msg_type = data.get("type", "")
    editor = session.editor

    try:
        if msg_type == "toggle_mode":
            editor.toggle_mode()
        elif msg_type == "edit_field":
            editor.edit_field(int(data.get("index", -1)), str(data.get("value", "")))
        elif msg_type == "edit_raw":
            editor.edit_raw(str(data.get("text", "")))
        elif msg_type == "set_canonical":
            editor.on_external_canonical_change(str(data.get("value", "")))
        elif msg_type == "get_state":
            pass
        else:
            await send_ws(ws, "error", f"Unknown message type: {msg_type}")
            return
    except (EditorModeError, IndexError, TypeError, ValueError) as e:
        await send_ws(ws, "error", str(e))
        return

    await send_state(ws, session)
