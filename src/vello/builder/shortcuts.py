"""Keyboard shortcut dispatch for the builder."""

from dataclasses import dataclass
from typing import Optional

from .store import TemplateBuilderStore

TEXT_INPUT_TAGS = frozenset({"INPUT", "TEXTAREA"})

NUDGE_STEP = 1.0
NUDGE_STEP_LARGE = 10.0

ARROW_DIRECTIONS = {
    "ArrowUp": (0, -1),
    "ArrowDown": (0, 1),
    "ArrowLeft": (-1, 0),
    "ArrowRight": (1, 0),
}


@dataclass
class KeyEvent:
    """A key press, named the way browsers report it."""

    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    alt: bool = False
    target_tag: Optional[str] = None

    @property
    def command(self) -> bool:
        """Cmd on macOS, Ctrl elsewhere."""
        return self.ctrl or self.meta


def handle_key_event(store: TemplateBuilderStore, event: KeyEvent) -> bool:
    """Apply the shortcut bound to ``event``.

    Args:
        store: Store to act on.
        event: The key press.

    Returns:
        True if the event was consumed and its default action should be
        suppressed. Paste with an empty internal clipboard is left unhandled
        so the host can paste external content.
    """
    if event.target_tag and event.target_tag.upper() in TEXT_INPUT_TAGS:
        return False

    key = event.key.lower()
    has_selection = bool(store.selected_block_ids)

    if event.command and key == "z":
        if event.shift:
            store.redo()
        else:
            store.undo()
        return True

    if event.key in ("Delete", "Backspace") and has_selection:
        store.remove_selected_blocks()
        return True

    if event.command:
        if key == "c":
            store.copy_selected_blocks()
            return True
        if key == "x":
            if has_selection:
                store.copy_selected_blocks()
                store.remove_selected_blocks()
            return True
        if key == "v":
            if not store.clipboard:
                return False
            store.paste_blocks()
            return True
        if key == "d":
            store.duplicate_selected_blocks()
            return True
        if key == "a":
            store.select_all_blocks()
            return True
        if key == "g":
            if event.shift:
                store.ungroup_selected_blocks()
            else:
                store.group_selected_blocks()
            return True

    if event.key in ARROW_DIRECTIONS:
        if not has_selection:
            return False
        step = NUDGE_STEP_LARGE if event.shift else NUDGE_STEP
        ux, uy = ARROW_DIRECTIONS[event.key]
        store.nudge_selected_blocks(ux * step, uy * step)
        return True

    if event.key == "Escape":
        store.select_block(None)
        return True

    return False
