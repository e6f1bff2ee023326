"""Template builder engines.

Pure engines (no state of their own):
1. history - bounded undo/redo over snapshots
2. transform - geometry, alignment, grouping and z-order on block lists
3. binding - table-cell variable binding, suggestions and value resolution
4. snapping - grid quantization and alignment-target snapping

Stateful layers:
5. store - the editing state and every builder action
6. canvas - pointer gestures translated into store calls
7. shortcuts - keyboard shortcut dispatch
8. text_editing / autosave - debounced side effects
"""

from .autosave import AutoSaver
from .canvas import BuilderCanvas
from .debounce import Debouncer, TickScheduler, thread_scheduler
from .history import History
from .shortcuts import KeyEvent, handle_key_event
from .snapping import SnapLine, SnapResult, SnapTargets, collect_targets, compute_snap, quantize
from .store import TemplateBuilderStore
from .text_editing import TextContentEditor

__all__ = [
    # Engines
    "History",
    "SnapLine",
    "SnapResult",
    "SnapTargets",
    "collect_targets",
    "compute_snap",
    "quantize",
    # Store
    "TemplateBuilderStore",
    # Interaction
    "BuilderCanvas",
    "KeyEvent",
    "handle_key_event",
    # Side effects
    "AutoSaver",
    "Debouncer",
    "TextContentEditor",
    "TickScheduler",
    "thread_scheduler",
]
