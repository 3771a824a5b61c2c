"""UI intents emitted by the game core.

The core never touches the page. It calls these methods on whatever
adapter it was built with; adapters swallow their own failures (a missing
element is not the core's problem) and return nothing.
"""

from typing import Protocol

# Element ids shared with the AR page
GAME_UI = 'game-ui'
AVATAR = 'avatar'
GAME_ICONS = 'game-icons'
INSTRUCTIONS = 'instructions'
CONFETTI = 'confetti-system'
BADGE = 'badge'
LOADING_SCREEN = 'loading-screen'

# Panels
QUESTION_PANEL = 'question-panel'
COMPLETION_PANEL = 'completion-panel'


class GameUi(Protocol):
    def show_question(self, text: str, score: int) -> None: ...

    def highlight_service(self, service_id: str, correct: bool) -> None: ...

    def clear_highlights(self) -> None: ...

    def show_message(self, text: str, color: str, duration_ms: int) -> None: ...

    def set_visible(self, element_id: str, visible: bool) -> None: ...

    def show_panel(self, name: str) -> None: ...

    def hide_panel(self, name: str) -> None: ...
