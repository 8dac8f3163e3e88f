# deepseek_agent/app_state.py
import os
from pathlib import Path
from typing import Dict, Any, Optional

from rich.console import Console
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.styles import Style as PromptStyle


class AppState:
    def __init__(self, history_file: Optional[str] = None, console: Optional[Console] = None):
        self.console = console or Console()
        self.prompt_session = PromptSession(
            history=self._make_history(history_file),
            style=PromptStyle.from_dict({
                'prompt': '#0066ff bold',
                'completion-menu.completion': 'bg:#1e3a8a fg:#ffffff',
                'completion-menu.completion.current': 'bg:#3b82f6 fg:#ffffff bold',
            })
        )
        self.DEBUG_LLM_INTERACTIONS: bool = os.getenv("AGENT_DEBUG", "false").lower() == "true"
        self.RUNTIME_OVERRIDES: Dict[str, Any] = {}
        self.chat_id: Optional[str] = None

    @staticmethod
    def _make_history(history_file: Optional[str]):
        if not history_file:
            return InMemoryHistory()
        history_path = Path(history_file).expanduser()
        try:
            history_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            return InMemoryHistory()
        return FileHistory(str(history_path))
