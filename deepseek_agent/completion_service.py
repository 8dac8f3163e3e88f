# deepseek_agent/completion_service.py
"""
Completion collaborator.

Conversations are trees of exchanges (one prompt, one assistant reply) keyed by
a numeric message id. A request is anchored at a parent id: the history sent
to the model is the chain of exchanges from the root down to that parent.
An exchange is committed only after its reply has been received in full.
"""
import json
import logging
import uuid
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

import litellm

from deepseek_agent.config_utils import get_config_value
from deepseek_agent.data_models import ContentChunk, FinalMessage, Message, ReasoningChunk, StreamChunk

logger = logging.getLogger(__name__)

# Models known to accept litellm's `web_search_options`.
SEARCH_CAPABLE_MODEL_PREFIXES = (
    "openai/gpt-4o-search-preview",
    "openai/gpt-4o-mini-search-preview",
)


class CompletionService(Protocol):
    async def create_conversation(self) -> str: ...

    async def resume_conversation(self, chat_id: str) -> Optional[int]: ...

    def stream_completion(
        self,
        chat_id: str,
        prompt: str,
        parent_id: Optional[int],
        search_enabled: bool,
        thinking_enabled: bool,
    ) -> AsyncIterator[StreamChunk]: ...


class ConversationStore:
    """Conversation trees, kept in memory and mirrored to one JSON file per chat."""

    def __init__(self, sessions_dir: Optional[str] = None):
        self.sessions_dir = Path(sessions_dir).expanduser() if sessions_dir else None
        self._chats: Dict[str, Dict[str, Any]] = {}

    def _path(self, chat_id: str) -> Optional[Path]:
        if self.sessions_dir is None:
            return None
        return self.sessions_dir / f"{chat_id}.json"

    def _save(self, chat_id: str):
        path = self._path(chat_id)
        if path is None:
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(self._chats[chat_id], indent=2), encoding="utf-8")
        tmp_path.replace(path)

    def create(self) -> str:
        chat_id = uuid.uuid4().hex
        self._chats[chat_id] = {"chat_id": chat_id, "next_id": 1, "last_message_id": None, "exchanges": {}}
        self._save(chat_id)
        return chat_id

    def load(self, chat_id: str) -> Dict[str, Any]:
        if chat_id in self._chats:
            return self._chats[chat_id]
        path = self._path(chat_id)
        if path is None or not path.exists():
            raise KeyError(f"Unknown conversation: {chat_id}")
        self._chats[chat_id] = json.loads(path.read_text(encoding="utf-8"))
        return self._chats[chat_id]

    def last_message_id(self, chat_id: str) -> Optional[int]:
        return self.load(chat_id)["last_message_id"]

    def history(self, chat_id: str, parent_id: Optional[int]) -> List[Dict[str, str]]:
        """Chat messages of the thread ending at `parent_id`, oldest first."""
        exchanges = self.load(chat_id)["exchanges"]
        chain = []
        current = parent_id
        while current is not None:
            exchange = exchanges.get(str(current))
            if exchange is None:
                raise KeyError(f"Unknown message id {current} in conversation {chat_id}")
            chain.append(exchange)
            current = exchange["parent_id"]
        messages = []
        for exchange in reversed(chain):
            messages.append({"role": "user", "content": exchange["prompt"]})
            messages.append({"role": "assistant", "content": exchange["reply"]})
        return messages

    def commit(self, chat_id: str, parent_id: Optional[int], prompt: str, reply: str) -> int:
        chat = self.load(chat_id)
        message_id = chat["next_id"]
        chat["next_id"] = message_id + 1
        chat["exchanges"][str(message_id)] = {"parent_id": parent_id, "prompt": prompt, "reply": reply}
        chat["last_message_id"] = message_id
        self._save(chat_id)
        return message_id


class LiteLLMCompletionService:
    def __init__(self, store: ConversationStore, runtime_overrides: Dict[str, Any], api_key: Optional[str] = None):
        self.store = store
        self.runtime_overrides = runtime_overrides
        self.api_key = api_key

    async def create_conversation(self) -> str:
        return self.store.create()

    async def resume_conversation(self, chat_id: str) -> Optional[int]:
        return self.store.last_message_id(chat_id)

    def _completion_params(self, messages: List[Dict[str, str]], search_enabled: bool, thinking_enabled: bool) -> Dict[str, Any]:
        model_key = "model_reasoning" if thinking_enabled else "model"
        model_name = get_config_value(model_key, self.runtime_overrides)
        completion_params: Dict[str, Any] = {
            "model": model_name,
            "messages": messages,
            "max_tokens": get_config_value("max_tokens", self.runtime_overrides),
            "temperature": get_config_value("temperature", self.runtime_overrides),
            "stream": True,
        }
        api_base = get_config_value("api_base", self.runtime_overrides)
        if api_base:
            completion_params["api_base"] = api_base
        if self.api_key:
            completion_params["api_key"] = self.api_key
        if search_enabled:
            if model_name.startswith(SEARCH_CAPABLE_MODEL_PREFIXES):
                completion_params["web_search_options"] = {"search_context_size": "medium"}
            else:
                logger.debug("Model %s has no built-in web search; search flag ignored", model_name)
        return completion_params

    async def stream_completion(
        self,
        chat_id: str,
        prompt: str,
        parent_id: Optional[int],
        search_enabled: bool,
        thinking_enabled: bool,
    ) -> AsyncIterator[StreamChunk]:
        messages = self.store.history(chat_id, parent_id)
        messages.append({"role": "user", "content": prompt})
        completion_params = self._completion_params(messages, search_enabled, thinking_enabled)
        logger.debug(
            "Completion request: model=%s parent_id=%s messages=%d",
            completion_params["model"], parent_id, len(messages),
        )

        response = await litellm.acompletion(**completion_params)
        content = ""
        try:
            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                reasoning_text = getattr(delta, "reasoning_content", None)
                if reasoning_text and thinking_enabled:
                    yield ReasoningChunk(text=reasoning_text)
                if delta.content:
                    content += delta.content
                    yield ContentChunk(text=delta.content)
        finally:
            aclose = getattr(response, "aclose", None)
            if aclose is not None:
                await aclose()

        message_id = self.store.commit(chat_id, parent_id, prompt, content)
        yield FinalMessage(message=Message(message_id=message_id, content=content))
