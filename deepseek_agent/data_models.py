# deepseek_agent/data_models.py
from typing import Literal, Optional, Union
from pydantic import BaseModel, ConfigDict

NO_OUTPUT_MESSAGE = "Command executed successfully (no output)"


class Message(BaseModel):
    message_id: Optional[int] = None
    content: str
    model_config = ConfigDict(extra='ignore', frozen=True)


class ToolInvocation(BaseModel):
    name: str
    argument: str
    model_config = ConfigDict(extra='ignore', frozen=True)


class ToolResult(BaseModel):
    name: str
    success: bool
    output: str
    model_config = ConfigDict(extra='ignore', frozen=True)

    def render(self) -> str:
        """Text block fed back into the conversation for this result."""
        if self.success:
            return f"TOOL RESULT for {self.name}:\n{self.output}"
        return f"TOOL {self.name} failed: {self.output}"


class EditBlock(BaseModel):
    search: str
    replace: str
    model_config = ConfigDict(extra='ignore', frozen=True)


class CommandResult(BaseModel):
    exit_code: int = -1
    stdout: str = ""
    stderr: str = ""
    model_config = ConfigDict(extra='ignore', frozen=True)

    def render(self) -> str:
        parts = [f"EXIT_CODE:{self.exit_code}"]
        if self.stdout:
            parts.append(f"\nstdout:\n{self.stdout}")
        if self.stderr:
            parts.append(f"\n\nstderr:\n{self.stderr}")
        if not self.stdout and not self.stderr:
            parts.append(f"\n{NO_OUTPUT_MESSAGE}")
        return "".join(parts)


class SearchResult(BaseModel):
    title: str
    url: str
    snippet: str = ""
    model_config = ConfigDict(extra='ignore', frozen=True)


# --- Streaming chunks: exactly three kinds ---

class ReasoningChunk(BaseModel):
    kind: Literal["reasoning"] = "reasoning"
    text: str
    model_config = ConfigDict(extra='ignore', frozen=True)


class ContentChunk(BaseModel):
    kind: Literal["content"] = "content"
    text: str
    model_config = ConfigDict(extra='ignore', frozen=True)


class FinalMessage(BaseModel):
    kind: Literal["final"] = "final"
    message: Message
    model_config = ConfigDict(extra='ignore', frozen=True)


StreamChunk = Union[ReasoningChunk, ContentChunk, FinalMessage]
