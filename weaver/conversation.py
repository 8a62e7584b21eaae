"""Conversation history kept between agent runs."""

from typing import Optional

from weaver.repository import CodeChange, ConversationMessage


class ConversationContext:
    """Chronological chat transcript for one repository session."""

    def __init__(self, max_history: int = 20):
        """Initialize conversation context.

        Args:
            max_history: Maximum number of messages sent back to the model
        """
        self.messages: list[ConversationMessage] = []
        self.max_history = max_history

    def add_message(self, role: str, content: str, change: Optional[CodeChange] = None) -> ConversationMessage:
        """Append a message to the transcript.

        Args:
            role: Message role (user, assistant, system)
            content: Message content
            change: Optional change to display alongside the message

        Returns:
            The appended message
        """
        message = ConversationMessage(role=role, content=content, attached_change=change)
        self.messages.append(message)
        return message

    def extend(self, messages: list[ConversationMessage]) -> None:
        """Merge the messages of a finished run back into the transcript."""
        self.messages.extend(messages)

    def history(self) -> list[ConversationMessage]:
        """User prompts and final replies to send with the next request.

        Within a run only the last assistant message is the reply; the ones
        before it are raw actions whose observations are dropped here, so they
        are dropped too. The model re-reads files it needs and never works from
        stale content.
        """
        chat = [m for m in self.messages if m.role != "system"]
        kept = [
            m for i, m in enumerate(chat)
            if m.role == "user" or i + 1 == len(chat) or chat[i + 1].role == "user"
        ]
        return kept[-self.max_history:]

    def last_change(self) -> Optional[CodeChange]:
        for message in reversed(self.messages):
            if message.attached_change is not None:
                return message.attached_change
        return None

    def clear(self) -> None:
        self.messages = []
