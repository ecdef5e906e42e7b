"""Commit-message prompt text.

The server never writes commit messages itself; it hands this prompt to the
calling client, which runs its own model.
"""

COMMIT_MESSAGE_INSTRUCTION = "Please generate a clear and descriptive commit message for the following changes:"


def commit_message_prompt(changes: str, context: str | None = None) -> str:
    text = f"{COMMIT_MESSAGE_INSTRUCTION}\n\n{changes}"
    if context:
        text += f"\n\nAdditional context:\n{context}"
    return text
