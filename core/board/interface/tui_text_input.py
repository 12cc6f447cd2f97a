"""Single-line text input used by every form, picker filter and composer."""

from prompt_toolkit.document import Document


class TextInput:
    """Editable line with a cursor.

    Keys arrive as normalised names (see tui_runtime); `handle_key` returns
    True when the key was consumed so callers can fall through to their own
    bindings otherwise.
    """

    def __init__(self, value: str = "", placeholder: str = "", char_limit: int = 0, prompt: str = ""):
        self.value = value
        self.cursor = len(value)
        self.placeholder = placeholder
        self.char_limit = char_limit
        self.prompt = prompt

    def __repr__(self) -> str:
        return f"TextInput({self.value!r})"

    def set_value(self, value: str) -> None:
        self.value = value or ""
        self.cursor = len(self.value)

    def clear(self) -> None:
        self.set_value("")

    def insert(self, text: str) -> None:
        if not text:
            return
        if self.char_limit and len(self.value) + len(text) > self.char_limit:
            text = text[: max(0, self.char_limit - len(self.value))]
        self.value = self.value[: self.cursor] + text + self.value[self.cursor:]
        self.cursor += len(text)

    def backspace(self) -> None:
        if self.cursor <= 0:
            return
        self.value = self.value[: self.cursor - 1] + self.value[self.cursor:]
        self.cursor -= 1

    def delete(self) -> None:
        if self.cursor >= len(self.value):
            return
        self.value = self.value[: self.cursor] + self.value[self.cursor + 1:]

    def _document(self) -> Document:
        return Document(self.value, self.cursor)

    def word_left(self) -> None:
        self.cursor += self._document().find_previous_word_beginning() or -self.cursor

    def word_right(self) -> None:
        offset = self._document().find_next_word_ending()
        self.cursor = min(len(self.value), self.cursor + offset) if offset else len(self.value)

    def delete_word_before(self) -> None:
        offset = self._document().find_previous_word_beginning()
        start = self.cursor + offset if offset else 0
        self.value = self.value[:start] + self.value[self.cursor:]
        self.cursor = start

    def handle_key(self, key: str) -> bool:
        if key == "left":
            self.cursor = max(0, self.cursor - 1)
        elif key == "right":
            self.cursor = min(len(self.value), self.cursor + 1)
        elif key in ("home", "ctrl+a"):
            self.cursor = 0
        elif key in ("end", "ctrl+e"):
            self.cursor = len(self.value)
        elif key == "backspace":
            self.backspace()
        elif key == "delete":
            self.delete()
        elif key == "ctrl+w":
            self.delete_word_before()
        elif key == "alt+left":
            self.word_left()
        elif key == "alt+right":
            self.word_right()
        elif key == "space":
            self.insert(" ")
        elif is_printable_key(key):
            self.insert(key)
        else:
            return False
        return True

    def display(self, focused: bool = False) -> str:
        """Value with a block cursor when focused; placeholder when empty."""
        if not self.value and not focused:
            return self.placeholder
        if not focused:
            return self.value
        if not self.value and self.placeholder:
            return "█" + self.placeholder
        return self.value[: self.cursor] + "█" + self.value[self.cursor:]


def is_printable_key(key: str) -> bool:
    return len(key) == 1 and key.isprintable()


__all__ = ["TextInput", "is_printable_key"]
