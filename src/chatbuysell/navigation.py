"""Screen routing."""

from enum import Enum

from chatbuysell.events import Observable


class Screen(str, Enum):
    LOADING = "loading"  # session not restored yet
    ENTRY = "entry"      # anonymous landing with the login action
    CHAT = "chat"        # room list + active conversation


class Router(Observable):
    def __init__(self, initial: Screen = Screen.LOADING):
        super().__init__()
        self._current = initial
        self._history: list[Screen] = [initial]

    @property
    def current(self) -> Screen:
        return self._current

    @property
    def history(self) -> list[Screen]:
        return list(self._history)

    def navigate(self, screen: Screen) -> None:
        if screen is self._current:
            return
        self._current = screen
        self._history.append(screen)
        self._emit(screen)
