"""Publish/subscribe notification for default-language changes."""

from __future__ import annotations

from typing import Callable

LanguageListener = Callable[[str | None], None]


class LanguageChangeNotifier:
    """Registry of listeners invoked synchronously, in subscription order, on change."""

    def __init__(self) -> None:
        self._listeners: list[LanguageListener] = []

    def subscribe(self, listener: LanguageListener) -> Callable[[], None]:
        """Register `listener` and return a callable that unsubscribes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, language: str | None) -> None:
        """Invoke every registered listener with the new language."""

        for listener in list(self._listeners):
            listener(language)

    def __len__(self) -> int:
        return len(self._listeners)
