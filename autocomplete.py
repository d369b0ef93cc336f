# autocomplete.py
"""Машина состояний поля с автоподсказками.

Модуль НЕ знает про Telegram: источник подсказок и колбэки передаются снаружи,
привязка к чату живёт в autocomplete_widget.py.

Состояния:
- CLOSED: панель подсказок скрыта;
- OPEN_EMPTY: панель «открыта», но показывать нечего;
- OPEN_WITH_SUGGESTIONS: панель открыта со списком.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AutocompleteState(Enum):
    CLOSED = "closed"
    OPEN_EMPTY = "open_empty"
    OPEN_WITH_SUGGESTIONS = "open_with_suggestions"

    @property
    def is_open(self) -> bool:
        return self is not AutocompleteState.CLOSED


# ========== События ==========

@dataclass(frozen=True)
class TextChanged:
    text: str


@dataclass(frozen=True)
class InputFocused:
    pass


@dataclass(frozen=True)
class OutsideClick:
    pass


@dataclass(frozen=True)
class SuggestionSelected:
    index: int


def _open_state(count: int) -> AutocompleteState:
    if count > 0:
        return AutocompleteState.OPEN_WITH_SUGGESTIONS
    return AutocompleteState.OPEN_EMPTY


def transition(state: AutocompleteState, event, suggestions_count: int) -> AutocompleteState:
    """Чистая функция перехода.

    suggestions_count: сколько подсказок сохранено *после* действия события
    (для TextChanged это уже новый результат поиска).
    Событие вне своего предусловия состояние не меняет.
    """
    if isinstance(event, TextChanged):
        return _open_state(suggestions_count)
    if isinstance(event, InputFocused):
        return _open_state(suggestions_count)
    if isinstance(event, OutsideClick):
        return AutocompleteState.CLOSED
    if isinstance(event, SuggestionSelected):
        if state is AutocompleteState.OPEN_WITH_SUGGESTIONS and 0 <= event.index < suggestions_count:
            return AutocompleteState.CLOSED
        return state
    raise TypeError(f"unknown autocomplete event: {event!r}")


class AutocompleteController(Generic[T]):
    """Контролируемое поле ввода: значение принадлежит родителю (форме).

    search:    источник подсказок (text -> упорядоченный список);
    on_change: сообщает новое «сырое» значение поля;
    on_select: сообщает выбранный элемент целиком.
    """

    def __init__(
        self,
        search: Callable[[str], Sequence[T]],
        *,
        value: str = "",
        on_change: Optional[Callable[[str], None]] = None,
        on_select: Optional[Callable[[T], None]] = None,
        placeholder: str = "Введите место...",
        css_class: str = "",
    ):
        self._search = search
        self._on_change = on_change
        self._on_select = on_select
        self.placeholder = placeholder
        # косметика, поведения не меняет
        self.css_class = css_class

        self.value = value
        self.suggestions: list[T] = []
        self.state = AutocompleteState.CLOSED

    @property
    def is_open(self) -> bool:
        return self.state.is_open

    def _report_change(self, text: str) -> None:
        self.value = text
        if self._on_change:
            self._on_change(text)

    def dispatch(self, event):
        """Применяет событие. Возвращает выбранный элемент для SuggestionSelected, иначе None."""
        chosen = None

        if isinstance(event, TextChanged):
            self._report_change(event.text)
            self.suggestions = list(self._search(event.text))
        elif isinstance(event, SuggestionSelected):
            if self.state is AutocompleteState.OPEN_WITH_SUGGESTIONS and 0 <= event.index < len(self.suggestions):
                chosen = self.suggestions[event.index]
            else:
                logger.debug("ignored selection %s in state %s", event.index, self.state.value)

        new_state = transition(self.state, event, len(self.suggestions))

        if chosen is not None:
            self._report_change(self.label_of(chosen))
            if self._on_select:
                self._on_select(chosen)

        self.state = new_state
        return chosen

    # ----- удобные обёртки -----

    def text_changed(self, text: str) -> AutocompleteState:
        self.dispatch(TextChanged(text))
        return self.state

    def focus(self) -> AutocompleteState:
        self.dispatch(InputFocused())
        return self.state

    def outside_click(self) -> AutocompleteState:
        self.dispatch(OutsideClick())
        return self.state

    def select(self, index: int):
        return self.dispatch(SuggestionSelected(index))

    def sync_value(self, text: str) -> None:
        """Родитель выставил значение сам: показываем его, без запроса подсказок.

        Старые подсказки к новому значению не относятся, панель закрывается.
        """
        self.value = text
        self.suggestions = []
        self.state = AutocompleteState.CLOSED

    @staticmethod
    def label_of(item) -> str:
        return getattr(item, "name", None) or str(item)

    def panel(self) -> list[T]:
        """Что рисовать в панели подсказок: список только в OPEN_WITH_SUGGESTIONS."""
        if self.state is AutocompleteState.OPEN_WITH_SUGGESTIONS:
            return list(self.suggestions)
        return []


class ListenerScope:
    """Подписка на «клик снаружи»: register/unregister строго парами.

    acquire()/release() идемпотентны; как контекстный менеджер гарантирует
    release() на любом выходе.
    """

    def __init__(self, register: Callable[[], None], unregister: Callable[[], None]):
        self._register = register
        self._unregister = unregister
        self.active = False

    def acquire(self) -> None:
        if self.active:
            return
        self._register()
        self.active = True

    def release(self) -> None:
        if not self.active:
            return
        self.active = False
        self._unregister()

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
