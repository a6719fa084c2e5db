"""Local (unverified) user identity and theme preference."""

from __future__ import annotations

from enum import Enum

import structlog
from pydantic import AliasChoices, BaseModel, Field, ValidationError

from ..infra import THEME_KEY, USER_KEY, StateStore


class User(BaseModel):
    """Nickname-based identity; nothing is verified."""

    id: str
    display_name: str = Field(validation_alias=AliasChoices("display_name", "name"))
    avatar_url: str = Field(default="", validation_alias=AliasChoices("avatar_url", "picture"))

    @classmethod
    def from_nickname(cls, nickname: str) -> "User":
        return cls(id=f"local:{nickname.lower()}", display_name=nickname, avatar_url="")


class UserSession:
    """Owns the single current user, loaded at startup and persisted on change."""

    def __init__(self, storage: StateStore, logger: structlog.BoundLogger | None = None) -> None:
        self.storage = storage
        self.logger = logger or structlog.get_logger("newsflash.session")
        self.current: User | None = None

    def load(self) -> User | None:
        payload = self.storage.load_json(USER_KEY, default=None)
        if payload is None:
            self.current = None
            return None
        try:
            self.current = User.model_validate(payload)
        except ValidationError as exc:
            self.logger.warning("persistence_corrupted", key=USER_KEY, error=str(exc))
            self.current = None
        return self.current

    def login(self, nickname: str) -> User | None:
        nickname = nickname.strip()
        if not nickname:
            return None
        self.current = User.from_nickname(nickname)
        self._persist()
        return self.current

    def logout(self) -> None:
        self.current = None
        self._persist()

    def _persist(self) -> None:
        if self.current is None:
            self.storage.delete(USER_KEY)
        else:
            self.storage.save_json(USER_KEY, self.current.model_dump(mode="json"))


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class ThemePreference:
    """Light/dark display preference stored as a plain string."""

    def __init__(self, storage: StateStore) -> None:
        self.storage = storage
        self.current = Theme.LIGHT

    def load(self) -> Theme:
        raw = self.storage.load_raw(THEME_KEY)
        try:
            self.current = Theme(raw) if raw else Theme.LIGHT
        except ValueError:
            self.current = Theme.LIGHT
        return self.current

    def set(self, theme: Theme | str) -> Theme:
        self.current = Theme(theme)
        self.storage.save_raw(THEME_KEY, self.current.value)
        return self.current

    def toggle(self) -> Theme:
        return self.set(Theme.LIGHT if self.current is Theme.DARK else Theme.DARK)


__all__ = ["Theme", "ThemePreference", "User", "UserSession"]
