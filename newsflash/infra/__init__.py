"""Infra layer utilities (state persistence)."""

from .storage import INTERACTIONS_KEY, THEME_KEY, USER_KEY, StateStore

__all__ = ["INTERACTIONS_KEY", "StateStore", "THEME_KEY", "USER_KEY"]
