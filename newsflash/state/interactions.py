"""Per-item votes and threaded comments, persisted as one document."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable

import structlog
from pydantic import AliasChoices, BaseModel, Field, ValidationError

from ..infra import INTERACTIONS_KEY, StateStore
from .session import User

DEFAULT_COMMENT_CAP = 30


class Vote(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"


def _new_comment_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Comment(BaseModel):
    """A user comment with its own one-vote-per-user tally.

    Older stored comments used ``userId``/``userName``/``ts`` keys and may
    lack ids or vote fields; those are accepted and normalised on load.
    """

    id: str = Field(default_factory=_new_comment_id)
    text: str
    author_id: str = Field(validation_alias=AliasChoices("author_id", "userId"))
    author_name: str = Field(default="", validation_alias=AliasChoices("author_name", "userName"))
    author_avatar: str = Field(default="", validation_alias=AliasChoices("author_avatar", "userAvatar"))
    created_at: datetime = Field(default_factory=_utcnow, validation_alias=AliasChoices("created_at", "ts"))
    likes: int = Field(default=0, ge=0)
    dislikes: int = Field(default=0, ge=0)
    voters: dict[str, Vote] = Field(default_factory=dict)


class InteractionRecord(BaseModel):
    likes: int = Field(default=0, ge=0)
    dislikes: int = Field(default=0, ge=0)
    comments: list[Comment] = Field(default_factory=list)


class InteractionStore:
    """In-memory interaction state keyed by feed item id.

    Records are created lazily on first access. Every mutation rewrites the
    whole store before returning; there is no smaller transaction unit.
    """

    def __init__(
        self,
        storage: StateStore,
        comment_cap: int = DEFAULT_COMMENT_CAP,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.storage = storage
        self.comment_cap = comment_cap
        self.logger = logger or structlog.get_logger("newsflash.interactions")
        self._records: dict[str, InteractionRecord] = {}

    # ------------------------------------------------------------------
    def load(self) -> "InteractionStore":
        payload = self.storage.load_json(INTERACTIONS_KEY, default={})
        if not isinstance(payload, dict):
            self.logger.warning("persistence_corrupted", key=INTERACTIONS_KEY, error="not a mapping")
            payload = {}
        records: dict[str, InteractionRecord] = {}
        for item_id, raw in payload.items():
            try:
                records[item_id] = InteractionRecord.model_validate(raw)
            except ValidationError as exc:
                self.logger.warning("persistence_corrupted", key=INTERACTIONS_KEY, item_id=item_id, error=str(exc))
        self._records = records
        return self

    def persist(self) -> None:
        self.storage.save_json(INTERACTIONS_KEY, self.dump())

    def dump(self) -> dict[str, dict]:
        return {item_id: record.model_dump(mode="json") for item_id, record in self._records.items()}

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    def get(self, item_id: str) -> InteractionRecord | None:
        return self._records.get(item_id)

    def get_or_create(self, item_id: str) -> InteractionRecord:
        record = self._records.get(item_id)
        if record is None:
            record = InteractionRecord()
            self._records[item_id] = record
        return record

    def vote(self, item_id: str, direction: Vote | str) -> InteractionRecord:
        """Count an item vote; the same viewer may vote any number of times."""

        direction = Vote(direction)
        record = self.get_or_create(item_id)
        if direction is Vote.LIKE:
            record.likes += 1
        else:
            record.dislikes += 1
        self._mutated("item_vote", item_id, direction=direction.value)
        return record

    def add_comment(self, item_id: str, author: User | None, text: str) -> Comment | None:
        text = (text or "").strip()
        if author is None or not text:
            return None
        record = self.get_or_create(item_id)
        comment = Comment(
            text=text,
            author_id=author.id,
            author_name=author.display_name,
            author_avatar=author.avatar_url,
        )
        record.comments.insert(0, comment)
        del record.comments[self.comment_cap :]
        self._mutated("comment_added", item_id, comment_id=comment.id)
        return comment

    def find_comment(self, item_id: str, comment_id: str) -> Comment | None:
        record = self._records.get(item_id)
        if record is None:
            return None
        return next((comment for comment in record.comments if comment.id == comment_id), None)

    def delete_comment(self, item_id: str, comment_id: str, requesting_user: User | None) -> bool:
        """Remove a comment only when requested by its author."""

        comment = self.find_comment(item_id, comment_id)
        if comment is None or requesting_user is None or comment.author_id != requesting_user.id:
            return False
        record = self._records[item_id]
        record.comments = [existing for existing in record.comments if existing.id != comment_id]
        self._mutated("comment_deleted", item_id, comment_id=comment_id)
        return True

    def vote_comment(
        self, item_id: str, comment_id: str, user: User | None, direction: Vote | str
    ) -> Comment | None:
        """Record ``user``'s vote, switching counters when the choice changes."""

        direction = Vote(direction)
        comment = self.find_comment(item_id, comment_id)
        if comment is None or user is None:
            return None
        previous = comment.voters.get(user.id)
        if previous is direction:
            return comment
        if previous is Vote.LIKE:
            comment.likes = max(0, comment.likes - 1)
        elif previous is Vote.DISLIKE:
            comment.dislikes = max(0, comment.dislikes - 1)
        if direction is Vote.LIKE:
            comment.likes += 1
        else:
            comment.dislikes += 1
        comment.voters[user.id] = direction
        self._mutated("comment_vote", item_id, comment_id=comment_id, direction=direction.value)
        return comment

    def prune(self, keep_ids: Iterable[str]) -> int:
        """Drop records whose item id is not in ``keep_ids``; returns the count removed."""

        keep = set(keep_ids)
        stale = [item_id for item_id in self._records if item_id not in keep]
        for item_id in stale:
            del self._records[item_id]
        if stale:
            self._mutated("interactions_pruned", None, removed=len(stale))
        return len(stale)

    def _mutated(self, event: str, item_id: str | None, **context: object) -> None:
        self.persist()
        self.logger.debug("interaction_mutated", action=event, item_id=item_id, **context)


__all__ = ["Comment", "DEFAULT_COMMENT_CAP", "InteractionRecord", "InteractionStore", "Vote"]
