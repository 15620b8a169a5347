"""
SQLAlchemy Database Models for Vocabulary Content

The flashcard content model belongs to the wider application; the review
scheduler only reads which items a collection holds and who owns it.
Word text is kept here so the tables are usable on their own.

Tables:
- vocabulary_sets: Learner-owned vocabulary collections
- vocabulary_items: Individual words/phrases within a collection
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lingua.db.base import Base


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class VocabularySet(Base):
    """
    A learner's vocabulary collection (a "flashcard set").

    Attributes:
        id: Primary key.
        owner_id: Identity of the learner who owns the set, as issued by
            the authentication layer.
        name: Display name.
        description: Optional free text.
        items: Vocabulary items, in storage order.
    """

    __tablename__ = "vocabulary_sets"

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), index=True)
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    items: Mapped[List["VocabularyItem"]] = relationship(
        back_populates="vocabulary_set",
        cascade="all, delete-orphan",
        order_by="VocabularyItem.id",
    )


class VocabularyItem(Base):
    """
    A single word or phrase to learn.

    Attributes:
        id: Primary key. Storage order within a set follows this id.
        set_id: Owning VocabularySet.
        word: Term in the target language.
        translation: Meaning in the learner's language.
        pronunciation: Optional romanisation or phonetic spelling.
    """

    __tablename__ = "vocabulary_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    set_id: Mapped[int] = mapped_column(
        ForeignKey("vocabulary_sets.id", ondelete="CASCADE"), index=True
    )
    word: Mapped[str] = mapped_column(String(200))
    translation: Mapped[str] = mapped_column(String(500))
    pronunciation: Mapped[Optional[str]] = mapped_column(String(200))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    vocabulary_set: Mapped["VocabularySet"] = relationship(back_populates="items")
