"""
memeplace.database.models — SQLAlchemy 2.0 Data Models
========================================================

Tables:
- users        — Account identities (auth itself is external)
- communities  — Named boards; ``lower(name)`` is unique
- templates    — Reusable meme bases, optionally owned by a community
- memes        — Posted links; ``lower(link)`` is unique
- favourites   — (user, community) bookmarks, one row per pair
- votes        — One effective vote per (user, meme)

Relationships are declared on each model with ``back_populates``; there
is no association registry.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all memeplace ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class VoteDirection(enum.StrEnum):
    """What a user can ask the vote ledger for."""
    UP = "up"
    DOWN = "down"
    NONE = "none"

    @property
    def score(self) -> int:
        return {"up": 1, "down": -1, "none": 0}[self.value]


class SortMode(enum.StrEnum):
    """Listing orderings.  Not every resource accepts every mode."""
    NEW = "new"
    TOP = "top"
    HOT = "hot"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    password_hash: Mapped[str | None] = mapped_column(String(255), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    memes: Mapped[list[Meme]] = relationship(back_populates="creator")
    communities: Mapped[list[Community]] = relationship(back_populates="creator")
    favourites: Mapped[list[Favourite]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"


# ---------------------------------------------------------------------------
# Communities
# ---------------------------------------------------------------------------
class Community(Base):
    """A named board.  ``favourites_count`` moves in the same transaction
    as the favourite row that changes it."""
    __tablename__ = "communities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    sidebar: Mapped[str | None] = mapped_column(Text, default=None)
    nsfw: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    creator_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), default=None
    )
    favourites_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    creator: Mapped[User | None] = relationship(back_populates="communities")
    memes: Mapped[list[Meme]] = relationship(back_populates="community")
    templates: Mapped[list[Template]] = relationship(back_populates="community")
    favourites: Mapped[list[Favourite]] = relationship(
        back_populates="community", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_communities_top", "favourites_count", "created_at", "id"),
        Index("ix_communities_new", "created_at", "id"),
    )

    def __repr__(self) -> str:
        return f"<Community id={self.id} name={self.name!r}>"


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------
class Template(Base):
    __tablename__ = "templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(2083), default=None)
    community_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("communities.id", ondelete="SET NULL"), default=None
    )
    creator_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    community: Mapped[Community | None] = relationship(back_populates="templates")
    memes: Mapped[list[Meme]] = relationship(back_populates="template")

    __table_args__ = (
        Index("ix_templates_community", "community_id"),
    )

    def __repr__(self) -> str:
        return f"<Template id={self.id} name={self.name!r}>"


# ---------------------------------------------------------------------------
# Memes
# ---------------------------------------------------------------------------
class Meme(Base):
    """A posted link.

    ``net_vote`` only ever changes through an atomic ``UPDATE`` expression
    in :mod:`memeplace.services.vote_service`; ``hot_score`` is recomputed
    in that same transaction.
    """
    __tablename__ = "memes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str | None] = mapped_column(String(300), default=None)
    link: Mapped[str] = mapped_column(String(2083), nullable=False)
    net_vote: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    hot_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    creator_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), default=None
    )
    template_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("templates.id", ondelete="SET NULL"), default=None
    )
    community_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("communities.id", ondelete="SET NULL"), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    creator: Mapped[User | None] = relationship(back_populates="memes")
    template: Mapped[Template | None] = relationship(back_populates="memes")
    community: Mapped[Community | None] = relationship(back_populates="memes")
    votes: Mapped[list[Vote]] = relationship(
        back_populates="meme", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_memes_community_new", "community_id", "created_at", "id"),
        Index("ix_memes_community_top", "community_id", "net_vote"),
        Index("ix_memes_community_hot", "community_id", "hot_score"),
        Index("ix_memes_template", "template_id"),
    )

    def __repr__(self) -> str:
        return f"<Meme id={self.id} link={self.link!r} net_vote={self.net_vote}>"


# ---------------------------------------------------------------------------
# Favourites: join rows, unique per (user, community)
# ---------------------------------------------------------------------------
class Favourite(Base):
    __tablename__ = "favourites"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    community_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("communities.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    user: Mapped[User] = relationship(back_populates="favourites")
    community: Mapped[Community] = relationship(back_populates="favourites")

    def __repr__(self) -> str:
        return f"<Favourite user={self.user_id} community={self.community_id}>"


# ---------------------------------------------------------------------------
# Votes: at most one effective vote per (user, meme); "none" = no row
# ---------------------------------------------------------------------------
class Vote(Base):
    __tablename__ = "votes"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    meme_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("memes.id", ondelete="CASCADE"), primary_key=True
    )
    value: Mapped[int] = mapped_column(SmallInteger, nullable=False)  # +1 / -1
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    meme: Mapped[Meme] = relationship(back_populates="votes")

    def __repr__(self) -> str:
        return f"<Vote user={self.user_id} meme={self.meme_id} value={self.value}>"


# ---------------------------------------------------------------------------
# Case-insensitive uniqueness: functional indexes on the canonical form
# ---------------------------------------------------------------------------
Index("uq_memes_link_lower", func.lower(Meme.link), unique=True)
Index("uq_communities_name_lower", func.lower(Community.name), unique=True)
