from __future__ import annotations

import datetime as dt

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.sqlite import JSON as SQLiteJSON
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


PUNCH_COLUMNS = ("entrada1", "saida1", "entrada2", "saida2", "entrada3", "saida3")


class TimeEntry(Base):
    __tablename__ = "time_entries"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_time_entries_user_date"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(100), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    entrada1 = Column(String(5), nullable=True)
    saida1 = Column(String(5), nullable=True)
    entrada2 = Column(String(5), nullable=True)
    saida2 = Column(String(5), nullable=True)
    entrada3 = Column(String(5), nullable=True)
    saida3 = Column(String(5), nullable=True)
    total_hours = Column(String(8), nullable=False, default="00:00")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    allocations = relationship(
        "TimeEntryAllocation",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="TimeEntryAllocation.id",
    )


class TimeEntryAllocation(Base):
    __tablename__ = "time_entry_allocations"

    id = Column(Integer, primary_key=True)
    entry_id = Column(Integer, ForeignKey("time_entries.id"), nullable=False, index=True)
    project_id = Column(String(100), nullable=True)
    project_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    hours = Column(Float, nullable=False, default=0.0)

    entry = relationship("TimeEntry", back_populates="allocations")


class KanbanBoard(Base):
    __tablename__ = "kanban_boards"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(100), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    is_archived = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    columns = relationship(
        "KanbanColumn",
        back_populates="board",
        cascade="all, delete-orphan",
        order_by="KanbanColumn.position",
    )


class KanbanColumn(Base):
    __tablename__ = "kanban_columns"

    id = Column(Integer, primary_key=True)
    board_id = Column(Integer, ForeignKey("kanban_boards.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    limit = Column(Integer, nullable=True)
    # Backend status a card adopts when moved here; free-form columns leave it empty.
    status = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    board = relationship("KanbanBoard", back_populates="columns")
    cards = relationship("KanbanCard", back_populates="column", order_by="KanbanCard.position")


class KanbanCard(Base):
    __tablename__ = "kanban_cards"

    id = Column(Integer, primary_key=True)
    board_id = Column(Integer, ForeignKey("kanban_boards.id"), nullable=False, index=True)
    column_id = Column(Integer, ForeignKey("kanban_columns.id"), nullable=False, index=True)
    project_id = Column(String(100), nullable=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="todo", index=True)
    tags = Column(SQLiteJSON, nullable=False, default=list)
    due_date = Column(DateTime(timezone=True), nullable=True)
    priority = Column(String(10), nullable=False, default="medium")
    assignees = Column(SQLiteJSON, nullable=False, default=list)
    correction = Column(SQLiteJSON, nullable=True)
    created_by = Column(String(100), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    column = relationship("KanbanColumn", back_populates="cards")
    activities = relationship(
        "KanbanCardActivity",
        back_populates="card",
        cascade="all, delete-orphan",
    )


class KanbanCardActivity(Base):
    __tablename__ = "kanban_card_activities"

    id = Column(Integer, primary_key=True)
    card_id = Column(Integer, ForeignKey("kanban_cards.id"), nullable=False, index=True)
    user_id = Column(String(100), nullable=True)
    action = Column(String(50), nullable=False)
    payload = Column(SQLiteJSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    card = relationship("KanbanCard", back_populates="activities")
