from sqlalchemy import Column, Float, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from .database import Base, UTCDateTime


class Shelf(Base):
    """Physical shelf photographed and split into a grid of slots"""
    __tablename__ = "shelves"

    id = Column(Uuid, primary_key=True)
    owner_id = Column(Uuid, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    photo_url = Column(Text, nullable=False)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    rows = relationship("ShelfRow", back_populates="shelf", cascade="all, delete-orphan")
    slots = relationship("ShelfSlot", back_populates="shelf", cascade="all, delete-orphan")
    placements = relationship("ItemPlacement", back_populates="shelf", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="uq_owner_shelf_name"),
    )


class ShelfRow(Base):
    """Horizontal band of a shelf, spans normalized to 0..1"""
    __tablename__ = "shelf_rows"

    id = Column(Uuid, primary_key=True)
    shelf_id = Column(Uuid, ForeignKey("shelves.id", ondelete="CASCADE"), nullable=False, index=True)
    row_index = Column(Integer, nullable=False)
    y_start_norm = Column(Float, nullable=False)
    y_end_norm = Column(Float, nullable=False)

    shelf = relationship("Shelf", back_populates="rows")
    columns = relationship("ShelfColumn", back_populates="row", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("shelf_id", "row_index", name="uq_shelf_row_index"),
    )


class ShelfColumn(Base):
    __tablename__ = "shelf_columns"

    id = Column(Uuid, primary_key=True)
    shelf_row_id = Column(Uuid, ForeignKey("shelf_rows.id", ondelete="CASCADE"), nullable=False, index=True)
    col_index = Column(Integer, nullable=False)
    x_start_norm = Column(Float, nullable=False)
    x_end_norm = Column(Float, nullable=False)

    row = relationship("ShelfRow", back_populates="columns")

    __table_args__ = (
        UniqueConstraint("shelf_row_id", "col_index", name="uq_row_col_index"),
    )


class ShelfSlot(Base):
    """Addressable cell of the grid, keyed by (row_index, col_index)"""
    __tablename__ = "shelf_slots"

    id = Column(Uuid, primary_key=True)
    shelf_id = Column(Uuid, ForeignKey("shelves.id", ondelete="CASCADE"), nullable=False, index=True)
    shelf_row_id = Column(Uuid, ForeignKey("shelf_rows.id", ondelete="CASCADE"), nullable=False)
    shelf_column_id = Column(Uuid, ForeignKey("shelf_columns.id", ondelete="CASCADE"), nullable=False)
    row_index = Column(Integer, nullable=False)
    col_index = Column(Integer, nullable=False)
    x_start_norm = Column(Float, nullable=False)
    x_end_norm = Column(Float, nullable=False)
    y_start_norm = Column(Float, nullable=False)
    y_end_norm = Column(Float, nullable=False)

    # (row_index, col_index) uniqueness is checked on layout submission; a
    # client-supplied slot id may move a slot onto another key in one update
    shelf = relationship("Shelf", back_populates="slots")


class ItemPlacement(Base):
    """Item on a shelf; shelf_slot_id NULL means unplaced"""
    __tablename__ = "item_shelf_locations"

    id = Column(Uuid, primary_key=True)
    item_id = Column(Uuid, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, unique=True)
    shelf_id = Column(Uuid, ForeignKey("shelves.id", ondelete="CASCADE"), nullable=False, index=True)
    shelf_slot_id = Column(Uuid, ForeignKey("shelf_slots.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(UTCDateTime, nullable=False)

    shelf = relationship("Shelf", back_populates="placements")
