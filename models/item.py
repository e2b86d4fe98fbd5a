import enum

from sqlalchemy import Column, Float, Integer, String, Text, Uuid

from .database import Base, UTCDateTime


class ItemType(str, enum.Enum):
    BOOK = "book"
    GAME = "game"
    MOVIE = "movie"
    MUSIC = "music"


class BookStatus(str, enum.Enum):
    NONE = "none"
    WANT_TO_READ = "want_to_read"
    READING = "reading"
    READ = "read"


class Format(str, enum.Enum):
    UNKNOWN = "UNKNOWN"
    HARDCOVER = "HARDCOVER"
    PAPERBACK = "PAPERBACK"
    SOFTCOVER = "SOFTCOVER"
    EBOOK = "EBOOK"
    MAGAZINE = "MAGAZINE"


class Genre(str, enum.Enum):
    FICTION = "FICTION"
    NON_FICTION = "NON_FICTION"
    SCIENCE_TECH = "SCIENCE_TECH"
    HISTORY = "HISTORY"
    BIOGRAPHY = "BIOGRAPHY"
    CHILDRENS = "CHILDRENS"
    ARTS_ENTERTAINMENT = "ARTS_ENTERTAINMENT"
    REFERENCE_OTHER = "REFERENCE_OTHER"


class ShelfStatus(str, enum.Enum):
    ALL = "all"
    ON = "on"
    OFF = "off"


class Item(Base):
    """Catalogue entry (book, game, movie or music)"""
    __tablename__ = "items"

    id = Column(Uuid, primary_key=True)
    owner_id = Column(Uuid, nullable=False, index=True)
    title = Column(String, nullable=False)
    creator = Column(String, nullable=False, default="")
    item_type = Column(String(16), nullable=False, index=True)
    release_year = Column(Integer, nullable=True)
    page_count = Column(Integer, nullable=True)
    current_page = Column(Integer, nullable=True)
    isbn13 = Column(String(32), nullable=False, default="", index=True)
    isbn10 = Column(String(32), nullable=False, default="", index=True)
    description = Column(Text, nullable=False, default="")
    cover_image = Column(Text, nullable=False, default="")  # URL or data URI
    format = Column(String(16), nullable=False, default="")
    genre = Column(String(32), nullable=False, default="")
    rating = Column(Integer, nullable=True)  # 1..10
    retail_price_usd = Column(Float, nullable=True)
    google_volume_id = Column(String, nullable=False, default="")
    platform = Column(String, nullable=False, default="")
    age_group = Column(String, nullable=False, default="")
    player_count = Column(String, nullable=False, default="")
    reading_status = Column(String(16), nullable=False, default=BookStatus.NONE.value)
    read_at = Column(UTCDateTime, nullable=True)
    notes = Column(Text, nullable=False, default="")
    series_name = Column(String, nullable=False, default="", index=True)
    volume_number = Column(Integer, nullable=True)
    total_volumes = Column(Integer, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, index=True)
    updated_at = Column(UTCDateTime, nullable=False)
