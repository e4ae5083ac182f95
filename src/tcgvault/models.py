from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    String,
    Text,
    Boolean,
    DateTime,
    Float,
    Integer,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

"""
These are data models for the tcgvault catalog database.
They include:

- PokemonCard       (pokemon_cards; singles and TCGCSV sealed products)
- PokemonExpansion  (pokemon_expansions)

List-valued card attributes (types, subtypes, weaknesses, resistances) are
stored as JSON array text, e.g. '["Fire","Water"]', and matched on the quoted
element by the query layer.

version: 0.1.0
"""


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# PokemonCard
# ---------------------------------------------------------------------------

class PokemonCard(Base):
    """
    A single catalog row: a card, or a sealed product when
    supertype == "Sealed Product".
    """
    __tablename__ = "pokemon_cards"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    # Core fields
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    number: Mapped[str | None] = mapped_column(String, nullable=True)
    artist: Mapped[str | None] = mapped_column(String, nullable=True)
    rarity: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    supertype: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    flavor_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    product_type: Mapped[str | None] = mapped_column(String, nullable=True)
    language_code: Mapped[str | None] = mapped_column(String, nullable=True)

    # JSON array text
    types: Mapped[str | None] = mapped_column(Text, nullable=True)
    subtypes: Mapped[str | None] = mapped_column(Text, nullable=True)
    weaknesses: Mapped[str | None] = mapped_column(Text, nullable=True)
    resistances: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Expansion
    expansion_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    expansion_name: Mapped[str | None] = mapped_column(String, nullable=True)

    # Images
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)
    image_small: Mapped[str | None] = mapped_column(String, nullable=True)
    image_medium: Mapped[str | None] = mapped_column(String, nullable=True)

    # TCGCSV pricing
    market_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    low_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    mid_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    high_price: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Raw / graded market pricing
    raw_market: Mapped[float | None] = mapped_column(Float, nullable=True)
    graded_market: Mapped[float | None] = mapped_column(Float, nullable=True)
    trend: Mapped[float | None] = mapped_column(Float, nullable=True)

    raw_trend_7d_percent: Mapped[float | None] = mapped_column(Float, nullable=True)
    raw_trend_30d_percent: Mapped[float | None] = mapped_column(Float, nullable=True)
    raw_trend_90d_percent: Mapped[float | None] = mapped_column(Float, nullable=True)
    raw_trend_180d_percent: Mapped[float | None] = mapped_column(Float, nullable=True)

    graded_trend_7d_percent: Mapped[float | None] = mapped_column(Float, nullable=True)
    graded_trend_30d_percent: Mapped[float | None] = mapped_column(Float, nullable=True)
    graded_trend_90d_percent: Mapped[float | None] = mapped_column(Float, nullable=True)
    graded_trend_180d_percent: Mapped[float | None] = mapped_column(Float, nullable=True)

    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<PokemonCard(id={self.id!r}, name={self.name!r}, number={self.number!r})>"


# ---------------------------------------------------------------------------
# PokemonExpansion
# ---------------------------------------------------------------------------

class PokemonExpansion(Base):
    """
    A release set. `name` may carry a "<code>: " prefix as delivered by the
    upstream catalog; it is stripped when formatted.
    """
    __tablename__ = "pokemon_expansions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    code: Mapped[str | None] = mapped_column(String, nullable=True)
    series: Mapped[str | None] = mapped_column(String, nullable=True)
    total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    printed_total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    language: Mapped[str | None] = mapped_column(String, nullable=True)
    language_code: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    release_date: Mapped[str | None] = mapped_column(String, nullable=True)
    logo: Mapped[str | None] = mapped_column(String, nullable=True)
    symbol: Mapped[str | None] = mapped_column(String, nullable=True)
    is_online_only: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tcgcsv_group_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<PokemonExpansion(id={self.id!r}, name={self.name!r})>"
