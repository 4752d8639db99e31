from __future__ import annotations

from datetime import datetime
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from ..codecs import U64_MAX

SOUVENIR_QUALITY = 12
UINT16_MAX = 0xFFFF


class CanonicalKey(NamedTuple):
    defindex: int
    paintindex: int
    paint_wear: int
    paint_seed: int

    def __str__(self) -> str:
        return ":".join(str(part) for part in self)


class RankClass(NamedTuple):
    defindex: int
    paintindex: int
    stattrak: bool
    souvenir: bool

    def __str__(self) -> str:
        return f"{self.defindex}:{self.paintindex}:{int(self.stattrak)}:{int(self.souvenir)}"


class StickerObservation(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    slot: int = Field(..., ge=0)
    sticker_id: int = Field(..., alias="stickerId", ge=0)
    wear: float | None = None


class ItemObservation(BaseModel):
    """One raw observation as delivered by the inspect feed."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    asset_id: int = Field(..., alias="a", ge=0, le=U64_MAX)
    owner_id: int = Field(default=0, alias="s", ge=0, le=U64_MAX)
    market_id: int = Field(default=0, alias="m", ge=0, le=U64_MAX)
    linked_id: int = Field(default=0, alias="d", ge=0, le=U64_MAX)
    paint_seed: int = Field(..., alias="paintseed", ge=0, le=UINT16_MAX)
    float_value: float = Field(..., alias="floatvalue")
    defindex: int = Field(..., ge=0, le=UINT16_MAX)
    paintindex: int = Field(..., ge=0, le=UINT16_MAX)
    killeater_value: int | None = Field(default=None, alias="killeatervalue")
    origin: int = Field(..., ge=0, le=255)
    quality: int = Field(..., ge=0, le=255)
    rarity: int = Field(..., ge=0, le=255)
    stickers: tuple[StickerObservation, ...] = ()

    @property
    def holder_id(self) -> int:
        # owner and listing ids are mutually exclusive; owner wins
        return self.owner_id if self.owner_id != 0 else self.market_id

    @property
    def stattrak(self) -> bool:
        return self.killeater_value is not None

    @property
    def souvenir(self) -> bool:
        return self.quality == SOUVENIR_QUALITY


class Sticker(BaseModel):
    model_config = ConfigDict(frozen=True)

    slot: int
    sticker_id: int
    wear: float | None = None
    duplicates: int | None = None

    def to_compact(self) -> dict[str, Any]:
        """Short-key form used inside stored records."""
        out: dict[str, Any] = {"s": self.slot, "i": self.sticker_id}
        if self.wear is not None:
            out["w"] = self.wear
        if self.duplicates is not None:
            out["d"] = self.duplicates
        return out

    @classmethod
    def from_compact(cls, data: dict[str, Any]) -> Sticker:
        return cls(
            slot=int(data["s"]),
            sticker_id=int(data["i"]),
            wear=data.get("w"),
            duplicates=data.get("d"),
        )


class StoredItem(BaseModel):
    """A record in its persisted form: ids signed, wear as int32, props packed."""

    model_config = ConfigDict(frozen=True)

    asset_id: int
    holder_id: int
    linked_id: int
    paint_seed: int
    paint_wear: int
    defindex: int
    paintindex: int
    stattrak: bool
    souvenir: bool
    properties: int
    stickers: tuple[Sticker, ...] | None = None
    updated_at: datetime
    rarity: int

    @property
    def canonical_key(self) -> CanonicalKey:
        return CanonicalKey(self.defindex, self.paintindex, self.paint_wear, self.paint_seed)

    @property
    def rank_class(self) -> RankClass:
        return RankClass(self.defindex, self.paintindex, self.stattrak, self.souvenir)

    def superseded_by(self, incoming: StoredItem) -> StoredItem:
        """Linkage and stickers follow the newer observation; classification stays."""
        return self.model_copy(
            update={
                "asset_id": incoming.asset_id,
                "holder_id": incoming.holder_id,
                "linked_id": incoming.linked_id,
                "stickers": incoming.stickers,
                "updated_at": incoming.updated_at,
            }
        )


class Rank(BaseModel):
    low_rank: int | None = None
    high_rank: int | None = None


class ItemView(BaseModel):
    asset_id: int
    owner_id: int
    market_id: int
    linked_id: int
    paint_seed: int
    float_value: float
    defindex: int
    paintindex: int
    killeater_value: int | None
    origin: int
    quality: int
    rarity: int
    stickers: list[Sticker] = []
    updated_at: datetime
    low_rank: int | None = None
    high_rank: int | None = None

    @field_serializer("asset_id", "owner_id", "market_id", "linked_id", when_used="json")
    def _id_as_string(self, value: int) -> str:
        # 64-bit ids overflow JSON number precision in most clients
        return str(value)
