from __future__ import annotations

import math
from datetime import datetime, timezone

from ..codecs import (
    decode_wear,
    encode_wear,
    is_steam_id64,
    pack_properties,
    signed64_to_unsigned,
    unpack_properties,
    unsigned64_to_signed,
)
from ..errors import InvalidInput
from ..models.item import ItemObservation, ItemView, Rank, StoredItem
from .stickers import stickers_from_observation


def build_record(observation: ItemObservation, now: datetime | None = None) -> StoredItem:
    """Normalize a feed observation into its stored form.

    Raises InvalidInput for items without a positive finite wear; those are
    not weapons and are never stored.
    """
    wear = observation.float_value
    if not math.isfinite(wear) or wear <= 0:
        raise InvalidInput(f"asset {observation.asset_id} has no wear ({wear!r})")
    try:
        paint_wear = encode_wear(wear)
    except ValueError as exc:
        raise InvalidInput(str(exc)) from exc
    # positive doubles below the smallest float32 round to zero
    if paint_wear <= 0:
        raise InvalidInput(f"asset {observation.asset_id} has no wear ({wear!r})")

    return StoredItem(
        asset_id=unsigned64_to_signed(observation.asset_id),
        holder_id=unsigned64_to_signed(observation.holder_id),
        linked_id=unsigned64_to_signed(observation.linked_id),
        paint_seed=observation.paint_seed,
        paint_wear=paint_wear,
        defindex=observation.defindex,
        paintindex=observation.paintindex,
        stattrak=observation.stattrak,
        souvenir=observation.souvenir,
        properties=pack_properties(observation.origin, observation.quality, observation.rarity),
        stickers=stickers_from_observation(observation.stickers),
        updated_at=now or datetime.now(timezone.utc),
        rarity=observation.rarity,
    )


def build_view(record: StoredItem, rank: Rank | None = None) -> ItemView:
    props = unpack_properties(record.properties)
    holder = signed64_to_unsigned(record.holder_id)
    owner_id, market_id = (holder, 0) if is_steam_id64(holder) else (0, holder)
    rank = rank or Rank()

    return ItemView(
        asset_id=signed64_to_unsigned(record.asset_id),
        owner_id=owner_id,
        market_id=market_id,
        linked_id=signed64_to_unsigned(record.linked_id),
        paint_seed=record.paint_seed,
        float_value=decode_wear(record.paint_wear),
        defindex=record.defindex,
        paintindex=record.paintindex,
        # only presence matters downstream, the counter itself is not stored
        killeater_value=0 if record.stattrak else None,
        origin=props.origin,
        quality=props.quality,
        rarity=props.rarity,
        stickers=list(record.stickers or ()),
        updated_at=record.updated_at,
        low_rank=rank.low_rank,
        high_rank=rank.high_rank,
    )
