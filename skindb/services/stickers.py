from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from ..models.item import Sticker, StickerObservation


def canonicalize_stickers(stickers: Sequence[Sticker]) -> tuple[Sticker, ...] | None:
    """Annotate repeated stickers with how many copies the item carries.

    Exactly one member of each repeated group gets ``duplicates`` set to the
    group size; a group that already has such a member is left alone, so the
    function is idempotent. Empty input gives None.
    """
    if not stickers:
        return None

    sizes = Counter(s.sticker_id for s in stickers)
    marked = {s.sticker_id for s in stickers if (s.duplicates or 0) > 1}
    out: list[Sticker] = []
    for sticker in stickers:
        size = sizes[sticker.sticker_id]
        if size > 1 and sticker.sticker_id not in marked:
            sticker = sticker.model_copy(update={"duplicates": size})
            marked.add(sticker.sticker_id)
        out.append(sticker)
    return tuple(out)


def stickers_from_observation(observed: Sequence[StickerObservation]) -> tuple[Sticker, ...] | None:
    # The feed reports 0 when it has no wear for a sticker
    return canonicalize_stickers(
        [Sticker(slot=s.slot, sticker_id=s.sticker_id, wear=s.wear or None) for s in observed]
    )
