from __future__ import annotations

from skindb.models.item import Sticker, StickerObservation
from skindb.services.stickers import canonicalize_stickers, stickers_from_observation


def _st(slot: int, sticker_id: int, **kw: object) -> Sticker:
    return Sticker(slot=slot, sticker_id=sticker_id, **kw)


def test_empty_list_is_none() -> None:
    assert canonicalize_stickers([]) is None


def test_duplicate_count_on_one_member() -> None:
    raw = [_st(0, 5), _st(1, 5), _st(2, 7)]
    out = canonicalize_stickers(raw)
    assert out is not None
    assert out[0] == _st(0, 5, duplicates=2)
    assert out[1] == raw[1]
    assert out[2] == raw[2]
    assert [s.duplicates for s in out if s.sticker_id == 5].count(2) == 1


def test_unique_stickers_pass_through() -> None:
    raw = [_st(0, 1, wear=0.1), _st(1, 2), _st(3, 3)]
    assert canonicalize_stickers(raw) == tuple(raw)


def test_canonicalize_is_idempotent() -> None:
    raw = [_st(0, 5), _st(1, 7), _st(2, 5), _st(3, 5), _st(4, 7)]
    once = canonicalize_stickers(raw)
    assert once is not None
    assert canonicalize_stickers(list(once)) == once
    assert [s.duplicates for s in once] == [3, 2, None, None, None]


def test_already_marked_group_is_left_alone() -> None:
    raw = [_st(0, 5), _st(1, 5, duplicates=2)]
    assert canonicalize_stickers(raw) == tuple(raw)


def test_input_is_not_modified() -> None:
    raw = [_st(0, 5), _st(1, 5)]
    canonicalize_stickers(raw)
    assert raw == [_st(0, 5), _st(1, 5)]


def test_from_observation_drops_zero_wear() -> None:
    observed = [
        StickerObservation(slot=0, stickerId=76, wear=0),
        StickerObservation(slot=1, stickerId=76, wear=0.31),
        StickerObservation(slot=2, stickerId=90),
    ]
    out = stickers_from_observation(observed)
    assert out == (
        _st(0, 76, wear=None, duplicates=2),
        _st(1, 76, wear=0.31),
        _st(2, 90),
    )
    assert stickers_from_observation([]) is None
