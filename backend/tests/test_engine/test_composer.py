"""Tests for the composition engine: layer order, omission, category blocks."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from bannerforge.assets.cache import ResolvedAsset
from bannerforge.engine.composer import CompositionEngine, required_uris
from bannerforge.engine.config import LayoutConfig
from bannerforge.engine.context import LayoutContext
from bannerforge.engine.draw_ops import DrawImage, DrawText, FillCircle, FillRect, Layer
from bannerforge.engine.registry import CategoryLayoutSpec, LayoutRegistry
from bannerforge.models.descriptor import BannerCategory, StickerPlacement
from bannerforge.models.slots import SlotTransform
from tests.conftest import (
    ACHIEVER,
    ALL_URIS,
    AVATAR,
    BACKGROUND,
    CONGRATS,
    LOGO_LEFT,
    LOGO_RIGHT,
    MENTOR,
    STICKER,
    make_descriptor,
    resolved,
)


@pytest.fixture
def engine() -> CompositionEngine:
    return CompositionEngine()


def _texts(composition, layer: Layer | None = None) -> list[str]:
    return [op.text for op in composition.texts() if layer is None or op.layer == layer]


def test_full_rank_layers_in_draw_order(engine, full_rank_descriptor):
    composition = engine.compose(full_rank_descriptor, resolved(*ALL_URIS))
    layers = [op.layer for op in composition]
    assert layers == sorted(layers)
    assert composition.layers == set(Layer)
    assert composition.errors == {}


def test_empty_descriptor_draws_only_backdrop_and_reserved_uplines(engine):
    composition = engine.compose(make_descriptor("rank"), {})
    assert composition.layers == {Layer.BACKDROP, Layer.UPLINES, Layer.CONTACT_BAND, Layer.WATERMARK}
    assert not [op for op in composition if isinstance(op, DrawImage)]
    assert [op for op in composition.texts() if op.layer != Layer.WATERMARK] == []


def test_unresolved_assets_are_skipped(engine):
    descriptor = make_descriptor("rank", imageRefs={"achiever": ACHIEVER, "mentor": MENTOR})
    assets = {
        ACHIEVER: ResolvedAsset(uri=ACHIEVER, image=None, error="HTTP 404"),
        **resolved(MENTOR),
    }
    composition = engine.compose(descriptor, assets)
    assert composition.layer(Layer.ACHIEVER) == []
    assert len(composition.layer(Layer.MENTOR)) == 1
    assert set(composition.images) == {MENTOR}


def test_asset_missing_from_mapping_is_skipped(engine):
    descriptor = make_descriptor("rank", imageRefs={"background": BACKGROUND})
    composition = engine.compose(descriptor, {})
    assert composition.layer(Layer.BACKGROUND) == []


def test_birthday_long_name_is_truncated_then_sized(engine):
    descriptor = make_descriptor("birthday", textFields={"userName": "Alexandria Patricia Smith"})
    composition = engine.compose(descriptor, {})
    names = [op for op in composition.texts() if op.text.startswith("ALEXANDRIA")]
    assert len(names) == 1
    assert names[0].text == "ALEXANDRIA PATRICIA ..."
    assert names[0].size == 36
    assert names[0].y == 370
    assert "HAPPY BIRTHDAY" in _texts(composition, Layer.CATEGORY)
    assert "🎂" in _texts(composition, Layer.CATEGORY)


def test_rank_block_and_contact_band(engine, full_rank_descriptor):
    composition = engine.compose(full_rank_descriptor, resolved(*ALL_URIS))
    block = _texts(composition, Layer.CATEGORY)
    assert "GOLD STAR" in block
    assert "PRIYA SHARMA" in block
    assert "TEAM PUNE" in block
    assert "THIS WEEK INCOME" in block
    assert "12,34,567" in block
    band = _texts(composition, Layer.CONTACT_BAND)
    assert band == ["+91 98765 43210", "RAHUL VERMA", "DIAMOND DIRECTOR"]
    congrats = [op for op in composition.layer(Layer.CATEGORY) if isinstance(op, DrawImage)]
    assert (congrats[0].x, congrats[0].y, congrats[0].w, congrats[0].h) == (654, 162, 648, 162)


def test_rank_income_omitted_without_amount(engine):
    composition = engine.compose(make_descriptor("rank", textFields={"userName": "Priya"}), {})
    assert "THIS WEEK INCOME" not in _texts(composition)


def test_bonanza_trip_name_omitted_when_absent(engine):
    composition = engine.compose(make_descriptor("bonanza", textFields={"userName": "Priya"}), {})
    block = composition.layer(Layer.CATEGORY)
    assert [op.text for op in block] == ["BONANZA TRIP WINNER", "PRIYA"]


def test_meeting_fields(engine):
    descriptor = make_descriptor(
        "meeting",
        textFields={"eventTitle": "Quarterly Review", "eventDate": "12 Oct", "eventVenue": "Hall B"},
    )
    composition = engine.compose(descriptor, {})
    block = composition.layer(Layer.CATEGORY)
    assert [(op.text, op.y) for op in block] == [
        ("TEAM MEETING", 200),
        ("Quarterly Review", 280),
        ("12 Oct", 350),
        ("Hall B", 400),
    ]


def test_motivational_quote_and_no_mentor(engine):
    descriptor = make_descriptor(
        "motivational",
        textFields={"userName": "Asha", "quote": "Small steps every day"},
        imageRefs={"mentor": MENTOR, "achiever": ACHIEVER},
    )
    composition = engine.compose(descriptor, resolved(MENTOR, ACHIEVER))
    assert composition.layer(Layer.MENTOR) == []
    assert len(composition.layer(Layer.ACHIEVER)) == 1
    block = composition.layer(Layer.CATEGORY)
    assert block[0].text == '"Small steps every day"'
    assert block[0].italic
    assert block[-1].text == "- ASHA"


def test_story_draws_no_category_achiever_mentor_or_band(engine, full_rank_descriptor):
    descriptor = full_rank_descriptor.model_copy(update={"category": "story"})
    composition = engine.compose(descriptor, resolved(*ALL_URIS))
    for layer in (Layer.ACHIEVER, Layer.CATEGORY, Layer.MENTOR, Layer.CONTACT_BAND):
        assert composition.layer(layer) == []
    assert len(composition.layer(Layer.BACKGROUND)) == 1
    assert len(composition.layer(Layer.STICKERS)) == 1


def test_unknown_category_renders_everything_but_the_block(engine):
    descriptor = make_descriptor(
        "graduation",
        textFields={"userName": "Priya", "mobile": "12345"},
        imageRefs={"mentor": MENTOR},
    )
    assert descriptor.banner_category is None
    composition = engine.compose(descriptor, resolved(MENTOR))
    assert composition.category == "graduation"
    assert composition.layer(Layer.CATEGORY) == []
    assert len(composition.layer(Layer.MENTOR)) == 1
    assert _texts(composition, Layer.CONTACT_BAND) == ["12345"]


def test_failing_layer_is_isolated():
    def broken(ctx: LayoutContext) -> None:
        ctx.text("partial", y=10, size=20)
        raise RuntimeError("boom")

    reg = LayoutRegistry()
    reg.register(CategoryLayoutSpec(category=BannerCategory.RANK, fn=broken))
    engine = CompositionEngine(registry=reg)
    composition = engine.compose(make_descriptor("rank", textFields={"mobile": "555"}), {})
    assert composition.errors == {Layer.CATEGORY: "boom"}
    assert composition.layer(Layer.CATEGORY) == []
    assert "partial" not in _texts(composition)
    assert _texts(composition, Layer.CONTACT_BAND) == ["555"]


def test_auto_text_off_keeps_only_user_text():
    engine = CompositionEngine(config=LayoutConfig(auto_text=False))
    descriptor = make_descriptor(
        "birthday", textFields={"userName": "Priya", "message": "Many happy returns 🎉"}
    )
    block = _texts(engine.compose(descriptor, {}), Layer.CATEGORY)
    assert block == ["PRIYA", "Many happy returns"]


def test_long_message_wraps(engine):
    message = "Wishing you a wonderful year ahead filled with joy, success and good health"
    descriptor = make_descriptor("festival", textFields={"message": message})
    lines = [op for op in engine.compose(descriptor, {}).layer(Layer.CATEGORY) if op.y >= 450]
    assert len(lines) > 1
    assert [op.y for op in lines] == [450 + i * 48 for i in range(len(lines))]


def test_sticker_geometry(engine, full_rank_descriptor):
    composition = engine.compose(full_rank_descriptor, resolved(*ALL_URIS))
    (sticker,) = composition.layer(Layer.STICKERS)
    assert (sticker.x, sticker.y, sticker.w, sticker.h) == (602.5, 602.5, 145, 145)
    assert sticker.center == (675, 675)
    assert sticker.rotation == 45


def test_slot_sticker_uses_default_placement(engine):
    slot = StickerPlacement(id="slot-1", image_uri=STICKER)
    descriptor = make_descriptor("rank", stickers=[{"id": "s0", "imageUri": ACHIEVER}])
    composition = engine.compose(descriptor, resolved(STICKER, ACHIEVER), slot_stickers=[slot])
    first, second = composition.layer(Layer.STICKERS)
    assert first.uri == ACHIEVER
    assert second.uri == STICKER
    assert second.w == pytest.approx(145 * 9.3)
    assert second.center == pytest.approx((1039.5, 837.0))
    assert second.rotation == 0


def test_unresolved_sticker_is_skipped(engine):
    descriptor = make_descriptor("rank", stickers=[{"id": "s0", "imageUri": STICKER}])
    assert engine.compose(descriptor, {}).layer(Layer.STICKERS) == []


def test_upline_row_reserves_five_positions(engine, full_rank_descriptor):
    composition = engine.compose(full_rank_descriptor, resolved(*ALL_URIS))
    ops = composition.layer(Layer.UPLINES)
    rings = [op for op in ops if isinstance(op, FillCircle) and op.color == "#D4AF37"]
    placeholders = [op for op in ops if isinstance(op, FillCircle) and op.color == "#2A2A2A"]
    avatars = [op for op in ops if isinstance(op, DrawImage)]
    assert len(rings) == 5
    assert len(placeholders) == 4
    assert len(avatars) == 1 and avatars[0].clip == "circle"
    assert [op.text for op in ops if isinstance(op, DrawText)] == ["Anita", "Vikram"]
    centers = [ring.cx for ring in rings]
    assert centers[2] == 675
    assert centers[1] - centers[0] == 134


def test_logo_height_follows_aspect_ratio(engine):
    descriptor = make_descriptor("rank", imageRefs={"logoLeft": LOGO_LEFT, "logoRight": LOGO_RIGHT})
    composition = engine.compose(descriptor, resolved(LOGO_LEFT, LOGO_RIGHT, size=(100, 50)))
    left, right = composition.layer(Layer.LOGOS)
    assert (left.x, left.y, left.w, left.h) == (24, 10, 250, 125)
    assert right.x == 1076


def test_flip_flags_and_photo_rects(engine):
    descriptor = make_descriptor(
        "rank",
        imageRefs={"achiever": ACHIEVER, "mentor": MENTOR},
        flipAchiever=True,
    )
    composition = engine.compose(descriptor, resolved(ACHIEVER, MENTOR))
    (achiever,) = composition.layer(Layer.ACHIEVER)
    (mentor,) = composition.layer(Layer.MENTOR)
    assert achiever.flip_x and not mentor.flip_x
    assert (achiever.x, achiever.y, achiever.w, achiever.h, achiever.radius) == (40, 162, 594, 792, 24)
    assert (mentor.x, mentor.y, mentor.w, mentor.h) == (1010, 850, 300, 360)


def test_backdrop_uses_slot_palette(engine):
    composition = engine.compose(make_descriptor("rank", backgroundSlot=3), {})
    (backdrop,) = composition.layer(Layer.BACKDROP)
    assert isinstance(backdrop, FillRect)
    assert backdrop.color == "hsl(45, 100%, 50%)"
    default = engine.compose(make_descriptor("rank"), {}).layer(Layer.BACKDROP)[0]
    assert default.color == "#111827"


def test_required_uris_deduplicates_in_draw_order(full_rank_descriptor):
    slot = StickerPlacement(id="slot", image_uri=STICKER)
    assert required_uris(full_rank_descriptor, [slot]) == [
        BACKGROUND,
        LOGO_LEFT,
        LOGO_RIGHT,
        AVATAR,
        ACHIEVER,
        CONGRATS,
        MENTOR,
        STICKER,
    ]


def test_composition_to_dict(engine, full_rank_descriptor):
    data = engine.compose(full_rank_descriptor, resolved(*ALL_URIS)).to_dict()
    assert data["category"] == "rank"
    assert data["ops"][0]["kind"] == "fill_rect"
    assert data["ops"][0]["layer"] == "backdrop"


@pytest.mark.parametrize(
    "ref, uri",
    [
        ("achiever", ACHIEVER),
        ("background", BACKGROUND),
        ("mentor", MENTOR),
        ("logoLeft", LOGO_LEFT),
        ("logoRight", LOGO_RIGHT),
        ("congratsImage", CONGRATS),
    ],
)
def test_null_image_ref_removes_exactly_its_ops(engine, full_rank_descriptor, ref, uri):
    full = engine.compose(full_rank_descriptor, resolved(*ALL_URIS))
    data = full_rank_descriptor.model_dump(by_alias=True)
    data["imageRefs"][ref] = None
    reduced = engine.compose(make_descriptor(**data), resolved(*ALL_URIS))

    expected = tuple(op for op in full.ops if not (isinstance(op, DrawImage) and op.uri == uri))
    assert len(expected) == len(full.ops) - 1
    assert reduced.ops == expected


@pytest.mark.parametrize("amount", ["1e400", "NaN", "inf"])
def test_rank_bad_amount_keeps_rest_of_block(engine, amount):
    descriptor = make_descriptor(
        "rank",
        textFields={"userName": "Asha", "teamCity": "Pune", "rankName": "Gold", "chequeAmount": amount},
    )
    composition = engine.compose(descriptor, {})
    assert composition.errors == {}
    assert _texts(composition, Layer.CATEGORY)[:3] == ["GOLD", "ASHA", "PUNE"]


def test_non_finite_transforms_are_rejected():
    with pytest.raises(ValidationError):
        make_descriptor("rank", stickers=[{"id": "s", "imageUri": STICKER, "rotationDeg": "nan"}])
    with pytest.raises(ValidationError):
        make_descriptor("rank", stickers=[{"id": "s", "imageUri": STICKER, "scale": "inf"}])
    with pytest.raises(ValidationError):
        SlotTransform(scale=float("inf"))


def test_non_finite_slot_sticker_is_skipped(engine):
    bad = StickerPlacement.model_construct(id="bad", image_uri=STICKER, rotation_deg=float("nan"))
    good = StickerPlacement(id="good", image_uri=STICKER)
    composition = engine.compose(make_descriptor("rank"), resolved(STICKER), slot_stickers=[bad, good])
    assert len(composition.layer(Layer.STICKERS)) == 1
    assert composition.errors == {}


def test_watermarks_split_preview_and_permanent(engine):
    composition = engine.compose(make_descriptor("rank"), {})
    marks = composition.layer(Layer.WATERMARK)
    brand = [op for op in marks if op.preview_only and isinstance(op, DrawText)]
    assert [op.text for op in brand] == ["RE BUSINESS", "RE BUSINESS"]
    assert [round(op.x + op.w / 2, 1) for op in brand] == [337.5, 1012.5]
    assert all(op.rotation == 90 for op in brand)

    (mobile,) = [op for op in marks if not op.preview_only]
    assert mobile.text == "Promotional Call +91 77349 90035"
    assert mobile.rotation == 270
    assert composition.for_export().layer(Layer.WATERMARK) == [mobile]


def test_watermarks_can_be_switched_off():
    engine = CompositionEngine(config=LayoutConfig(show_brand_watermark=False, show_mobile_watermark=False))
    assert engine.compose(make_descriptor("rank"), {}).layer(Layer.WATERMARK) == []
