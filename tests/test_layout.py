"""Tests for banner layout planning."""

import pytest

from guild_banner.application.layout import (
    DESCRIPTION_MAX_CHARS,
    LayerStack,
    LayoutPlanner,
    geometry_table,
    online_percentage,
    progress_fraction,
    truncate_description,
)
from guild_banner.core.entities import (
    ASSET_BACKGROUND,
    ASSET_LOGO,
    BossInfo,
    Geometry,
    GuildInfo,
    ImageContent,
    PanelContent,
    ProgressBarContent,
    TextContent,
    WorldChange,
    WorldEvents,
)
from guild_banner.core.enums import LayerKind, TextAlign, ZBand
from guild_banner.core.themes import THEMES
from tests.factories import AggregatedDataFactory


def by_name(layers):
    return {layer.name: layer for layer in layers}


def text_of(layers, name):
    return by_name(layers)[name].content.text


class TestOnlinePercentage:
    """Test cases for the members-online percentage."""

    @pytest.mark.parametrize(
        "online,total,expected",
        [
            (0, 0, 0),
            (5, 0, 0),
            (0, 40, 0),
            (12, 40, 30),
            (1, 8, 13),  # 12.5 rounds up
            (1, 3, 33),
            (2, 3, 67),
            (40, 40, 100),
        ],
    )
    def test_rounding(self, online, total, expected):
        assert online_percentage(online, total) == expected

    def test_progress_fraction_clamped(self):
        assert progress_fraction(0) == 0.0
        assert progress_fraction(45) == pytest.approx(0.45)
        assert progress_fraction(150) == 1.0
        assert progress_fraction(-10) == 0.0


class TestTruncateDescription:

    def test_short_text_unchanged(self):
        assert truncate_description("  We hunt together. ") == "We hunt together."

    def test_long_text_cut_with_ellipsis(self):
        text = "x" * (DESCRIPTION_MAX_CHARS + 20)
        result = truncate_description(text)
        assert result == "x" * DESCRIPTION_MAX_CHARS + "..."

    def test_exact_limit_not_cut(self):
        text = "y" * DESCRIPTION_MAX_CHARS
        assert truncate_description(text) == text


class TestLayerStack:

    def test_z_order_follows_band_then_insertion(self):
        stack = LayerStack()
        box = Geometry(0, 0, 1, 1)
        stack.text("late", box, "b", (0, 0, 0, 255))
        stack.add(ZBand.PANELS, LayerKind.PANEL, box, PanelContent((0, 0, 0, 255)), "panel")
        stack.text("later", box, "c", (0, 0, 0, 255))

        layers = stack.layers()

        assert [layer.name for layer in layers] == ["panel", "late", "later"]
        assert [layer.z_order for layer in layers] == [100, 500, 501]

    def test_band_overflow_rejected(self):
        stack = LayerStack()
        box = Geometry(0, 0, 1, 1)
        for i in range(100):
            stack.text(f"t{i}", box, "x", (0, 0, 0, 255))

        with pytest.raises(ValueError):
            stack.text("one-too-many", box, "x", (0, 0, 0, 255))


class TestLayoutPlanner:
    """Test cases for LayoutPlanner."""

    def test_layers_sorted_and_unique_z_order(self):
        layers = LayoutPlanner().plan_layout(AggregatedDataFactory.create(special_event_active=True))

        z_orders = [layer.z_order for layer in layers]
        assert z_orders == sorted(z_orders)
        assert len(set(z_orders)) == len(z_orders)

    def test_text_painted_after_everything_else(self):
        layers = LayoutPlanner().plan_layout(AggregatedDataFactory.create(special_event_active=True))

        kinds = [layer.kind for layer in layers]
        first_text = kinds.index(LayerKind.TEXT)
        assert all(kind is LayerKind.TEXT for kind in kinds[first_text:])
        assert layers[0].name == "background"

    def test_band_order(self):
        layers = by_name(LayoutPlanner().plan_layout(AggregatedDataFactory.create(special_event_active=True)))

        assert layers["background"].z_order < layers["header"].z_order
        assert layers["right_panel"].z_order < layers["progress_bar"].z_order
        assert layers["progress_bar"].z_order < layers["logo"].z_order
        assert layers["logo"].z_order < layers["boss_icon"].z_order
        assert layers["boss_icon"].z_order < layers["npc_badge"].z_order < layers["event_badge"].z_order
        assert layers["event_badge"].z_order < layers["world_name"].z_order

    def test_full_banner_texts(self):
        data = AggregatedDataFactory.create(special_event_active=True)

        layers = LayoutPlanner().plan_layout(data, lang="en")

        assert text_of(layers, "world_name") == "Antica (Open PvP)"
        assert text_of(layers, "guild_name") == "Redd Alliance"
        assert text_of(layers, "members_online") == "Members Online:"
        assert text_of(layers, "progress_text") == "12/40 (30%)"
        assert text_of(layers, "founded") == "Founded: 2019-03-02"
        assert text_of(layers, "description") == '"We hunt together."'
        assert text_of(layers, "players_online") == "Players Online: 321"
        assert text_of(layers, "record") == "Record: 1234"
        assert text_of(layers, "location") == "Europe"
        assert text_of(layers, "generated_at") == "Generated at: 17/05/2024 14:30"
        assert text_of(layers, "footer") == "https://firebot.run"
        assert text_of(layers, "boss_label") == "Boosted Boss:"
        assert text_of(layers, "boss_name") == "Ferumbras"
        assert text_of(layers, "npc_location") == "Rashid is in: Svargrond"
        assert text_of(layers, "special_event") == "Special Event Active"

    def test_progress_bar_fill(self):
        layers = by_name(LayoutPlanner().plan_layout(AggregatedDataFactory.create()))

        bar = layers["progress_bar"]
        assert bar.kind is LayerKind.PROGRESS_BAR
        assert isinstance(bar.content, ProgressBarContent)
        assert bar.content.fraction == pytest.approx(0.30)

    def test_zero_member_guild(self):
        data = AggregatedDataFactory.create(guild=GuildInfo("Empty", 0, 0))

        layers = by_name(LayoutPlanner().plan_layout(data))

        assert layers["progress_text"].content.text == "0/0 (0%)"
        assert layers["progress_bar"].content.fraction == 0.0

    def test_optional_guild_fields_omitted(self):
        data = AggregatedDataFactory.create(guild=GuildInfo("Bare", 1, 2, founded="", description="   "))

        names = by_name(LayoutPlanner().plan_layout(data))

        assert "founded" not in names
        assert "description" not in names

    def test_long_description_truncated(self):
        data = AggregatedDataFactory.create(guild=GuildInfo("Talkers", 1, 2, description="a" * 150))

        layers = LayoutPlanner().plan_layout(data)

        assert text_of(layers, "description") == '"' + "a" * 100 + '..."'

    def test_degraded_sources_use_placeholders(self):
        data = AggregatedDataFactory.create(
            degraded=("world", "boosted_boss", "npc_location", "world_events"),
            special_event_active=True,
        )

        layers = LayoutPlanner().plan_layout(data)
        names = by_name(layers)

        assert text_of(layers, "world_name") == "Antica (Unknown)"
        assert text_of(layers, "players_online") == "Jogadores Online: 0"
        assert text_of(layers, "location") == "Unknown"
        assert text_of(layers, "npc_location") == "Rashid está em: Unknown"
        assert "boss_icon" not in names
        assert "boss_label" not in names
        assert "event_badge" not in names
        assert "special_event" not in names
        assert "npc_badge" in names

    def test_show_boss_false_hides_boss_block(self):
        names = by_name(LayoutPlanner().plan_layout(AggregatedDataFactory.create(), show_boss=False))

        assert "boss_icon" not in names
        assert "boss_label" not in names
        assert "boss_name" not in names

    def test_boss_without_icon_keeps_text(self):
        data = AggregatedDataFactory.create(boss=BossInfo("Zelos"))

        names = by_name(LayoutPlanner().plan_layout(data))

        assert "boss_icon" not in names
        assert names["boss_name"].content.text == "Zelos"

    def test_show_logo_false_hides_logo(self):
        names = by_name(LayoutPlanner().plan_layout(AggregatedDataFactory.create(), show_logo=False))

        assert "logo" not in names

    def test_image_layers_reference_assets(self):
        names = by_name(LayoutPlanner().plan_layout(AggregatedDataFactory.create(), theme="dark"))

        background = names["background"].content
        assert isinstance(background, ImageContent)
        assert background.asset == ASSET_BACKGROUND
        assert background.cover is True
        assert background.opacity == THEMES["dark"].background_opacity
        assert names["logo"].content.asset == ASSET_LOGO
        assert names["boss_icon"].content.data is not None

    def test_special_event_needs_active_flag(self):
        data = AggregatedDataFactory.create(
            events=WorldEvents((WorldChange("Rapid Respawn"),)), special_event_active=False
        )

        names = by_name(LayoutPlanner().plan_layout(data))

        assert "special_event" not in names
        assert "event_badge" not in names

    def test_theme_changes_colours_only(self):
        data = AggregatedDataFactory.create()
        planner = LayoutPlanner()

        dark = planner.plan_layout(data, theme="dark")
        light = planner.plan_layout(data, theme="light")

        assert [(l.name, l.geometry, l.z_order) for l in dark] == [
            (l.name, l.geometry, l.z_order) for l in light
        ]
        assert by_name(dark)["guild_name"].content.color == THEMES["dark"].primary_text
        assert by_name(light)["guild_name"].content.color == THEMES["light"].primary_text

    def test_unknown_theme_uses_default_palette(self):
        layers = by_name(LayoutPlanner().plan_layout(AggregatedDataFactory.create(), theme="neon"))

        assert layers["header"].content.fill == THEMES["default"].header_start
        assert layers["header"].content.fill_end == THEMES["default"].header_end

    def test_locale_changes_text_not_geometry(self):
        data = AggregatedDataFactory.create(special_event_active=True)
        planner = LayoutPlanner()

        pt = planner.plan_layout(data, lang="pt")
        en = planner.plan_layout(data, lang="en")

        assert [(l.name, l.geometry, l.z_order) for l in pt] == [
            (l.name, l.geometry, l.z_order) for l in en
        ]
        assert text_of(pt, "members_online") == "Membros Online:"
        assert text_of(en, "members_online") == "Members Online:"

    def test_unknown_locale_falls_back(self):
        layers = LayoutPlanner().plan_layout(AggregatedDataFactory.create(), lang="xx")

        assert text_of(layers, "members_online") == "Membros Online:"

    def test_custom_footer(self):
        layers = LayoutPlanner(footer_text="example.org").plan_layout(AggregatedDataFactory.create())

        footer = by_name(layers)["footer"].content
        assert isinstance(footer, TextContent)
        assert footer.text == "example.org"
        assert footer.align is TextAlign.CENTER

    def test_geometry_within_canvas(self):
        for width in (800, 1200, 2000):
            for name, box in geometry_table(width).items():
                assert 0.0 <= box.x and box.x + box.w <= 1.0 + 1e-9, name
                assert 0.0 <= box.y and box.y + box.h <= 1.0 + 1e-9, name
                assert box.w > 0 and box.h > 0, name

    def test_height_does_not_change_plan(self):
        data = AggregatedDataFactory.create()
        planner = LayoutPlanner()

        assert planner.plan_layout(data, height=300) == planner.plan_layout(data, height=600)
