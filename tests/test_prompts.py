"""Tests for chain prompts and narration scripts."""

from autopilot_engine.domain.enums import Scene
from autopilot_engine.services.prompts import (
    PromptVariables,
    build_image_prompt,
    build_video_prompt,
    sanitize_prompt,
)
from autopilot_engine.services.scripts import (
    build_default_scripts,
    format_price,
    parse_features,
)

VARIABLES = PromptVariables(
    product="GlowBottle",
    features="keeps drinks cold",
    icp="busy parents",
    scene="a sunny kitchen",
)


class TestPrompts:
    """Tests for the chain prompt templates."""

    def test_sanitize_prompt(self) -> None:
        """Prompts are flattened onto one line with escaped quotes."""
        text = 'Line one\r\n  line "two"\n\n\tend  '

        assert sanitize_prompt(text) == 'Line one line \\"two\\" end'

    def test_image_prompt(self) -> None:
        """The image prompt carries every variable."""
        prompt = build_image_prompt(VARIABLES)

        assert "\n" not in prompt
        for value in ("GlowBottle", "keeps drinks cold", "busy parents", "a sunny kitchen"):
            assert value in prompt

    def test_video_prompt_embeds_analysis(self) -> None:
        """The video prompt is grounded in the analysis of the generated image."""
        prompt = build_video_prompt(VARIABLES, "A woman in a red sweater\nholds the bottle.")

        assert "A woman in a red sweater holds the bottle." in prompt
        assert "GlowBottle" in prompt

    def test_variables_from_partial_dict(self) -> None:
        """Missing variables default to empty strings."""
        variables = PromptVariables.from_dict({"product": "Mug"})

        assert variables == PromptVariables(product="Mug", features="", icp="", scene="")
        assert PromptVariables.from_dict(VARIABLES.to_dict()) == VARIABLES


class TestScripts:
    """Tests for the default narration scripts."""

    def test_parse_features_pads_to_four(self) -> None:
        """Short feature lists are padded with a filler."""
        assert parse_features("Waterproof, Lightweight") == [
            "Waterproof",
            "Lightweight",
            "Premium quality",
            "Premium quality",
        ]

    def test_parse_features_truncates(self) -> None:
        """Long lists keep their first four entries; newlines also separate."""
        assert parse_features("a,b\nc, ,d,e") == ["a", "b", "c", "d"]

    def test_format_price(self) -> None:
        """Prices are rendered in dollars with cents."""
        assert format_price(19.5) == "$19.50"
        assert format_price(None) == ""

    def test_offer_mentions_original_price(self) -> None:
        """A discounted product mentions both prices."""
        scripts = build_default_scripts("GlowBottle", "Cold", "$19.99", "$29.99")

        assert scripts.offer_narration.startswith("Originally $29.99, now just $19.99!")
        assert scripts.hook == "Stop scrolling for GlowBottle!"
        assert scripts.features_list[0] == "Cold"

    def test_narrations_skip_hook(self) -> None:
        """The hook is on-screen only; every other scene is voiced."""
        scripts = build_default_scripts("GlowBottle", "Cold", "$19.99")

        narrations = scripts.narrations()

        assert Scene.HOOK not in narrations
        assert list(narrations) == [
            Scene.PROBLEM,
            Scene.REVEAL,
            Scene.FEATURES,
            Scene.SOCIAL_PROOF,
            Scene.OFFER,
            Scene.CTA,
        ]
        assert scripts.offer_narration.startswith("Available now for just $19.99.")
