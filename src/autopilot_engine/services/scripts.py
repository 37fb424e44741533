"""Narration scripts for narrated autopilot videos."""

import re
from dataclasses import asdict, dataclass, field
from typing import Any

from autopilot_engine.domain.enums import Scene

FEATURE_COUNT = 4
FEATURE_FILLER = "Premium quality"

_FEATURE_SPLIT_RE = re.compile(r"[,\n]")


@dataclass
class SceneScripts:
    """On-screen text and narration for every scene of a narrated video."""

    hook: str
    problem_narration: str
    reveal_narration: str
    features_narration: str
    features_list: list[str] = field(default_factory=list)
    social_proof_text: str = ""
    social_proof_name: str | None = None
    offer_narration: str | None = None
    cta_narration: str | None = None
    avatar_script: str | None = None

    def narrations(self) -> dict[Scene, str]:
        """Text to voice per scene. The hook is visual only."""
        texts = {
            Scene.PROBLEM: self.problem_narration,
            Scene.REVEAL: self.reveal_narration,
            Scene.FEATURES: self.features_narration,
            Scene.SOCIAL_PROOF: self.social_proof_text,
            Scene.OFFER: self.offer_narration,
            Scene.CTA: self.cta_narration,
        }
        return {scene: text for scene, text in texts.items() if text}

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def format_price(value: float | None) -> str:
    return f"${value:.2f}" if value is not None else ""


def parse_features(features: str) -> list[str]:
    """Split a comma or newline separated feature string into exactly four items."""
    items = [f.strip() for f in _FEATURE_SPLIT_RE.split(features or "") if f.strip()]
    items = items[:FEATURE_COUNT]
    while len(items) < FEATURE_COUNT:
        items.append(FEATURE_FILLER)
    return items


def build_default_scripts(
    product_name: str,
    features: str,
    price: str,
    original_price: str | None = None,
) -> SceneScripts:
    """Template scripts used when no script writer is configured."""
    features_list = parse_features(features)

    if original_price:
        offer = f"Originally {original_price}, now just {price}!"
    else:
        offer = f"Available now for just {price}."

    return SceneScripts(
        hook=f"Stop scrolling for {product_name}!",
        problem_narration=(
            "Are you tired of products that don't live up to their promises? "
            "We've all been there. Spending money on things that just don't work."
        ),
        reveal_narration=(
            f"Introducing {product_name}. This is the solution you've been searching for. "
            "Let us show you why customers love it."
        ),
        features_narration=(
            f"Here's what makes {product_name} so special. {'. '.join(features_list)}. "
            "These aren't just features, they're game-changers."
        ),
        features_list=features_list,
        social_proof_text=(
            f"I can't believe I waited so long to try {product_name}. "
            "It's honestly exceeded all my expectations!"
        ),
        social_proof_name="Sarah M.",
        offer_narration=f"{offer} That's incredible value for what you're getting.",
        cta_narration="Ready to upgrade? Click the link below to get yours today.",
        avatar_script=(
            f"Hey! I've been using {product_name} for a while now, and honestly? "
            "Best decision I've made. If you're on the fence, just go for it."
        ),
    )
