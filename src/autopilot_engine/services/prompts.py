"""Prompt templates for the image -> analysis -> video chain.

The video template embeds the vision model's description of the generated
image, so the video prompt matches the specific image used as its visual
reference instead of restating the generic product brief.
"""

import re
from dataclasses import asdict, dataclass
from typing import Any

_WHITESPACE_RE = re.compile(r"\s+")

IMAGE_PROMPT_TEMPLATE = """
Authentic user-generated photo for a social media ad, shot on a phone.
SUBJECT: {icp} holding {product} naturally, product label facing the camera.
SETTING: {scene}
PRODUCT DETAILS TO SHOW: {features}
STYLE: Natural light, candid framing, slight handheld imperfection, no studio
backdrop, no text overlays, realistic skin texture.
"""

VIDEO_PROMPT_TEMPLATE = """
Eight second vertical UGC-style video continuing from the reference image.
IMAGE ANALYSIS: {image_analysis}
ACTION: The same person keeps {product} in frame and tells the camera why they
like it, mentioning {features}. Delivery is relaxed and sincere, like a
recommendation to a friend, never a scripted pitch.
SETTING: {scene}, matching the lighting and background of the reference image.
CAMERA: Handheld selfie framing with gentle natural movement.
AUDIENCE: {icp}
"""

IMAGE_ANALYSIS_INSTRUCTIONS = """
Describe this photo so a video model can continue it as a short clip. Cover:
1. The person: approximate age, appearance, clothing and expression.
2. The product: what it looks like and exactly how it is being held.
3. The setting: location, background objects and lighting direction.
4. The overall mood and color palette.
5. Any visible branding, labels or text.
Answer in one compact paragraph without preamble.
"""


@dataclass
class PromptVariables:
    """Values substituted into the chain's prompt templates."""

    product: str
    features: str
    icp: str
    scene: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PromptVariables":
        return cls(
            product=data.get("product", ""),
            features=data.get("features", ""),
            icp=data.get("icp", ""),
            scene=data.get("scene", ""),
        )


def sanitize_prompt(text: str) -> str:
    """Flatten a prompt onto one line with escaped double quotes.

    Newlines become spaces, carriage returns are dropped and whitespace runs
    collapse to a single space.
    """
    text = text.replace("\r", "").replace("\n", " ")
    text = text.replace('"', '\\"')
    return _WHITESPACE_RE.sub(" ", text).strip()


def _fill(template: str, variables: PromptVariables, **extra: str) -> str:
    values = {**variables.to_dict(), **extra}
    return template.format(**values)


def build_image_prompt(variables: PromptVariables) -> str:
    """Prompt for the first (image) stage of the chain."""
    return sanitize_prompt(_fill(IMAGE_PROMPT_TEMPLATE, variables))


def build_video_prompt(variables: PromptVariables, image_analysis: str) -> str:
    """Prompt for the video stage, grounded in the analysis of the generated image."""
    return sanitize_prompt(
        _fill(VIDEO_PROMPT_TEMPLATE, variables, image_analysis=image_analysis)
    )
