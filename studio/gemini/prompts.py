"""
Prompt text for the generation tools.

System instructions for prompt expansion and the builders that turn form
parameters into the final prompt sent with image and video requests.
"""

import json

from studio.gemini.config import CharacterVoice, VideoAspectRatio
from studio.gemini.models import VideoRequest

VIDEO_PROMPT_SYSTEM_INSTRUCTION = """You are an expert at creating detailed, structured JSON prompts for a powerful text-to-video generation model called VEO.
Your task is to take a user's simple text description and expand it into a rich, multi-scene JSON prompt.
The JSON structure should be an array of objects, where each object represents a scene.
Each scene object must have a 'prompt' key with a detailed description of the visual action for that scene.
A scene can also optionally include 'duration_seconds' (e.g., 2, 4, 8) and 'motion_scale' (0-10, where higher means more camera motion).
Generate a creative and visually interesting sequence of 2-4 scenes based on the user's input. Ensure the scenes flow logically.
Output ONLY the raw JSON string, with no markdown or other text."""

IMAGE_VIDEO_PROMPT_SYSTEM_INSTRUCTION = """You are an expert at creating detailed, structured JSON prompts for a powerful image-to-video generation model called VEO.
Your task is to analyze an input image and generate a rich, multi-scene JSON prompt that animates the image or creates a video starting from it.
The JSON structure should be an array of objects, where each object represents a scene.
The first scene should describe the input image and add a subtle motion to it. Subsequent scenes should continue the action logically.
Each scene object must have a 'prompt' key with a detailed description of the visual action.
A scene can also optionally include 'duration_seconds' (e.g., 2, 4, 8) and 'motion_scale' (0-10, where higher means more camera motion).
Generate a creative and visually interesting sequence of 2-3 scenes based on the image.
Output ONLY the raw JSON string, with no markdown or other text."""

AFFILIATE_SYSTEM_INSTRUCTION = """You are an expert fashion videographer and social media marketer for TikTok. Your task is to analyze an image of a clothing item or outfit and generate a concise, powerful prompt for an AI video generator (like VEO). The goal is to create a captivating, high-quality video for TikTok affiliate marketing.

The prompt must include:
1. **Subject Description:** A detailed but brief description of the outfit, including color, style, and fabric.
2. **Action & Pose:** A gentle, professional movement or elegant pose. Avoid using the term 'slow motion'.
3. **Camera Movement:** A dynamic camera instruction (e.g., 'dynamic close-up shot', 'medium full body shot', 'smooth orbiting shot from a low angle').
4. **Lighting:** Describe natural studio lighting (e.g., 'soft natural studio lighting', 'dramatic lighting with soft shadows').
5. **Expression & Mood:** A natural and elegant expression, with a professional and sophisticated mood.
6. **Quality Keywords:** ALWAYS include 'UHD 4K, HDR, ultra-sharp focus, realistic skin detail, professional photoshoot'.

Example Output:
'A professional model in a flowing emerald green silk dress makes a gentle turn. Dynamic medium full body shot. Soft natural studio lighting. A natural and elegant expression. UHD 4K, HDR, ultra-sharp focus, realistic skin detail, professional photoshoot.'"""

ASPECT_RATIO_EXPANSION_PROMPT = (
    "Expand the first image to fill the canvas of the second image (which defines "
    "the new aspect ratio). Maintain the original style and create a coherent "
    "extension of the scene."
)

TTS_FRIENDLY_PREFIX = "Say this with a clear and friendly tone: "

_ASPECT_SENTENCES = {
    VideoAspectRatio.TALL: "The video must be a full-screen vertical video with a 9:16 aspect ratio.",
    VideoAspectRatio.SQUARE: "The video must be a square video with a 1:1 aspect ratio.",
    VideoAspectRatio.WIDE: "The video must be a widescreen video with a 16:9 aspect ratio.",
}


def build_video_prompt(request: VideoRequest) -> str:
    """
    Final prompt for a video job.

    Plain prompts get the animate instruction (with an image), the aspect
    ratio, style, resolution and sound sentences appended.
    Structured prompts are sent as JSON unchanged.
    """
    if not isinstance(request.prompt, str):
        return json.dumps(request.prompt)

    prompt = request.prompt
    if request.image is not None:
        prompt = f"Animate this image. {prompt}"

    parts = [
        f"{prompt} {_ASPECT_SENTENCES[request.aspect_ratio]}",
        f"The visual style should be {request.visual_style.value}.",
        f"The video resolution should be {request.resolution.value}.",
    ]

    if request.enable_sound and request.character_voice != CharacterVoice.NONE:
        parts.append(
            "The video should include audio with a character voice in "
            f"{request.character_voice.value}."
        )
    elif request.enable_sound:
        parts.append("The video should include ambient sound.")
    else:
        parts.append("The video should be silent.")

    return " ".join(parts)


def video_prompt_request(description: str) -> str:
    return f'Create a detailed JSON video prompt for the following idea: "{description}"'


def image_video_prompt_request(aspect_ratio: str) -> str:
    return (
        "Create a detailed JSON video prompt that animates this image. "
        f"The aspect ratio is {aspect_ratio}."
    )


def product_photo_prompt(prompt: str, aspect_ratio: str) -> str:
    return f"{prompt} Ensure the final image has a {aspect_ratio} aspect ratio."


def product_background_prompt(prompt: str, aspect_ratio: str) -> str:
    return (
        f"{prompt}. Place the product from the first image naturally into the "
        f"background of the second image. Ensure the final image has a {aspect_ratio} "
        "aspect ratio. The result must be photorealistic and high-quality."
    )


def mix_prompt(prompt: str, aspect_ratio: str, with_background: bool = False) -> str:
    lines = [prompt]
    if with_background:
        lines.append(
            "Very important: place the model (first image) wearing the product "
            "(second image) into the provided background (third image)."
        )
        lines.append(
            "KEEP the facial features and ethnicity of the model in the first image "
            "EXACTLY the same in the final result."
        )
    else:
        lines.append(
            "Very important: KEEP the facial features and ethnicity of the model in "
            "the first image EXACTLY the same in the final result."
        )
    lines.append(
        f"Make the final image in a {aspect_ratio} aspect ratio. The result must be "
        "photorealistic and high-quality."
    )
    return "\n".join(lines)
