"""Prompt builders for image generation, feature extraction and hints."""

from typing import Optional, Sequence


def build_image_prompt(topic: str, difficulty: str, age: Optional[int] = None, style: str = "any") -> str:
    """Return the image generation prompt for the player's setup choices."""
    return (
        f"Generate an image suitable for a {difficulty} description game. "
        f"The user's age is {age if age else 'unspecified'}. "
        f"The desired style is {style or 'any'}. "
        f"The image should focus on the topic: {topic}."
    )


def features_system_prompt() -> str:
    return (
        "You design rounds of an image description game. "
        "Given a description of an image, you pick the visual features a player could name."
    )


def features_user_prompt(description: str, minimum: int = 5, maximum: int = 7) -> str:
    """Return the user prompt that asks for a short list of features."""
    return (
        f'Based on the description "{description}", list {minimum}-{maximum} key visual features '
        "that someone could guess in an image description game. "
        "Each feature must be a short phrase of one to four words."
    )


def hint_system_prompt() -> str:
    """Return the game master system prompt."""
    return (
        "You are a helpful game master for an image description game. "
        "Keep responses concise and encouraging. Never list all the features "
        "and never state a remaining feature outright."
    )


def hint_user_prompt(remaining_features: Sequence[str], guess: str) -> str:
    """Return the per-guess instruction for the hint model."""
    remaining = ", ".join(remaining_features) if remaining_features else "none"
    return (
        f"The key features the user has not found yet are: {remaining}.\n"
        f'The user\'s latest attempt is: "{guess}".\n\n'
        "Analyze the attempt:\n"
        "- If it is incorrect, give a gentle, encouraging hint towards ONE of the remaining features "
        "without revealing it. Example: \"Good try! Maybe look closer at the background.\"\n"
        "- If the user asks for help, give a slightly more direct hint about one feature.\n"
        "- Keep it to one or two sentences."
    )
