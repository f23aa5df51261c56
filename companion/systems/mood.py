"""
Mood classifier.

Mood is never stored independently: every caller goes through
classify_mood(), an ordered decision table over the vital stats.
Ranges overlap on purpose, so rule order decides the result.
"""

from __future__ import annotations

from typing import Callable, NamedTuple

from ..state.schema import Mood


class MoodRule(NamedTuple):
    mood: Mood
    matches: Callable[[int, int, int, int], bool]  # (health, hunger, energy, happiness)


# First match wins
MOOD_RULES: tuple[MoodRule, ...] = (
    MoodRule(Mood.SICK, lambda health, hunger, energy, happiness: health < 30),
    MoodRule(Mood.HUNGRY, lambda health, hunger, energy, happiness: hunger < 20),
    MoodRule(Mood.TIRED, lambda health, hunger, energy, happiness: energy < 20),
    MoodRule(Mood.SAD, lambda health, hunger, energy, happiness: happiness < 15),
    MoodRule(
        Mood.BORED,
        lambda health, hunger, energy, happiness: happiness < 30 and energy > 50,
    ),
    MoodRule(
        Mood.ECSTATIC,
        lambda health, hunger, energy, happiness: (
            happiness >= 90 and energy >= 70 and hunger >= 70
        ),
    ),
    MoodRule(
        Mood.HAPPY,
        lambda health, hunger, energy, happiness: happiness >= 70 and energy >= 50,
    ),
    MoodRule(Mood.CONTENT, lambda health, hunger, energy, happiness: happiness >= 50),
)

DEFAULT_MOOD = Mood.NEUTRAL


def classify_mood(health: int, hunger: int, energy: int, happiness: int) -> Mood:
    """
    Map vital stats to exactly one mood.

    Total and pure: every input combination yields a mood, and the same
    input always yields the same mood.
    """
    for rule in MOOD_RULES:
        if rule.matches(health, hunger, energy, happiness):
            return rule.mood
    return DEFAULT_MOOD


# Display metadata for UIs
MOOD_INFO: dict[Mood, dict[str, str]] = {
    Mood.ECSTATIC: {"emoji": "🤩", "description": "Absolutely thriving!", "color": "#FFD700"},
    Mood.HAPPY: {"emoji": "😊", "description": "Feeling great!", "color": "#90EE90"},
    Mood.CONTENT: {"emoji": "😌", "description": "All is well", "color": "#87CEEB"},
    Mood.NEUTRAL: {"emoji": "😐", "description": "Just okay", "color": "#D3D3D3"},
    Mood.BORED: {"emoji": "😒", "description": "Wants attention", "color": "#DEB887"},
    Mood.TIRED: {"emoji": "😴", "description": "Needs rest", "color": "#9370DB"},
    Mood.HUNGRY: {"emoji": "🥺", "description": "Needs food!", "color": "#FFA500"},
    Mood.SAD: {"emoji": "😢", "description": "Feeling down", "color": "#6495ED"},
    Mood.SICK: {"emoji": "🤒", "description": "Not feeling well", "color": "#FF6B6B"},
}


def mood_info(mood: Mood | str) -> dict[str, str]:
    """Emoji, description and colour for a mood. Unknown values read as neutral."""
    try:
        return dict(MOOD_INFO[Mood(mood)])
    except ValueError:
        return dict(MOOD_INFO[DEFAULT_MOOD])
