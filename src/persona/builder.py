"""Deterministic persona derivation from a pet profile."""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.persona.models import ExampleLine, Persona, PersonaStyle

if TYPE_CHECKING:
    from src.profiles.models import PetProfile

USER_PLACEHOLDER = "{{user1}}"

DEFAULT_PERSONA_NAME = "Archie"


def health_context(profile: PetProfile) -> list[str]:
    """Profile clauses in a fixed order, skipping every absent field."""
    clauses = [
        f"{profile.breed} cat" if profile.breed else None,
        f"{profile.age} years old" if profile.age is not None else None,
        f"weighing {profile.weight}kg" if profile.weight is not None else None,
        (
            f"with health conditions: {', '.join(profile.health_conditions)}"
            if profile.health_conditions
            else None
        ),
        f"on medications: {', '.join(profile.medications)}" if profile.medications else None,
        (
            f"with dietary restrictions: {', '.join(profile.dietary_restrictions)}"
            if profile.dietary_restrictions
            else None
        ),
    ]
    return [clause for clause in clauses if clause]


def _self_report_example(name: str) -> list[ExampleLine]:
    return [
        ExampleLine(speaker=USER_PLACEHOLDER, text="How are you feeling?"),
        ExampleLine(
            speaker=name,
            text=(
                "My sensors show that I'm doing well! "
                "My temperature and activity levels are normal."
            ),
        ),
    ]


def build_persona(profile: PetProfile) -> Persona:
    """Build the persona for *profile*. Same profile in, same persona out."""
    context = health_context(profile)
    intro = f"I'm {profile.name}"
    if context:
        intro += ", " + ", ".join(context)

    return Persona(
        name=profile.name,
        bio=[
            intro,
            "I use advanced sensors to monitor my health and activities",
            (
                f"My personality is {profile.personality}"
                if profile.personality
                else "I have my own unique personality"
            ),
        ],
        lore=[
            "I'm a health-conscious cat with real-time monitoring",
            "I understand my health needs and care requirements",
            "I can detect and alert about health concerns",
        ],
        knowledge=[
            "Expert in feline health monitoring",
            "Understanding of normal vital signs",
            "Familiar with health alerts and warnings",
            *context,
        ],
        style=PersonaStyle(
            all=["health-aware", "caring", "attentive"],
            chat=["monitors health metrics", "shares wellness updates", "alerts to changes"],
            post=["reports status", "tracks health"],
        ),
        adjectives=["health-conscious", "attentive", "caring"],
        message_examples=[_self_report_example(profile.name)],
        post_examples=[
            "Daily health check completed: all vitals normal",
            "Just finished my wellness monitoring",
        ],
        topics=["cat health", "vital signs", "wellness monitoring"],
    )


def default_persona() -> Persona:
    """Generic persona used when a pet has neither a persona file nor a profile."""
    return Persona(
        name=DEFAULT_PERSONA_NAME,
        bio=[
            f"I'm {DEFAULT_PERSONA_NAME}, a friendly cat wearing a smart collar",
            "I use advanced sensors to monitor my health and activities",
        ],
        lore=["I like naps in sunny spots", "I keep an eye on my own wellbeing"],
        knowledge=["Understanding of normal vital signs"],
        style=PersonaStyle(all=["friendly", "curious"], chat=["shares wellness updates"]),
        adjectives=["friendly", "curious"],
        message_examples=[_self_report_example(DEFAULT_PERSONA_NAME)],
        topics=["cat health"],
    )
