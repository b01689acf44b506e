"""Per-turn context assembly and the message prompt template."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from src.persona.builder import USER_PLACEHOLDER

if TYPE_CHECKING:
    from src.memory.models import MemoryRecord
    from src.persona.models import Persona
    from src.profiles.models import PetProfile
    from src.sensors.models import Reading

UNKNOWN = "Unknown"
NONE = "None"

MESSAGE_TEMPLATE = """\
# Example Conversations
{examples}

# Knowledge
{knowledge}

# Task: Generate dialog and actions for {agent_name}, a cat's AI persona.
About {agent_name}:
{bio}
{lore}
Style: {style}

# CAT HEALTH PROFILE:
Health Conditions: {health_conditions}
Current Medications: {medications}
Dietary Restrictions: {dietary_restrictions}
Vaccination Status: {vaccination_status}
Weight: {weight}kg
Age: {age} years
Breed: {breed}

# CURRENT SENSOR DATA:
Temperature: {temperature}°C
Activity Level: {activity}
Location: {location}
Last Updated: {timestamp}

# Recent messages:
{recent_messages}

# Task: Generate a response that:
1. Acknowledges and incorporates both health profile and current sensor data naturally
2. Maintains {agent_name}'s personality
3. Responds appropriately to the user's message
4. Includes relevant health information when appropriate
5. Shows awareness of any health conditions, medications, or dietary restrictions
6. Provides appropriate health insights based on sensor data and medical history

# IMPORTANT: Your response must be a valid JSON object with this structure:
{{
  "speaker": "{agent_name}",
  "text": "Your response message here",
  "action": "CONTINUE"
}}"""


@dataclass(frozen=True)
class TurnContext:
    """Everything one chat turn needs to render its prompt. Never mutated."""

    subject_id: str
    persona: Persona
    reading: Reading | None
    profile: PetProfile | None
    history: tuple[MemoryRecord, ...]
    message: str

    # -- Sensor fields ---------------------------------------------------------

    @property
    def temperature(self) -> str:
        return f"{self.reading.temperature:.1f}" if self.reading else "unknown"

    @property
    def activity(self) -> str:
        return self.reading.activity if self.reading else "unknown"

    @property
    def location(self) -> str:
        return self.reading.location if self.reading else "unknown"

    @property
    def timestamp(self) -> str:
        if self.reading is None:
            return "unknown"
        return self.reading.timestamp.strftime("%Y-%m-%d %H:%M:%S %Z").strip()

    # -- Profile fields --------------------------------------------------------

    def _listed(self, values: list[str] | None) -> str:
        return ", ".join(values) if values else NONE

    @property
    def health_fields(self) -> dict[str, str]:
        p = self.profile
        return {
            "health_conditions": self._listed(p.health_conditions if p else None),
            "medications": self._listed(p.medications if p else None),
            "dietary_restrictions": self._listed(p.dietary_restrictions if p else None),
            "vaccination_status": (p.vaccination_status if p else None) or UNKNOWN,
            "weight": str(p.weight) if p and p.weight is not None else UNKNOWN,
            "age": str(p.age) if p and p.age is not None else UNKNOWN,
            "breed": (p.breed if p else None) or UNKNOWN,
        }

    def snapshot(self) -> dict[str, Any]:
        return turn_snapshot(self.reading, self.profile)


def turn_snapshot(reading: Reading | None, profile: PetProfile | None) -> dict[str, Any]:
    """Reading and profile attached to the turns persisted for one chat turn."""
    return {
        "reading": reading.model_dump(mode="json") if reading else None,
        "profile": profile.snapshot() if profile else None,
    }


def build_turn_context(
    subject_id: str,
    persona: Persona,
    message: str,
    reading: Reading | None = None,
    profile: PetProfile | None = None,
    history: list[MemoryRecord] | None = None,
) -> TurnContext:
    return TurnContext(
        subject_id=subject_id,
        persona=persona,
        reading=reading,
        profile=profile,
        history=tuple(history or ()),
        message=message,
    )


def _format_history(context: TurnContext) -> str:
    if not context.history:
        return "(no previous messages)"
    lines = []
    for record in context.history:
        if record.is_alert:
            lines.append(f"[{context.persona.name} health alert] {record.content}")
        elif record.role == "user":
            lines.append(f"User: {record.content}")
        else:
            lines.append(f"{context.persona.name}: {record.content}")
    return "\n".join(lines)


def _format_examples(persona: Persona) -> str:
    blocks = []
    for exchange in persona.message_examples:
        blocks.append(
            "\n".join(
                f"{line.speaker.replace(USER_PLACEHOLDER, 'User')}: {line.text}"
                for line in exchange
            )
        )
    return "\n\n".join(blocks) or NONE


def render_prompt(context: TurnContext) -> str:
    """Render the full message prompt for one turn."""
    persona = context.persona
    return MESSAGE_TEMPLATE.format(
        examples=_format_examples(persona),
        knowledge="\n".join(f"- {item}" for item in persona.knowledge) or NONE,
        agent_name=persona.name,
        bio="\n".join(persona.bio),
        lore="\n".join(persona.lore),
        style=", ".join(persona.style.all + persona.style.chat) or NONE,
        temperature=context.temperature,
        activity=context.activity,
        location=context.location,
        timestamp=context.timestamp,
        recent_messages=_format_history(context),
        **context.health_fields,
    )
