"""Tests for turn context assembly and prompt rendering."""

from datetime import UTC, datetime

import pytest

from src.llm.prompt import build_turn_context, render_prompt, turn_snapshot
from src.memory.models import MemoryRecord
from src.persona.builder import build_persona, default_persona
from src.profiles.models import PetProfile
from src.sensors.models import Reading


def _profile(**overrides) -> PetProfile:
    defaults = {
        "id": "cat1",
        "name": "Mochi",
        "breed": "Siamese",
        "age": 3,
        "weight": 4.2,
        "health_conditions": ["asthma"],
        "medications": ["fluticasone"],
        "vaccination_status": "up to date",
        "created_at": "2025-01-01T00:00:00+00:00",
        "updated_at": "2025-01-01T00:00:00+00:00",
    }
    defaults.update(overrides)
    return PetProfile(**defaults)


def _record(role: str, content: str, kind: str = "turn") -> MemoryRecord:
    return MemoryRecord(
        id=content,
        subject_id="cat1",
        role=role,
        content=content,
        kind=kind,
        created_at="2025-01-01T00:00:00+00:00",
    )


@pytest.fixture
def reading() -> Reading:
    return Reading(
        temperature=38.2,
        activity="resting",
        location="window",
        timestamp=datetime(2025, 3, 1, 9, 30, tzinfo=UTC),
    )


# -- render_prompt -------------------------------------------------------------


def test_prompt_includes_profile_and_sensor_data(reading: Reading) -> None:
    profile = _profile()
    context = build_turn_context(
        "cat1", build_persona(profile), "How are you?", reading=reading, profile=profile
    )

    prompt = render_prompt(context)

    assert "Generate dialog and actions for Mochi" in prompt
    assert "Health Conditions: asthma" in prompt
    assert "Current Medications: fluticasone" in prompt
    assert "Dietary Restrictions: None" in prompt
    assert "Vaccination Status: up to date" in prompt
    assert "Weight: 4.2kg" in prompt
    assert "Breed: Siamese" in prompt
    assert "Temperature: 38.2°C" in prompt
    assert "Activity Level: resting" in prompt
    assert "Location: window" in prompt
    assert "Last Updated: 2025-03-01 09:30:00 UTC" in prompt
    assert '"speaker": "Mochi"' in prompt


def test_prompt_placeholders_when_context_missing() -> None:
    context = build_turn_context("ghost", default_persona(), "hello")

    prompt = render_prompt(context)

    assert "Temperature: unknown°C" in prompt
    assert "Activity Level: unknown" in prompt
    assert "Health Conditions: None" in prompt
    assert "Breed: Unknown" in prompt
    assert "Age: Unknown years" in prompt
    assert "(no previous messages)" in prompt


def test_examples_replace_user_placeholder() -> None:
    prompt = render_prompt(build_turn_context("cat1", default_persona(), "hi"))
    assert "User: How are you feeling?" in prompt
    assert "{{user1}}" not in prompt


def test_history_lines(reading: Reading) -> None:
    history = [
        _record("user", "Hi there"),
        _record("subject", "Meow!"),
        _record("subject", "Warning Health Alert:", kind="health_alert"),
    ]
    context = build_turn_context(
        "cat1", build_persona(_profile()), "Hi there", reading=reading, history=history
    )

    prompt = render_prompt(context)

    assert "User: Hi there\nMochi: Meow!\n[Mochi health alert] Warning Health Alert:" in prompt


# -- TurnContext ---------------------------------------------------------------


def test_context_is_frozen(reading: Reading) -> None:
    context = build_turn_context("cat1", default_persona(), "hi", reading=reading)
    with pytest.raises(AttributeError):
        context.message = "changed"


def test_turn_snapshot(reading: Reading) -> None:
    snapshot = turn_snapshot(reading, _profile())
    assert snapshot["reading"]["temperature"] == 38.2
    assert snapshot["profile"]["breed"] == "Siamese"
    assert "id" not in snapshot["profile"]

    assert turn_snapshot(None, None) == {"reading": None, "profile": None}
