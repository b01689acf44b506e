"""Per-pet persona runtimes and the capabilities bound to them."""

from src.agents.capabilities import Action, Evaluator, Provider
from src.agents.registry import RuntimeRegistry
from src.agents.runtime import PersonaRuntime

__all__ = [
    "Action",
    "Evaluator",
    "PersonaRuntime",
    "Provider",
    "RuntimeRegistry",
]
