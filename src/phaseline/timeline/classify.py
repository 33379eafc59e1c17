"""Phase classification and material categorization of tasks.

Both functions are plain keyword matchers over lower-cased text. The rule
tables are ordered; the first match wins and unmatched input resolves to a
deterministic default rather than an error.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from phaseline.config import CategoriesConfig, ClassifierConfig
from phaseline.logger import get_logger
from phaseline.models import Material, Phase, Task

logger = get_logger()

OTHER_CATEGORY = "other"

_DEFAULT_CLASSIFIER = ClassifierConfig()
DEFAULT_CATEGORY_TABLE: tuple[tuple[str, tuple[str, ...]], ...] = CategoriesConfig().as_table()

CategoryTable = Sequence[tuple[str, Sequence[str]]]


def _matches_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def classify_text(text: str, config: ClassifierConfig | None = None) -> Phase:
    """Classify free text into a phase.

    Preparation keywords are tested first, so text mentioning both a
    preparation and a verification keyword is preparation.
    """
    rules = config or _DEFAULT_CLASSIFIER
    lowered = text.lower()
    if _matches_any(lowered, rules.preparation):
        return Phase.PREPARATION
    if _matches_any(lowered, rules.verification):
        return Phase.VERIFICATION
    return Phase.EXECUTION


def classify_phase(task: Task, config: ClassifierConfig | None = None) -> Phase:
    """Classify a task from its title and description."""
    phase = classify_text(task.text, config)
    logger.checks(f"  Task {task.id} '{task.title}' -> {phase.value}")
    return phase


def categorize_material(label: str, table: CategoryTable | None = None) -> str:
    """Map a material or task label to a category, or 'other' when nothing matches."""
    label_lower = label.lower()
    for category, keywords in table or DEFAULT_CATEGORY_TABLE:
        if _matches_any(label_lower, (k.lower() for k in keywords)):
            return category
    return OTHER_CATEGORY


def match_material(task: Task, materials: Sequence[Material]) -> Material | None:
    """Find the first material whose leading label word appears in the task title."""
    title_lower = task.title.lower()
    for material in materials:
        words = material.item.lower().split()
        if words and words[0] in title_lower:
            return material
    return None


def categorize_task(
    task: Task,
    materials: Sequence[Material] | None = None,
    table: CategoryTable | None = None,
) -> str:
    """Determine the sub-timeline category of a task.

    A task linked to an entry of the materials list takes that material's
    category, "other" included. Only unlinked tasks are categorized by their
    own text.
    """
    if materials:
        material = match_material(task, materials)
        if material is not None:
            return categorize_material(material.item, table)
    return categorize_material(task.text, table)
