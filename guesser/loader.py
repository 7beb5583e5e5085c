"""Load the candidate catalog (items and their attribute statements)."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .models import AttributeStatement, Candidate


@dataclass
class Catalog:
    """Read-only catalog of candidates and their attribute statements."""
    candidates: list[Candidate]
    statements: list[AttributeStatement]

    # Lookup indices
    _by_id: dict[str, Candidate] = field(default_factory=dict, repr=False)
    _attributes: dict[str, tuple[AttributeStatement, ...]] = field(default_factory=dict, repr=False)
    _merged_dependencies: dict[str, dict[str, bool]] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        """Build lookup indices."""
        self._by_id = {}
        for candidate in self.candidates:
            if candidate.candidate_id in self._by_id:
                raise ValueError(f"Duplicate candidate id: {candidate.candidate_id}")
            self._by_id[candidate.candidate_id] = candidate

        grouped: dict[str, list[AttributeStatement]] = {c.candidate_id: [] for c in self.candidates}
        for statement in self.statements:
            if statement.candidate_id not in grouped:
                raise ValueError(
                    f"Question {statement.question!r} references unknown candidate "
                    f"{statement.candidate_id!r}"
                )
            grouped[statement.candidate_id].append(statement)
        self._attributes = {cid: tuple(group) for cid, group in grouped.items()}

        # Later statements override earlier ones on key collision
        self._merged_dependencies = {}
        for cid, group in self._attributes.items():
            merged: dict[str, bool] = {}
            for statement in group:
                merged.update(statement.dependencies)
            self._merged_dependencies[cid] = merged

    @property
    def num_candidates(self) -> int:
        return len(self.candidates)

    @property
    def num_statements(self) -> int:
        return len(self.statements)

    def list_candidates(self) -> list[Candidate]:
        """All candidates, in catalog order."""
        return list(self.candidates)

    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        """Get a candidate by id, or None if unknown."""
        return self._by_id.get(candidate_id)

    def attributes_of(self, candidate_id: str) -> tuple[AttributeStatement, ...]:
        """Attribute statements of a candidate, in catalog order."""
        return self._attributes.get(candidate_id, ())

    def merged_dependencies(self, candidate_id: str) -> dict[str, bool]:
        """Union of the dependency maps of all of a candidate's statements."""
        return self._merged_dependencies.get(candidate_id, {})

    def questions(self) -> list[str]:
        """Distinct question texts, in first-seen order."""
        return list(dict.fromkeys(s.question for s in self.statements))


def load_items(items_path: str | Path) -> list[tuple[str, str]]:
    """Load (id, name) pairs from items.jsonl.

    Args:
        items_path: Path to items.jsonl file

    Returns:
        List of (candidate_id, name) tuples in file order
    """
    items_path = Path(items_path)
    items = []

    with open(items_path, "r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            data = json.loads(line)
            items.append((str(data["id"]), data.get("name", str(data["id"]))))

    return items


def load_questions(questions_path: str | Path) -> list[AttributeStatement]:
    """Load attribute statements from questions.jsonl.

    Args:
        questions_path: Path to questions.jsonl file

    Returns:
        List of AttributeStatement objects in file order
    """
    questions_path = Path(questions_path)
    statements = []

    with open(questions_path, "r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            data = json.loads(line)
            dependencies = data.get("dependencies") or {}
            statements.append(AttributeStatement(
                candidate_id=str(data["candidate_id"]),
                question=data["question"],
                statement=data.get("statement", ""),
                dependencies={str(q): bool(v) for q, v in dependencies.items()},
            ))

    return statements


def build_catalog(
    items: list[tuple[str, str]],
    statements: list[AttributeStatement],
) -> Catalog:
    """Assemble a catalog, deriving reveal statements from attribute statements."""
    reveal: dict[str, list[str]] = {cid: [] for cid, _ in items}
    for statement in statements:
        if statement.statement and statement.candidate_id in reveal:
            reveal[statement.candidate_id].append(statement.statement)

    candidates = [
        Candidate(candidate_id=cid, name=name, reveal_statements=tuple(reveal[cid]))
        for cid, name in items
    ]
    return Catalog(candidates=candidates, statements=statements)


def load_catalog(
    items_path: str | Path = "data/items.jsonl",
    questions_path: str | Path = "data/questions.jsonl",
    base_path: Optional[str | Path] = None
) -> Catalog:
    """Load the complete catalog.

    Args:
        items_path: Path to items.jsonl (relative or absolute)
        questions_path: Path to questions.jsonl (relative or absolute)
        base_path: Optional base path to prepend

    Returns:
        Catalog with candidates and attribute statements loaded
    """
    if base_path is not None:
        base_path = Path(base_path)
        items_path = base_path / items_path
        questions_path = base_path / questions_path

    return build_catalog(load_items(items_path), load_questions(questions_path))
