from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from bank import QuestionModel, UnitModel
from randomizer import shuffle


@dataclass(frozen=True)
class FlatQuestion:
    """One question lifted out of its unit, with the shared data already resolved."""

    index: int
    unit: str
    question: QuestionModel
    data: Optional[Dict[str, Any]] = None

    @property
    def prompt(self) -> str:
        return self.question.question

    @property
    def options(self) -> List[str]:
        return self.question.options


@dataclass(frozen=True)
class Group:
    data: Optional[Dict[str, Any]]
    questions: Tuple[FlatQuestion, ...] = ()


def _structurally_equal(a: Any, b: Any) -> bool:
    # bool is an int subclass; JSON keeps them apart so we do too
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(_structurally_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(_structurally_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, (dict, list, tuple)) or isinstance(b, (dict, list, tuple)):
        return False
    return a == b


def data_equivalent(a: Optional[Dict[str, Any]], b: Optional[Dict[str, Any]]) -> bool:
    """
    Two shared-data blocks are equivalent when:
      - both carry the same (non-null) ``id``, or
      - they have the same ``type`` and are structurally identical.
    """
    if a is None or b is None:
        return False
    a_id = a.get("id")
    if a_id is not None and _structurally_equal(a_id, b.get("id")):
        return True
    if not _structurally_equal(a.get("type"), b.get("type")):
        return False
    return _structurally_equal(a, b)


def flatten_units(units: Sequence[UnitModel]) -> List[FlatQuestion]:
    flat: List[FlatQuestion] = []
    for unit in units:
        for q in unit.questions:
            flat.append(
                FlatQuestion(
                    index=len(flat),
                    unit=unit.display_name,
                    question=q,
                    data=q.data if q.data is not None else unit.data,
                )
            )
    return flat


def group_questions(
    units: Sequence[UnitModel], rng: Optional[random.Random] = None
) -> List[Group]:
    """
    Partition every question of ``units`` into groups that share equivalent data.

    Questions inside a group and the groups themselves come back shuffled.
    Questions without data (own or inherited) always end up alone.
    """
    records = flatten_units(units)
    groups: List[Group] = []
    used: Set[int] = set()

    for rec in records:
        if rec.index in used:
            continue
        if rec.data is not None:
            related = [
                r
                for r in records
                if r.index not in used and data_equivalent(r.data, rec.data)
            ]
            if related:
                groups.append(Group(data=rec.data, questions=tuple(shuffle(related, rng))))
                used.update(r.index for r in related)
        if rec.index not in used:
            groups.append(Group(data=rec.data, questions=(rec,)))
            used.add(rec.index)

    return shuffle(groups, rng)
