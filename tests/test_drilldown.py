"""
Tests for resolving chart cells to the underlying tasks.
"""

import pytest

from src.core.drilldown import resolve
from src.core.frequency import top_k


def ids(tasks):
    return [t.id for t in tasks]


def test_membership_on_multi_valued_field(tasks):
    assert ids(resolve(tasks, {"reason": "Installation"})) == ["t1", "t2", "t6"]


def test_constraints_are_anded(tasks):
    result = resolve(tasks, {"governorate": "Cairo", "teamName": "Alpha"})
    assert ids(result) == ["t1", "t3", "t6"]


def test_unknown_matches_missing_values(tasks):
    assert ids(resolve(tasks, {"priority": "Unknown"})) == ["t3"]
    assert ids(resolve(tasks, {"rootCause": "Unknown"})) == ["t4", "t5", "t6"]


def test_no_match_is_empty(tasks):
    assert resolve(tasks, {"status": "Archived"}) == []


def test_empty_constraints_return_everything(tasks):
    assert ids(resolve(tasks, {})) == ids(tasks)


@pytest.mark.parametrize("field_name", ["shoeSize", "evaluationScore"])
def test_unknown_field_rejected(tasks, field_name):
    with pytest.raises(ValueError):
        resolve(tasks, {field_name: "x"})


@pytest.mark.parametrize("field_name", ["reason", "responsible", "priority", "governorate"])
def test_every_bar_resolves_to_its_count(tasks, field_name):
    for entry in top_k(tasks, field_name, 10):
        assert len(resolve(tasks, {field_name: entry.name})) == entry.count
