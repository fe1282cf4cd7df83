import itertools

from bams.config import AnchorMode
from bams.provenance.chain import append_block
from bams.provenance.entities import Entity, EntityKind, Forest
from bams.provenance.hashchain import validate_all
from bams.provenance.registry import anchor_of, create_child_chain, create_root_chain


def _clock(start: int = 1_700_000_000_000):
    counter = itertools.count(start)
    return lambda: next(counter)


def _forest() -> Forest:
    clock = _clock()
    dept_chain = create_root_chain("D", difficulty=1, now_fn=clock)
    dept = Entity(kind=EntityKind.DEPARTMENT, id="d1", name="D", chain=dept_chain)
    cls = Entity(
        kind=EntityKind.CLASS,
        id="c1",
        name="C",
        chain=create_child_chain("D - C", dept_chain, difficulty=1, now_fn=clock),
        dept_id="d1",
        anchor=anchor_of(dept_chain),
    )
    student = Entity(
        kind=EntityKind.STUDENT,
        id="s1",
        name="S",
        chain=create_child_chain("Student 1", cls.chain, difficulty=1, now_fn=clock),
        dept_id="d1",
        class_id="c1",
        roll_no="1",
        anchor=anchor_of(cls.chain),
    )
    return Forest(departments=[dept], classes=[cls], students=[student])


def test_clean_forest_is_valid_in_both_modes() -> None:
    forest = _forest()

    for mode in AnchorMode:
        report = validate_all(forest, mode=mode, difficulty=1)
        assert report.overall
        assert report.failures == []
        assert report.departments[0].anchor_valid is None
        assert report.classes[0].anchor_valid is True


def test_parent_append_splits_modes() -> None:
    forest = _forest()
    append_block(forest.classes[0].chain, {"type": "update"}, difficulty=1, now_fn=_clock(1_800_000_000_000))

    assert validate_all(forest, mode=AnchorMode.SNAPSHOT, difficulty=1).overall
    live = validate_all(forest, mode=AnchorMode.LIVE, difficulty=1)
    assert not live.overall
    assert [result.id for result in live.failures] == ["s1"]


def test_missing_parent_marks_child_invalid() -> None:
    forest = _forest()
    forest.classes.clear()

    report = validate_all(forest, difficulty=1)

    assert not report.overall
    assert report.students[0].reason == "parent_missing"
    assert report.students[0].chain_valid is True
    assert report.students[0].anchor_valid is False


def test_report_serializes_groups() -> None:
    data = validate_all(_forest(), mode=AnchorMode.LIVE, difficulty=1).to_dict()

    assert set(data) == {"departments", "classes", "students", "overall", "anchor_mode"}
    assert data["anchor_mode"] == "live"
    assert data["students"][0]["id"] == "s1"
