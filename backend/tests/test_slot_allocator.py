from collections import Counter

from app.services.catalog import SubjectSpec
from app.services.quota_planner import plan_quotas
from app.services.slot_allocator import Grid, OccupancySets, Slot, SlotAllocator

SIX_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
FALLBACK_ROOM = "Classroom 10A"


def build_allocator(subjects, grid, *, teacher_names=None, rooms=("R-1",), occupancy=None, seed=7, quotas=None):
    if teacher_names is None:
        teacher_names = {teacher_id: f"Teacher {teacher_id}" for s in subjects for teacher_id in s.eligible_teacher_ids}
    return SlotAllocator(
        grid=grid,
        subjects=subjects,
        quotas=quotas if quotas is not None else plan_quotas(subjects, grid),
        teacher_names=teacher_names,
        rooms=list(rooms),
        fallback_room=FALLBACK_ROOM,
        unassigned_teacher_label="TBA",
        occupancy=occupancy,
        seed=seed,
    )


def three_subjects(hours=16):
    return [
        SubjectSpec(id="math", name="Mathematics", weekly_hours=hours, eligible_teacher_ids=("t1",)),
        SubjectSpec(id="phy", name="Physics", weekly_hours=hours, eligible_teacher_ids=("t2",)),
        SubjectSpec(id="eng", name="English", weekly_hours=hours, eligible_teacher_ids=("t3",)),
    ]


def assert_no_adjacent_repeats(assignments):
    by_slot = {assignment.slot: assignment for assignment in assignments}
    for slot, assignment in by_slot.items():
        previous = by_slot.get(Slot(slot.day, slot.period - 1))
        if previous is not None:
            assert previous.subject_id != assignment.subject_id, f"{slot.label()} repeats {assignment.subject}"


def test_slot_is_a_value_type():
    assert Slot("Monday", 3) == Slot("Monday", 3)
    assert len({Slot("Monday", 3), Slot("Monday", 3), Slot("Tuesday", 3)}) == 2


def test_grid_walks_days_in_declared_order():
    grid = Grid(("Wednesday", "Monday"), 2)
    assert list(grid.slots()) == [
        Slot("Wednesday", 1),
        Slot("Wednesday", 2),
        Slot("Monday", 1),
        Slot("Monday", 2),
    ]
    assert grid.capacity == 4


def test_exact_capacity_fills_every_slot():
    grid = Grid(SIX_DAYS, 8)
    result = build_allocator(three_subjects(), grid).allocate()

    assert result.conflicts == []
    assert len(result.assignments) == 48
    assert Counter(assignment.subject_id for assignment in result.assignments) == {"math": 16, "phy": 16, "eng": 16}
    assert len({assignment.slot for assignment in result.assignments}) == 48


def test_overflowing_demand_still_fills_grid():
    subjects = three_subjects() + [
        SubjectSpec(id="chem", name="Chemistry", weekly_hours=16, eligible_teacher_ids=("t4",)),
    ]
    grid = Grid(SIX_DAYS, 8)
    result = build_allocator(subjects, grid).allocate()
    stats = result.stats()

    assert stats.filled_slots == 48
    assert result.conflicts == []
    assert stats.subjects_scheduled == 4
    assert stats.utilization == 100
    assert Counter(assignment.subject_id for assignment in result.assignments) == {
        "math": 12,
        "phy": 12,
        "eng": 12,
        "chem": 12,
    }


def test_single_subject_relaxes_adjacency():
    subjects = [SubjectSpec(id="math", name="Mathematics", eligible_teacher_ids=("t1",))]
    grid = Grid(SIX_DAYS, 8)
    result = build_allocator(subjects, grid).allocate()

    assert len(result.assignments) == 48
    assert result.conflicts == []
    assert {assignment.subject for assignment in result.assignments} == {"Mathematics"}


def test_no_adjacent_repeats_without_quota_pressure():
    subjects = three_subjects()
    grid = Grid(SIX_DAYS, 8)
    for seed in range(10):
        # No quota can run out, so an alternative subject is always open.
        quotas = {"math": 48, "phy": 48, "eng": 48}
        result = build_allocator(subjects, grid, seed=seed, quotas=quotas).allocate()
        assert len(result.assignments) == 48
        assert_no_adjacent_repeats(result.assignments)


def test_unfilled_slots_are_reported_as_conflicts():
    subjects = [
        SubjectSpec(id="math", name="Mathematics", weekly_hours=3, eligible_teacher_ids=("t1",)),
        SubjectSpec(id="art", name="Art", weekly_hours=2, eligible_teacher_ids=("t2",)),
    ]
    grid = Grid(("Monday", "Tuesday"), 4)
    result = build_allocator(subjects, grid).allocate()
    stats = result.stats()

    assert stats.total_slots == 8
    assert stats.filled_slots == 5
    assert stats.filled_slots + len(result.conflicts) == stats.total_slots
    assert result.conflicts[-1].describe() == "Tuesday Period 4: No valid assignment found"
    assert stats.utilization == 63


def test_same_seed_gives_same_timetable():
    grid = Grid(SIX_DAYS, 8)
    first = build_allocator(three_subjects(), grid, seed=123).allocate()
    second = build_allocator(three_subjects(), grid, seed=123).allocate()
    assert first.assignments == second.assignments


def test_busy_teacher_becomes_unassigned():
    subjects = [SubjectSpec(id="math", name="Mathematics", weekly_hours=4, eligible_teacher_ids=("t1",))]
    grid = Grid(("Monday",), 4)
    occupancy = OccupancySets()
    occupancy.claim_teacher("t1", Slot("Monday", 2))
    occupancy.claim_teacher("t1", Slot("Monday", 3))

    result = build_allocator(subjects, grid, occupancy=occupancy).allocate()
    teachers = {assignment.slot.period: (assignment.teacher_id, assignment.teacher) for assignment in result.assignments}

    assert teachers[1] == ("t1", "Teacher t1")
    assert teachers[2] == (None, "TBA")
    assert teachers[3] == (None, "TBA")
    assert teachers[4] == ("t1", "Teacher t1")


def test_second_eligible_teacher_is_used_when_first_is_busy():
    subjects = [SubjectSpec(id="math", name="Mathematics", weekly_hours=1, eligible_teacher_ids=("t1", "t2"))]
    grid = Grid(("Monday",), 1)
    occupancy = OccupancySets()
    occupancy.claim_teacher("t1", Slot("Monday", 1))

    result = build_allocator(subjects, grid, occupancy=occupancy).allocate()
    assert result.assignments[0].teacher_id == "t2"


def test_rooms_fall_back_to_class_placeholder():
    subjects = [SubjectSpec(id="math", name="Mathematics", weekly_hours=2, eligible_teacher_ids=("t1",))]
    grid = Grid(("Monday",), 2)
    occupancy = OccupancySets()
    occupancy.claim_room("R-1", Slot("Monday", 1))

    result = build_allocator(subjects, grid, rooms=("R-1",), occupancy=occupancy).allocate()
    rooms = [assignment.room for assignment in result.assignments]
    assert rooms == [FALLBACK_ROOM, "R-1"]
    assert not occupancy.room_free("R-1", Slot("Monday", 2))
    assert occupancy.room_free(FALLBACK_ROOM, Slot("Monday", 1))


def test_room_occupancy_ignores_case_and_padding():
    subjects = [SubjectSpec(id="math", name="Mathematics", weekly_hours=1, eligible_teacher_ids=("t1",))]
    occupancy = OccupancySets()
    occupancy.claim_room(" r-1 ", Slot("Monday", 1))

    result = build_allocator(subjects, Grid(("Monday",), 1), rooms=("R-1",), occupancy=occupancy).allocate()
    assert result.assignments[0].room == FALLBACK_ROOM


def test_subject_without_teachers_is_still_scheduled():
    subjects = [SubjectSpec(id="pe", name="Physical Education", weekly_hours=2)]
    result = build_allocator(subjects, Grid(("Friday",), 2), teacher_names={}).allocate()
    assert [assignment.teacher for assignment in result.assignments] == ["TBA", "TBA"]


def test_distribution_counts_subject_days():
    subjects = [
        SubjectSpec(id="math", name="Mathematics", weekly_hours=2),
        SubjectSpec(id="art", name="Art", weekly_hours=2),
    ]
    result = build_allocator(subjects, Grid(("Monday", "Tuesday"), 2), teacher_names={}).allocate()
    distribution = result.distribution()

    assert sum(distribution["Mathematics"].values()) == 2
    assert sum(distribution["Art"].values()) == 2
    assert set(result.by_day()) == {"Monday", "Tuesday"}
