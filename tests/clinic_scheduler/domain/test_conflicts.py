from clinic_scheduler.domain.conflicts import detect_conflicts

from scheduler_helpers import at, make_appointment


def test_flags_both_members_of_an_overlapping_pair() -> None:
    appointments = [
        make_appointment('a1', at(9), at(10)),
        make_appointment('a2', at(9, 30), at(10, 30)),
        make_appointment('a3', at(11), at(12)),
    ]

    assert detect_conflicts(appointments) == {'a1', 'a2'}


def test_touching_appointments_are_not_conflicts() -> None:
    appointments = [
        make_appointment('a1', at(9), at(10)),
        make_appointment('a2', at(10), at(11)),
    ]

    assert detect_conflicts(appointments) == set()


def test_ignores_cancelled_and_other_therapists() -> None:
    appointments = [
        make_appointment('a1', at(9), at(10)),
        make_appointment('a2', at(9), at(10), cancelled=True),
        make_appointment('a3', at(9), at(10), therapist_id='t2'),
    ]

    assert detect_conflicts(appointments) == set()


def test_finds_overlap_hidden_behind_a_nested_booking() -> None:
    appointments = [
        make_appointment('long', at(9), at(12)),
        make_appointment('short', at(9, 30), at(10)),
        make_appointment('late', at(11), at(11, 30)),
    ]

    assert detect_conflicts(appointments) == {'long', 'short', 'late'}


def test_input_order_does_not_matter() -> None:
    appointments = [
        make_appointment('a2', at(9, 30), at(10, 30)),
        make_appointment('a1', at(9), at(10)),
    ]

    assert detect_conflicts(appointments) == {'a1', 'a2'}
