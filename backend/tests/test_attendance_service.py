"""Attendance recording, manual overrides and reports."""
from datetime import date, datetime, timedelta

import pytest

from qr_attendance.errors import AlreadyMarked, PermissionDenied, ValidationError
from qr_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from qr_attendance.services.attendance_service import AttendanceService, attendance_percentage

LECTURE_DAY = datetime(2025, 3, 10, 9, 0)

def at(minutes, seconds=0):
    return LECTURE_DAY + timedelta(minutes=minutes, seconds=seconds)

@pytest.fixture
def lecture(issue_session):
    session, _ = issue_session(validity_minutes=60, start_time='09:00')
    return session

@pytest.fixture
def student(make_student):
    return make_student().student_profile

@pytest.mark.parametrize('offset, expected', [
    (at(0), AttendanceStatus.PRESENT),
    (at(14, 59), AttendanceStatus.PRESENT),
    (at(15), AttendanceStatus.PRESENT),
    (at(15, 1), AttendanceStatus.LATE),
    (at(16), AttendanceStatus.LATE),
])
def test_late_threshold(lecture, offset, expected):
    assert AttendanceService.classify(lecture, offset) == expected

@pytest.mark.parametrize('observed_at, expected', [
    (datetime(2025, 3, 10, 3, 44), AttendanceStatus.PRESENT),
    (datetime(2025, 3, 10, 3, 45), AttendanceStatus.PRESENT),
    (datetime(2025, 3, 10, 3, 50), AttendanceStatus.LATE),
])
def test_late_threshold_in_institution_timezone(issue_session, frozen_clock, observed_at, expected):
    # 09:00 in Kolkata is 03:30 UTC
    frozen_clock.set(datetime(2025, 3, 10, 3, 30))
    session, _ = issue_session(start_time='09:00', tz_name='Asia/Kolkata')
    
    assert AttendanceService.classify(session, observed_at) == expected

def test_record_persists_scan_details(lecture, student):
    record = AttendanceService.record(lecture, student, observed_at=at(20),
                                      location={'latitude': 12.97, 'longitude': 77.59},
                                      device_info='Pixel 8')
    
    assert record.status == AttendanceStatus.LATE
    assert record.marked_at == at(20)
    assert record.verification_method == 'qr'
    assert record.to_dict()['location'] == {'latitude': 12.97, 'longitude': 77.59}

def test_second_record_is_rejected_by_storage(lecture, student):
    first = AttendanceService.record(lecture, student, observed_at=at(1))
    
    with pytest.raises(AlreadyMarked) as excinfo:
        AttendanceService.record(lecture, student, observed_at=at(2))
    
    assert excinfo.value.data['id'] == first.id
    assert AttendanceRecord.query.filter_by(session_id=lecture.id).count() == 1

@pytest.mark.parametrize('location', [
    'here',
    {'latitude': 12.0},
    {'latitude': 91, 'longitude': 0},
    {'latitude': 'north', 'longitude': 0},
])
def test_bad_location(location):
    with pytest.raises(ValidationError):
        AttendanceService.parse_location(location)

def test_manual_mark_is_idempotent(lecture, student, teacher):
    first = AttendanceService.mark_manually(lecture, student, 'absent', marked_by=teacher)
    second = AttendanceService.mark_manually(lecture, student, 'absent', marked_by=teacher)
    
    assert first.id == second.id
    assert second.status == AttendanceStatus.ABSENT
    assert second.verification_method == 'manual'
    assert AttendanceRecord.query.count() == 1

def test_manual_mark_keeps_latest_status(lecture, student, teacher):
    first = AttendanceService.mark_manually(lecture, student, 'absent', marked_by=teacher)
    second = AttendanceService.mark_manually(lecture, student, 'late', marked_by=teacher)
    
    records = AttendanceRecord.query.filter_by(session_id=lecture.id, student_id=student.id).all()
    assert [r.id for r in records] == [first.id]
    assert second.id == first.id
    assert records[0].status == AttendanceStatus.LATE

def test_manual_mark_overrides_a_scan(lecture, student, teacher):
    scanned = AttendanceService.record(lecture, student, observed_at=at(30))
    updated = AttendanceService.mark_manually(lecture, student, AttendanceStatus.PRESENT,
                                              marked_by=teacher)
    
    assert updated.id == scanned.id
    assert updated.status == AttendanceStatus.PRESENT
    assert updated.marked_by == teacher.id

def test_manual_mark_rejects_unknown_status(lecture, student):
    with pytest.raises(ValidationError):
        AttendanceService.mark_manually(lecture, student, 'excused')

def test_update_and_delete_require_ownership(lecture, student, teacher, other_teacher):
    record = AttendanceService.record(lecture, student, observed_at=at(1))
    
    with pytest.raises(PermissionDenied):
        AttendanceService.update_status(record.id, 'late', other_teacher)
    
    AttendanceService.update_status(record.id, 'late', teacher)
    assert record.status == AttendanceStatus.LATE
    
    AttendanceService.delete_record(record.id, teacher)
    assert AttendanceRecord.query.count() == 0

def test_roster_lists_whole_cohort(lecture, make_student):
    alice = make_student(roll_number='CSE3A01').student_profile
    bob = make_student(roll_number='CSE3A02').student_profile
    carol = make_student(roll_number='CSE3A03').student_profile
    make_student(section='B', roll_number='CSE3B01')
    
    AttendanceService.record(lecture, alice, observed_at=at(5))
    AttendanceService.record(lecture, bob, observed_at=at(25))
    
    roster = AttendanceService.roster(lecture)
    
    assert [e['student']['roll_number'] for e in roster['attendance']] == \
        ['CSE3A01', 'CSE3A02', 'CSE3A03']
    assert [e['status'] for e in roster['attendance']] == ['present', 'late', 'absent']
    assert roster['attendance'][2]['attendance_id'] is None
    assert roster['summary'] == {'total': 3, 'present': 1, 'late': 1, 'absent': 1}
    assert carol.id not in {r.student_id for r in lecture.records}

@pytest.mark.parametrize('attended, total, expected', [
    (8, 10, 80),
    (0, 0, 0),
    (1, 3, 33),
    (2, 3, 67),
    (1, 8, 13),
    (10, 10, 100),
])
def test_attendance_percentage(attended, total, expected):
    assert attendance_percentage(attended, total) == expected

def test_summary_counts_cohort_sessions(issue_session, student, teacher, frozen_clock):
    statuses = ['present'] * 6 + ['late'] * 2 + [None] * 2
    for day, status in enumerate(statuses):
        frozen_clock.set(LECTURE_DAY + timedelta(days=day))
        session, _ = issue_session()
        if status:
            AttendanceService.mark_manually(session, student, status, marked_by=teacher)
    
    summary = AttendanceService.summary(student)
    
    assert summary['overall'] == {
        'total_lectures': 10, 'present': 6, 'late': 2, 'absent': 2, 'percentage': 80
    }
    assert summary['subjects'][0]['subject_code'] == 'CS301'
    assert summary['student']['roll_number'] == student.roll_number

def test_summary_without_sessions(student):
    summary = AttendanceService.summary(student)
    
    assert summary['subjects'] == []
    assert summary['overall']['percentage'] == 0

def test_history_filters(issue_session, student, frozen_clock):
    first, _ = issue_session()
    AttendanceService.record(first, student, observed_at=at(2))
    frozen_clock.set(LECTURE_DAY + timedelta(days=1))
    second, _ = issue_session(subject_code='CS302', subject_name='Database Systems')
    AttendanceService.record(second, student, observed_at=at(24 * 60 + 2))
    
    newest_first = AttendanceService.history(student)
    assert [r.session_id for r in newest_first.items] == [second.id, first.id]
    
    assert AttendanceService.history(student, subject_code='CS301').total == 1
    assert AttendanceService.history(student, start_date=date(2025, 3, 11)).total == 1
    assert AttendanceService.history(student, end_date=date(2025, 3, 10)).total == 1
