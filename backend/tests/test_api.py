"""End-to-end flows through the teacher and student blueprints."""
from datetime import datetime, timedelta

import pytest

from qr_attendance.models.attendance import AttendanceRecord

LECTURE_DAY = datetime(2025, 3, 10, 9, 0)

SESSION_BODY = {
    'subject_code': 'CS301',
    'subject_name': 'Advanced Programming',
    'semester': 3,
    'section': 'A',
    'start_time': '09:00',
    'end_time': '10:00',
    'valid_minutes': 30
}

@pytest.fixture
def create_lecture(client, teacher, branch, auth_headers, frozen_clock):
    def _create(**overrides):
        body = {**SESSION_BODY, 'branch_id': branch.id, **overrides}
        return client.post('/api/teacher/sessions', json=body, headers=auth_headers(teacher))
    return _create

def scan(client, headers, qr_data, **extra):
    return client.post('/api/student/scan', json={'qr_data': qr_data, **extra}, headers=headers)

def test_create_session_returns_qr(create_lecture):
    response = create_lecture()
    
    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['qr_code'].startswith('data:image/png;base64,')
    assert data['qr_payload']['subjectCode'] == 'CS301'
    assert data['qr_payload']['token'] == data['session']['token']
    assert data['expires_at'] == '2025-03-10T09:30:00'
    assert data['session']['state'] == 'active'

def test_create_session_rejects_bad_duration(create_lecture):
    response = create_lecture(valid_minutes=0)
    
    assert response.status_code == 400
    assert response.get_json()['error']['code'] == 'invalid_duration'

def test_create_session_unknown_branch(create_lecture):
    response = create_lecture(branch_id=999)
    assert response.status_code == 404
    assert response.get_json()['error']['code'] == 'branch_not_found'

def test_students_cannot_use_teacher_routes(client, make_student, auth_headers, branch):
    headers = auth_headers(make_student())
    response = client.post('/api/teacher/sessions', json={**SESSION_BODY, 'branch_id': branch.id},
                           headers=headers)
    assert response.status_code == 403

def test_teachers_cannot_scan(client, teacher, auth_headers):
    response = scan(client, auth_headers(teacher), '{}')
    assert response.status_code == 403

def test_scan_scenario(client, create_lecture, make_student, auth_headers, frozen_clock):
    qr_data = create_lecture().get_json()['data']['qr_data']
    alice = auth_headers(make_student(roll_number='CSE3A01'))
    bob = auth_headers(make_student(roll_number='CSE3A02'))
    carol = auth_headers(make_student(section='B', roll_number='CSE3B01'))
    
    frozen_clock.set(LECTURE_DAY + timedelta(minutes=10))
    response = scan(client, alice, qr_data, location={'latitude': 12.97, 'longitude': 77.59})
    assert response.status_code == 201
    body = response.get_json()
    assert body['data']['attendance']['status'] == 'present'
    assert body['message'] == 'Attendance marked as present!'
    
    response = scan(client, alice, qr_data)
    assert response.status_code == 409
    body = response.get_json()
    assert body['error']['code'] == 'already_marked'
    assert body['data']['status'] == 'present'
    
    frozen_clock.set(LECTURE_DAY + timedelta(minutes=5))
    response = scan(client, carol, qr_data)
    assert response.status_code == 403
    assert response.get_json()['error']['code'] == 'section_mismatch'
    
    frozen_clock.set(LECTURE_DAY + timedelta(minutes=31))
    response = scan(client, bob, qr_data)
    assert response.status_code == 400
    assert response.get_json()['error']['code'] == 'session_expired'
    
    assert AttendanceRecord.query.count() == 1

def test_late_scan(client, create_lecture, make_student, auth_headers, frozen_clock):
    qr_data = create_lecture(valid_minutes=60).get_json()['data']['qr_data']
    headers = auth_headers(make_student())
    
    frozen_clock.set(LECTURE_DAY + timedelta(minutes=20))
    response = scan(client, headers, qr_data)
    
    assert response.status_code == 201
    assert response.get_json()['data']['attendance']['status'] == 'late'

def test_scan_validation(client, make_student, auth_headers, frozen_clock):
    headers = auth_headers(make_student())
    
    assert scan(client, headers, '').status_code == 400
    response = scan(client, headers, 'not-a-qr-code')
    assert response.status_code == 400
    assert response.get_json()['error']['code'] == 'malformed_payload'

def test_scan_rejects_bad_location(client, create_lecture, make_student, auth_headers):
    qr_data = create_lecture().get_json()['data']['qr_data']
    response = scan(client, auth_headers(make_student()), qr_data,
                    location={'latitude': 200, 'longitude': 0})
    assert response.status_code == 400
    assert AttendanceRecord.query.count() == 0

def test_close_session_blocks_scans(client, create_lecture, teacher, make_student, auth_headers):
    created = create_lecture().get_json()['data']
    session_id = created['session']['id']
    
    response = client.post(f'/api/teacher/sessions/{session_id}/close', headers=auth_headers(teacher))
    assert response.status_code == 200
    assert response.get_json()['data']['state'] == 'closed'
    
    response = scan(client, auth_headers(make_student()), created['qr_data'])
    assert response.status_code == 404
    assert response.get_json()['error']['code'] == 'session_not_found'

def test_other_teacher_cannot_view_roster(client, create_lecture, other_teacher, auth_headers):
    session_id = create_lecture().get_json()['data']['session']['id']
    response = client.get(f'/api/teacher/sessions/{session_id}/attendance',
                          headers=auth_headers(other_teacher))
    assert response.status_code == 403

def test_teacher_roster_and_manual_marking(client, create_lecture, teacher, make_student,
                                           auth_headers, frozen_clock):
    created = create_lecture().get_json()['data']
    session_id = created['session']['id']
    scanner = make_student(roll_number='CSE3A01')
    absentee = make_student(roll_number='CSE3A02')
    headers = auth_headers(teacher)
    
    frozen_clock.set(LECTURE_DAY + timedelta(minutes=2))
    scan(client, auth_headers(scanner), created['qr_data'])
    
    response = client.get(f'/api/teacher/sessions/{session_id}/attendance', headers=headers)
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['summary'] == {'total': 2, 'present': 1, 'late': 0, 'absent': 1}
    
    url = f'/api/teacher/sessions/{session_id}/attendance'
    body = {'student_id': absentee.student_profile.id, 'status': 'late'}
    assert client.post(url, json=body, headers=headers).status_code == 200
    assert client.post(url, json=body, headers=headers).status_code == 200
    assert AttendanceRecord.query.filter_by(session_id=session_id).count() == 2
    
    response = client.post(url, json={'student_id': 9999, 'status': 'present'}, headers=headers)
    assert response.status_code == 404
    
    record_id = data['attendance'][0]['attendance_id']
    response = client.put(f'/api/teacher/attendance/{record_id}', json={'status': 'absent'},
                          headers=headers)
    assert response.status_code == 200
    assert response.get_json()['data']['status'] == 'absent'
    
    response = client.delete(f'/api/teacher/attendance/{record_id}', headers=headers)
    assert response.status_code == 200
    assert client.delete(f'/api/teacher/attendance/{record_id}', headers=headers).status_code == 404

def test_teacher_session_listing(client, create_lecture, teacher, auth_headers):
    create_lecture()
    create_lecture(subject_code='CS302', subject_name='Database Systems')
    headers = auth_headers(teacher)
    
    response = client.get('/api/teacher/sessions?subject=CS302', headers=headers)
    body = response.get_json()
    assert response.status_code == 200
    assert body['pagination']['total'] == 1
    assert body['data'][0]['attendance_count'] == 0
    
    response = client.get('/api/teacher/sessions?date=2025-03-10&limit=1', headers=headers)
    body = response.get_json()
    assert body['pagination'] == {'page': 1, 'per_page': 1, 'total': 2, 'pages': 2}
    
    assert client.get('/api/teacher/sessions?date=10-03-2025', headers=headers).status_code == 400

def test_teacher_assignments(client, teacher, auth_headers, branch):
    response = client.get('/api/teacher/assigned', headers=auth_headers(teacher))
    assert response.status_code == 200
    assert response.get_json()['data']['branches'][0]['code'] == 'CSE'
    assert response.get_json()['data']['branches'][0]['subjects'] == [
        {'code': 'CS301', 'name': 'Advanced Programming'}
    ]

def test_student_history_and_summary(client, create_lecture, make_student, auth_headers,
                                     frozen_clock):
    qr_data = create_lecture().get_json()['data']['qr_data']
    create_lecture(subject_code='CS302', subject_name='Database Systems')
    headers = auth_headers(make_student())
    
    frozen_clock.set(LECTURE_DAY + timedelta(minutes=3))
    scan(client, headers, qr_data)
    
    response = client.get('/api/student/attendance', headers=headers)
    body = response.get_json()
    assert response.status_code == 200
    assert body['pagination']['total'] == 1
    assert body['data'][0]['lecture']['subject']['code'] == 'CS301'
    
    response = client.get('/api/student/attendance/summary', headers=headers)
    overall = response.get_json()['data']['overall']
    assert overall == {'total_lectures': 2, 'present': 1, 'late': 0, 'absent': 1, 'percentage': 50}

def test_swagger_spec_is_served(client):
    response = client.get('/api/swagger.json')
    assert response.status_code == 200
    assert '/api/student/scan' in response.get_json()['paths']

def test_create_session_rejects_oversized_duration(create_lecture):
    response = create_lecture(valid_minutes=10**12)
    
    assert response.status_code == 400
    assert response.get_json()['error']['code'] == 'invalid_duration'

@pytest.mark.parametrize('qr_data', ['[' * 100000, '[' * 1500])
def test_scan_rejects_oversized_or_nested_qr_data(client, make_student, auth_headers, frozen_clock,
                                                  qr_data):
    response = scan(client, auth_headers(make_student()), qr_data)
    
    assert response.status_code == 400
    assert response.get_json()['error']['code'] == 'malformed_payload'

def test_manual_mark_twice_keeps_latest_status(client, create_lecture, teacher, make_student,
                                               auth_headers):
    session_id = create_lecture().get_json()['data']['session']['id']
    student = make_student()
    url = f'/api/teacher/sessions/{session_id}/attendance'
    headers = auth_headers(teacher)
    
    first = client.post(url, json={'student_id': student.student_profile.id, 'status': 'absent'},
                        headers=headers).get_json()['data']
    second = client.post(url, json={'student_id': student.student_profile.id, 'status': 'late'},
                         headers=headers).get_json()['data']
    
    assert second['id'] == first['id']
    assert second['status'] == 'late'
    assert AttendanceRecord.query.filter_by(session_id=session_id).count() == 1

def test_late_scan_in_institution_timezone(app, client, create_lecture, make_student, auth_headers,
                                           frozen_clock):
    app.config['TIMEZONE'] = 'Asia/Kolkata'
    # 09:00 Kolkata time
    frozen_clock.set(datetime(2025, 3, 10, 3, 30))
    created = create_lecture(valid_minutes=60).get_json()['data']
    assert created['session']['date'] == '2025-03-10'
    assert created['session']['timezone'] == 'Asia/Kolkata'
    
    # 09:20 Kolkata time
    frozen_clock.set(datetime(2025, 3, 10, 3, 50))
    response = scan(client, auth_headers(make_student()), created['qr_data'])
    
    assert response.status_code == 201
    assert response.get_json()['data']['attendance']['status'] == 'late'
