import hostel_storage as storage
from bed_allocation import BedAllocation
from room_schema import Bed


def room_by_no(rooms, room_no):
    return next(room for room in rooms if room['roomNo'] == room_no)


def test_register_and_login(client):
    """Registered wardens get a bearer token carrying their hostel"""
    response = client.post('/register', json={
        'username': 'new_warden',
        'email': 'new@hostel.test',
        'password': 'secret123',
        'hostel_name': 'Maitreyi',
    })
    assert response.status_code == 201

    response = client.post('/login', json={'username': 'new_warden', 'password': 'secret123'})
    assert response.status_code == 200
    data = response.json()
    assert data['token_type'] == 'bearer'
    assert data['hostel_name'] == 'Maitreyi'

    me = client.get('/me', headers={'Authorization': f"Bearer {data['access_token']}"})
    assert me.json()['role'] == 'admin'


def test_register_duplicate_username(client, warden):
    response = client.post('/register', json={
        'username': warden.username,
        'email': 'other@hostel.test',
        'password': 'secret123',
        'hostel_name': 'Varahmihir',
    })
    assert response.status_code == 400


def test_login_invalid_credentials(client, warden):
    response = client.post('/login', json={'username': warden.username, 'password': 'wrong'})
    assert response.status_code == 400


def test_hostel_routes_require_token(client):
    response = client.get('/api/hostel/rooms')
    assert response.status_code in (401, 403)

    response = client.get('/api/hostel/rooms', headers={'Authorization': 'Bearer not-a-token'})
    assert response.status_code == 401


def test_floors(client):
    floors = client.get('/api/floors').json()
    assert [f['name'] for f in floors] == ['Ground Floor', 'First Floor', 'Second Floor', 'Third Floor']


def test_list_rooms_of_own_hostel(client, auth_headers, seeded):
    """Seeded hostel: 4 floors x 12 rooms, first room holds two students"""
    rooms = client.get('/api/hostel/rooms', headers=auth_headers).json()

    assert len(rooms) == 48
    assert {room['hostelName'] for room in rooms} == {'Varahmihir'}

    first = room_by_no(rooms, '001')
    assert first['type'] == '3-Seater'
    assert [bed['bedCode'] for bed in first['beds']] == ['B001A', 'B001B', 'B001C']
    assert [bed['status'] for bed in first['beds']] == ['occupied', 'occupied', 'empty']
    assert first['beds'][0]['student']['gender'] == 'M'

    assert room_by_no(rooms, '010')['type'] == '2-Seater'
    assert room_by_no(rooms, '012')['type'] == '1-Seater'


def test_list_rooms_by_floor(client, auth_headers, seeded):
    rooms = client.get('/api/hostel/rooms', params={'floor': 2}, headers=auth_headers).json()

    assert len(rooms) == 12
    assert {room['floor'] for room in rooms} == {2}


def test_list_rooms_invalid_floor(client, auth_headers):
    response = client.get('/api/hostel/rooms', params={'floor': 7}, headers=auth_headers)
    assert response.status_code == 400


def test_warden_cannot_see_other_hostel(client, auth_headers, seeded):
    response = client.get('/api/hostel/rooms', params={'hostelName': 'Maitreyi'}, headers=auth_headers)
    assert response.status_code == 403


def test_superadmin_sees_every_hostel(client, superadmin_headers, seeded):
    rooms = client.get('/api/hostel/rooms', headers=superadmin_headers).json()
    assert {room['hostelName'] for room in rooms} == {'Varahmihir', 'Maitreyi'}


def test_create_room(client, auth_headers):
    response = client.post('/api/hostel/rooms', json={'room_no': '201', 'floor': 2, 'beds': 2},
                           headers=auth_headers)

    assert response.status_code == 201
    room = response.json()
    assert room['hostelName'] == 'Varahmihir'
    assert room['type'] == '2-Seater'

    again = client.post('/api/hostel/rooms', json={'room_no': '201', 'floor': 2}, headers=auth_headers)
    assert again.status_code == 409


def test_assign_student(client, auth_headers, small_hostel, db_session):
    bed_id = small_hostel['beds'][0]
    student_id = small_hostel['students'][0]

    response = client.post('/api/hostel/assign', params={'bedId': bed_id, 'studentId': student_id},
                           headers=auth_headers)

    assert response.status_code == 200
    bed = response.json()['bed']
    assert bed['status'] == 'occupied'
    assert bed['student']['fullName'] == 'Rahul Sharma'

    ledger = db_session.query(BedAllocation).filter_by(student_id=student_id).all()
    assert len(ledger) == 1
    assert ledger[0].released_on is None


def test_assign_occupied_bed_conflicts(client, auth_headers, small_hostel):
    bed_id = small_hostel['beds'][0]
    first, second, _ = small_hostel['students']
    client.post('/api/hostel/assign', params={'bedId': bed_id, 'studentId': first}, headers=auth_headers)

    response = client.post('/api/hostel/assign', params={'bedId': bed_id, 'studentId': second},
                           headers=auth_headers)

    assert response.status_code == 409
    assert 'already occupied' in response.json()['detail']


def test_student_occupies_at_most_one_bed(client, auth_headers, small_hostel, db_session):
    """After a successful assign exactly one bed holds the student"""
    bed_a, bed_b = small_hostel['beds'][:2]
    student_id = small_hostel['students'][0]
    client.post('/api/hostel/assign', params={'bedId': bed_a, 'studentId': student_id}, headers=auth_headers)

    response = client.post('/api/hostel/assign', params={'bedId': bed_b, 'studentId': student_id},
                           headers=auth_headers)

    assert response.status_code == 409
    assert db_session.query(Bed).filter_by(student_id=student_id).count() == 1


def test_assign_unknown_bed_or_student(client, auth_headers, small_hostel):
    response = client.post('/api/hostel/assign', params={'bedId': 999, 'studentId': small_hostel['students'][0]},
                           headers=auth_headers)
    assert response.status_code == 404

    response = client.post('/api/hostel/assign', params={'bedId': small_hostel['beds'][0], 'studentId': 999},
                           headers=auth_headers)
    assert response.status_code == 404


def test_assign_in_other_hostel_is_forbidden(client, other_auth_headers, small_hostel):
    response = client.post('/api/hostel/assign',
                           params={'bedId': small_hostel['beds'][0], 'studentId': small_hostel['students'][0]},
                           headers=other_auth_headers)
    assert response.status_code == 403


def test_remove_student(client, auth_headers, small_hostel, db_session):
    bed_id = small_hostel['beds'][0]
    student_id = small_hostel['students'][0]
    client.post('/api/hostel/assign', params={'bedId': bed_id, 'studentId': student_id}, headers=auth_headers)

    response = client.post('/api/hostel/remove-student', params={'bedId': bed_id}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()['bed']['status'] == 'empty'
    ledger = db_session.query(BedAllocation).filter_by(student_id=student_id).one()
    assert ledger.released_on is not None


def test_remove_student_from_empty_bed(client, auth_headers, small_hostel):
    response = client.post('/api/hostel/remove-student', params={'bedId': small_hostel['beds'][0]},
                           headers=auth_headers)
    assert response.status_code == 409


def test_add_bed_until_full(client, auth_headers, small_hostel):
    """Single seater grows to a 3-Seater and then refuses a fourth bed"""
    room_id = small_hostel['room_ids'][1]

    codes = []
    for _ in range(2):
        response = client.post('/api/hostel/add-bed', params={'roomId': room_id}, headers=auth_headers)
        assert response.status_code == 200
        codes.append(response.json()['bed']['bedCode'])
    assert codes == ['B002B', 'B002C']

    response = client.post('/api/hostel/add-bed', params={'roomId': room_id}, headers=auth_headers)
    assert response.status_code == 409

    rooms = client.get('/api/hostel/rooms', headers=auth_headers).json()
    assert room_by_no(rooms, '002')['type'] == '3-Seater'


def test_remove_bed(client, auth_headers, small_hostel):
    bed_id = small_hostel['beds'][1]

    response = client.post('/api/hostel/remove-bed', params={'bedId': bed_id}, headers=auth_headers)

    assert response.status_code == 200
    room = response.json()['room']
    assert room['type'] == '2-Seater'
    assert [bed['bedCode'] for bed in room['beds']] == ['B001A', 'B001C']

    readded = client.post('/api/hostel/add-bed', params={'roomId': room['id']}, headers=auth_headers)
    assert readded.json()['bed']['bedCode'] == 'B001B'


def test_remove_occupied_bed_is_refused(client, auth_headers, small_hostel):
    bed_id = small_hostel['beds'][0]
    client.post('/api/hostel/assign', params={'bedId': bed_id, 'studentId': small_hostel['students'][0]},
                headers=auth_headers)

    response = client.post('/api/hostel/remove-bed', params={'bedId': bed_id}, headers=auth_headers)

    assert response.status_code == 409
    rooms = client.get('/api/hostel/rooms', headers=auth_headers).json()
    assert len(room_by_no(rooms, '001')['beds']) == 3


def test_students_and_filtered_list(client, auth_headers, seeded):
    """The filtered list only offers students without a bed"""
    everyone = client.get('/api/students', headers=auth_headers).json()
    assert len(everyone) == 6

    boys = client.get('/api/student/filtered-list', params={'gender': 'M'}, headers=auth_headers).json()
    girls = client.get('/api/student/filtered-list', params={'gender': 'F'}, headers=auth_headers).json()

    # two of four boys and both girls were seated by the seed
    assert len(boys) == 2
    assert girls == []


def test_create_student(client, auth_headers):
    response = client.post('/api/students', json={
        'full_name': 'Neha Verma',
        'year_of_study': '2nd',
        'course': 'B.Pharm',
        'institute_name': 'IIP',
        'gender': 'F',
    }, headers=auth_headers)

    assert response.status_code == 201
    assert response.json()['fullName'] == 'Neha Verma'

    bad = client.post('/api/students', json={
        'full_name': 'X', 'year_of_study': '1st', 'course': 'B.Tech', 'institute_name': 'IIST', 'gender': 'Q',
    }, headers=auth_headers)
    assert bad.status_code == 422


def test_allocation_ledger(client, auth_headers, small_hostel):
    bed_id = small_hostel['beds'][0]
    student_id = small_hostel['students'][0]
    client.post('/api/hostel/assign', params={'bedId': bed_id, 'studentId': student_id}, headers=auth_headers)
    client.post('/api/hostel/remove-student', params={'bedId': bed_id}, headers=auth_headers)
    client.post('/api/hostel/assign', params={'bedId': bed_id, 'studentId': student_id}, headers=auth_headers)

    rows = client.get('/api/hostel/allocations', headers=auth_headers).json()
    active = client.get('/api/hostel/allocations', params={'activeOnly': 'true'}, headers=auth_headers).json()

    assert len(rows) == 2
    assert len(active) == 1
    assert active[0]['bedCode'] == 'B001A'
    assert active[0]['studentName'] == 'Rahul Sharma'


def test_room_statistics(client, auth_headers, seeded):
    stats = {row['type']: row for row in client.get('/api/stats/rooms', headers=auth_headers).json()}

    # per floor: 8 three-seaters, 2 two-seaters, 2 single rooms
    assert stats['3-Seater']['total'] == 4 * 8 * 3
    assert stats['3-Seater']['occupied'] == 2
    assert stats['2-Seater']['total'] == 4 * 2 * 2
    assert stats['1-Seater'] == {'type': '1-Seater', 'available': 8, 'occupied': 0, 'total': 8}


def login_as(client, username, hostel_name):
    client.post('/register', json={
        'username': username,
        'email': f'{username}@hostel.test',
        'password': 'secret123',
        'hostel_name': hostel_name,
    })
    token = client.post('/login', json={'username': username, 'password': 'secret123'}).json()['access_token']
    return {'Authorization': f'Bearer {token}'}


def test_hostel_names_match_exactly(client, db_session):
    """An underscore in a hostel name is a plain character, not a wildcard"""
    storage.create_room(db_session, 'Block_A', '101', 1)
    other = storage.create_room(db_session, 'BlockXA', '999', 1)
    student = storage.create_student(db_session, full_name='Ravi Rao', year_of_study='3rd', course='B.Tech',
                                     institute_name='IIST', gender='M')
    storage.assign_student(db_session, other.beds[0].id, student.id)
    headers = login_as(client, 'block_a_warden', 'block_a')

    rooms = client.get('/api/hostel/rooms', headers=headers).json()
    assert {room['hostelName'] for room in rooms} == {'Block_A'}

    stats = {row['type']: row for row in client.get('/api/stats/rooms', headers=headers).json()}
    assert stats['3-Seater'] == {'type': '3-Seater', 'available': 3, 'occupied': 0, 'total': 3}

    assert client.get('/api/hostel/allocations', headers=headers).json() == []


def test_update_room_type_grows_room(client, auth_headers, small_hostel):
    room_id = small_hostel['room_ids'][1]

    response = client.patch(f'/api/hostel/rooms/{room_id}', json={'seating_type': '3-Seater'}, headers=auth_headers)

    assert response.status_code == 200
    room = response.json()['room']
    assert room['type'] == '3-Seater'
    assert [bed['bedCode'] for bed in room['beds']] == ['B002A', 'B002B', 'B002C']


def test_update_room_type_shrink_drops_trailing_beds(client, auth_headers, small_hostel):
    room_id = small_hostel['room_ids'][0]
    client.post('/api/hostel/assign', params={'bedId': small_hostel['beds'][0], 'studentId': small_hostel['students'][0]},
                headers=auth_headers)

    response = client.patch(f'/api/hostel/rooms/{room_id}', json={'seating_type': '1-Seater'}, headers=auth_headers)

    assert response.status_code == 200
    room = response.json()['room']
    assert room['type'] == '1-Seater'
    assert [(bed['bedCode'], bed['status']) for bed in room['beds']] == [('B001A', 'occupied')]


def test_update_room_type_refused_when_dropped_bed_is_occupied(client, auth_headers, small_hostel):
    """The whole resize is refused and no bed is removed"""
    room_id = small_hostel['room_ids'][0]
    client.post('/api/hostel/assign', params={'bedId': small_hostel['beds'][2], 'studentId': small_hostel['students'][0]},
                headers=auth_headers)

    response = client.patch(f'/api/hostel/rooms/{room_id}', json={'seating_type': '1-Seater'}, headers=auth_headers)

    assert response.status_code == 409
    assert response.json()['detail'] == 'Cannot reduce room capacity when beds are occupied'
    rooms = client.get('/api/hostel/rooms', headers=auth_headers).json()
    assert len(room_by_no(rooms, '001')['beds']) == 3


def test_update_room_type_checks(client, auth_headers, other_auth_headers, small_hostel):
    room_id = small_hostel['room_ids'][0]

    assert client.patch('/api/hostel/rooms/999', json={'seating_type': '2-Seater'},
                        headers=auth_headers).status_code == 404
    assert client.patch(f'/api/hostel/rooms/{room_id}', json={'seating_type': '4-Seater'},
                        headers=auth_headers).status_code == 422
    assert client.patch(f'/api/hostel/rooms/{room_id}', json={'seating_type': '2-Seater'},
                        headers=other_auth_headers).status_code == 403


def test_last_bed_cannot_be_removed(client, auth_headers, small_hostel):
    """Every room keeps at least one bed, so its type always matches the bed count"""
    response = client.post('/api/hostel/remove-bed', params={'bedId': small_hostel['beds'][3]}, headers=auth_headers)
    assert response.status_code == 409

    empty_room = client.post('/api/hostel/rooms', json={'room_no': '301', 'floor': 3, 'beds': 0},
                             headers=auth_headers)
    assert empty_room.status_code == 422


def test_service_info(client):
    info = client.get('/').json()
    assert info['service'] == 'Hostel Room Manager'
    assert info['floors'] == 4
