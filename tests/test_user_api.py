import json

from models import Notification, db


def test_signup_login_and_me(client):
    resp = client.post('/api/users/signup', json={
        'name': 'Grace', 'email': 'Grace@Example.com', 'password': 'hopper1',
    })
    assert resp.status_code == 201
    assert resp.get_json()['email'] == 'grace@example.com'

    me = client.get('/api/users/me').get_json()
    assert me['name'] == 'Grace'

    client.post('/api/users/logout')
    assert client.get('/api/users/me').get_json()['id'] is None

    bad = client.post('/api/users/login', json={'email': 'grace@example.com', 'password': 'nope'})
    assert bad.status_code == 401
    ok = client.post('/api/users/login', json={'email': 'grace@example.com', 'password': 'hopper1'})
    assert ok.status_code == 200


def test_duplicate_email_is_rejected(client, user):
    resp = client.post('/api/users/signup', json={
        'name': 'Other', 'email': 'ADA@example.com', 'password': 'secret123',
    })
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'This email is already registered.'


def test_signup_validation(client):
    assert client.post('/api/users/signup', json={'email': 'a@b.co', 'password': 'secret1'}).status_code == 400
    assert client.post('/api/users/signup', json={'name': 'A', 'email': 'nope', 'password': 'secret1'}).status_code == 400
    assert client.post('/api/users/signup', json={'name': 'A', 'email': 'a@b.co', 'password': '123'}).status_code == 400


def test_notifications_list_and_mark_read(client, auth_headers, user):
    notif = Notification(user_id=user.id, type='reminder', title='Upcoming Task',
                         body='Your task "Essay" starts now!', payload=json.dumps({'task_id': 1}))
    db.session.add(notif)
    db.session.commit()

    listed = client.get('/api/notifications', headers=auth_headers).get_json()
    assert [n['title'] for n in listed] == ['Upcoming Task']
    assert listed[0]['read_at'] is None

    resp = client.post(f'/api/notifications/{notif.id}/read', headers=auth_headers)
    assert resp.status_code == 200
    assert resp.get_json()['read_at'] is not None

    assert client.post('/api/notifications/999/read', headers=auth_headers).status_code == 404
