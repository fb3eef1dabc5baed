"""Sign-up / login routes backed by the `users` table."""


def signup():
    import app as a

    DuplicateEmailError = a.DuplicateEmailError
    jsonify = a.jsonify
    re = a.re
    request = a.request
    session = a.session
    storage = a.storage

    data = request.get_json(silent=True) or {}
    name = str(data.get('name') or '').strip()
    email = str(data.get('email') or '').strip()
    password = str(data.get('password') or '')

    if not name:
        return jsonify({'error': 'Name is required'}), 400
    if not re.fullmatch(r'[^@\s]+@[^@\s]+\.[^@\s]+', email):
        return jsonify({'error': 'A valid email is required'}), 400
    if len(password) < 6:
        return jsonify({'error': 'Password must be at least 6 characters'}), 400

    try:
        user = storage.insert_user(name, email, password)
    except DuplicateEmailError as exc:
        return jsonify({'error': str(exc)}), 400

    session['user_id'] = user.id
    session.permanent = True
    return jsonify(user.to_dict()), 201


def login():
    import app as a

    jsonify = a.jsonify
    request = a.request
    session = a.session
    storage = a.storage

    data = request.get_json(silent=True) or {}
    user = storage.get_user(data.get('email'), data.get('password'))
    if not user:
        return jsonify({'error': 'Invalid email or password'}), 401

    session['user_id'] = user.id
    session.permanent = True
    return jsonify(user.to_dict())


def logout():
    import app as a

    a.session.pop('user_id', None)
    return a.jsonify({'success': True})


def current_user_info():
    import app as a

    user = a.get_current_user()
    if user:
        return a.jsonify(user.to_dict())
    return a.jsonify({'id': None, 'name': None, 'email': None})
