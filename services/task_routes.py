"""Add / edit / complete / delete routes for tasks and schedules."""


def _conflict_response(a, conflicting):
    return a.jsonify({
        'error': f"You already have a schedule at {conflicting.time}.",
        'conflict': True,
        'conflicting_id': conflicting.id,
        'conflicting_title': conflicting.title,
    }), 409


def _user_definitions(a, user_id):
    """Existing rows as engine definitions; corrupt rows are logged and left out of the check."""
    out = []
    for row in a.storage.fetch_definitions_for_user(user_id):
        try:
            out.append(row.to_definition())
        except a.FormatError as exc:
            a.app.logger.warning(f"Skipping task {row.id} in conflict check: {exc}")
    return out


def create_task():
    import app as a
    build_task_fields = a.build_task_fields
    fields_to_definition = a.fields_to_definition
    find_conflict = a.find_conflict
    get_current_user = a.get_current_user
    jsonify = a.jsonify
    register_reminders = a.register_reminders
    request = a.request
    storage = a.storage

    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    data = request.get_json(silent=True) or {}
    fields, error = build_task_fields(data, default_reminder=a.app.config['DEFAULT_REMINDER_MINUTES'],
                                      today=a._now_local().date())
    if error:
        return jsonify({'error': error}), 400

    candidate = fields_to_definition(fields, user_id=user.id)
    conflicting = find_conflict(candidate, _user_definitions(a, user.id))
    if conflicting:
        return _conflict_response(a, conflicting)

    task = storage.add_task(user_id=user.id, **fields)
    register_reminders(task, a.notifier, a._now_local())
    a.db.session.commit()
    a.app.logger.info(f"Created {task.type} {task.id} for user {user.id}")
    return jsonify(task.to_dict()), 201


def update_task(task_ref):
    import app as a
    build_task_fields = a.build_task_fields
    cancel_reminders = a.cancel_reminders
    fields_to_definition = a.fields_to_definition
    find_conflict = a.find_conflict
    get_current_user = a.get_current_user
    jsonify = a.jsonify
    parse_task_ref = a.parse_task_ref
    register_reminders = a.register_reminders
    request = a.request
    storage = a.storage

    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    task_id = parse_task_ref(task_ref)
    task = storage.get_task(user.id, task_id) if task_id else None
    if not task:
        return jsonify({'error': 'Task not found'}), 404

    data = request.get_json(silent=True) or {}
    fields, error = build_task_fields(data, defaults=task.to_dict(),
                                      default_reminder=a.app.config['DEFAULT_REMINDER_MINUTES'],
                                      today=a._now_local().date())
    if error:
        return jsonify({'error': error}), 400

    candidate = fields_to_definition(fields, definition_id=task.id, user_id=user.id)
    conflicting = find_conflict(candidate, _user_definitions(a, user.id), exclude_id=task.id)
    if conflicting:
        return _conflict_response(a, conflicting)

    # Old alarms go first so an edited deadline never fires twice
    cancel_reminders(task, a.notifier)
    storage.update_task(task, **fields)
    register_reminders(task, a.notifier, a._now_local())
    a.db.session.commit()
    return jsonify(task.to_dict())


def complete_task(task_ref):
    import app as a
    cancel_reminders = a.cancel_reminders
    get_current_user = a.get_current_user
    jsonify = a.jsonify
    parse_task_ref = a.parse_task_ref
    storage = a.storage

    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    task_id = parse_task_ref(task_ref)
    task = storage.get_task(user.id, task_id) if task_id else None
    if not task:
        return jsonify({'error': 'Task not found'}), 404

    cancel_reminders(task, a.notifier)
    storage.mark_task_done(task)
    return jsonify(task.to_dict())


def delete_task(task_ref):
    import app as a
    cancel_reminders = a.cancel_reminders
    get_current_user = a.get_current_user
    jsonify = a.jsonify
    parse_task_ref = a.parse_task_ref
    storage = a.storage

    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    task_id = parse_task_ref(task_ref)
    task = storage.get_task(user.id, task_id) if task_id else None
    if not task:
        return jsonify({'error': 'Task not found'}), 404

    cancel_reminders(task, a.notifier)
    storage.delete_task(task)
    return jsonify({'deleted': task_id})


def check_conflict():
    import app as a
    build_task_fields = a.build_task_fields
    fields_to_definition = a.fields_to_definition
    find_conflict = a.find_conflict
    get_current_user = a.get_current_user
    jsonify = a.jsonify
    parse_task_ref = a.parse_task_ref
    request = a.request

    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    data = request.get_json(silent=True) or {}
    fields, error = build_task_fields(data, default_reminder=a.app.config['DEFAULT_REMINDER_MINUTES'],
                                      today=a._now_local().date())
    if error:
        return jsonify({'error': error}), 400

    exclude_id = parse_task_ref(data.get('exclude_id')) if data.get('exclude_id') is not None else None
    candidate = fields_to_definition(fields, definition_id=exclude_id, user_id=user.id)
    conflicting = find_conflict(candidate, _user_definitions(a, user.id), exclude_id=exclude_id)
    return jsonify({
        'conflict': conflicting is not None,
        'conflicting_id': conflicting.id if conflicting else None,
    })
