"""Read-only views: planner range, today's timeline, missed and completed lists, countdowns."""


def _occurrence_payload(a, occ, now):
    data = occ.to_dict()
    deadline = a.occurrence_deadline(occ)
    data['deadline'] = deadline.isoformat()
    data['missed'] = occ.kind.is_task and a.is_missed(deadline, occ.status, now)
    data['elapsed'] = a.is_elapsed(deadline, now)
    data['countdown'] = a.countdown_label(deadline, now, occ.kind, occ.status)
    return data


def list_occurrences():
    import app as a
    InvalidRangeError = a.InvalidRangeError
    expand_all = a.expand_all
    format_date = a.format_date
    get_current_user = a.get_current_user
    group_by_day = a.group_by_day
    jsonify = a.jsonify
    parse_bool = a.parse_bool
    parse_day_value = a.parse_day_value
    request = a.request
    storage = a.storage
    timedelta = a.timedelta

    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    now = a._now_local()
    start_raw = request.args.get('start')
    end_raw = request.args.get('end')
    start_day = parse_day_value(start_raw) if start_raw else now.date()
    if not start_day:
        return jsonify({'error': 'Invalid start date'}), 400
    if end_raw:
        end_day = parse_day_value(end_raw)
        if not end_day:
            return jsonify({'error': 'Invalid end date'}), 400
    else:
        end_day = start_day + timedelta(days=a.app.config['PLANNER_DEFAULT_RANGE_DAYS'] - 1)
    if end_day < start_day:
        return jsonify({'error': 'end must be on/after start'}), 400

    include_done = parse_bool(request.args.get('include_done'), default=True)
    rows = storage.fetch_definitions_for_user(user.id)
    try:
        occurrences = expand_all(rows, start_day, end_day, to_definition=lambda row: row.to_definition())
    except InvalidRangeError as exc:
        return jsonify({'error': str(exc)}), 400
    if not include_done:
        occurrences = [occ for occ in occurrences if occ.status.value != 'done']

    by_day = {}
    for day_value, day_occurrences in group_by_day(occurrences).items():
        by_day[format_date(day_value)] = [_occurrence_payload(a, occ, now) for occ in day_occurrences]

    return jsonify({
        'start': format_date(start_day),
        'end': format_date(end_day),
        'occurrences': by_day,
    })


def list_today():
    import app as a
    expand_all = a.expand_all
    get_current_user = a.get_current_user
    jsonify = a.jsonify
    sort_key_by_time = a.sort_key_by_time
    storage = a.storage

    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    now = a._now_local()
    today = now.date()
    rows = storage.fetch_definitions_for_user(user.id)
    occurrences = expand_all(rows, today, today, to_definition=lambda row: row.to_definition())
    occurrences.sort(key=sort_key_by_time)
    return jsonify([_occurrence_payload(a, occ, now) for occ in occurrences])


def list_missed():
    import app as a
    expand_all = a.expand_all
    get_current_user = a.get_current_user
    jsonify = a.jsonify
    missed_occurrences = a.missed_occurrences
    storage = a.storage

    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    now = a._now_local()
    rows = storage.fetch_pending_tasks(user.id)
    candidates = []
    for row in rows:
        try:
            definition = row.to_definition()
        except a.FormatError as exc:
            a.app.logger.warning(f"Skipping task {row.id} in missed list: {exc}")
            continue
        if definition.effective_start > now.date():
            continue
        candidates.extend(expand_all([definition], definition.effective_start, now.date()))
    return jsonify([_occurrence_payload(a, occ, now) for occ in missed_occurrences(candidates, now)])


def list_completed():
    import app as a
    get_current_user = a.get_current_user
    jsonify = a.jsonify
    storage = a.storage

    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401
    return jsonify([task.to_dict() for task in storage.fetch_completed(user.id)])


def task_countdown(task_ref):
    import app as a
    FormatError = a.FormatError
    OccurrenceKey = a.OccurrenceKey
    countdown_label = a.countdown_label
    get_current_user = a.get_current_user
    is_missed = a.is_missed
    jsonify = a.jsonify
    parse_deadline = a.parse_deadline
    parse_task_ref = a.parse_task_ref
    storage = a.storage

    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    task_id = parse_task_ref(task_ref)
    task = storage.get_task(user.id, task_id) if task_id else None
    if not task:
        return jsonify({'error': 'Task not found'}), 404

    try:
        definition = task.to_definition()
        day = definition.date
        if not str(task_ref).isdigit():
            day = OccurrenceKey.decode(task_ref).occurrence_date
        deadline = parse_deadline(day, definition.time)
    except FormatError as exc:
        return jsonify({'error': str(exc)}), 400

    now = a._now_local()
    missed = definition.kind.is_task and is_missed(deadline, definition.status, now)
    return jsonify({
        'id': str(task_ref),
        'deadline': deadline.isoformat(),
        'missed': missed,
        'label': countdown_label(deadline, now, definition.kind, definition.status),
    })
