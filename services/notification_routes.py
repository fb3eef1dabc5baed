"""In-app notification list for fired reminders and missed-task alarms."""


def list_notifications():
    import app as a
    get_current_user = a.get_current_user
    jsonify = a.jsonify
    request = a.request
    storage = a.storage

    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    try:
        limit = int(request.args.get('limit') or 50)
    except (TypeError, ValueError):
        limit = 50
    limit = max(1, min(limit, 200))
    return jsonify([n.to_dict() for n in storage.fetch_notifications(user.id, limit=limit)])


def mark_notification_read(notification_id):
    import app as a
    Notification = a.Notification
    datetime = a.datetime
    db = a.db
    get_current_user = a.get_current_user
    jsonify = a.jsonify

    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    notif = Notification.query.filter_by(id=notification_id, user_id=user.id).first_or_404()
    if not notif.read_at:
        notif.read_at = datetime.utcnow()
        db.session.commit()
    return jsonify(notif.to_dict())
