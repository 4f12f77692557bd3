import logging
import os
import uuid
from dotenv import load_dotenv
from flask import Flask, render_template, request, redirect, url_for, flash, jsonify, session, g
from manager import UserManager
from state import Editing, SessionRegistry
from users_api import UsersAPI

load_dotenv()

app = Flask(__name__)

# Configuration
app.secret_key = os.getenv("SECRET_KEY")

app.config['USERS_API_BASE_URL'] = os.getenv("USERS_API_BASE_URL") or 'https://jsonplaceholder.typicode.com'
app.config['USERS_API_TIMEOUT'] = float(os.getenv("USERS_API_TIMEOUT") or 30)
app.config['MAX_SESSIONS'] = int(os.getenv("MAX_SESSIONS") or 1000)

# manager and users_api log through the root logger
log_level = os.getenv("LOG_LEVEL") or 'INFO'
logging.basicConfig(format='%(asctime)s %(levelname)s %(name)s: %(message)s')
logging.getLogger().setLevel(log_level)
app.logger.setLevel(log_level)

# Form and list state for each browser session
sessions = SessionRegistry(app.config['MAX_SESSIONS'])


def flash_notification(notification):
    """Show a manager notification as a toast on the next rendered page."""
    flash({'title': notification.title, 'description': notification.description}, notification.category)


@app.before_request
def setup_user_manager():
    """Set up the UsersAPI and this session's UserManager in the g variable."""
    if 'users_api' not in g:
        g.users_api = UsersAPI(app.config['USERS_API_BASE_URL'], timeout=app.config['USERS_API_TIMEOUT'])
    if 'sid' not in session:
        session['sid'] = uuid.uuid4().hex
    g.manager = UserManager(sessions.get(session['sid']), g.users_api, notify=flash_notification)


# Routes
@app.route('/')
def index():
    manager = g.manager
    if not manager.state.mounted:
        app.logger.info(f"Loading users for session {session['sid']}")
        manager.load()

    state = manager.state
    form = state.form
    editing_id = form.mode.id if isinstance(form.mode, Editing) else None
    return render_template(
        'index.html',
        users=state.users,
        fields=form.fields,
        errors=form.error_map,
        editing_id=editing_id,
        submitting=form.submitting,
        busy_ids=state.busy_ids,
        creating=form.submitting and editing_id is None
    )


@app.route('/users', methods=['POST'])
def submit_user():
    app.logger.info(f"Submitting user form for session {session['sid']}")
    g.manager.submit(request.form)
    return redirect(url_for('index'))


@app.route('/users/<int:user_id>/edit', methods=['POST'])
def edit_user(user_id):
    g.manager.edit(user_id)
    return redirect(url_for('index'))


@app.route('/users/cancel', methods=['POST'])
def cancel_update():
    g.manager.cancel()
    return redirect(url_for('index'))


@app.route('/users/<int:user_id>/delete', methods=['GET', 'POST'])
def delete_user(user_id):
    if request.method == 'POST':
        app.logger.info(f"Deleting user {user_id} for session {session['sid']}")
        g.manager.delete(user_id)
        return redirect(url_for('index'))

    return render_template('confirm_delete.html', user=g.manager.state.find(user_id), user_id=user_id)


@app.route('/users/reload', methods=['POST'])
def reload_users():
    g.manager.load()
    return redirect(url_for('index'))


@app.route('/api/validate', methods=['POST'])
def validate_fields():
    """Validate the form as it is typed, for inline error display."""
    values = request.get_json(silent=True) or request.form
    errors = g.manager.change_fields(values)
    return jsonify({'valid': not errors, 'errors': errors})


@app.route('/api/users')
def get_users():
    return jsonify([user.model_dump() for user in g.manager.state.users])


if __name__ == '__main__':
    app.run(debug=True)
