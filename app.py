import logging
import os
from concurrent.futures import TimeoutError as FutureTimeoutError

from flask import Blueprint, Flask, current_app, jsonify, request
from flask_cors import CORS

import profiles
from config import Config
from errors import GenerationFailed, GradebookError, InvalidStudent, MalformedResponse, NotFound
from extraction import ExtractionTasks
from gemini_client import GeminiClient
from imaging import DEFAULT_MIME_TYPE, decode_image_payload
from models import db
from parsers import to_grade_records
from store import StudentStore

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__)


def get_store():
    return StudentStore(db.session)


def get_tasks():
    return current_app.extensions['extraction_tasks']


def wait_for(future):
    """Block on an AI task with the configured timeout. The underlying call is not cancelled."""
    try:
        return future.result(timeout=current_app.config['AI_TIMEOUT_SECONDS'])
    except FutureTimeoutError as e:
        logger.error("AI task timed out after %ss", current_app.config['AI_TIMEOUT_SECONDS'])
        raise GenerationFailed("The AI model took too long to respond. Please try again.") from e


def request_data():
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form


def read_image():
    """Image from a multipart 'file' upload or a base64 'image' field. Returns (bytes, mime)."""
    file = request.files.get('file')
    if file and file.filename:
        data = file.read()
        if not data:
            raise ValueError("Uploaded file is empty")
        return data, file.mimetype or DEFAULT_MIME_TYPE
    return decode_image_payload(request_data().get('image'))


def roster_names(store, class_id):
    """Names on file for the class, used to steer the model's spelling."""
    try:
        class_id = int(class_id)
    except (TypeError, ValueError):
        return []
    return [s.name for s in store.list_students(class_id)]


def profile_json(profile):
    return {
        "student": profile.student.to_dict(),
        "class_name": profile.class_label,
        "average": profiles.format_average(profile.student),
    }


def require_profile(store, student_id):
    profile = profiles.load_profile(store, student_id)
    if profile is None:
        raise NotFound("Student not found.")
    return profile


@api.route('/health')
def health_check():
    return jsonify({"status": "ok"}), 200


@api.route('/api/students/<int:student_id>', methods=['GET', 'PUT'])
def student_profile(student_id):
    store = get_store()
    profile = require_profile(store, student_id)

    if request.method == 'GET':
        return jsonify(profile_json(profile)), 200

    edits = request.get_json(silent=True)
    if not isinstance(edits, dict):
        return jsonify({"error": "A JSON object of fields to update is required"}), 400

    edited = profiles.merge_edits(profile.student, edits)
    if (edited.class_id is not None and edited.class_id != profile.student.class_id
            and store.get_class(edited.class_id) is None):
        raise InvalidStudent("Class not found.")
    updated = profiles.save(store, edited)
    logger.info("Saved student %s (%s)", updated.id, updated.name)
    return jsonify({
        "message": "Changes saved successfully!",
        **profile_json(profiles.load_profile(store, updated.id) or profile),
    }), 200


@api.route('/api/classes', methods=['GET', 'POST'])
def handle_classes():
    store = get_store()
    if request.method == 'GET':
        classes = store.list_classes()
        return jsonify([
            {"id": c.id, "name": c.name, "student_count": len(store.list_students(c.id))}
            for c in classes
        ]), 200

    data = request_data()
    try:
        class_group = store.create_class(data.get('name', ''))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(class_group.to_dict()), 201


@api.route('/api/classes/<int:class_id>/students', methods=['GET', 'POST'])
def class_roster(class_id):
    store = get_store()
    if store.get_class(class_id) is None:
        raise NotFound("Class not found.")

    if request.method == 'GET':
        return jsonify([s.to_dict() for s in store.list_students(class_id)]), 200

    data = request_data()
    names = data.get('names') or []
    if isinstance(names, str):
        names = [names]
    names_text = data.get('names_text', '')
    if names_text:
        names = list(names) + names_text.split('\n')
    if not names:
        return jsonify({"error": "No names provided"}), 400

    names_added = store.add_students(class_id, names)
    return jsonify({
        "success": True,
        "message": "Added {} new students.".format(names_added),
        "added": names_added,
    }), 201


@api.route('/api/generate-content', methods=['POST'])
def generate_content():
    data = request_data()
    topic = (data.get('topic') or '').strip()
    kind = data.get('type', 'description')
    if not topic:
        return jsonify({"error": "topic is required"}), 400
    if kind not in ('description', 'quiz'):
        return jsonify({"error": "type must be 'description' or 'quiz'"}), 400

    content = wait_for(get_tasks().submit_content(topic, kind))
    return jsonify({"content": content}), 200


@api.route('/api/extract-names', methods=['POST'])
def extract_names():
    try:
        image, mime_type = read_image()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    known_names = roster_names(get_store(), request_data().get('class_id'))
    names = wait_for(get_tasks().submit_names(image, mime_type, known_names))
    return jsonify({"names": names}), 200


@api.route('/api/extract-grades', methods=['POST'])
def extract_grades():
    try:
        image, mime_type = read_image()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    known_names = roster_names(get_store(), request_data().get('class_id'))
    records = wait_for(get_tasks().submit_grades(image, mime_type, known_names))
    return jsonify({"records": [r.to_dict() for r in records]}), 200


@api.route('/api/classes/<int:class_id>/import-grades', methods=['POST'])
def import_grades(class_id):
    """Read grades (from an image or already-reviewed JSON rows) into the class roster."""
    store = get_store()
    if store.get_class(class_id) is None:
        raise NotFound("Class not found.")
    roster = store.list_students(class_id)

    payload = request.get_json(silent=True) if request.is_json else None
    rows = payload.get('records') if isinstance(payload, dict) else None
    if rows is not None:
        try:
            records = to_grade_records(rows)
        except MalformedResponse as e:
            return jsonify({"error": e.message}), 400
    else:
        try:
            image, mime_type = read_image()
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        records = wait_for(get_tasks().submit_grades(image, mime_type, [s.name for s in roster]))

    result = profiles.reconcile_grades(roster, records)
    saved = profiles.save_all(store, result.updated)
    logger.info("Imported grades for class %s: %d updated, %d unmatched",
                class_id, len(saved), len(result.unmatched))
    return jsonify({
        "updated": [s.to_dict() for s in saved],
        "unmatched": [u.to_dict() for u in result.unmatched],
    }), 200


def handle_gradebook_error(e):
    if e.status_code >= 500:
        logger.error("%s: %s", type(e).__name__, e.message)
    return jsonify({"error": e.message}), e.status_code


def create_app(overrides=None, gateway=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    CORS(app)
    db.init_app(app)
    with app.app_context():
        db.create_all()

    if gateway is None:
        gateway = GeminiClient.from_config(app.config)
    app.extensions['extraction_tasks'] = ExtractionTasks(gateway, max_workers=app.config['AI_MAX_WORKERS'])

    app.register_blueprint(api)
    app.register_error_handler(GradebookError, handle_gradebook_error)
    return app


if __name__ == '__main__':
    create_app().run(host='0.0.0.0', port=int(os.getenv("PORT", "5000")))
