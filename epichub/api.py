"""
EPIC Hub JSON API
Projects, tasks and project files under /api
"""

import base64
import binascii
import logging

from flask import Blueprint, Response, current_app, jsonify, request
from werkzeug.routing import BaseConverter
from werkzeug.wsgi import wrap_file

from .blobs import BlobError
from .body import read_json_body
from .static import mime_type_for
from .store import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

API_PREFIX = '/api'

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET,POST,PATCH,DELETE,OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type',
}

UPLOAD_FIELDS = ('filename', 'fileType', 'base64')

ASCII_WHITESPACE = b' \t\n\r\x0b\x0c'

api = Blueprint('api', __name__, url_prefix=API_PREFIX)


class IdConverter(BaseConverter):
    """Path segment of ASCII decimal digits only"""
    regex = '[0-9]+'

    def to_python(self, value):
        return int(value)


@api.record_once
def register_id_converter(state):
    state.app.url_map.converters['id'] = IdConverter


def is_api_path(path):
    return path.startswith(API_PREFIX + '/')


def get_store():
    return current_app.extensions['epichub']['store']


def get_blobs():
    return current_app.extensions['epichub']['blobs']


def error_response(message, status):
    return jsonify({'error': message}), status


@api.errorhandler(ValidationError)
def handle_validation_error(e):
    return error_response(str(e), 400)


@api.errorhandler(NotFoundError)
def handle_not_found(e):
    return error_response(str(e), 404)


@api.route('/health')
def api_health():
    return jsonify({'status': 'OK'})


# Projects

@api.route('/projects')
def api_list_projects():
    return jsonify(get_store().list_projects())


@api.route('/projects', methods=['POST'])
def api_create_project():
    data = read_json_body()
    if not isinstance(data, dict):
        raise ValidationError('Invalid project data')
    project = get_store().create_project(data.get('name'))
    return jsonify(project), 201


# Tasks

@api.route('/projects/<id:project_id>/tasks')
def api_list_tasks(project_id):
    return jsonify(get_store().list_tasks_by_project(project_id))


@api.route('/projects/<id:project_id>/tasks', methods=['POST'])
def api_create_task(project_id):
    store = get_store()
    store.get_project(project_id)
    data = read_json_body()
    task = store.create_task(project_id, data)
    return jsonify(task), 201


@api.route('/tasks/<id:task_id>', methods=['PATCH'])
def api_patch_task(task_id):
    store = get_store()
    store.get_task(task_id)
    data = read_json_body()
    return jsonify(store.patch_task(task_id, data))


@api.route('/tasks/<id:task_id>', methods=['DELETE'])
def api_delete_task(task_id):
    get_store().delete_task(task_id)
    return '', 204


# Files

@api.route('/projects/<id:project_id>/files')
def api_list_files(project_id):
    return jsonify(get_store().list_files_by_project(project_id))


@api.route('/projects/<id:project_id>/files', methods=['POST'])
def api_upload_file(project_id):
    """Upload a file sent as {filename, fileType, base64}"""
    store = get_store()
    store.get_project(project_id)

    data = read_json_body()
    if not isinstance(data, dict) or not all(isinstance(data.get(k), str) for k in UPLOAD_FIELDS):
        raise ValidationError('Invalid file data')
    try:
        # line-wrapped base64 (e.g. 76 columns) is accepted
        encoded = data['base64'].encode('ascii').translate(None, ASCII_WHITESPACE)
        content = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError('Invalid file data')

    blobs = get_blobs()
    try:
        record, _ = store.create_file_metadata(
            project_id,
            data['filename'],
            data['fileType'],
            persist=lambda name: blobs.write_blob(name, content),
        )
    except BlobError as e:
        logger.error(f"Error saving file '{data['filename']}' for project {project_id}: {e}")
        return error_response('Failed to save file', 500)

    return jsonify(record), 201


@api.route('/files/<id:file_id>')
def api_download_file(file_id):
    record = get_store().get_file(file_id)
    blobs = get_blobs()

    if not blobs.exists(record['s3_key']):
        return error_response('File missing on disk', 404)
    try:
        stream, size = blobs.open_blob(record['s3_key'])
    except BlobError as e:
        logger.warning(f"Could not open blob for file {file_id}: {e}")
        return error_response('File missing on disk', 404)

    response = Response(
        wrap_file(request.environ, stream),
        content_type=mime_type_for(record['filename']),
        direct_passthrough=True,
    )
    response.content_length = size
    return response


@api.route('/files/<id:file_id>', methods=['DELETE'])
def api_delete_file(file_id):
    record = get_store().delete_file_metadata(file_id)
    try:
        get_blobs().delete_blob(record['s3_key'])
    except BlobError as e:
        # metadata is already gone; a stray blob is harmless
        logger.warning(f"Ignoring blob delete failure for file {file_id}: {e}")
    return '', 204
