"""
EPIC Hub Resource Store
In-memory collections of projects, tasks and file metadata
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

TASK_TEXT_FIELDS = ('title', 'description', 'status')
TASK_LIST_FIELDS = ('assignees', 'labels')


class StoreError(Exception):
    """Base class for resource store errors"""


class ValidationError(StoreError):
    pass


class NotFoundError(StoreError):
    pass


def utc_timestamp():
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-01T12:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def _clean_text(value):
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


class ResourceStore:
    """
    Owns projects, tasks and file records. Records are plain dicts kept in
    insertion order; lookups are linear scans.
    """

    def __init__(self):
        self.projects = []
        self.tasks = []
        self.files = []
        self.next_project_id = 1
        self.next_task_id = 1
        self.next_file_id = 1
        self._lock = threading.RLock()
        self._upload_locks = {}

    # Projects

    def create_project(self, name):
        name = _clean_text(name)
        if name is None:
            raise ValidationError('Invalid project data')

        with self._lock:
            project = {
                'id': self.next_project_id,
                'name': name,
                'owner_id': None,
                'created_at': utc_timestamp(),
            }
            self.next_project_id += 1
            self.projects.append(project)

        logger.info(f"Created project {project['id']} '{name}'")
        return project

    def list_projects(self):
        with self._lock:
            return list(self.projects)

    def get_project(self, project_id):
        with self._lock:
            project = next((p for p in self.projects if p['id'] == project_id), None)
        if project is None:
            raise NotFoundError('Project not found')
        return project

    # Tasks

    def create_task(self, project_id, fields):
        self.get_project(project_id)

        if not isinstance(fields, dict):
            raise ValidationError('Invalid task data')
        title = _clean_text(fields.get('title'))
        if title is None:
            raise ValidationError('Invalid task data')

        description = fields.get('description')
        status = fields.get('status')
        due_date = fields.get('due_date')
        assignees = fields.get('assignees')
        labels = fields.get('labels')

        with self._lock:
            task = {
                'id': self.next_task_id,
                'project_id': project_id,
                'title': title,
                'description': description if isinstance(description, str) else '',
                'status': status if isinstance(status, str) else 'Backlog',
                'assignees': list(assignees) if isinstance(assignees, list) else [],
                'due_date': due_date if isinstance(due_date, str) else None,
                'labels': list(labels) if isinstance(labels, list) else [],
                'created_at': utc_timestamp(),
            }
            self.next_task_id += 1
            self.tasks.append(task)

        logger.info(f"Created task {task['id']} in project {project_id}")
        return task

    def list_tasks_by_project(self, project_id):
        self.get_project(project_id)
        with self._lock:
            return [t for t in self.tasks if t['project_id'] == project_id]

    def get_task(self, task_id):
        with self._lock:
            task = next((t for t in self.tasks if t['id'] == task_id), None)
        if task is None:
            raise NotFoundError('Task not found')
        return task

    def patch_task(self, task_id, fields):
        """
        Apply a partial update. Only fields that are present and of the
        expected type are written; anything else is ignored.
        """
        task = self.get_task(task_id)
        if fields is None:
            raise ValidationError('Invalid task data')
        if not isinstance(fields, dict):
            return task

        with self._lock:
            for key in TASK_TEXT_FIELDS:
                value = fields.get(key)
                if not isinstance(value, str):
                    continue
                if key == 'title':
                    # a blank title would break the non-empty invariant
                    value = value.strip()
                    if not value:
                        continue
                task[key] = value

            for key in TASK_LIST_FIELDS:
                value = fields.get(key)
                if isinstance(value, list):
                    task[key] = list(value)

            if 'due_date' in fields:
                due_date = fields['due_date']
                if due_date is None or isinstance(due_date, str):
                    task['due_date'] = due_date

        return task

    def delete_task(self, task_id):
        with self._lock:
            index = next((i for i, t in enumerate(self.tasks) if t['id'] == task_id), None)
            if index is None:
                raise NotFoundError('Task not found')
            del self.tasks[index]
        logger.info(f"Deleted task {task_id}")

    # Files

    @contextmanager
    def _upload_lock(self, project_id, filename):
        key = (project_id, filename)
        with self._lock:
            # [lock, uploads currently using it]; dropped when unused
            entry = self._upload_locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._upload_locks[key]

    def create_file_metadata(self, project_id, filename, file_type, persist=None):
        """
        Register a new file version for ``filename`` within a project.

        ``persist`` is called with the storage name before the record is
        appended; if it raises, no record is created and the error propagates.
        Returns ``(record, version)``.
        """
        self.get_project(project_id)
        if not isinstance(filename, str) or not isinstance(file_type, str):
            raise ValidationError('Invalid file data')

        with self._upload_lock(project_id, filename):
            with self._lock:
                existing = [f for f in self.files
                            if f['project_id'] == project_id and f['filename'] == filename]
                version = len(existing) + 1
                file_id = self.next_file_id
                self.next_file_id += 1

            record = {
                'id': file_id,
                'project_id': project_id,
                'filename': filename,
                'file_type': file_type,
                'version': version,
                's3_key': f"{file_id}_{filename}",
                'uploaded_at': utc_timestamp(),
            }

            if persist is not None:
                persist(record['s3_key'])

            with self._lock:
                self.files.append(record)

        logger.info(f"Stored file {file_id} '{filename}' v{version} for project {project_id}")
        return record, version

    def list_files_by_project(self, project_id):
        self.get_project(project_id)
        with self._lock:
            return [f for f in self.files if f['project_id'] == project_id]

    def get_file(self, file_id):
        with self._lock:
            record = next((f for f in self.files if f['id'] == file_id), None)
        if record is None:
            raise NotFoundError('File not found')
        return record

    def delete_file_metadata(self, file_id):
        with self._lock:
            index = next((i for i, f in enumerate(self.files) if f['id'] == file_id), None)
            if index is None:
                raise NotFoundError('File not found')
            record = self.files.pop(index)
        logger.info(f"Deleted file record {file_id}")
        return record
