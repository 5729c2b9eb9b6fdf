import logging
import os
import uuid
from datetime import datetime
from flask import current_app
from rentdesk.utils.sanitizers import sanitize_filename

logger = logging.getLogger(__name__)


class StorageService:
    """Local disk storage for uploaded documents"""

    def __init__(self, root=None):
        self.root = root or current_app.config['UPLOAD_FOLDER']

    def save_upload(self, file, folder='documents'):
        """Save a werkzeug FileStorage and return its document entry"""
        original = sanitize_filename(file.filename or '') or 'upload'
        stored_name = f'{uuid.uuid4().hex[:12]}_{original}'

        directory = os.path.join(self.root, folder)
        os.makedirs(directory, exist_ok=True)
        file.save(os.path.join(directory, stored_name))

        logger.info('Stored upload %s in %s', stored_name, folder)
        return {
            'filename': original,
            'path': f'{folder}/{stored_name}',
            'uploaded_at': datetime.utcnow().isoformat(),
        }

    def delete(self, relative_path):
        """Remove a stored file; paths outside the upload root are refused"""
        root = os.path.abspath(self.root)
        full_path = os.path.abspath(os.path.join(root, relative_path))
        if not full_path.startswith(root + os.sep):
            logger.warning('Refusing to delete %s outside the upload folder', relative_path)
            return False
        if os.path.isfile(full_path):
            os.remove(full_path)
            return True
        return False
