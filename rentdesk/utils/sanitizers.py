import bleach
import re


def sanitize_string(text):
    """Strip HTML tags and surrounding whitespace"""
    if text is None:
        return None
    if not isinstance(text, str):
        return text
    return bleach.clean(text, tags=[], strip=True).strip()


def sanitize_fields(data, fields):
    """Sanitize the listed free-text fields of a payload in place"""
    for field in fields:
        if field in data and isinstance(data[field], str):
            data[field] = sanitize_string(data[field])
    return data


def sanitize_filename(filename):
    """Sanitize a filename by removing path components and special characters"""
    if not filename:
        return ''

    filename = filename.split('/')[-1].split('\\')[-1]
    filename = re.sub(r'[^a-zA-Z0-9._-]', '_', filename)

    if len(filename) > 255:
        name, ext = filename.rsplit('.', 1) if '.' in filename else (filename, '')
        filename = name[:255 - len(ext) - 1] + '.' + ext if ext else name[:255]

    return filename


def sanitize_search_query(query):
    """Trim a search term and drop quote and escape characters"""
    if not query:
        return ''

    query = re.sub(r'[;\'"\\%_]', '', query)
    return query[:200].strip()
