"""
Object key naming.

sanitize_filename / sanitize_path turn caller input into storage-legal key
parts; resolve_unique_key probes the object store for a free key. Probing is
a plain existence-check loop and is not atomic: two uploads resolving the same
desired key at the same time can both get the same answer.
"""
import posixpath
import re
import uuid

_WHITESPACE_RE = re.compile(r'\s+')
_NAME_DISALLOWED_RE = re.compile(r'[^a-zA-Z0-9_.-]')
_EXT_DISALLOWED_RE = re.compile(r'[^a-zA-Z0-9.]')
_PATH_DISALLOWED_RE = re.compile(r'[^a-zA-Z0-9/_-]')
_ONLY_DOTS_RE = re.compile(r'^\.+$')


def _split_name(filename):
    """(base, ext) of the last path component; '.bashrc' has no extension."""
    name = posixpath.basename(filename)
    return posixpath.splitext(name)


def clean_extension(filename):
    _, ext = _split_name(filename or '')
    return _EXT_DISALLOWED_RE.sub('', ext)


def sanitize_filename(filename):
    """Return a storage-safe filename, or '' when nothing usable remains."""
    if not filename:
        return ''
    base, _ = _split_name(filename)

    base = _WHITESPACE_RE.sub('_', base.strip())
    base = _NAME_DISALLOWED_RE.sub('', base)
    if not base or _ONLY_DOTS_RE.match(base):
        return ''

    return f"{base}{clean_extension(filename)}"


def generated_name(filename):
    # 原名清洗后为空时的兜底：uuid + 原扩展名
    return f"{uuid.uuid4()}{clean_extension(filename)}"


def sanitize_path(path):
    if not path:
        return ''
    path = path.replace('..', '')
    path = _PATH_DISALLOWED_RE.sub('', path)
    return '/'.join(segment for segment in path.split('/') if segment)


def build_key(path, filename):
    return f"{path}/{filename}" if path else filename


def suffixed_key(key, counter):
    """docs/report.pdf, 2 -> docs/report_(2).pdf"""
    head, ext = posixpath.splitext(key)
    return f"{head}_({counter}){ext}"


def resolve_unique_key(storage, bucket, desired_key):
    """First of desired_key, name_(1).ext, name_(2).ext, ... absent from the bucket."""
    key = desired_key
    counter = 0
    while storage.object_exists(bucket, key):
        counter += 1
        key = suffixed_key(desired_key, counter)
    return key
