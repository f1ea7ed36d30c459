#!/usr/bin/env python3
"""
Path checks for files the command line reads and writes
"""

import pathlib

from .constants import MAX_IMAGE_FILE_SIZE

URI_SCHEMES = ("file:", "http:", "https:", "ftp:", "sftp:")

PROTECTED_DIRS = (
    "/etc/", "/usr/", "/bin/", "/sbin/", "/lib/", "/sys/", "/proc/",
    "/System/", "C:/Windows/", "C:/Program Files/", "/dev/",
)


class SecurityError(Exception):
    """Raised when a path is rejected"""
    pass


def _check_path_format(path_str):
    if any(path_str.startswith(scheme) for scheme in URI_SCHEMES):
        raise SecurityError(f"URI schemes not allowed: {path_str}")

    if path_str.startswith("\\\\") or "\\\\?\\" in path_str:
        raise SecurityError(f"UNC paths not allowed: {path_str}")

    if ".." in pathlib.PurePath(path_str.replace("\\", "/")).parts:
        raise SecurityError("Path traversal attempt detected")


def _resolve(file_path):
    try:
        return pathlib.Path(file_path).resolve()
    except (ValueError, RuntimeError) as e:
        raise SecurityError(f"Invalid path: {e}") from e


def _check_within(path, base_dir):
    if base_dir is None:
        return
    base = pathlib.Path(base_dir).resolve()
    try:
        path.relative_to(base)
    except ValueError as e:
        raise SecurityError(f"Path outside allowed directory: {path}") from e


def _in_protected_dir(path):
    path_str = str(path).replace("\\", "/")
    return any(path_str.startswith(pattern) for pattern in PROTECTED_DIRS)


def validate_file_path(file_path, base_dir=None, max_size=MAX_IMAGE_FILE_SIZE):
    """
    Validate a file the pipeline is about to read

    Args:
        file_path: Path to validate
        base_dir: Optional directory the file must live under
        max_size: Maximum allowed file size in bytes

    Returns:
        Absolute path string

    Raises:
        SecurityError: If the path is unsafe, not a regular file, or too large
    """
    _check_path_format(str(file_path))
    path = _resolve(file_path)

    if _in_protected_dir(path):
        raise SecurityError(f"Access to system directories not allowed: {path}")
    _check_within(path, base_dir)

    if not path.exists():
        raise SecurityError(f"File does not exist: {path}")
    if not path.is_file():
        raise SecurityError(f"Path is not a file: {path}")

    file_size = path.stat().st_size
    if file_size > max_size:
        raise SecurityError(f"File too large: {file_size} bytes (max {max_size})")

    return str(path)


def validate_output_path(file_path, base_dir=None):
    """
    Validate a file the pipeline is about to write

    The parent directory must already exist.

    Returns:
        Absolute path string
    """
    _check_path_format(str(file_path))
    path = _resolve(file_path)
    _check_within(path, base_dir)

    if not path.parent.exists():
        raise SecurityError(f"Parent directory does not exist: {path.parent}")
    if _in_protected_dir(path):
        raise SecurityError(f"Cannot write into system directory: {path}")

    return str(path)


def validate_output_dir(dir_path):
    """Validate an output directory, creating it if needed."""
    _check_path_format(str(dir_path))
    path = _resolve(dir_path)

    if _in_protected_dir(path):
        raise SecurityError(f"Cannot write into system directory: {path}")
    if path.exists() and not path.is_dir():
        raise SecurityError(f"Not a directory: {path}")

    path.mkdir(parents=True, exist_ok=True)
    return str(path)
