"""
File utilities for the provider schema generator.

This module provides the file and directory operations used when writing
the generated provider schema and its metadata.
"""

import shutil
from pathlib import Path


def write_files_to_disk(files: dict[Path, str]) -> None:
    """Write generated files to disk.

    Args:
        files: Dictionary mapping file paths to their content.
    """
    for path, content in files.items():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def copy_directory(src: Path, dest: Path) -> None:
    """Copy a directory tree, merging into ``dest`` if it already exists.

    Args:
        src: Source directory.
        dest: Destination directory.
    """
    shutil.copytree(src, dest, dirs_exist_ok=True)


def reset_directory(directory: Path) -> None:
    """Remove a directory with all of its content and recreate it empty.

    Args:
        directory: Path to the directory to reset.
    """
    shutil.rmtree(directory, ignore_errors=True)
    directory.mkdir(parents=True, exist_ok=True)
