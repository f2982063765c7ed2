"""Filesystem and pass-state models for the synchronization engine."""

import os
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ComparisonVerdict(str, Enum):
    """Classification of a source/replica file pair."""

    IDENTICAL = "identical"
    DIFFERENT = "different"
    REPLICA_MISSING = "replica_missing"


class FileEntry(BaseModel):
    """A file as observed in one directory listing. Never cached across passes."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default=..., description="File name within its directory")
    size: int = Field(default=..., ge=0, description="Size in bytes")
    mtime: float = Field(default=..., description="Modification time (POSIX seconds)")

    @classmethod
    def from_stat(cls, name: str, stat_result: os.stat_result) -> "FileEntry":
        return cls(name=name, size=stat_result.st_size, mtime=stat_result.st_mtime)


class DirectoryListing(BaseModel):
    """Direct children of one directory, split into files and subdirectories."""

    path: str = Field(default=..., description="Directory that was listed")
    files: dict[str, FileEntry] = Field(default_factory=dict, description="Files keyed by name")
    directories: list[str] = Field(
        default_factory=list, description="Subdirectory names in enumeration order"
    )
    others: list[str] = Field(
        default_factory=list,
        description="Names that are neither listed files nor real directories",
    )

    @classmethod
    def scan(cls, path: str, follow_file_links: bool = True) -> "DirectoryListing":
        """
        List the direct children of a directory.

        Symbolic links to directories are never descended into, so link
        cycles cannot trap a pass. Links to files are read through when
        follow_file_links is True and put in others otherwise. Dangling
        links, sockets, fifos and devices always go to others.
        Entries that disappear while being listed are skipped.

        Raises:
            OSError: If the directory itself cannot be listed
        """
        files: dict[str, FileEntry] = {}
        directories: list[str] = []
        others: list[str] = []

        with os.scandir(path) as it:
            for entry in it:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        directories.append(entry.name)
                    elif entry.is_file(follow_symlinks=follow_file_links):
                        files[entry.name] = FileEntry.from_stat(entry.name, entry.stat())
                    else:
                        others.append(entry.name)
                except FileNotFoundError:
                    continue

        return cls(path=path, files=files, directories=directories, others=others)


class SyncPassState(BaseModel):
    """Run-guard state for one scheduler tick."""

    running: bool = Field(default=False, description="True while a pass is executing")
    started_at: datetime | None = Field(default=None, description="When the current pass began")
