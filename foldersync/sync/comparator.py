"""Change detection between a source file and its replica counterpart."""

import hashlib
import os

import structlog

from foldersync.errors import ComparisonError
from foldersync.models.config import ComparisonConfig
from foldersync.models.entries import ComparisonVerdict

log = structlog.stdlib.get_logger()


class ContentComparator:
    """Decides whether a replica file already matches its source.

    Files smaller than the hash threshold are always reported as DIFFERENT, so
    they are re-copied on every pass. Files at or above the threshold are
    compared by streaming digest and copied only when the digests differ.
    """

    def __init__(self, config: ComparisonConfig | None = None):
        self._config = config or ComparisonConfig()

    @property
    def hash_threshold(self) -> int:
        return self._config.hash_threshold_bytes

    def compare(self, source_file: str, replica_file: str) -> ComparisonVerdict:
        """
        Classify a source/replica file pair.

        Args:
            source_file: Path of the file in the source tree
            replica_file: Path the file would have in the replica tree

        Returns:
            ComparisonVerdict for the pair

        Raises:
            ComparisonError: If either file cannot be stat'ed or read
        """
        if os.path.islink(replica_file) or not os.path.isfile(replica_file):
            return ComparisonVerdict.REPLICA_MISSING

        try:
            size = os.stat(source_file).st_size
        except OSError as e:
            raise ComparisonError(source_file, e) from e

        if size < self._config.hash_threshold_bytes:
            return ComparisonVerdict.DIFFERENT

        try:
            replica_size = os.stat(replica_file).st_size
        except OSError as e:
            raise ComparisonError(replica_file, e) from e

        # Equal digests imply equal sizes, so a size mismatch skips hashing.
        if replica_size != size:
            return ComparisonVerdict.DIFFERENT

        if self.digest(source_file) == self.digest(replica_file):
            return ComparisonVerdict.IDENTICAL

        log.debug("digest_mismatch", source=source_file, replica=replica_file)
        return ComparisonVerdict.DIFFERENT

    def digest(self, path: str) -> str:
        """
        Stream a file through the configured hash algorithm.

        Raises:
            ComparisonError: If the file cannot be opened or read
        """
        hasher = hashlib.new(self._config.hash_algorithm, usedforsecurity=False)
        try:
            with open(path, "rb") as f:
                for chunk in iter(lambda: f.read(self._config.chunk_size), b""):
                    hasher.update(chunk)
        except OSError as e:
            raise ComparisonError(path, e) from e
        return hasher.hexdigest()
