"""Indexer for search indexes of built documentation sites."""

import logging
import subprocess
import tempfile
from pathlib import Path

from documenter_search_index.database import SearchIndexDatabase
from documenter_search_index.parser import SearchIndexParser

logger = logging.getLogger(__name__)


class SearchIndexIndexer:
    """Loads ``search_index.js`` files of a built site into the database."""

    INDEX_FILENAME = "search_index.js"
    DEFAULT_BRANCH = "gh-pages"
    ROOT_VERSION = "root"

    def __init__(self, database: SearchIndexDatabase) -> None:
        """Initialise indexer with database instance.

        Args:
            database: SearchIndexDatabase instance for storing entries.
        """
        self.database = database
        self.parser = SearchIndexParser()

    def index_from_git(
        self,
        repo_url: str,
        branch: str = DEFAULT_BRANCH,
        version: str | None = None,
        shallow: bool = True,
    ) -> int:
        """Clone a documentation deployment branch and index it.

        Args:
            repo_url: URL of the repository holding the built site.
            branch: Git branch the site is deployed to.
            version: Only check out and index this version folder.
            shallow: Whether to do a shallow clone.

        Returns:
            Number of entries indexed.
        """
        with tempfile.TemporaryDirectory() as temp_dir:
            site_path = Path(temp_dir) / "site"
            self._clone_repository(repo_url, site_path, branch, version, shallow)
            return self._index_directory(site_path, version)

    def index_from_path(self, site_path: Path) -> int:
        """Index every search index below a local built site.

        Args:
            site_path: Root directory of the built site.

        Returns:
            Number of entries indexed.
        """
        return self._index_directory(site_path)

    def _clone_repository(
        self,
        repo_url: str,
        target_path: Path,
        branch: str,
        version: str | None,
        shallow: bool,
    ) -> None:
        """Clone the documentation deployment branch.

        Args:
            repo_url: URL of the repository holding the built site.
            target_path: Directory to clone into.
            branch: Git branch to clone.
            version: Version folder for sparse checkout.
            shallow: Whether to do a shallow clone.
        """
        sparse = shallow and version is not None
        cmd = ["git", "clone"]
        if shallow:
            cmd.extend(["--depth", "1"])
        if sparse:
            cmd.extend(["--filter=blob:none", "--sparse"])
        cmd.extend(["--branch", branch, repo_url, str(target_path)])

        logger.info("Cloning %s (branch %s)...", repo_url, branch)
        subprocess.run(cmd, check=True, capture_output=True)  # noqa: S603

        if sparse:
            logger.info("Setting up sparse checkout for version %s...", version)
            subprocess.run(  # noqa: S603
                ["git", "-C", str(target_path), "sparse-checkout", "set", version],  # noqa: S607
                check=True,
                capture_output=True,
            )

        logger.info("Repository cloned successfully")

    def _index_directory(self, site_path: Path, version: str | None = None) -> int:
        """Index all search index files below the site directory.

        Only the shallowest index of each version is stored.

        Args:
            site_path: Root directory of the built site.
            version: Only index this version folder.

        Returns:
            Number of entries indexed.

        Raises:
            ValueError: If the site path does not exist.
        """
        if not site_path.exists():
            msg = f"Site path does not exist: {site_path}"
            raise ValueError(msg)

        indexed_count = 0
        relative_paths = sorted(
            (path.relative_to(site_path) for path in site_path.rglob(self.INDEX_FILENAME)),
            key=lambda path: (len(path.parts), path),
        )
        index_files = [path for path in relative_paths if ".git" not in path.parts]

        logger.info("Found %d search index files to index", len(index_files))

        indexed_versions: set[str] = set()
        for relative_path in index_files:
            file_version = self._extract_version(relative_path)
            if version is not None and file_version != version:
                logger.debug("Skipping %s: not version %s", relative_path, version)
                continue
            if file_version in indexed_versions:
                logger.warning("Skipping %s: version %s already indexed", relative_path, file_version)
                continue
            index = self.parser.parse_file(site_path / relative_path)
            if index is None:
                logger.warning("Failed to parse: %s", relative_path)
                continue
            indexed_count += self.database.replace_index(file_version, index)
            indexed_versions.add(file_version)
            logger.debug("Indexed version %s: %d entries", file_version, len(index))

        logger.info("Successfully indexed %d entries", indexed_count)
        return indexed_count

    def _extract_version(self, relative_path: Path) -> str:
        """Extract the docs version from the index file path.

        Args:
            relative_path: Path relative to the site root.

        Returns:
            First directory component, or ``root`` for a top-level index.
        """
        parts = relative_path.parts
        return parts[0] if len(parts) > 1 else self.ROOT_VERSION

    def rebuild_index(self, repo_url: str, branch: str = DEFAULT_BRANCH) -> int:
        """Clear existing index and rebuild from scratch.

        Args:
            repo_url: URL of the repository holding the built site.
            branch: Git branch to index from.

        Returns:
            Number of entries indexed.
        """
        logger.info("Clearing existing index...")
        self.database.clear()
        return self.index_from_git(repo_url, branch)
