"""Per-job scratch directory management."""

import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from avatar_compositor.domain.exceptions import (
    CleanupError,
    WorkspaceCollisionError,
    WorkspaceError,
)
from avatar_compositor.shared.logging import get_logger, JobLoggerAdapter

logger = get_logger(__name__)


class ScratchWorkspace:
    """
    Allocates one isolated directory per job and guarantees its removal.
    Implements IScratchWorkspace protocol.

    Isolation relies on job ids being unique; an existing directory is
    treated as a collision and refused.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        """
        Args:
            base_dir: Parent of all job directories (defaults to system temp)
        """
        self.base_dir = Path(base_dir) if base_dir else Path(tempfile.gettempdir())
        self._logger = get_logger(__name__)

    def path_for(self, job_id: str) -> Path:
        if not job_id or "/" in job_id or "\\" in job_id or job_id in (".", ".."):
            raise WorkspaceError(f"Invalid job id for workspace: {job_id!r}")
        return self.base_dir / job_id

    def exists(self, job_id: str) -> bool:
        return self.path_for(job_id).exists()

    def acquire(self, job_id: str) -> Path:
        """
        Create the scratch directory for a job (parents included).

        Raises:
            WorkspaceCollisionError: If the directory already exists
            WorkspaceError: If it cannot be created
        """
        workspace = self.path_for(job_id)

        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            workspace.mkdir(exist_ok=False)
        except FileExistsError as e:
            raise WorkspaceCollisionError(
                f"Scratch directory already exists for job {job_id}: {workspace}"
            ) from e
        except OSError as e:
            raise WorkspaceError(f"Failed to create scratch directory {workspace}: {e}") from e

        JobLoggerAdapter(self._logger, job_id).info(f"Created workspace: {workspace}")
        return workspace

    def release(self, workspace: Path) -> None:
        """
        Remove a scratch directory recursively.

        An absent directory is fine. Failures are logged and swallowed so
        they never mask the job's own outcome.
        """
        job_log = JobLoggerAdapter(self._logger, workspace.name)

        try:
            shutil.rmtree(workspace)
            job_log.info(f"Cleaned up workspace: {workspace}")
        except FileNotFoundError:
            return
        except OSError as e:
            error = CleanupError(f"Failed to cleanup workspace {workspace}: {e}")
            job_log.error(str(error))

    @contextmanager
    def scoped(self, job_id: str) -> Iterator[Path]:
        """Acquire a workspace and release it on every exit path."""
        workspace = self.acquire(job_id)
        try:
            yield workspace
        finally:
            self.release(workspace)
