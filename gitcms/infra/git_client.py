"""
Git client infrastructure for gitcms.

Thin wrapper over the ``git`` executable, used by the schema repository
to clone its working copies. Every command is bounded by a timeout and
a timeout counts as a failure.
"""

import logging
import re
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

CREDENTIALS_PATTERN = re.compile(r'(://)[^/@]+@')


def redact_url(url: str) -> str:
    """Hide credentials embedded in a clone URL."""
    return CREDENTIALS_PATTERN.sub(r'\1***@', url)


class GitClient:
    """
    Abstraction over git commands.

    Example:
        client = GitClient(timeout=60)
        if client.clone("https://example.com/schemas.git", "/tmp/schemas", depth=1):
            print(client.head_commit("/tmp/schemas"))
    """

    def __init__(self, timeout: int = 60, executable: str = "git"):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 60)
            executable: Git binary to run
        """
        self.timeout = timeout
        self.executable = executable

    def _run(
        self,
        args: List[str],
        cwd: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> Tuple[Optional[str], int]:
        """
        Run a git command.

        Args:
            args: Arguments after the git executable
            cwd: Working directory
            timeout: Override the client timeout

        Returns:
            Tuple of (stdout, returncode); returncode is -1 on timeout or
            when git could not be started
        """
        cmd = [self.executable] + args
        shown = ' '.join(redact_url(a) for a in cmd)
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout or self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {shown}")
            return None, -1
        except OSError as e:
            logger.error(f"Git command failed: {shown} - {e}")
            return None, -1

        if result.returncode != 0:
            logger.debug(f"Git command exited {result.returncode}: {shown}: {result.stderr.strip()}")
        output = result.stdout
        return output.strip() if output else None, result.returncode

    def is_available(self) -> bool:
        """Check that the git executable runs."""
        _, code = self._run(["--version"])
        return code == 0

    def is_git_repo(self, path: str) -> bool:
        """Check if path is a git repository."""
        return (Path(path) / ".git").exists()

    def clone(
        self,
        url: str,
        dest: str,
        depth: Optional[int] = None,
        timeout: Optional[int] = None,
    ) -> bool:
        """
        Clone ``url`` into ``dest``.

        Args:
            url: Repository URL
            dest: Target directory (must not exist)
            depth: Shallow clone depth, or None for full history
            timeout: Override the client timeout

        Returns:
            True if the clone completed
        """
        args = ["clone", "--quiet"]
        if depth:
            args += [f"--depth={depth}"]
        args += [url, dest]

        _, code = self._run(args, timeout=timeout)
        if code != 0:
            logger.warning(f"Clone of {redact_url(url)} failed (exit {code})")
            return False
        return True

    def head_commit(self, path: str) -> Optional[str]:
        """Get the commit hash at HEAD."""
        output, code = self._run(["rev-parse", "HEAD"], cwd=path)
        if code == 0 and output:
            return output
        return None

    def remote_url(self, path: str, remote: str = "origin") -> Optional[str]:
        """Get remote URL, with credentials redacted."""
        output, code = self._run(["remote", "get-url", remote], cwd=path)
        if code == 0 and output:
            return redact_url(output)
        return None
