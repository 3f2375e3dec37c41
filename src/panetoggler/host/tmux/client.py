"""Tmux client for subprocess-based tmux interaction."""

import asyncio
import logging

logger = logging.getLogger(__name__)

# tmux pane ids look like "%7"; the numeric part is used as host handle
_PANE_PREFIX = "%"


def parse_pane_handle(raw: str) -> int | None:
    """Parse a tmux pane id into an integer handle.

    Args:
        raw: tmux pane id (e.g., "%7" or "%7\\n")

    Returns:
        Integer handle (e.g., 7), or None if not a pane id.
    """
    value = raw.strip()
    if not value.startswith(_PANE_PREFIX):
        return None
    try:
        return int(value[len(_PANE_PREFIX):])
    except ValueError:
        return None


def pane_target(handle: int) -> str:
    """Format an integer handle as a tmux target (7 -> "%7")."""
    return f"{_PANE_PREFIX}{handle}"


class TmuxClient:
    """Client for interacting with tmux via subprocess commands.

    Provides async methods for:
    - Checking the tmux server
    - Opening command panes
    - Killing panes
    - Listing live panes
    """

    def __init__(self, socket_path: str | None = None):
        """Initialize TmuxClient.

        Args:
            socket_path: Optional tmux socket path. If None, uses default socket.
        """
        self._socket_path = socket_path

    async def run(self, *args: str) -> str | None:
        """Execute a tmux command.

        Args:
            *args: Command arguments (e.g., "list-panes", "-a", "-F", "...")

        Returns:
            Command stdout on success, None on failure.
        """
        cmd = ["tmux"]
        if self._socket_path:
            cmd.extend(["-S", self._socket_path])
        cmd.extend(args)

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()

            if proc.returncode != 0:
                logger.warning(f"tmux command failed: {' '.join(cmd)}: {stderr.decode().strip()}")
                return None

            return stdout.decode()

        except OSError as e:
            logger.error(f"tmux subprocess error: {e}")
            return None

    async def check_available(self) -> bool:
        """Check if a tmux server is reachable."""
        return await self.run("info") is not None

    async def open_command_pane(
        self,
        cmd: str,
        args: list[str] | None = None,
        cwd: str | None = None,
        direction: str = "-h",
    ) -> int | None:
        """Split the current window and run a command in the new pane.

        Args:
            cmd: Executable to run
            args: Command arguments
            cwd: Working directory for the new pane
            direction: "-h" (side by side) or "-v" (stacked)

        Returns:
            Integer handle of the new pane, or None on failure.
        """
        # -P -F: print the new pane id
        tmux_args = ["split-window", direction, "-P", "-F", "#{pane_id}"]
        if cwd:
            tmux_args.extend(["-c", cwd])
        tmux_args.append("--")
        tmux_args.append(cmd)
        tmux_args.extend(args or [])

        output = await self.run(*tmux_args)
        if output is None:
            return None

        handle = parse_pane_handle(output)
        if handle is None:
            logger.warning(f"Unexpected split-window output: {output!r}")
        return handle

    async def kill_pane(self, handle: int) -> bool:
        """Kill a pane.

        Args:
            handle: Integer pane handle

        Returns:
            True on success, False on failure.
        """
        result = await self.run("kill-pane", "-t", pane_target(handle))
        return result is not None

    async def list_pane_ids(self) -> set[int] | None:
        """List handles of all live panes across all sessions.

        Returns:
            Set of integer handles, or None if tmux is unreachable.
        """
        output = await self.run("list-panes", "-a", "-F", "#{pane_id}")
        if output is None:
            return None

        handles = set()
        for line in output.strip().split("\n"):
            if not line:
                continue
            handle = parse_pane_handle(line)
            if handle is None:
                logger.warning(f"Failed to parse pane line: {line!r}")
                continue
            handles.add(handle)
        return handles
