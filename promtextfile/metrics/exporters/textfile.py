"""Atomic textfile publisher for the node_exporter textfile collector"""
import os
import pwd
import shutil
import sys
from pathlib import Path
from typing import Iterable, Optional, TextIO
from ...config import Config
from ...errors import AccountLookupError, InvalidValue, PrivilegeError
from ...logging_config import get_logger, log_publish


logger = get_logger(__name__)

DRYRUN_PREFIX = "[DRYRUN] "
TEMP_SUFFIX = ".tmp"


class TextfilePublisher:
    """Publish exposition documents so the collector never reads a partial file

    Content is written to a ``.tmp`` sibling and then renamed onto the
    target path. Nothing touches the filesystem in dry run mode, every line
    that would be written is printed to stderr instead.
    """

    def __init__(self, config: Config, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None):
        self.config = config
        self._stdout = stdout
        self._stderr = stderr

    @property
    def stdout(self) -> TextIO:
        return self._stdout or sys.stdout

    @property
    def stderr(self) -> TextIO:
        return self._stderr or sys.stderr

    def output_path(self, prefix: str, name: str, identifier: Optional[str] = None) -> Path:
        """<textfile directory>/<prefix>_<name>[.<identifier>].prom"""
        filename = f"{prefix}_{name}"
        if identifier:
            if "/" in identifier:
                raise InvalidValue(f"IDENTIFIER \"{identifier}\" must not contain '/'")
            filename = f"{filename}.{identifier}"
        return Path(self.config.textfile_directory) / f"{filename}.prom"

    @staticmethod
    def temp_path(path: Path) -> Path:
        return path.with_name(path.name + TEMP_SUFFIX)

    def dry_run_print(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.stderr.write(f"{DRYRUN_PREFIX}{line}\n")
        self.stderr.flush()

    def publish(self, path: Path, text: str, samples: int = 0) -> bool:
        """Write ``text`` to ``path``, returns True when the swap was atomic"""
        path = Path(path)
        temp = self.temp_path(path)

        if self.config.dry_run:
            self.dry_run_print(text.splitlines())
            self.dry_run_print([f'mv "{temp}" "{path}"'])
            return True

        if self.config.verbose:
            self.stdout.write(text)
            self.stdout.flush()

        with open(temp, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())

        try:
            os.replace(temp, path)
            atomic = True
        except PermissionError:
            # Directory not writable, only the pre-created files are
            logger.warning(
                "Atomic rename refused, copying over the published file",
                path=str(path),
                temp=str(temp),
            )
            shutil.copyfile(temp, path)
            shutil.copymode(temp, path)
            atomic = False

        log_publish(logger, path, samples, atomic)
        return atomic

    def provision(self, path: Path, account: str) -> None:
        """Pre-create ``path`` and its temp sibling owned by ``account``

        Lets a later unprivileged run of the same job write its textfile.
        Must run as root unless in dry run mode.
        """
        path = Path(path)
        temp = self.temp_path(path)

        if os.geteuid() != 0 and not self.config.dry_run:
            raise PrivilegeError("Command must be run as root")

        try:
            entry = pwd.getpwnam(account)
        except KeyError:
            raise AccountLookupError(f"No such user {account}")

        action = f'touch "{path}" "{temp}" && chown {account} "{path}" "{temp}"'
        if self.config.dry_run:
            self.dry_run_print([action])
            return

        if self.config.verbose:
            self.stdout.write(action + "\n")

        for target in (path, temp):
            target.touch(exist_ok=True)
            os.chown(target, entry.pw_uid, -1)

        logger.info("Textfile provisioned", path=str(path), account=account, uid=entry.pw_uid)
