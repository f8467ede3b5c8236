"""
SFTP based backend implementation - the file store tree lives below a base path on a sftp server.
"""

from pathlib import Path, PurePosixPath
import random
import re
import stat
import string
from typing import Optional

import paramiko

from ._base import BackendBase, ItemInfo, validate_name
from .errors import BackendError, BackendMustBeOpen, BackendMustNotBeOpen, BackendDoesNotExist, BackendAlreadyExists
from .errors import ObjectNotFound
from ..constants import TMP_SUFFIX

# system-wide config first, so the user's config overrides it
SSH_CONFIG_FILES = ("/etc/ssh/ssh_config", "~/.ssh/config")


def get_sftp_backend(url):
    # sftp://username@hostname:22/var/stores/logs
    # note: username and port optional, host must be a hostname (not IP), must give path
    sftp_regex = r"""
        sftp://
        ((?P<username>[^@]+)@)?
        (?P<hostname>([^:/]+))(?::(?P<port>\d+))?
        (?P<path>(/.*))
    """
    m = re.match(sftp_regex, url, re.VERBOSE)
    if m:
        return Sftp(username=m["username"], hostname=m["hostname"], port=int(m["port"] or "0"), path=m["path"])


def _item_info(name, st):
    return ItemInfo(name=name, exists=True, size=st.st_size, directory=stat.S_ISDIR(st.st_mode))


class Sftp(BackendBase):
    def __init__(self, hostname: str, path: str, port: int = 0, username: Optional[str] = None):
        self.username = username
        self.hostname = hostname
        self.port = port
        self.base_path = path
        self.name = PurePosixPath(path).name
        self.client = None
        self.opened = False

    def __repr__(self):
        return f"<Sftp(hostname={self.hostname!r}, path={self.base_path!r})>"

    def _get_host_config(self):
        """ssh config values for our host, explicitly given username / port take precedence"""
        # self.hostname might be an alias with the real hostname given in an ssh config file
        host_config = paramiko.SSHConfigDict(hostname=self.hostname)
        for config_file in SSH_CONFIG_FILES:
            config_path = Path(config_file).expanduser()
            if config_path.exists():
                host_config.update(paramiko.SSHConfig.from_path(config_path).lookup(self.hostname))
        if self.username is not None:
            host_config["user"] = self.username
        if self.port != 0:
            host_config["port"] = self.port
        host_config["port"] = int(host_config.get("port") or 22)
        return host_config

    def _connect(self):
        host_config = self._get_host_config()
        ssh = paramiko.SSHClient()
        # unknown hosts are rejected, the user must verify new host keys with ssh / sftp first.
        ssh.load_system_host_keys()
        ssh.connect(
            hostname=host_config["hostname"],
            username=host_config.get("user"),  # None means the current user
            port=host_config["port"],
            key_filename=host_config.get("identityfile"),
            allow_agent=True,
        )
        self.client = ssh.open_sftp()

    def _disconnect(self):
        self.client.close()
        self.client = None

    def _exists(self, name):
        try:
            self.client.stat(name)
        except FileNotFoundError:
            return False
        return True

    def create(self):
        if self.opened:
            raise BackendMustNotBeOpen()
        self._connect()
        try:
            # an existing, empty base directory is fine, but missing parents are not created.
            if not self._exists(self.base_path):
                try:
                    self.client.mkdir(self.base_path)
                except FileNotFoundError:
                    raise BackendError(f"sftp storage base path has no parent directory: {self.base_path}")
            if self.client.listdir(self.base_path):
                raise BackendAlreadyExists(f"sftp storage base path is not empty: {self.base_path}")
        except IOError as err:
            raise BackendError(f"sftp storage I/O error: {err}")
        finally:
            self._disconnect()

    def destroy(self):
        if self.opened:
            raise BackendMustNotBeOpen()
        self._connect()
        try:
            # remove files while walking down, directories afterwards (deepest first).
            dirs = []
            todo = [PurePosixPath(self.base_path)]
            while todo:
                path = todo.pop()
                dirs.append(path)
                for st in self.client.listdir_attr(str(path)):
                    child = path / st.filename
                    if stat.S_ISDIR(st.st_mode):
                        todo.append(child)
                    else:
                        self.client.unlink(str(child))
            for path in reversed(dirs):
                self.client.rmdir(str(path))
        except FileNotFoundError:
            raise BackendDoesNotExist(f"sftp storage base path does not exist: {self.base_path}")
        finally:
            self._disconnect()

    def open(self):
        if self.opened:
            raise BackendMustNotBeOpen()
        self._connect()
        try:
            st = self.client.stat(self.base_path)
        except FileNotFoundError:
            self._disconnect()
            raise BackendDoesNotExist(f"sftp storage base path does not exist: {self.base_path}")
        if not stat.S_ISDIR(st.st_mode):
            self._disconnect()
            raise BackendDoesNotExist(f"sftp storage base path is not a directory: {self.base_path}")
        # all names are relative to the base path from now on:
        self.client.chdir(self.base_path)
        self.opened = True

    def close(self):
        if not self.opened:
            raise BackendMustBeOpen()
        self._disconnect()
        self.opened = False

    def mkdir(self, name):
        if not self.opened:
            raise BackendMustBeOpen()
        validate_name(name)
        # sftp servers report most failures as a generic OSError, so check existence first.
        if self._exists(name):
            raise FileExistsError(f"directory already exists: {name}")
        self.client.mkdir(name)

    def info(self, name):
        if not self.opened:
            raise BackendMustBeOpen()
        validate_name(name)
        try:
            st = self.client.stat(name or ".")
        except FileNotFoundError:
            return ItemInfo(name=name, exists=False, directory=False, size=0)
        return _item_info(name, st)

    def load(self, name):
        if not self.opened:
            raise BackendMustBeOpen()
        validate_name(name)
        try:
            with self.client.open(name) as f:
                f.prefetch()
                return f.read()
        except FileNotFoundError:
            raise ObjectNotFound(name) from None

    def store(self, name, value):
        if not self.opened:
            raise BackendMustBeOpen()
        validate_name(name)
        # payloads are written to a temporary name in the leaf directory and renamed when complete.
        suffix = "".join(random.choices(string.ascii_lowercase, k=8)) + TMP_SUFFIX
        tmp_name = str(PurePosixPath(name).parent / suffix)
        try:
            with self.client.open(tmp_name, mode="w") as f:
                f.set_pipelined(True)
                f.write(value)
        except FileNotFoundError:
            # the leaf directory must have been created by the file store before.
            raise ObjectNotFound(name) from None
        try:
            self.client.posix_rename(tmp_name, name)
        except OSError:
            self.client.unlink(tmp_name)
            raise

    def move(self, curr_name, new_name):
        if not self.opened:
            raise BackendMustBeOpen()
        validate_name(curr_name)
        validate_name(new_name)
        if self._exists(new_name):
            raise FileExistsError(f"move target already exists: {new_name}")
        try:
            self.client.posix_rename(curr_name, new_name)
        except FileNotFoundError:
            raise ObjectNotFound(curr_name) from None

    def list(self, name):
        if not self.opened:
            raise BackendMustBeOpen()
        validate_name(name)
        try:
            infos = self.client.listdir_attr(name or ".")
        except FileNotFoundError:
            raise ObjectNotFound(name) from None
        for st in sorted(infos, key=lambda st: st.filename):
            if not st.filename.endswith(TMP_SUFFIX):
                yield _item_info(st.filename, st)
