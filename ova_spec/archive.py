# Copyright (c) 2025 Broadcom.  All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the “License”); you may not
# use this file except in compliance with the License.  You may obtain a copy of
# the License at:
#
#        http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software distributed
# under the License is distributed on an “AS IS” BASIS, without warranties or
# conditions of any kind, EITHER EXPRESS OR IMPLIED.  See the License for the
# specific language governing permissions and limitations under the License.

import fnmatch
import http.client
import os
import posixpath
import tarfile
import urllib.error
import urllib.parse
import urllib.request


REMOTE_SCHEMES = ['http', 'https']


class ArchiveError(Exception):
    pass


class InvalidExtensionError(ArchiveError):
    pass


def is_remote_path(path):
    return urllib.parse.urlparse(path).scheme in REMOTE_SCHEMES


def file_extension(path):
    if is_remote_path(path):
        path = urllib.parse.urlparse(path).path
        return posixpath.splitext(path)[1]
    return os.path.splitext(path)[1]


class Archive(object):

    def __init__(self, path, timeout=None):
        self.path = path
        self.timeout = timeout


    def open_file(self, path):
        """
        Open a local file or remote locator for binary reading.
        The returned object is a context manager.
        """
        try:
            if is_remote_path(path):
                return urllib.request.urlopen(path, timeout=self.timeout)
            return open(path, "rb")
        except urllib.error.URLError as e:
            raise ArchiveError(f"{path}: {e.reason}") from e
        except (ValueError, http.client.HTTPException) as e:
            # malformed locators (bad port) and broken responses
            raise ArchiveError(f"{path}: {e}") from e
        except OSError as e:
            raise ArchiveError(str(e)) from e


    def read(self, name):
        raise NotImplementedError


class FileArchive(Archive):

    def resolve(self, name):
        # names are relative to the directory of the descriptor
        if name == self.path:
            return name
        if is_remote_path(self.path):
            return urllib.parse.urljoin(self.path, name)
        return os.path.join(os.path.dirname(self.path), name)


    def read(self, name):
        path = self.resolve(name)
        with self.open_file(path) as f:
            try:
                return f.read()
            except (OSError, http.client.HTTPException) as e:
                raise ArchiveError(f"{path}: {e}") from e


class TapeArchive(Archive):

    def read(self, name):
        with self.open_file(self.path) as f:
            try:
                # stream mode, remote sources can't seek
                with tarfile.open(fileobj=f, mode="r|") as tar:
                    for member in tar:
                        if member.isfile() and fnmatch.fnmatchcase(posixpath.basename(member.name), name):
                            return tar.extractfile(member).read()
            except (tarfile.TarError, EOFError, OSError, http.client.HTTPException) as e:
                raise ArchiveError(f"{self.path}: {e}") from e

        raise ArchiveError(f"{self.path}: no file matching '{name}' in archive")


def open_archive(path, timeout=None):
    """
    Pick the archive kind from the file extension.

    Returns the archive and the name of the OVF descriptor inside of it.
    """
    ext = file_extension(path)
    if ext == ".ovf":
        return FileArchive(path, timeout=timeout), path
    elif ext in ["", ".ova"]:
        return TapeArchive(path, timeout=timeout), "*.ovf"
    raise InvalidExtensionError(f"invalid file extension {ext}")


def read_ovf(path, timeout=None):
    archive, name = open_archive(path, timeout=timeout)
    return archive.read(name)
