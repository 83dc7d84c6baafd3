"""
This module resolves the layout of a bag on disk:  where its root, payload
and metadata (tag) directories are, and which of the files under the root
are payload files versus tag files.

All access goes through an fs.osfs.OSFS instance opened on the bag's root
directory, so every path handled here is relative to that root and
delimited by forward slashes, the same convention used in manifests.
"""
import os, logging

import fs.osfs
from fs.enums import ResourceType
from fs.errors import FSError, ResourceNotFound

from ..constants import DEFAULT_PAYLOAD_DIR
from ..exceptions import LayoutError, BagIOError
from .path import Path, open_text_file, open_bin_file

LOGGER = logging.getLogger(__name__)

def _clean_reldir(reldir):
    reldir = (reldir or "").replace(os.sep, '/').strip('/')
    if reldir == '.':
        reldir = ''
    if '..' in reldir.split('/'):
        raise ValueError("Bag subdirectory must not point outside of the "+
                         "bag: " + reldir)
    return reldir

def is_nested_under(path, parent):
    """
    return True if the given relative path is strictly below the parent
    directory (also given relative to the bag root, where '' is the root
    itself).
    """
    if not parent:
        return bool(path)
    return path.startswith(parent + '/')

class BagLayout(object):
    """
    a description of where the parts of a bag are located below its root
    directory.

    The payload directory is a direct subdirectory of the root (by default,
    "data").  The metadata directory, where bagit.txt, bag-info.txt and the
    manifests live, is by default the root itself but can be set to a
    dedicated subdirectory.
    """

    def __init__(self, rootdir, payload_dir=DEFAULT_PAYLOAD_DIR,
                 metadata_dir=''):
        """
        resolve the layout of the bag with the given root directory

        :param str rootdir:       the path to the bag's root directory
        :param str payload_dir:   the name of the payload subdirectory
        :param str metadata_dir:  the path to the metadata directory relative
                                  to the root; an empty string (default)
                                  means the root itself.
        :raises LayoutError:  if the root directory does not exist
        """
        if not rootdir:
            raise LayoutError("Path to bag root directory not provided")
        rootdir = os.path.abspath(rootdir)
        if not os.path.isdir(rootdir):
            raise LayoutError("Bag root directory does not exist: "+rootdir)

        payload_dir = _clean_reldir(payload_dir)
        if not payload_dir or '/' in payload_dir:
            raise ValueError("payload_dir must name a direct subdirectory "+
                             "of the bag root: " + repr(payload_dir))

        self._rootdir = rootdir
        self._payload = payload_dir
        self._metadata = _clean_reldir(metadata_dir)
        self.fs = fs.osfs.OSFS(rootdir)
        self._root = Path(self.fs, "", rootdir + '/')

    @property
    def root(self):
        """
        a Path instance pointing to the bag's root directory
        """
        return self._root

    @property
    def root_path(self):
        """
        the absolute path to the bag's root directory
        """
        return self._rootdir

    @property
    def rel_payload_path(self):
        """
        the path to the payload directory relative to the bag's root
        """
        return self._payload

    @property
    def payload_path(self):
        """
        the absolute path to the payload directory
        """
        return os.path.join(self._rootdir, *self._payload.split('/'))

    @property
    def rel_metadata_path(self):
        """
        the path to the metadata directory relative to the bag's root; an
        empty string indicates the root itself.
        """
        return self._metadata

    @property
    def metadata_path(self):
        """
        the absolute path to the metadata directory
        """
        if not self._metadata:
            return self._rootdir
        return os.path.join(self._rootdir, *self._metadata.split('/'))

    def tag_path(self, filename):
        """
        return the root-relative path to a file with the given name inside
        the metadata directory.
        """
        if not self._metadata:
            return filename
        return self._metadata + '/' + filename

    def path_for(self, relpath):
        """
        return a Path instance for the given root-relative path
        """
        return self._root.relpath(relpath)

    def has_payload_dir(self):
        return self.fs.isdir(self._payload)

    def ensure_payload_dir(self):
        """
        raise a LayoutError if the payload directory does not exist
        """
        if not self.has_payload_dir():
            raise LayoutError("Payload directory does not exist: " +
                              str(self.path_for(self._payload)))

    def ensure_metadata_dir(self):
        """
        create the metadata directory if it does not exist yet.
        """
        if self._metadata and not self.fs.isdir(self._metadata):
            LOGGER.info("Creating metadata directory, %s", self.metadata_path)
            self.fs.makedirs(self._metadata, recreate=True)

    def isfile(self, relpath):
        return self.fs.isfile(relpath)

    def isdir(self, relpath):
        return self.fs.isdir(relpath)

    def is_regular_file(self, relpath):
        """
        return True if the given root-relative path resolves to a regular file
        (following symbolic links).  Broken links, directories and special
        files return False.
        """
        try:
            info = self.fs.getinfo(relpath, namespaces=['details'])
        except ResourceNotFound:
            return False
        return info.type == ResourceType.file

    def getsize(self, relpath):
        """
        return the size in bytes of the file with the given root-relative path
        """
        try:
            return self.fs.getsize(relpath)
        except FSError as ex:
            raise BagIOError(str(self.path_for(relpath)), cause=ex)

    def open_bin(self, relpath, mode='r'):
        """
        open the file with the given root-relative path in binary mode
        :raises BagIOError:  if the file cannot be opened
        """
        path = self.path_for(relpath)
        try:
            return open_bin_file(path, mode)
        except (FSError, OSError) as ex:
            raise BagIOError(str(path), cause=ex)

    def open_text(self, relpath, mode='r', encoding='utf-8'):
        """
        open the file with the given root-relative path in text mode.
        Line endings are left untranslated.
        :raises BagIOError:  if the file cannot be opened
        """
        path = self.path_for(relpath)
        try:
            return open_text_file(path, mode, encoding)
        except (FSError, OSError) as ex:
            raise BagIOError(str(path), cause=ex)

    def walk_files(self, start='', prune=None):
        """
        iterate through the regular files found below a directory, returning
        their paths relative to the bag's root directory in sorted order.
        Symbolic links to directories are not followed.

        :param str start:  the directory to start from, relative to the root
                           ('' for the root itself)
        :param str prune:  a root-relative path of a directory that should not
                           be descended into
        """
        out = []
        todo = [start]
        while todo:
            base = todo.pop()
            try:
                entries = list(self.fs.scandir(base or '/',
                                               namespaces=['link']))
            except FSError as ex:
                raise BagIOError(str(self.path_for(base)), cause=ex)

            for info in entries:
                path = base + '/' + info.name if base else info.name
                if info.is_dir:
                    if info.is_link:
                        LOGGER.debug("Not following linked directory, %s",
                                     path)
                    elif path != prune:
                        todo.append(path)
                elif self.is_regular_file(path):
                    out.append(path)
                else:
                    LOGGER.debug("Skipping non-regular file, %s", path)

        out.sort()
        return out

    def payload_files(self):
        """
        return the sorted list of payload files, relative to the bag's root.
        If the metadata directory is located below the payload directory, it
        is excluded.
        :raises LayoutError:  if the payload directory does not exist
        """
        self.ensure_payload_dir()
        prune = None
        if is_nested_under(self._metadata, self._payload):
            prune = self._metadata
        return self.walk_files(self._payload, prune)

    def tag_files(self):
        """
        return the sorted list of the tag (i.e. non-payload) files found under
        the metadata directory, relative to the bag's root.  If the payload
        directory is located below the metadata directory, it is excluded.
        :raises LayoutError:  if the metadata directory does not exist
        """
        if self._metadata and not self.fs.isdir(self._metadata):
            raise LayoutError("Metadata directory does not exist: " +
                              self.metadata_path)
        prune = None
        if is_nested_under(self._payload, self._metadata):
            prune = self._payload
        return self.walk_files(self._metadata, prune)

    def partition(self):
        """
        return a 2-tuple containing the list of payload files and the list of
        tag files.
        """
        return (self.payload_files(), self.tag_files())

    def close(self):
        self.fs.close()

    def __str__(self):
        return self._rootdir
