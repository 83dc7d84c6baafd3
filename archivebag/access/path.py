"""
This module provides a path abstraction that points into a filesystem 
accessed via the fs (pyfilesystem2) package, allowing bag files to be 
addressed relative to the bag's root while still being displayed in full
in messages.
"""

class Path(object):
    """
    a pointer to a file or directory within a specific FS instance, such as
    a file within a bag opened as an OSFS
    """
    def __init__(self, filesys, path, prefix=None):
        """
        :param FS filesys:  the filesystem where the path is located
        :param str path:    the path within the filesystem; for a bag, this
                            is relative to the bag's root directory
        :param str prefix:  the text shown in place of the filesystem when
                            the path is displayed in messages (e.g. the bag
                            root's absolute path followed by "/")
        """
        self.fs = filesys
        self.path = str(path)
        if prefix is None:
            prefix = repr(filesys) + ":"
        self._pfx = prefix

    def relpath(self, relpath):
        """
        return a Path instance that represents another path relative to
        this one.  This assumes that the current Path instance points to
        a directory; the relpath string then refers to a file or directory
        relative to it.  Note that relpath need not point to an existing 
        object within the filesystem.
        """
        if not relpath:
            return Path(self.fs, self.path, self._pfx)

        path = ""
        if self.path:
            path += self.path+'/'
        path += relpath.lstrip('/')
        
        return Path(self.fs, path, self._pfx)

    def exists(self):
        """
        return true if the file or directory pointed to exists in the filesystem
        """
        return self.fs.exists(self.path)

    def isfile(self):
        """
        return true if the path points to a file that exists in the filesystem
        """
        return self.fs.isfile(self.path)

    def isdir(self):
        """
        return true if the path points to a directory that exists in the filesystem
        """
        return self.fs.isdir(self.path)

    def __str__(self):
        return "{0}{1}".format(self._pfx, self.path)

    def __repr__(self):
        return "{0}:{1}".format(repr(self.fs), self.path)

def open_text_file(path, mode='r', encoding='utf-8', errors='strict',
                   buffering=-1):
    """
    return a file-like object for the text file located at the given path.
    Lines are neither translated on reading nor on writing.  

    :param path:  the location of the file
    :type path:   Path or str
    """
    if isinstance(path, Path):
        return path.fs.open(path.path, mode, buffering, encoding, errors,
                            newline='')
    return open(path, mode, buffering=buffering, encoding=encoding,
                errors=errors, newline='')

def open_bin_file(path, mode='r', buffering=-1):
    """
    return a file-like object for the binary file located at the given path.
    """
    if isinstance(path, Path):
        return path.fs.openbin(path.path, mode, buffering)
    if 'b' not in mode:
        mode += 'b'
    return open(path, mode, buffering=buffering)
