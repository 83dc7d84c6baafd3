"""
This module reads and writes manifest and tag-manifest files.

A manifest, named "manifest-<algorithm>.txt" (or "tagmanifest-<algorithm>.txt"
for a tag-manifest), lists one file per line as a hex digest followed by
whitespace and the file's path relative to the bag's root directory.  Within
the paths, the characters LF, CR, and % are percent-encoded.
"""
import re, logging
from collections import OrderedDict, namedtuple

from .exceptions import ParseError, PathDerivationError

LOGGER = logging.getLogger(__name__)

MANIFEST = "manifest"
TAGMANIFEST = "tagmanifest"

ManifestEntry = namedtuple("ManifestEntry", "algorithm path digest")

_manifest_name_re = re.compile(r'^(?:tag)?manifest-([^/\\]+)\.txt$')
_tagmanifest_name_re = re.compile(r'^tagmanifest-[^/\\]+\.txt$')

def manifest_filename(algorithm, prefix=MANIFEST):
    """
    return the name of the manifest file for the given algorithm
    :param str prefix:  either "manifest" or "tagmanifest"
    """
    return "{0}-{1}.txt".format(prefix, algorithm)

def is_manifest_name(filename, prefix=MANIFEST):
    """
    return True if the given file name (without a directory) is that of a
    manifest of the given kind
    """
    if prefix == TAGMANIFEST:
        return bool(_tagmanifest_name_re.match(filename))
    return filename.startswith(prefix+'-') and \
           bool(_manifest_name_re.match(filename))

def is_tagmanifest_path(path):
    """
    return True if the given root-relative path points to a tag-manifest
    file
    """
    return is_manifest_name(path.rsplit('/', 1)[-1], TAGMANIFEST)

def algorithm_from_filename(filename):
    """
    extract the name of the checksum algorithm from the path to a manifest
    or tag-manifest file.

    :param str filename:  the path to the manifest file; any leading
                          directories are ignored.
    :raises PathDerivationError:  if the name does not unambiguously identify
                          an algorithm
    """
    base = filename.replace('\\', '/').rsplit('/', 1)[-1]
    m = _manifest_name_re.match(base)
    if not m:
        raise PathDerivationError(filename)
    return m.group(1)

def encode_path(path):
    """
    percent-encode the characters in a file path that cannot appear
    literally in a manifest line
    """
    return path.replace("%", "%25").replace("\n", "%0A").replace("\r", "%0D")

def decode_path(path):
    """
    reverse the percent-encoding applied by encode_path()
    """
    return path.replace("%0D", "\r").replace("%0d", "\r") \
               .replace("%0A", "\n").replace("%0a", "\n") \
               .replace("%25", "%")

def parse_manifest(lines, algorithm, source=None):
    """
    parse the lines of a manifest file, returning an OrderedDict mapping
    each root-relative file path to its digest.  Blank lines and lines that
    do not split into a digest and a path are skipped.

    :param lines:         an iterable of the lines in the manifest
    :param str algorithm: the manifest's checksum algorithm
    :param str source:    a name for the manifest to include in messages
    :raises ParseError:   if a path is listed more than once with different
                          digests
    """
    if not source:
        source = manifest_filename(algorithm)
    out = OrderedDict()
    for lineno, line in enumerate(lines, 1):
        line = line.rstrip("\r\n")
        if not line.strip():
            continue

        parts = line.split(None, 1)
        if len(parts) != 2:
            LOGGER.warning("%s: skipping invalid manifest line %d: %s",
                           source, lineno, line)
            continue
        digest, path = parts
        path = decode_path(path)

        if path in out:
            if out[path].lower() != digest.lower():
                raise ParseError("{0} lists {1} multiple times with "
                                 "conflicting digests".format(source, path),
                                 source)
            LOGGER.warning("%s lists %s multiple times with the same digest",
                           source, path)
            continue

        out[path] = digest
    return out

def iter_entries(tables):
    """
    iterate through the manifest data as ManifestEntry tuples

    :param dict tables:  a mapping of algorithm names to mappings of
                         file paths to digests, as returned by
                         parse_manifest().
    """
    for alg, table in tables.items():
        for path, digest in table.items():
            yield ManifestEntry(alg, path, digest)

def format_manifest_line(digest, path):
    """
    format a manifest line (including the line terminator) for a file
    """
    return "{0}  {1}\n".format(digest, encode_path(path))

def write_manifest(fileobj, entries):
    """
    write manifest lines to an open text file.

    :param fileobj:   the file object to write to
    :param entries:   an iterable of (path, digest) pairs
    :return:  the number of lines written
    """
    count = 0
    for path, digest in entries:
        fileobj.write(format_manifest_line(digest, path))
        count += 1
    return count
