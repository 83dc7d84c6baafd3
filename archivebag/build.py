"""
This module writes a bag's tag files and manifests to disk.

The BagBuilder class writes, in order, bagit.txt, bag-info.txt (after
updating its standard fields), a manifest for each registered checksum
algorithm and finally a tag-manifest for each algorithm.  The tag-manifests
must come last so that they cover the manifests.

This module also provides relocate_payload(), which turns a plain directory
into the start of a bag by moving its contents into a payload subdirectory.
"""
import os, logging, time

from fs.errors import FSError

from .constants import (BAGIT_VERSION, TAG_FILE_ENCODING, SOFTWARE_AGENT,
                        DEFAULT_PAYLOAD_DIR, BAGIT_FILE, BAG_INFO_FILE,
                        BAGGING_DATE, SOFTWARE_AGENT_LABEL, PAYLOAD_OXUM,
                        BAG_SIZE)
from .exceptions import BagIOError, LayoutError
from .manifest import (MANIFEST, TAGMANIFEST, manifest_filename,
                       is_tagmanifest_path, write_manifest)
from .tagfile import format_bagit_txt

LOGGER = logging.getLogger(__name__)

_size_units = ["KB", "MB", "GB", "TB"]

def format_bag_size(octets):
    """
    format a byte count as a human-readable string using binary (1024-based)
    units, e.g. "8 B", "1.5 KB", "2.25 TB".
    """
    if octets < 1024:
        return "{0} B".format(octets)
    limit = 1024
    for unit in _size_units[:-1]:
        if octets < limit * 1024:
            return "{0:.1f} {1}".format(float(octets) / limit, unit)
        limit *= 1024
    return "{0:.2f} {1}".format(float(octets) / limit, _size_units[-1])

def calc_payload_oxum(layout):
    """
    return the payload's octet count and stream (file) count as a 2-tuple.

    :param BagLayout layout:  the layout of the bag to examine
    """
    octets = 0
    streams = 0
    for path in layout.payload_files():
        octets += layout.getsize(path)
        streams += 1
    return (octets, streams)

class BagBuilder(object):
    """
    a class that writes the tag files and manifests for a bag from its
    current payload and in-memory metadata.
    """

    def __init__(self, bag, software_agent=SOFTWARE_AGENT, logger=None):
        """
        :param Bag bag:  the bag to write
        :param str software_agent:  the value to record as the
                                    Bag-Software-Agent
        :param Logger logger:  a logger to send messages to
        """
        self.bag = bag
        self.software_agent = software_agent
        self.log = logger or LOGGER

    @property
    def layout(self):
        return self.bag.layout

    def _write_text(self, relpath, text):
        path = self.layout.path_for(relpath)
        self.log.info("Writing %s", str(path))
        fd = self.layout.open_text(relpath, 'w')
        try:
            with fd:
                fd.write(text)
        except (OSError, FSError) as ex:
            raise BagIOError(str(path), cause=ex)

    def write_bagit_txt(self, version=BAGIT_VERSION):
        """
        write the bagit.txt file declaring the BagIt version and tag file
        encoding
        """
        self._write_text(self.layout.tag_path(BAGIT_FILE),
                         format_bagit_txt(version, TAG_FILE_ENCODING))

    def update_info(self):
        """
        set the standard bag-info fields--Bagging-Date, Bag-Software-Agent,
        Payload-Oxum, and Bag-Size--in the bag's in-memory metadata.  An
        existing field is updated in place; otherwise, it is appended.
        """
        info = self.bag.info
        octets, streams = calc_payload_oxum(self.layout)
        info.add_or_replace(BAGGING_DATE, time.strftime("%Y-%m-%d",
                                                        time.gmtime()))
        info.add_or_replace(SOFTWARE_AGENT_LABEL, self.software_agent)
        info.add_or_replace(PAYLOAD_OXUM, "{0}.{1}".format(octets, streams))
        info.add_or_replace(BAG_SIZE, format_bag_size(octets))
        return info

    def write_bag_info(self):
        """
        write the bag's in-memory metadata to bag-info.txt, preserving the
        order of its fields
        """
        self._write_text(self.layout.tag_path(BAG_INFO_FILE),
                         self.bag.info.format())

    def _write_manifest(self, prefix, algorithm, files):
        layout = self.layout
        relpath = layout.tag_path(manifest_filename(algorithm.name, prefix))
        self.log.info("Writing %s", str(layout.path_for(relpath)))

        entries = []
        for f in files:
            fd = layout.open_bin(f)
            try:
                with fd:
                    entries.append((f, algorithm.digest(fd)))
            except OSError as ex:
                raise BagIOError(str(layout.path_for(f)), cause=ex)

        fd = layout.open_text(relpath, 'w')
        try:
            with fd:
                write_manifest(fd, entries)
        except (OSError, FSError) as ex:
            raise BagIOError(str(layout.path_for(relpath)), cause=ex)
        return relpath

    def write_manifests(self):
        """
        write a payload manifest for each of the bag's registered algorithms
        :return:  the root-relative paths of the manifests written
        """
        files = self.layout.payload_files()
        return [self._write_manifest(MANIFEST, alg, files)
                for alg in self.bag.registry]

    def write_tagmanifests(self):
        """
        write a tag-manifest for each of the bag's registered algorithms,
        covering every tag file except tag-manifests.  This must be called
        after the manifests are written.
        :return:  the root-relative paths of the tag-manifests written
        """
        files = [f for f in self.layout.tag_files()
                   if not is_tagmanifest_path(f)]
        return [self._write_manifest(TAGMANIFEST, alg, files)
                for alg in self.bag.registry]

    def store(self):
        """
        write all of the bag's tag files and manifests from scratch
        """
        self.layout.ensure_payload_dir()
        self.layout.ensure_metadata_dir()
        self.write_bagit_txt()
        self.update_info()
        self.write_bag_info()
        self.write_manifests()
        self.write_tagmanifests()

def _aside_name(bagdir):
    aside = bagdir + ".tmp"
    i = 0
    while os.path.lexists(aside):
        i += 1
        aside = "{0}.tmp{1}".format(bagdir, i)
    return aside

def relocate_payload(bagdir, payload_dir=DEFAULT_PAYLOAD_DIR, logger=None):
    """
    move the contents of a directory into a new payload subdirectory of it,
    unless that subdirectory already exists.

    This happens in two steps:  (1) the directory is renamed aside to a
    sibling name ending in ".tmp"; (2) an empty directory is created under
    the original name and the aside directory is renamed into it as the
    payload directory.  If step 2 fails, the new directory is removed and the
    aside directory is renamed back.  The operation is not atomic:  if the
    rollback itself fails, the original contents are left in the aside
    directory, which is named in the raised exception.

    :param str bagdir:       the directory to convert
    :param str payload_dir:  the name of the payload subdirectory
    :param Logger logger:    a logger to send messages to
    :return bool:  True if the contents were moved, False if the payload
                   directory already existed
    :raises LayoutError:  if bagdir does not exist
    :raises BagIOError:   if the move failed
    """
    log = logger or LOGGER
    bagdir = os.path.abspath(bagdir).rstrip(os.sep)
    if not os.path.isdir(bagdir):
        raise LayoutError("Source bag directory doesn't exist: " + bagdir)
    payload = os.path.join(bagdir, payload_dir)
    if os.path.isdir(payload):
        return False

    log.warning("No payload directory in %s; moving its contents into %s",
                bagdir, payload_dir)
    aside = _aside_name(bagdir)
    try:
        os.rename(bagdir, aside)
    except OSError as ex:
        raise BagIOError(bagdir, "Unable to move {0} aside to {1}: {2}"
                         .format(bagdir, aside, str(ex)), ex)

    try:
        os.mkdir(bagdir)
        os.rename(aside, payload)
    except OSError as ex:
        log.error("Failed to move %s into %s (%s); rolling back",
                  aside, payload, str(ex))
        try:
            if os.path.isdir(bagdir) and not os.listdir(bagdir):
                os.rmdir(bagdir)
            os.rename(aside, bagdir)
        except OSError as rex:
            log.critical("Unable to restore %s; its original contents "
                         "remain in %s", bagdir, aside)
            raise BagIOError(bagdir, "Failed to relocate payload ({0}), and "
                             "rollback failed ({1}); original contents are "
                             "in {2}".format(str(ex), str(rex), aside), ex)
        raise BagIOError(bagdir, "Failed to relocate payload into {0}: {1}"
                         .format(payload, str(ex)), ex)

    return True
