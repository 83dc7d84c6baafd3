"""
This module provides the Bag class, the in-memory representation of a bag
on local disk, along with the factory functions for opening an existing bag
and for creating a new one.

A Bag's derived information (its declared version, its bag-info metadata,
and its manifest entries) is read lazily on first access and then cached.
The metadata can be edited in memory before calling store(), which rewrites
all of the tag files and manifests from scratch.
"""
import os, logging
from collections import OrderedDict

from fs.errors import FSError

from ..constants import (DEFAULT_PAYLOAD_DIR, DEFAULT_ALGORITHMS, BAGIT_FILE,
                         BAG_INFO_FILE, LEGACY_FIXITY_ALGORITHM,
                         MODERN_FIXITY_ALGORITHM, Version)
from ..exceptions import LayoutError, BagIOError, ParseError
from ..algorithms import AlgorithmRegistry, get_algorithm
from ..manifest import (MANIFEST, TAGMANIFEST, algorithm_from_filename,
                        is_manifest_name, manifest_filename, parse_manifest)
from ..tagfile import BagInfo, parse_bag_info, parse_bagit_txt
from ..build import BagBuilder, calc_payload_oxum, format_bag_size, \
                    relocate_payload
from ..validate.engine import VerificationEngine
from .layout import BagLayout

LOGGER = logging.getLogger(__name__)

class Bag(object):
    """
    a bag located in a directory on local disk.
    """

    def __init__(self, bagdir, payload_dir=DEFAULT_PAYLOAD_DIR,
                 metadata_dir='', algorithms=None):
        """
        create a representation of the bag with the given root directory.
        The md5 and sha512 checksum algorithms are always registered.

        :param str bagdir:        the path to the bag's root directory
        :param str payload_dir:   the name of the payload subdirectory
        :param str metadata_dir:  the path to the metadata directory relative
                                  to the root ('' for the root itself)
        :param list algorithms:   additional checksum algorithms to register,
                                  given as names or ChecksumAlgorithm
                                  instances
        :raises LayoutError:  if the bag's root directory does not exist
        """
        self._layout = BagLayout(bagdir, payload_dir, metadata_dir)
        self._registry = AlgorithmRegistry(DEFAULT_ALGORITHMS)
        if algorithms:
            self._registry.register(*algorithms)
        self.reset()

    def reset(self):
        """
        discard all cached data read from the bag's tag files so that it is
        re-read on next access.  Unsaved changes to the metadata are lost.
        """
        self._version = None
        self._info = None
        self._manifest_entries = None
        self._tagmanifest_entries = None

    @property
    def layout(self):
        """
        the BagLayout describing where the bag's parts are located
        """
        return self._layout

    @property
    def path(self):
        """
        the absolute path to the bag's root directory
        """
        return self._layout.root_path

    @property
    def name(self):
        """
        the name of the bag's root directory (without any parent path)
        """
        return os.path.basename(self._layout.root_path)

    @property
    def payload_path(self):
        return self._layout.payload_path

    @property
    def metadata_path(self):
        return self._layout.metadata_path

    @property
    def registry(self):
        """
        the AlgorithmRegistry of checksum algorithms available for this bag
        """
        return self._registry

    @property
    def algorithms(self):
        """
        the names of the registered checksum algorithms, in registration order
        """
        return self._registry.names()

    def register_algorithm(self, *algorithms):
        """
        make additional checksum algorithms available to this bag.
        Re-registering an algorithm is a no-op.

        :return: the number of algorithms that were newly registered
        """
        return self._registry.register(*algorithms)

    def _read_tag_text(self, filename):
        relpath = self._layout.tag_path(filename)
        fd = self._layout.open_text(relpath, 'r', 'utf-8-sig')
        try:
            with fd:
                return fd.read()
        except UnicodeDecodeError as ex:
            raise ParseError("{0}: not UTF-8 encoded: {1}".format(
                str(self._layout.path_for(relpath)), str(ex)), relpath)
        except OSError as ex:
            raise BagIOError(str(self._layout.path_for(relpath)), cause=ex)

    @property
    def version(self):
        """
        the BagIt version declared in bagit.txt, as a string
        :raises BagIOError:  if bagit.txt cannot be read
        :raises ParseError:  if the version declaration is missing or malformed
        """
        if self._version is None:
            text = self._read_tag_text(BAGIT_FILE)
            self._version = parse_bagit_txt(text, BAGIT_FILE)[0]
        return self._version

    @property
    def version_info(self):
        """
        the declared BagIt version as a comparable Version instance
        """
        return Version(self.version)

    @property
    def forced_fixity_algorithm(self):
        """
        the name of the checksum algorithm whose manifest must be present for
        the bag to be verified:  sha512 for bags of version 1.0 or later,
        md5 for earlier ones.
        """
        if self.version_info >= "1.0":
            return MODERN_FIXITY_ALGORITHM
        return LEGACY_FIXITY_ALGORITHM

    @property
    def info(self):
        """
        the bag's metadata from bag-info.txt as a BagInfo instance.  If the
        bag has no bag-info.txt file, this is empty.
        """
        if self._info is None:
            if self._layout.isfile(self._layout.tag_path(BAG_INFO_FILE)):
                self._info = parse_bag_info(self._read_tag_text(BAG_INFO_FILE),
                                            BAG_INFO_FILE)
            else:
                self._info = BagInfo()
        return self._info

    @info.setter
    def info(self, fields):
        if not isinstance(fields, BagInfo):
            fields = BagInfo(fields)
        self._info = fields

    def info_by_label(self, label, default=None):
        """
        return the value of the first bag-info field with the given label
        """
        return self.info.get(label, default)

    def _find_manifests(self, prefix):
        layout = self._layout
        start = layout.rel_metadata_path
        found = []
        try:
            names = layout.fs.listdir(start or '/')
        except FSError as ex:
            raise BagIOError(str(layout.path_for(start)), cause=ex)
        for name in names:
            if is_manifest_name(name, prefix) and \
               layout.is_regular_file(layout.tag_path(name)):
                found.append(layout.tag_path(name))
        found.sort(key=algorithm_from_filename)
        return found

    def manifest_files(self):
        """
        return the root-relative paths to the bag's payload manifest files,
        sorted by algorithm name.
        """
        return self._find_manifests(MANIFEST)

    def tagmanifest_files(self):
        """
        return the root-relative paths to the bag's tag-manifest files,
        sorted by algorithm name.
        """
        return self._find_manifests(TAGMANIFEST)

    def _load_entries(self, manifests):
        entries = OrderedDict()
        for relpath in manifests:
            alg = algorithm_from_filename(relpath)
            fd = self._layout.open_text(relpath, 'r', 'utf-8-sig')
            try:
                with fd:
                    entries[alg] = parse_manifest(fd, alg, relpath)
            except UnicodeDecodeError as ex:
                raise ParseError("{0}: not UTF-8 encoded: {1}".format(
                    relpath, str(ex)), relpath)
            except OSError as ex:
                raise BagIOError(str(self._layout.path_for(relpath)), cause=ex)
        return entries

    @property
    def manifest_entries(self):
        """
        the payload manifest entries as an OrderedDict mapping each
        algorithm name to an OrderedDict of file paths to digests
        """
        if self._manifest_entries is None:
            self._manifest_entries = self._load_entries(self.manifest_files())
        return self._manifest_entries

    @property
    def tagmanifest_entries(self):
        """
        the tag-manifest entries as an OrderedDict mapping each algorithm name
        to an OrderedDict of file paths to digests
        """
        if self._tagmanifest_entries is None:
            self._tagmanifest_entries = \
                self._load_entries(self.tagmanifest_files())
        return self._tagmanifest_entries

    def payload_files(self):
        """
        return the sorted, root-relative paths of the payload files present
        """
        return self._layout.payload_files()

    def tag_files(self):
        """
        return the sorted, root-relative paths of the tag files present
        """
        return self._layout.tag_files()

    def calc_payload_oxum(self):
        """
        return the total size in bytes and the number of the payload files
        as a 2-tuple
        """
        return calc_payload_oxum(self._layout)

    def bag_size(self):
        """
        return the total size of the payload as a human-readable string
        """
        return format_bag_size(self.calc_payload_oxum()[0])

    def bag_checksum(self, algorithm=LEGACY_FIXITY_ALGORITHM):
        """
        return the digest of the payload manifest for the given algorithm,
        computed with that algorithm.  This serves as a fingerprint of the
        bag's payload.
        :raises LayoutError:  if the bag has no such manifest
        """
        relpath = self._layout.tag_path(manifest_filename(algorithm))
        if not self._layout.is_regular_file(relpath):
            raise LayoutError("No such manifest: " +
                              str(self._layout.path_for(relpath)))
        alg = self._registry.get(algorithm) or get_algorithm(algorithm)
        with self._layout.open_bin(relpath) as fd:
            return alg.digest(fd)

    def store(self, software_agent=None, logger=None):
        """
        write the bag's tag files and manifests:  bagit.txt, bag-info.txt
        (after updating its standard fields), a manifest for each registered
        algorithm and then a tag-manifest for each.
        """
        kw = {}
        if software_agent:
            kw['software_agent'] = software_agent
        BagBuilder(self, logger=logger, **kw).store()
        info = self._info
        self.reset()
        self._info = info

    def verify(self, return_all_errors=False, fast=False, logger=None):
        """
        verify the integrity of this bag.

        :param bool return_all_errors:  if True, check all files before
                                failing on digest mismatches; otherwise, fail
                                on the first one.
        :param bool fast:       if True, only compare the Payload-Oxum
                                against the payload without computing digests
        :return VerificationReport:  the results (when fast is False)
        :raises BagValidationError:  if the bag fails verification
        """
        engine = VerificationEngine(self, return_all_errors, logger)
        if fast:
            return engine.verify_oxum()
        return engine.verify()

    def is_valid(self, return_all_errors=False):
        """
        return True if this bag passes verification
        """
        return VerificationEngine(self, return_all_errors).is_valid()

    def close(self):
        self._layout.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __str__(self):
        return self._layout.root_path

    def __repr__(self):
        return "Bag('{0}')".format(self._layout.root_path)


def open_bag(bagdir, payload_dir=DEFAULT_PAYLOAD_DIR, metadata_dir='',
             algorithms=None):
    """
    open an existing bag on local disk.

    :param str bagdir:  the path to the bag's root directory
    :raises LayoutError:  if the root directory, its bagit.txt file, or its
                          payload directory does not exist
    """
    bag = Bag(bagdir, payload_dir, metadata_dir, algorithms)
    if not bag.layout.isfile(bag.layout.tag_path(BAGIT_FILE)):
        bag.close()
        raise LayoutError("Expected bagit.txt does not exist: " +
                          str(bag.layout.path_for(
                              bag.layout.tag_path(BAGIT_FILE))))
    try:
        bag.layout.ensure_payload_dir()
    except LayoutError:
        bag.close()
        raise
    return bag

def create_bag(bagdir, bag_info=None, algorithms=None,
               payload_dir=DEFAULT_PAYLOAD_DIR, metadata_dir='',
               software_agent=None, logger=None):
    """
    create a bag from a directory.  If the directory does not already have a
    payload subdirectory, its contents are first moved into one (see
    relocate_payload()); otherwise, it is assumed to be a bag already and
    its tag files and manifests are rewritten.

    :param str bagdir:    the path to the directory to turn into a bag
    :param bag_info:      initial bag-info fields, as a mapping or a
                          sequence of (label, value) pairs; if not provided,
                          any existing bag-info.txt is kept and updated.
    :param list algorithms:  additional checksum algorithms to register
    :return Bag:  the created bag
    """
    relocate_payload(bagdir, payload_dir, logger)
    bag = Bag(bagdir, payload_dir, metadata_dir, algorithms)
    if bag_info is not None:
        bag.info = bag_info
    try:
        bag.store(software_agent, logger)
    except Exception:
        bag.close()
        raise
    return bag

make_bag = create_bag

def verify_bag(bag, return_all_errors=False, logger=None):
    """
    verify a bag, given either as a Bag instance or a path to its root
    directory.

    :return VerificationReport:  the results of the successful verification
    :raises BagValidationError:  if the bag fails verification
    """
    if not isinstance(bag, Bag):
        with open_bag(bag) as opened:
            return opened.verify(return_all_errors, logger=logger)
    return bag.verify(return_all_errors, logger=logger)

def store_bag(bag, logger=None):
    """
    write out the tag files and manifests for the given bag
    """
    bag.store(logger=logger)
    return bag
