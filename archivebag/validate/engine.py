"""
This module provides the engine that verifies a bag:  it reconciles the
entries of the bag's manifests and tag-manifests with the files actually
present in the bag and recomputes their digests.

Verification is done separately for two scopes:  the payload scope checks
the payload files against the manifests and the tag scope checks the tag
files (excluding the tag-manifests themselves) against the tag-manifests.
In both, a file present in the bag but not listed in a manifest and a file
listed but not present are always fatal.  A digest mismatch is fatal
immediately unless the engine was asked to return all errors, in which
case all mismatches are collected before failing.
"""
import logging

from ..constants import MIN_SUPPORTED_VERSION, PAYLOAD_OXUM
from ..exceptions import (BagError, BagIOError, BagValidationError,
                          FixityMismatchError, MissingFileError,
                          UnexpectedFileError, UnsupportedVersionError,
                          LayoutError, ParseError)
from ..manifest import (MANIFEST, TAGMANIFEST, manifest_filename,
                        algorithm_from_filename, is_tagmanifest_path)
from .report import VerificationReport

LOGGER = logging.getLogger(__name__)

class VerificationEngine(object):
    """
    a class that verifies the integrity of a bag.
    """

    def __init__(self, bag, return_all_errors=False, logger=None):
        """
        :param Bag bag:   the bag to verify
        :param bool return_all_errors:  if False (default), the first digest
                          mismatch aborts verification; if True, all files are
                          checked before failing with the full set of
                          mismatches.
        :param Logger logger:  a logger to send messages to; if not provided,
                          this module's logger is used.
        """
        self.bag = bag
        self.return_all_errors = return_all_errors
        self.log = logger or LOGGER

    def _new_report(self):
        return VerificationReport(str(self.bag))

    def check_preconditions(self):
        """
        ensure that the bag can be verified:  its declared version must be
        supported, the manifest for its required fixity algorithm must be a
        regular file, and its payload directory must exist.

        :raises UnsupportedVersionError:  if the declared version is too old
        :raises LayoutError:  if the manifest or payload directory is missing
        """
        version = self.bag.version_info
        if version < MIN_SUPPORTED_VERSION:
            raise UnsupportedVersionError(self.bag.version)

        layout = self.bag.layout
        forced = self.bag.forced_fixity_algorithm
        manifest = layout.tag_path(manifest_filename(forced))
        found = [m for m in self.bag.manifest_files()
                   if algorithm_from_filename(m).lower() == forced]
        if not found:
            raise LayoutError("{0} is not a regular file for bagit {1}".format(
                str(layout.path_for(manifest)), self.bag.version))
        layout.ensure_payload_dir()

    def verify(self, report=None):
        """
        verify the bag's payload and then its tag files.

        :param VerificationReport report:  a report to add results to; if
                          not provided, a new one is created.
        :return VerificationReport:  the results of a successful verification
        :raises BagValidationError:  if the bag fails verification; the
                          exception's report attribute holds the results.
        """
        if report is None:
            report = self._new_report()
        self.check_preconditions()
        self.verify_payload(report)
        self.verify_tags(report)
        self.log.info(report.summary)
        return report

    def verify_payload(self, report=None):
        """
        verify the payload files against the payload manifests
        """
        return self._verify_scope(MANIFEST, self.bag.manifest_entries,
                                  self.bag.layout.payload_files(), report)

    def verify_tags(self, report=None):
        """
        verify the tag files, other than the tag-manifests, against the
        tag-manifests
        """
        files = [f for f in self.bag.layout.tag_files()
                   if not is_tagmanifest_path(f)]
        return self._verify_scope(TAGMANIFEST, self.bag.tagmanifest_entries,
                                  files, report)

    def is_valid(self):
        """
        return True if the bag passes verification, False otherwise
        """
        try:
            self.verify()
            return True
        except BagError as ex:
            self.log.info("%s: %s", str(self.bag), ex.message)
            return False

    def _digest(self, algorithm, path):
        layout = self.bag.layout
        fd = layout.open_bin(path)
        try:
            with fd:
                out = algorithm.digest(fd)
        except OSError as ex:
            raise BagIOError(str(layout.path_for(path)), cause=ex)
        self.log.debug("digest %s of %s: %s", algorithm.name, path, out)
        return out

    def _verify_scope(self, prefix, entries, files, report=None):
        if report is None:
            report = self._new_report()
        layout = self.bag.layout

        mismatches = []
        verified = []
        for alg, table in entries.items():
            manifest = layout.tag_path(manifest_filename(alg, prefix))
            algorithm = self.bag.registry.get(alg.lower())
            if algorithm is None:
                self.log.warning("%s: no implementation registered for %s; "
                                 "not verifying %d entries in %s",
                                 str(self.bag), alg, len(table), manifest)
                report.add_unverifiable(alg, manifest, len(table))
                continue

            self.log.info("Verifying files against %s", manifest)
            verified.append((alg, table, manifest))
            for path in files:
                if path not in table:
                    report.add_unexpected(path, alg, manifest)
                    self.log.error("File found which is not in %s: %s",
                                   manifest, path)
                    raise UnexpectedFileError(path, alg, manifest,
                                              report=report)

                actual = self._digest(algorithm, path)
                report.checked += 1
                expected = table[path]
                if actual.lower() != expected.lower():
                    mm = report.add_mismatch(path, alg, actual, expected,
                                             manifest)
                    self.log.warning("Invalid file: %s", str(mm))
                    if not self.return_all_errors:
                        raise FixityMismatchError(
                            "File {0} is invalid, digest ({1}) calculated={2},"
                            " but expected={3} in file '{4}'".format(
                                str(layout.path_for(path)), alg, actual,
                                expected, manifest),
                            report=report)
                    mismatches.append(mm)

        present = set(files)
        missing = []
        for alg, table, manifest in verified:
            for path in table:
                if path not in present:
                    report.add_missing(path, alg, manifest)
                    if path not in missing:
                        missing.append(path)

        if missing:
            details = ["Missing file '{0}' in bag '{1}' listed in {2}".format(
                           p, str(self.bag),
                           ", ".join([m for a, m in report.missing[p]]))
                       for p in missing]
            self.log.error("%s: %d file(s) listed in %s manifests are "
                           "missing", str(self.bag), len(missing), prefix)
            raise MissingFileError(missing, details=details, report=report)

        if mismatches:
            self.log.error("%s: %d invalid file(s)", str(self.bag),
                           len(mismatches))
            raise FixityMismatchError(
                "Bag verification for bagit {0} failed with {1} invalid "
                "file(s)".format(self.bag.version, len(mismatches)),
                details=[str(mm) for mm in mismatches], report=report)

        return report

    def verify_oxum(self):
        """
        compare the Payload-Oxum recorded in bag-info.txt with the number and
        total size of the payload files present.  This is a quick check of
        completeness that does not compute any digests.  A bag without a
        Payload-Oxum passes.

        :raises ParseError:  if the recorded Payload-Oxum is malformed
        :raises BagValidationError:  if the counts do not match
        """
        values = self.bag.info.get_all(PAYLOAD_OXUM)
        if not values:
            self.log.info("%s: no %s to check", str(self.bag), PAYLOAD_OXUM)
            return True
        if len(values) > 1:
            self.log.warning("%s: bag-info.txt defines multiple %s values; "
                             "using the first", str(self.bag), PAYLOAD_OXUM)

        parts = values[0].strip().split('.')
        if len(parts) != 2 or not parts[0].isdigit() or \
           not parts[1].isdigit():
            raise ParseError("Malformed {0} value: {1}".format(PAYLOAD_OXUM,
                                                               values[0]))
        octets, streams = int(parts[0]), int(parts[1])

        found_octets, found_streams = self.bag.calc_payload_oxum()
        if (octets, streams) != (found_octets, found_streams):
            raise BagValidationError(
                "{0} validation failed. Expected {1} files and {2} bytes but "
                "found {3} files and {4} bytes".format(
                    PAYLOAD_OXUM, streams, octets, found_streams,
                    found_octets))
        return True
