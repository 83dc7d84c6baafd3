"""
This module provides the container for the results of verifying a bag
"""
from collections import OrderedDict, namedtuple

class FixityMismatch(namedtuple("FixityMismatch",
                                "path algorithm actual expected manifest")):
    """
    a description of a file whose calculated digest does not match the one
    recorded in a manifest
    """
    __slots__ = ()

    def __str__(self):
        return "{0}: {1} digest calculated={2}, but expected={3} in {4}" \
               .format(self.path, self.algorithm, self.actual, self.expected,
                       self.manifest)

UnexpectedFile = namedtuple("UnexpectedFile", "path algorithm manifest")

class VerificationReport(object):
    """
    a container for collecting results from verifying a bag's manifests
    against the files actually present in the bag.

    It records:
      * mismatches:  files whose calculated digest does not match the one in
                     a manifest, as FixityMismatch tuples
      * missing:     files listed in a manifest but not found in the bag,
                     as a mapping of paths to (algorithm, manifest) pairs
      * unexpected:  files found in the bag but not listed in a manifest
      * unverifiable: manifests whose algorithm has no registered
                     implementation, as a mapping of algorithm names to
                     (manifest, number of entries) pairs.  These are not
                     failures.
    """

    def __init__(self, target):
        """
        initialize an empty set of results for a particular bag

        :param str  target:   a name indicating the bag that is the target
                              of these results
        """
        self.target = target
        self.mismatches = []
        self.missing = OrderedDict()
        self.unexpected = []
        self.unverifiable = OrderedDict()
        self.checked = 0

    def add_mismatch(self, path, algorithm, actual, expected, manifest):
        mm = FixityMismatch(path, algorithm, actual, expected, manifest)
        self.mismatches.append(mm)
        return mm

    def add_missing(self, path, algorithm, manifest):
        self.missing.setdefault(path, []).append((algorithm, manifest))

    def add_unexpected(self, path, algorithm, manifest):
        self.unexpected.append(UnexpectedFile(path, algorithm, manifest))

    def add_unverifiable(self, algorithm, manifest, count):
        self.unverifiable[algorithm] = (manifest, count)

    def mismatched_paths(self):
        """
        return the distinct paths of the files that failed a digest
        comparison, in the order they were found
        """
        out = []
        for mm in self.mismatches:
            if mm.path not in out:
                out.append(mm.path)
        return out

    def count_failed(self):
        """
        return the number of failures recorded:  mismatches, missing files
        and unexpected files.
        """
        return len(self.mismatches) + len(self.missing) + len(self.unexpected)

    def ok(self):
        """
        return True if no failures were recorded.
        """
        return self.count_failed() == 0

    def failure_descriptions(self):
        """
        return a list of one-line descriptions of each failure
        """
        out = ["Unexpected file not in {0}: {1}".format(u.manifest, u.path)
               for u in self.unexpected]
        for path, where in self.missing.items():
            out.append("Missing file '{0}' listed in {1}".format(
                path, ", ".join([m for a, m in where])))
        out.extend([str(mm) for mm in self.mismatches])
        return out

    @property
    def summary(self):
        """
        a one-line description of the verification results
        """
        if self.ok():
            out = "{0}: verified ({1} digests checked)".format(self.target,
                                                               self.checked)
        else:
            out = "{0}: verification failed with {1} error(s)".format(
                self.target, self.count_failed())
        if self.unverifiable:
            out += "; unverifiable algorithm(s): {0}".format(
                ", ".join(self.unverifiable.keys()))
        return out

    @property
    def description(self):
        """
        the summary followed by a line describing each failure
        """
        out = self.summary
        details = self.failure_descriptions()
        for alg, (manifest, count) in self.unverifiable.items():
            details.append("No implementation registered for {0}; {1} "
                           "entries in {2} were not checked".format(
                               alg, count, manifest))
        if details:
            out += "\n   " + "\n   ".join(details)
        return out

    def __str__(self):
        return self.summary

    def to_json_obj(self):
        """
        return an OrderedDict that can be encoded into a JSON object node
        which contains the data in this report.
        """
        return OrderedDict([
            ("target", self.target),
            ("ok", self.ok()),
            ("checked", self.checked),
            ("mismatches", [OrderedDict(mm._asdict())
                            for mm in self.mismatches]),
            ("missing", OrderedDict([
                (p, [OrderedDict([("algorithm", a), ("manifest", m)])
                     for a, m in w])
                for p, w in self.missing.items()])),
            ("unexpected", [OrderedDict(u._asdict())
                            for u in self.unexpected]),
            ("unverifiable", OrderedDict([
                (a, OrderedDict([("manifest", m), ("entries", c)]))
                for a, (m, c) in self.unverifiable.items()]))
        ])
