"""
exceptions that can be raised while reading, writing or verifying a bag.

Structural errors (layout, parse, unsupported version, missing or 
unexpected files) always abort the current operation.  Fixity mismatches 
are the only failures that may be collected before being raised.
"""

class BagError(Exception):
    """
    a general exception while working with a bag
    """
    def __init__(self, message, details=None):
        """
        :param str message:   the exception's message
        :param list details:  a list of strings giving further details about
                              the error (e.g. one per affected file)
        """
        super(BagError, self).__init__(message)
        self.message = message
        self.details = list(details or [])

    def __str__(self):
        if not self.details:
            return self.message
        return "{0}:\n  {1}".format(self.message, "\n  ".join(self.details))

class LayoutError(BagError):
    """
    an exception indicating that a required directory or file of the bag's
    layout (its root, its payload directory, its primary manifest) is absent.
    """
    pass

class BagIOError(BagError, IOError):
    """
    an exception indicating that a file in the bag could not be read or
    written.
    """
    def __init__(self, path, message=None, cause=None):
        """
        :param str path:     the path to the unreadable/unwritable file
        :param str message:  the exception's message, overriding the default
                             (generated from the path and cause)
        :param Exception cause:  the underlying I/O exception
        """
        self.path = path
        self.cause = cause
        if not message:
            message = "Unable to access bag file: {0}".format(path)
            if cause:
                message += " ({0})".format(str(cause))
        super(BagIOError, self).__init__(message)

class ParseError(BagError):
    """
    an exception indicating that a tag file or manifest could not be 
    interpreted.
    """
    def __init__(self, message, path=None, details=None):
        self.path = path
        super(ParseError, self).__init__(message, details)

class PathDerivationError(BagError):
    """
    an exception indicating that the checksum algorithm name could not be 
    unambiguously derived from a manifest's filename.  This points to an 
    inconsistency in the layout code rather than to bad bag data.
    """
    def __init__(self, path, message=None):
        self.path = path
        if not message:
            message = "Unable to determine the checksum algorithm from " + \
                      "manifest filename: {0}".format(path)
        super(PathDerivationError, self).__init__(message)

class UnsupportedVersionError(BagError):
    """
    an exception indicating that the bag declares a BagIt version that is 
    not supported for verification.
    """
    def __init__(self, version, message=None):
        self.version = version
        if not message:
            message = "Bag Version {0} is unsupported".format(version)
        super(UnsupportedVersionError, self).__init__(message)

class BagValidationError(BagError):
    """
    an exception indicating that a bag failed verification.  The full 
    results are available as a VerificationReport via the report attribute.
    """
    def __init__(self, message, details=None, report=None):
        self.report = report
        super(BagValidationError, self).__init__(message, details)

class FixityMismatchError(BagValidationError):
    """
    an exception indicating that the calculated digest of one or more files
    does not match the digest recorded in a manifest.
    """
    pass

class MissingFileError(BagValidationError):
    """
    an exception indicating that files listed in a manifest are not present
    in the bag.
    """
    def __init__(self, paths, message=None, details=None, report=None):
        """
        :param list paths:   the paths to the missing files, relative to the 
                             bag's root directory.
        :param str message:  the exception's message, overriding the default
                             (generated from the paths)
        """
        self.paths = list(paths)
        if not message:
            message = "Missing file"
            if len(self.paths) > 1:
                message = "{0} missing files".format(len(self.paths))
            else:
                message += ": " + self.paths[0]
        super(MissingFileError, self).__init__(message, details, report)

class UnexpectedFileError(BagValidationError):
    """
    an exception indicating that a file was found in the bag that is not 
    listed in a manifest that should cover it.
    """
    def __init__(self, path, algorithm, manifest, message=None, report=None):
        """
        :param str path:       the path to the unlisted file, relative to the 
                               bag's root directory
        :param str algorithm:  the checksum algorithm of the manifest 
        :param str manifest:   the name of the manifest missing the entry
        """
        self.path = path
        self.algorithm = algorithm
        self.manifest = manifest
        if not message:
            message = "File found which is not in {0}: {1}".format(manifest,
                                                                   path)
        super(UnexpectedFileError, self).__init__(message, report=report)
