"""
Common data about the BagIt format as written and read by this package.
"""
BAGIT_VERSION = "1.0"
TAG_FILE_ENCODING = "UTF-8"

# bags declaring a version below this are not verified
MIN_SUPPORTED_VERSION = "0.96"

DEFAULT_PAYLOAD_DIR = "data"

LEGACY_FIXITY_ALGORITHM = "md5"
MODERN_FIXITY_ALGORITHM = "sha512"
DEFAULT_ALGORITHMS = (LEGACY_FIXITY_ALGORITHM, MODERN_FIXITY_ALGORITHM)

BAGIT_FILE = "bagit.txt"
BAG_INFO_FILE = "bag-info.txt"

SOFTWARE_AGENT = "archivebag (Python BagIt integrity engine)"

HASH_BLOCK_SIZE = 512 * 1024

BAGGING_DATE = "Bagging-Date"
SOFTWARE_AGENT_LABEL = "Bag-Software-Agent"
PAYLOAD_OXUM = "Payload-Oxum"
BAG_SIZE = "Bag-Size"

def _2int(sint):
    try:
        return int(sint)
    except ValueError:
        return -1

class Version(object):
    """
    a version class that can facilitate comparisons between BagIt version
    declarations.  The dotted fields are compared as integers, one at a
    time, since comparing the strings would rank "0.100" below "0.97"; a
    field that is not an integer counts as -1.  This is used to reject bags
    that are too old to verify and to choose the fixity algorithm whose
    manifest a bag must have (md5 before 1.0, sha512 from 1.0 on).
    """

    def __init__(self, vers):
        """
        convert a version string to a Version instance
        """
        if isinstance(vers, str):
            self._vs = vers
            self.fields = [_2int(v) for v  in self._vs.split('.')]
        elif isinstance(vers, tuple):
            self._vs = ".".join([str(v) for v in vers])
            self.fields = list(vers)
        else:
            raise TypeError("Input version is not str or tuple: " + str(vers))

    def __str__(self):
        return self._vs

    def __repr__(self):
        return "Version('{0}')".format(self._vs)

    def __eq__(self, other):
        if not isinstance(other, Version):
            other = Version(other)
        return self.fields == other.fields

    def __hash__(self):
        return hash(tuple(self.fields))

    def __lt__(self, other):
        if not isinstance(other, Version):
            other = Version(other)
        return self.fields < other.fields

    def __le__(self, other):
        if not isinstance(other, Version):
            other = Version(other)
        return self < other or self == other

    def __ge__(self, other):
        return not (self < other)
    def __gt__(self, other):
        return not self.__le__(other)
    def __ne__(self, other):
        return not (self == other)
