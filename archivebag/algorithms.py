"""
This module provides the checksum algorithms used to compute and verify
the fixity of bag files.

A ChecksumAlgorithm computes the hex digest of a file's contents and knows
its own name, which is used to name the manifests it produces (e.g.
"manifest-md5.txt").  Each bag carries an AlgorithmRegistry holding the
algorithms available to it; algorithms can be registered by name (for
the ones provided by hashlib) or as ChecksumAlgorithm instances (for custom
ones).
"""
import hashlib, logging
from abc import ABCMeta, abstractmethod
from collections import OrderedDict

from .constants import HASH_BLOCK_SIZE, DEFAULT_ALGORITHMS

LOGGER = logging.getLogger(__name__)

class ChecksumAlgorithm(metaclass=ABCMeta):
    """
    an interface for computing the digest of a file with a particular
    algorithm.
    """

    @property
    @abstractmethod
    def name(self):
        """
        the algorithm's name as it appears in manifest filenames
        """
        raise NotImplementedError()

    @abstractmethod
    def new(self):
        """
        return a new hash object, providing update() and hexdigest() methods
        """
        raise NotImplementedError()

    def digest(self, fileobj):
        """
        return the hex digest of the content readable from the given open
        binary file object.
        """
        hasher = self.new()
        while True:
            block = fileobj.read(HASH_BLOCK_SIZE)
            if not block:
                break
            hasher.update(block)
        return hasher.hexdigest()

    def digest_bytes(self, data):
        hasher = self.new()
        hasher.update(data)
        return hasher.hexdigest()

    def __repr__(self):
        return "<{0} {1}>".format(self.__class__.__name__, self.name)

class HashlibAlgorithm(ChecksumAlgorithm):
    """
    a checksum algorithm implemented by the hashlib module
    """

    def __init__(self, name, hashname=None):
        """
        :param str name:      the name of the algorithm as used in manifest
                              filenames
        :param str hashname:  the name of the algorithm as known to hashlib;
                              if not provided, it is assumed to be the same
                              as name.
        :raises ValueError:  if hashlib does not provide the algorithm
        """
        if not hashname:
            hashname = name
        try:
            hashlib.new(hashname)
        except ValueError:
            raise ValueError("Unsupported checksum algorithm: " + hashname)
        self._name = name
        self._hashname = hashname

    @property
    def name(self):
        return self._name

    def new(self):
        return hashlib.new(self._hashname)

# algorithms that can be registered by name
KNOWN_ALGORITHMS = OrderedDict([
    ("md5",    lambda: HashlibAlgorithm("md5")),
    ("sha1",   lambda: HashlibAlgorithm("sha1")),
    ("sha224", lambda: HashlibAlgorithm("sha224")),
    ("sha256", lambda: HashlibAlgorithm("sha256")),
    ("sha384", lambda: HashlibAlgorithm("sha384")),
    ("sha512", lambda: HashlibAlgorithm("sha512")),
])

def get_algorithm(name):
    """
    return a ChecksumAlgorithm instance for the algorithm with the given name.
    Names not among the KNOWN_ALGORITHMS are looked up in hashlib.
    :raises ValueError:  if no implementation is available for the name
    """
    name = name.lower()
    if name in KNOWN_ALGORITHMS:
        return KNOWN_ALGORITHMS[name]()
    return HashlibAlgorithm(name)

class AlgorithmRegistry(object):
    """
    an ordered collection of the checksum algorithms available for computing
    and verifying a bag's manifests, keyed by name.
    """

    def __init__(self, algorithms=DEFAULT_ALGORITHMS):
        """
        create the registry, registering the given algorithms
        :param algorithms:  the algorithms to register initially, either as
                            names or ChecksumAlgorithm instances
        """
        self._algs = OrderedDict()
        self.register(*(algorithms or []))

    def register(self, *algorithms):
        """
        register one or more algorithms, given either as a name or as a
        ChecksumAlgorithm instance.  Registering an algorithm with a name
        that is already registered has no effect.

        :return: the number of algorithms that were newly registered
        :raises ValueError:  if a name does not refer to an available algorithm
        """
        added = 0
        for alg in algorithms:
            name = alg.lower() if isinstance(alg, str) else alg.name
            if name in self._algs:
                continue
            if isinstance(alg, str):
                alg = get_algorithm(alg)
            self._algs[name] = alg
            LOGGER.debug("Registered checksum algorithm, %s", name)
            added += 1
        return added

    def get(self, name, default=None):
        """
        return the registered algorithm with the given name or default if it
        is not registered.
        """
        return self._algs.get(name, default)

    def names(self):
        """
        return the names of the registered algorithms in registration order
        """
        return list(self._algs.keys())

    def __getitem__(self, name):
        return self._algs[name]

    def __contains__(self, name):
        return name in self._algs

    def __iter__(self):
        return iter(self._algs.values())

    def __len__(self):
        return len(self._algs)
