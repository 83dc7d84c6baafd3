"""
an implementation of the BagIt packaging format (RFC 8493) focused on bag 
integrity.

A bag is a directory holding a payload of files to be preserved (under 
its data subdirectory) together with tag files describing it:  bagit.txt, 
bag-info.txt, and manifests listing the digest of every payload file 
(manifest-<alg>.txt) and of every tag file (tagmanifest-<alg>.txt).  

The Bag class represents a bag on local disk.  Use open_bag() to open an 
existing bag and create_bag() to turn a directory into one.  A bag's 
integrity is checked with its verify() method, which recomputes the digests
listed in the manifests and reconciles the manifests with the files present.
"""
from .constants import BAGIT_VERSION, DEFAULT_ALGORITHMS, Version
from .exceptions import (BagError, LayoutError, BagIOError, ParseError,
                         PathDerivationError, UnsupportedVersionError,
                         BagValidationError, FixityMismatchError,
                         MissingFileError, UnexpectedFileError)
from .algorithms import ChecksumAlgorithm, HashlibAlgorithm, AlgorithmRegistry
from .tagfile import BagInfo, BagInfoField, BagInfoWarning
from .manifest import ManifestEntry
from .access.bag import (Bag, open_bag, create_bag, make_bag, verify_bag,
                         store_bag)
from .validate import VerificationEngine, VerificationReport

__version__ = "0.1"
