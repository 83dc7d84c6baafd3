"""
A subpackage for accessing a bag's contents.   

The :py:mod:`layout` module resolves where a bag's payload and tag files are
located; the :py:mod:`bag` module provides the Bag class and the functions
for opening and creating bags.  
"""
from .path import Path
from .layout import BagLayout
from .bag import Bag, open_bag, create_bag
