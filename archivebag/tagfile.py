"""
This module reads and writes the bag's tag files:  the bagit.txt
declaration and the bag-info.txt metadata.

bag-info.txt holds a sequence of "label: value" fields intended for human
reading and editing.  Labels may repeat and the order of the fields is
significant, so the fields are kept as an ordered list (a BagInfo) rather
than a dictionary, and are never sorted.  A value may be continued on
following lines that are indented with whitespace; such a value is kept
verbatim, including its line breaks and indentation, so that it is written
back the way it was read.
"""
import re, logging, warnings
from collections import namedtuple

from .constants import BAGIT_VERSION, TAG_FILE_ENCODING
from .exceptions import ParseError

LOGGER = logging.getLogger(__name__)

BagInfoField = namedtuple("BagInfoField", "label value")

class BagInfoWarning(UserWarning):
    """
    a warning about bag-info content that is written even though it does not
    conform to the BagIt format.
    """
    pass

# a label:  a run of non-colon, non-whitespace characters at the start of a
# line followed by a colon, optionally padded with spaces or tabs
_label_re = re.compile(r'^([^:\s]+)[ \t]*:[ \t]*', re.M)

# the start of the next line that does not begin with whitespace
_nextline_re = re.compile(r'^\S', re.M)

_version_re = re.compile(r'^BagIt-Version: ([0-9.]+)$', re.M)
_encoding_re = re.compile(r'^Tag-File-Character-Encoding: (\S+)', re.M)

def iter_fields(text, source=None):
    """
    scan through the given bag-info text and iterate through its fields as
    BagInfoField instances, in the order they appear.

    :param str text:    the content of a bag-info.txt file
    :param str source:  a name for the text's origin to include in log
                        messages
    """
    pos = 0
    while True:
        m = _label_re.search(text, pos)
        if not m:
            break

        skipped = text[pos:m.start()].strip()
        if skipped:
            LOGGER.warning("%s: ignoring text that is not part of a "
                           "label-value pair: %s", source or "bag-info",
                           skipped)

        label = m.group(1)
        start = m.end()

        # the value runs until the next unindented line; the value needs
        # at least one character, so the search starts past the label's line
        # end
        nxt = _nextline_re.search(text, start + 1)
        end = nxt.start() if nxt else len(text)

        yield BagInfoField(label, text[start:end].rstrip("\r\n"))
        pos = end

def parse_bag_info(text, source=None):
    """
    parse the given bag-info text into a BagInfo instance
    """
    return BagInfo(iter_fields(text, source))

def format_field(label, value):
    """
    format a single bag-info field as a line of text (including the line
    terminator).  A label containing a colon triggers a BagInfoWarning, but
    the line is still returned.
    """
    if ':' in label:
        msg = "bag-info label should not contain a colon: {0}".format(label)
        LOGGER.warning(msg)
        warnings.warn(msg, BagInfoWarning, stacklevel=3)
    return "{0}: {1}\n".format(label, value)

def format_bag_info(fields):
    """
    serialize a sequence of (label, value) pairs into bag-info text, one
    "label: value" line per field in the given order.
    """
    return "".join([format_field(label, value) for label, value in fields])

# a line break that is not followed by indentation would start a new field
_bad_value_re = re.compile(r'[\r\n](?=\S)')

def _check_value(label, value):
    if _bad_value_re.search(str(value)):
        raise ValueError("bag-info value for {0} has an unindented line: {1!r}"
                         .format(label, value))

def _check_label(label):
    if not label:
        raise ValueError("bag-info label must not be empty")
    if ':' in label:
        raise ValueError("bag-info label should not contain a colon: " +
                         label)

class BagInfo(object):
    """
    the ordered sequence of metadata fields found in a bag's bag-info.txt
    file.  Labels may repeat.
    """

    def __init__(self, fields=None):
        """
        :param fields:  the initial fields, given as a sequence of
                        (label, value) pairs or a mapping
        """
        self._fields = []
        if fields:
            if hasattr(fields, 'items'):
                fields = fields.items()
            for label, value in fields:
                self._fields.append(BagInfoField(label, value))

    @property
    def fields(self):
        """
        the fields as a list of BagInfoField instances (a copy)
        """
        return list(self._fields)

    def labels(self):
        """
        return the distinct labels in order of their first appearance
        """
        out = []
        for f in self._fields:
            if f.label not in out:
                out.append(f.label)
        return out

    def get(self, label, default=None):
        """
        return the value of the first field with the given label, or
        default if there is no such field.
        """
        for f in self._fields:
            if f.label == label:
                return f.value
        return default

    def get_all(self, label):
        """
        return the values of all the fields with the given label in order
        """
        return [f.value for f in self._fields if f.label == label]

    def add(self, label, value):
        """
        append a new field, regardless of whether the label already exists
        """
        _check_label(label)
        _check_value(label, value)
        self._fields.append(BagInfoField(label, value))

    def replace_first(self, label, value):
        """
        replace the value of the first field with the given label, keeping
        its position.
        :return:  the index of the replaced field or None if no field had
                  that label.
        """
        _check_label(label)
        _check_value(label, value)
        for i, f in enumerate(self._fields):
            if f.label == label:
                self._fields[i] = BagInfoField(label, value)
                return i
        return None

    def add_or_replace(self, label, value):
        """
        set the value of the first field with the given label in place if
        one exists; otherwise, append a new field.
        :return:  the index of the field that was set
        """
        i = self.replace_first(label, value)
        if i is None:
            self._fields.append(BagInfoField(label, value))
            i = len(self._fields) - 1
        return i

    def remove(self, label):
        """
        remove all fields with the given label
        :return:  the number of fields removed
        """
        before = len(self._fields)
        self._fields = [f for f in self._fields if f.label != label]
        return before - len(self._fields)

    def format(self):
        """
        serialize these fields into bag-info.txt content
        """
        return format_bag_info(self._fields)

    def __contains__(self, label):
        return any(f.label == label for f in self._fields)

    def __iter__(self):
        return iter(self._fields)

    def __len__(self):
        return len(self._fields)

    def __eq__(self, other):
        if isinstance(other, BagInfo):
            other = other._fields
        return self._fields == list(other)

    def __ne__(self, other):
        return not (self == other)

    def __repr__(self):
        return "BagInfo({0!r})".format(self._fields)

def parse_bagit_txt(text, source=None):
    """
    parse the content of a bagit.txt file, returning a 2-tuple of the
    declared version and tag file encoding.  The encoding will be None if
    it is not declared.
    :raises ParseError:  if the BagIt-Version declaration is missing or
                         malformed
    """
    # bagit.txt may end its lines with LF, CR or CRLF
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    m = _version_re.search(text)
    if not m:
        raise ParseError("Missing or malformed BagIt-Version declaration",
                         source)
    version = m.group(1)
    m = _encoding_re.search(text)
    encoding = m.group(1) if m else None
    return (version, encoding)

def format_bagit_txt(version=BAGIT_VERSION, encoding=TAG_FILE_ENCODING):
    """
    return the content of a bagit.txt file declaring the given version and
    tag encoding
    """
    return "BagIt-Version: {0}\nTag-File-Character-Encoding: {1}\n".format(
        version, encoding)
