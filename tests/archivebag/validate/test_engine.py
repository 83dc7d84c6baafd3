# encoding: utf-8
import os, shutil, tempfile, logging
import unittest as test

from archivebag.access.bag import Bag, open_bag, create_bag
from archivebag.validate.engine import VerificationEngine
from archivebag.exceptions import (BagValidationError, FixityMismatchError,
                                   MissingFileError, UnexpectedFileError,
                                   UnsupportedVersionError, LayoutError,
                                   ParseError)
from tests.archivebag.mkdata import (mksrcdir, mkfiles, read_text, write_text,
                                     MD5_ABC)

logging.basicConfig(filename='test.log', level=logging.DEBUG)
logging.raiseExceptions = True

class TestVerificationEngine(test.TestCase):

    def setUp(self):
        self.tempdir = tempfile.mkdtemp(prefix="_test_engine.")
        self.bagdir = mksrcdir(self.tempdir, "samplebag")
        create_bag(self.bagdir).close()
        self.bags = []

    def tearDown(self):
        for bag in self.bags:
            bag.close()
        shutil.rmtree(self.tempdir, ignore_errors=True)

    def open(self):
        bag = open_bag(self.bagdir)
        self.bags.append(bag)
        return bag

    def path(self, relpath):
        return os.path.join(self.bagdir, *relpath.split('/'))

    def tamper(self, relpath="data/a.txt", content=b"abd"):
        with open(self.path(relpath), 'wb') as fd:
            fd.write(content)

    def test_valid(self):
        engine = VerificationEngine(self.open())
        report = engine.verify()
        self.assertTrue(report.ok())
        self.assertEqual(report.checked, 12)
        self.assertEqual(report.target, self.bagdir)
        self.assertTrue(engine.is_valid())

    def test_mismatch_fail_fast(self):
        self.tamper()
        engine = VerificationEngine(self.open())
        with self.assertRaises(FixityMismatchError) as cm:
            engine.verify()
        ex = cm.exception
        self.assertIn("data/a.txt is invalid, digest (md5) calculated=",
                      ex.message)
        self.assertIn("expected={0}".format(MD5_ABC), ex.message)
        self.assertEqual(len(ex.report.mismatches), 1)
        self.assertEqual(ex.report.checked, 1)
        self.assertFalse(engine.is_valid())

    def test_mismatch_collect_all(self):
        self.tamper()
        engine = VerificationEngine(self.open(), return_all_errors=True)
        with self.assertRaises(FixityMismatchError) as cm:
            engine.verify()
        ex = cm.exception
        self.assertIn("failed with 2 invalid file(s)", ex.message)
        self.assertEqual(len(ex.details), 2)
        self.assertEqual(ex.report.mismatched_paths(), ["data/a.txt"])
        self.assertEqual([m.algorithm for m in ex.report.mismatches],
                         ["md5", "sha512"])
        self.assertEqual(ex.report.checked, 4)

    def test_missing_file(self):
        os.remove(self.path("data/b.txt"))
        engine = VerificationEngine(self.open(), return_all_errors=True)
        with self.assertRaises(MissingFileError) as cm:
            engine.verify()
        ex = cm.exception
        self.assertEqual(ex.paths, ["data/b.txt"])
        self.assertEqual(ex.message, "Missing file: data/b.txt")
        self.assertEqual(ex.report.missing["data/b.txt"],
                         [("md5", "manifest-md5.txt"),
                          ("sha512", "manifest-sha512.txt")])

    def test_missing_wins_over_mismatch(self):
        self.tamper()
        os.remove(self.path("data/b.txt"))
        engine = VerificationEngine(self.open(), return_all_errors=True)
        with self.assertRaises(MissingFileError) as cm:
            engine.verify()
        self.assertEqual(len(cm.exception.report.mismatches), 2)

    def test_unexpected_file(self):
        mkfiles(self.bagdir, {"data/c.txt": "surprise"})
        for collect in (False, True):
            engine = VerificationEngine(self.open(), collect)
            with self.assertRaises(UnexpectedFileError) as cm:
                engine.verify()
            ex = cm.exception
            self.assertEqual(ex.path, "data/c.txt")
            self.assertEqual(ex.manifest, "manifest-md5.txt")
            self.assertEqual(ex.message, "File found which is not in "
                                         "manifest-md5.txt: data/c.txt")
            self.assertEqual(len(ex.report.unexpected), 1)

    def test_listed_but_absent(self):
        text = read_text(self.path("manifest-md5.txt"))
        write_text(self.path("manifest-md5.txt"),
                   text + "deadbeef  data/missing.txt\n")

        engine = VerificationEngine(self.open())
        with self.assertRaises(MissingFileError) as cm:
            engine.verify_payload()
        missing = cm.exception.report.missing
        self.assertEqual(list(missing.keys()), ["data/missing.txt"])
        self.assertEqual(missing["data/missing.txt"],
                         [("md5", "manifest-md5.txt")])

    def test_unverifiable_algorithm(self):
        write_text(self.path("manifest-foo.txt"),
                   "abc123  data/a.txt\ndef456  data/b.txt\n")
        bag = self.open()
        bag.store()

        report = VerificationEngine(bag).verify()
        self.assertTrue(report.ok())
        self.assertEqual(report.unverifiable["foo"], ("manifest-foo.txt", 2))
        self.assertIn("unverifiable algorithm(s): foo", report.summary)
        self.assertIn("manifest-foo.txt",
                      bag.tagmanifest_entries["md5"])

    def test_tampered_tag_file(self):
        text = read_text(self.path("bag-info.txt"))
        write_text(self.path("bag-info.txt"), text + "Contact-Name: Gurn\n")
        with self.assertRaises(FixityMismatchError) as cm:
            VerificationEngine(self.open()).verify()
        mm = cm.exception.report.mismatches[0]
        self.assertEqual(mm.path, "bag-info.txt")
        self.assertEqual(mm.manifest, "tagmanifest-md5.txt")

    def test_unexpected_tag_file(self):
        mkfiles(self.bagdir, {"notes/readme.txt": "hello"})
        with self.assertRaises(UnexpectedFileError) as cm:
            VerificationEngine(self.open()).verify()
        self.assertEqual(cm.exception.path, "notes/readme.txt")
        self.assertEqual(cm.exception.manifest, "tagmanifest-md5.txt")

    def test_unsupported_version(self):
        write_text(self.path("bagit.txt"),
                   "BagIt-Version: 0.95\nTag-File-Character-Encoding: UTF-8\n")
        engine = VerificationEngine(self.open())
        with self.assertRaises(UnsupportedVersionError) as cm:
            engine.verify()
        self.assertEqual(cm.exception.version, "0.95")
        self.assertEqual(cm.exception.message, "Bag Version 0.95 is unsupported")

    def test_forced_manifest(self):
        os.remove(self.path("manifest-sha512.txt"))
        with self.assertRaises(LayoutError) as cm:
            VerificationEngine(self.open()).check_preconditions()
        self.assertIn("is not a regular file for bagit 1.0",
                      cm.exception.message)

        write_text(self.path("bagit.txt"),
                   "BagIt-Version: 0.97\nTag-File-Character-Encoding: UTF-8\n")
        VerificationEngine(self.open()).check_preconditions()

        os.remove(self.path("manifest-md5.txt"))
        with self.assertRaises(LayoutError):
            VerificationEngine(self.open()).check_preconditions()

    def test_uppercase_manifest_name(self):
        os.rename(self.path("manifest-sha512.txt"),
                  self.path("manifest-SHA512.txt"))
        engine = VerificationEngine(self.open())
        engine.check_preconditions()

        report = engine.verify_payload()
        self.assertTrue(report.ok())
        self.assertEqual(report.unverifiable, {})
        self.assertEqual(report.checked, 4)

    def test_missing_payload_dir(self):
        bag = self.open()
        shutil.rmtree(self.path("data"))
        with self.assertRaises(LayoutError):
            VerificationEngine(bag).verify()

    def test_uppercase_digests(self):
        text = read_text(self.path("manifest-md5.txt"))
        lines = [line.split(None, 1) for line in text.splitlines()]
        write_text(self.path("manifest-md5.txt"),
                   "".join(["{0}  {1}\n".format(d.upper(), p)
                            for d, p in lines]))

        report = VerificationEngine(self.open()).verify_payload()
        self.assertTrue(report.ok())
        self.assertEqual(report.checked, 4)

    def test_verify_oxum(self):
        bag = self.open()
        engine = VerificationEngine(bag)
        self.assertTrue(engine.verify_oxum())

        mkfiles(self.bagdir, {"data/c.txt": "more"})
        with self.assertRaises(BagValidationError) as cm:
            engine.verify_oxum()
        self.assertIn("Expected 2 files and 8 bytes but found 3 files and "
                      "12 bytes", cm.exception.message)

        bag.info.add_or_replace("Payload-Oxum", "12")
        with self.assertRaises(ParseError):
            engine.verify_oxum()

        bag.info.add_or_replace("Payload-Oxum", "12.3")
        bag.info.add("Payload-Oxum", "8.2")
        self.assertTrue(engine.verify_oxum())

    def test_custom_logger(self):
        log = logging.getLogger("archivebag.test")
        bag = Bag(self.bagdir)
        self.bags.append(bag)
        report = bag.verify(logger=log)
        self.assertTrue(report.ok())


if __name__ == '__main__':
    test.main()
