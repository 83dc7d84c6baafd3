# encoding: utf-8
import json
import unittest as test

from archivebag.validate.report import (VerificationReport, FixityMismatch,
                                        UnexpectedFile)

class TestFixityMismatch(test.TestCase):

    def test_str(self):
        mm = FixityMismatch("data/a.txt", "md5", "abc", "def",
                            "manifest-md5.txt")
        self.assertEqual(str(mm), "data/a.txt: md5 digest calculated=abc, "
                                  "but expected=def in manifest-md5.txt")
        self.assertEqual(mm.path, "data/a.txt")

class TestVerificationReport(test.TestCase):

    def setUp(self):
        self.report = VerificationReport("/bags/goober")

    def test_empty(self):
        self.assertTrue(self.report.ok())
        self.assertEqual(self.report.count_failed(), 0)
        self.assertEqual(self.report.failure_descriptions(), [])
        self.assertEqual(self.report.summary,
                         "/bags/goober: verified (0 digests checked)")
        self.assertEqual(str(self.report), self.report.summary)
        self.assertEqual(self.report.description, self.report.summary)

    def test_failures(self):
        self.report.checked = 3
        mm = self.report.add_mismatch("data/a.txt", "md5", "abc", "def",
                                      "manifest-md5.txt")
        self.assertIsInstance(mm, FixityMismatch)
        self.report.add_mismatch("data/a.txt", "sha512", "123", "456",
                                 "manifest-sha512.txt")
        self.report.add_missing("data/c.txt", "md5", "manifest-md5.txt")
        self.report.add_missing("data/c.txt", "sha512", "manifest-sha512.txt")
        self.report.add_unexpected("data/d.txt", "md5", "manifest-md5.txt")

        self.assertFalse(self.report.ok())
        self.assertEqual(self.report.count_failed(), 4)
        self.assertEqual(self.report.mismatched_paths(), ["data/a.txt"])
        self.assertEqual(self.report.unexpected,
                         [UnexpectedFile("data/d.txt", "md5",
                                         "manifest-md5.txt")])
        self.assertEqual(self.report.summary,
                         "/bags/goober: verification failed with 4 error(s)")

        descs = self.report.failure_descriptions()
        self.assertEqual(len(descs), 4)
        self.assertEqual(descs[0], "Unexpected file not in manifest-md5.txt: "
                                   "data/d.txt")
        self.assertEqual(descs[1], "Missing file 'data/c.txt' listed in "
                                   "manifest-md5.txt, manifest-sha512.txt")

        lines = self.report.description.split("\n")
        self.assertEqual(len(lines), 5)
        self.assertEqual(lines[0], self.report.summary)

    def test_unverifiable(self):
        self.report.add_unverifiable("foo", "manifest-foo.txt", 2)
        self.assertTrue(self.report.ok())
        self.assertEqual(self.report.summary,
                         "/bags/goober: verified (0 digests checked); "
                         "unverifiable algorithm(s): foo")
        self.assertIn("2 entries in manifest-foo.txt were not checked",
                      self.report.description)

    def test_to_json_obj(self):
        self.report.checked = 1
        self.report.add_missing("data/c.txt", "md5", "manifest-md5.txt")
        self.report.add_unverifiable("foo", "manifest-foo.txt", 2)

        data = self.report.to_json_obj()
        self.assertEqual(data['target'], "/bags/goober")
        self.assertFalse(data['ok'])
        self.assertEqual(data['checked'], 1)
        self.assertEqual(data['mismatches'], [])
        self.assertEqual(data['missing'],
                         {"data/c.txt": [{"algorithm": "md5",
                                          "manifest": "manifest-md5.txt"}]})
        self.assertEqual(data['unverifiable'],
                         {"foo": {"manifest": "manifest-foo.txt",
                                  "entries": 2}})

        # must be encodable
        self.assertIn('"target": "/bags/goober"', json.dumps(data))


if __name__ == '__main__':
    test.main()
