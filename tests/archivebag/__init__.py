from unittest import TestLoader, TestSuite

def additional_tests():
    from . import (test_constants, test_algorithms, test_tagfile,
                   test_manifest, test_build)

    suites = [TestLoader().loadTestsFromModule(m)
              for m in (test_constants, test_algorithms, test_tagfile,
                        test_manifest, test_build)]
    return TestSuite(suites)
