from unittest import TestLoader, TestSuite

def additional_tests():
    from . import test_path, test_layout, test_bag

    suites = [TestLoader().loadTestsFromModule(m)
              for m in (test_path, test_layout, test_bag)]
    return TestSuite(suites)
