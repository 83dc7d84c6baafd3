from unittest import TestLoader, TestSuite

def additional_tests():
    from . import test_report, test_engine

    suites = [TestLoader().loadTestsFromModule(m)
              for m in (test_report, test_engine)]
    return TestSuite(suites)
