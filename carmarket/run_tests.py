#!/usr/bin/env python
"""
Test runner for the whole API
Usage: python -m carmarket.run_tests (or pytest from the repository root)
"""
import os
import sys

import django
from django.conf import settings
from django.test.utils import get_runner

if __name__ == "__main__":
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'carmarket.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    failures = test_runner.run_tests([
        'carmarket.core',
        'carmarket.listings',
        'carmarket.messaging',
        'carmarket.dashboard',
    ])
    sys.exit(bool(failures))
